"""profiles, events, caregiver links, registrations with QR ticket columns

Revision ID: 0001_init_schema
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_init_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("role", sa.Text(), nullable=False, server_default=sa.text("'participant'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "role in ('participant','volunteer','caregiver','staff','admin')",
            name="ck_profiles_profiles_role",
        ),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_events_starts_at", "events", ["starts_at"])

    op.create_table(
        "caregiver_participants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("caregiver_id", sa.Text(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("participant_id", sa.Text(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("relationship", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("caregiver_id", "participant_id", name="uq_caregiver_participant"),
    )

    op.create_table(
        "registrations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("event_id", sa.Uuid(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.Text(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("registration_source", sa.Text(), nullable=False, server_default=sa.text("'self'")),
        sa.Column("lookup_hash", sa.String(64), nullable=True),
        sa.Column("attendance_state", sa.Text(), nullable=False, server_default=sa.text("'registered'")),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("checked_in_by", sa.Text(), nullable=True),
        sa.Column("attendance_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "attendance_state in ('registered','attended')",
            name="ck_registrations_registrations_attendance_state",
        ),
        sa.CheckConstraint(
            "registration_source in ('self','caregiver')",
            name="ck_registrations_registrations_source",
        ),
        sa.CheckConstraint(
            "(attendance_state = 'attended') = (checked_in_at IS NOT NULL)",
            name="ck_registrations_registrations_checked_in_at",
        ),
        sa.UniqueConstraint("lookup_hash", name="uq_registrations_lookup_hash"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_registrations_event_user"),
    )
    op.create_index("ix_reg_event_state", "registrations", ["event_id", "attendance_state"])


def downgrade() -> None:
    op.drop_index("ix_reg_event_state", table_name="registrations")
    op.drop_table("registrations")
    op.drop_table("caregiver_participants")
    op.drop_index("ix_events_starts_at", table_name="events")
    op.drop_table("events")
    op.drop_table("profiles")
