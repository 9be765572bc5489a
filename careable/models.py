from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------- Base & naming ----------
class Base(DeclarativeBase):
    # Keep index/constraint names stable for cleaner migrations
    metadata = sa.MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s",
        }
    )


# ---------- PROFILES (mirrors identity-provider users) ----------
class Profile(Base):
    __tablename__ = "profiles"

    # identity-provider user id, e.g. "user_2abc..."
    id: Mapped[str] = mapped_column(sa.Text, primary_key=True)
    full_name: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    role: Mapped[str] = mapped_column(
        sa.Text,
        nullable=False,
        default="participant",
        server_default=sa.text("'participant'"),
    )  # 'participant' | 'volunteer' | 'caregiver' | 'staff' | 'admin'

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "role in ('participant','volunteer','caregiver','staff','admin')",
            name="profiles_role",
        ),
    )


# ---------- EVENTS ----------
class Event(Base):
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(sa.Text, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )

    __table_args__ = (Index("ix_events_starts_at", "starts_at"),)


# ---------- CAREGIVER <-> PARTICIPANT links ----------
class CaregiverLink(Base):
    __tablename__ = "caregiver_participants"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    caregiver_id: Mapped[str] = mapped_column(sa.Text, ForeignKey("profiles.id"), nullable=False)
    participant_id: Mapped[str] = mapped_column(sa.Text, ForeignKey("profiles.id"), nullable=False)
    relationship: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )

    __table_args__ = (
        UniqueConstraint("caregiver_id", "participant_id", name="uq_caregiver_participant"),
    )


# ---------- REGISTRATIONS ----------
class Registration(Base):
    __tablename__ = "registrations"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    event_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, ForeignKey("events.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(sa.Text, ForeignKey("profiles.id"), nullable=False)
    registration_source: Mapped[str] = mapped_column(
        sa.Text,
        nullable=False,
        default="self",
        server_default=sa.text("'self'"),
    )  # 'self' | 'caregiver'

    # SHA-256 hex of the live ticket secret; replaced on every issuance
    lookup_hash: Mapped[Optional[str]] = mapped_column(sa.String(64), nullable=True, unique=True)

    attendance_state: Mapped[str] = mapped_column(
        sa.Text,
        nullable=False,
        default="registered",
        server_default=sa.text("'registered'"),
    )  # 'registered' | 'attended'
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    checked_in_by: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    attendance_notes: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )

    __table_args__ = (
        CheckConstraint("attendance_state in ('registered','attended')", name="registrations_attendance_state"),
        CheckConstraint("registration_source in ('self','caregiver')", name="registrations_source"),
        CheckConstraint(
            "(attendance_state = 'attended') = (checked_in_at IS NOT NULL)",
            name="registrations_checked_in_at",
        ),
        UniqueConstraint("event_id", "user_id", name="uq_registrations_event_user"),
        Index("ix_reg_event_state", "event_id", "attendance_state"),
    )
