from __future__ import annotations
import uuid
from datetime import datetime
from typing import Optional, Sequence

from fastapi import Depends
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..models import CaregiverLink, Profile, Registration
from .base import RegistrationRecord, StoreError


def _record_select():
    return (
        select(Registration, Profile.full_name, Profile.role)
        .outerjoin(Profile, Profile.id == Registration.user_id)
    )


def _to_record(reg: Registration, full_name: Optional[str], role: Optional[str]) -> RegistrationRecord:
    return RegistrationRecord(
        id=reg.id,
        event_id=reg.event_id,
        user_id=reg.user_id,
        lookup_hash=reg.lookup_hash,
        attendance_state=reg.attendance_state,
        checked_in_at=reg.checked_in_at,
        checked_in_by=reg.checked_in_by,
        attendance_notes=reg.attendance_notes,
        attendee_name=full_name,
        attendee_role=role,
    )


class SqlRegistrationStore:
    """RegistrationStore over an AsyncSession. One statement + commit per mutation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _first(self, stmt) -> Optional[RegistrationRecord]:
        try:
            row = (await self.db.execute(stmt)).first()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("registration lookup failed") from e
        if not row:
            return None
        reg, full_name, role = row
        return _to_record(reg, full_name, role)

    async def get_by_id(self, registration_id: uuid.UUID) -> Optional[RegistrationRecord]:
        return await self._first(_record_select().where(Registration.id == registration_id))

    async def get_by_hash(self, lookup_hash: str) -> Optional[RegistrationRecord]:
        return await self._first(_record_select().where(Registration.lookup_hash == lookup_hash))

    async def set_hash(self, registration_id: uuid.UUID, lookup_hash: str) -> bool:
        try:
            res = await self.db.execute(
                update(Registration)
                .where(Registration.id == registration_id)
                .values(lookup_hash=lookup_hash)
                .returning(Registration.id)
            )
            found = res.scalar_one_or_none() is not None
            if not found:
                await self.db.rollback()
                return False
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("lookup hash write failed") from e
        return True

    async def mark_attended(
        self,
        registration_id: uuid.UUID,
        *,
        lookup_hash: str,
        checked_in_at: datetime,
        checked_in_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> bool:
        values = {"attendance_state": "attended", "checked_in_at": checked_in_at}
        if checked_in_by:
            values["checked_in_by"] = checked_in_by
        if notes:
            values["attendance_notes"] = notes

        try:
            # compare-and-set: exactly one concurrent caller matches 'registered'
            res = await self.db.execute(
                update(Registration)
                .where(
                    Registration.id == registration_id,
                    Registration.lookup_hash == lookup_hash,
                    Registration.attendance_state == "registered",
                )
                .values(**values)
                .returning(Registration.id)
            )
            won = res.scalar_one_or_none() is not None
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("attendance update failed") from e
        return won

    async def manages_participant(self, caregiver_id: str, participant_id: str) -> bool:
        try:
            res = await self.db.execute(
                select(CaregiverLink.id).where(
                    CaregiverLink.caregiver_id == caregiver_id,
                    CaregiverLink.participant_id == participant_id,
                )
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("caregiver link lookup failed") from e
        return res.scalar_one_or_none() is not None

    async def list_for_event(self, event_id: uuid.UUID) -> Sequence[RegistrationRecord]:
        try:
            rows = await self.db.execute(
                _record_select()
                .where(Registration.event_id == event_id)
                .order_by(Registration.created_at.asc())
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("roster lookup failed") from e
        return [_to_record(reg, full_name, role) for reg, full_name, role in rows.all()]


async def get_store(db: AsyncSession = Depends(get_db)) -> SqlRegistrationStore:
    return SqlRegistrationStore(db)
