from __future__ import annotations
import uuid
from datetime import datetime
from typing import Literal, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, model_validator

AttendanceState = Literal["registered", "attended"]


class StoreError(Exception):
    """The durable store could not complete a read or write."""


class RegistrationRecord(BaseModel):
    """A registration row (joined with its subject's profile) as seen by the ticket services."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: uuid.UUID
    event_id: uuid.UUID
    user_id: str
    lookup_hash: Optional[str] = None
    attendance_state: AttendanceState = "registered"
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    attendance_notes: Optional[str] = None
    attendee_name: Optional[str] = None
    attendee_role: Optional[str] = None

    @model_validator(mode="after")
    def _checked_in_at_matches_state(self):
        if (self.attendance_state == "attended") != (self.checked_in_at is not None):
            raise ValueError("checked_in_at must be set if and only if attendance_state is 'attended'")
        return self

    @property
    def attended(self) -> bool:
        return self.attendance_state == "attended"


class RegistrationStore(Protocol):
    """Persistence the ticket issuer/verifier depend on.

    Mutating calls are atomic on their own; implementations commit (or roll
    back) inside each call and raise StoreError on failure.
    """

    async def get_by_id(self, registration_id: uuid.UUID) -> Optional[RegistrationRecord]: ...

    async def get_by_hash(self, lookup_hash: str) -> Optional[RegistrationRecord]: ...

    async def set_hash(self, registration_id: uuid.UUID, lookup_hash: str) -> bool:
        """Replace the registration's lookup hash. False if the row does not exist."""
        ...

    async def mark_attended(
        self,
        registration_id: uuid.UUID,
        *,
        lookup_hash: str,
        checked_in_at: datetime,
        checked_in_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> bool:
        """registered -> attended, only while lookup_hash is still live. True if this call won."""
        ...

    async def manages_participant(self, caregiver_id: str, participant_id: str) -> bool: ...

    async def list_for_event(self, event_id: uuid.UUID) -> Sequence[RegistrationRecord]: ...
