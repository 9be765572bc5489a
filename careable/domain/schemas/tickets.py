import uuid
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, StringConstraints
from typing import Annotated


class IssueIn(BaseModel):
    registration_id: uuid.UUID


class IssueOut(BaseModel):
    status: Literal["ok"] = "ok"
    registration_id: uuid.UUID
    qr_code: str  # data:image/png;base64,...


class VerifyIn(BaseModel):
    # any JSON value; the verifier checks the shape so malformed codes come back as invalid_token
    token: Any = None
    notes: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]] = None


class VerifyOkOut(BaseModel):
    status: Literal["ok"] = "ok"
    verified: bool = True
    registration_id: uuid.UUID
    attendee_name: str
    role: Optional[str] = None
    checked_in_at: datetime


class VerifyRejectedOut(BaseModel):
    status: Literal["error"] = "error"
    verified: bool = False
    reason: Literal["already_checked_in", "invalid_token"]
    error: str


class AttendanceRowOut(BaseModel):
    registration_id: uuid.UUID
    user_id: str
    attendee_name: Optional[str] = None
    attendee_role: Optional[str] = None
    attendance_state: str  # registered | attended
    ticket_issued: bool = Field(description="a QR ticket has been issued at least once")
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    attendance_notes: Optional[str] = None
