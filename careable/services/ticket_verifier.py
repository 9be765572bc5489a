from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional

from ..observability.metrics import TICKET_VERIFICATIONS
from ..repos.base import RegistrationRecord, RegistrationStore, StoreError
from .ticket_access import STAFF_ROLES
from .ticket_codec import lookup_hash, normalize_secret
from .ticket_errors import Forbidden, UpdateFailed

log = logging.getLogger("careable.tickets")

VerifyStatus = Literal["ok", "already_checked_in", "invalid"]


@dataclass(frozen=True)
class VerificationOutcome:
    status: VerifyStatus
    registration_id: Optional[uuid.UUID] = None
    attendee_name: Optional[str] = None
    attendee_role: Optional[str] = None
    checked_in_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


INVALID = VerificationOutcome(status="invalid")
ALREADY_CHECKED_IN = VerificationOutcome(status="already_checked_in")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _outcome(status: VerifyStatus, reg: Optional[RegistrationRecord] = None, **kw) -> VerificationOutcome:
    TICKET_VERIFICATIONS.labels(outcome=status).inc()
    if status == "invalid":
        return INVALID
    if status == "already_checked_in":
        return ALREADY_CHECKED_IN
    return VerificationOutcome(
        status=status,
        registration_id=reg.id,
        attendee_name=reg.attendee_name or "Attendee",
        attendee_role=reg.attendee_role,
        **kw,
    )


async def verify_ticket(
    store: RegistrationStore,
    secret,
    *,
    staff_actor_id: Optional[str] = None,
    notes: Optional[str] = None,
    actor_role: Optional[str] = None,
) -> VerificationOutcome:
    """Redeem a scanned ticket secret and mark the registration attended.

    Unknown, superseded and malformed secrets all come back as "invalid".
    A registration is redeemed at most once, however many scans race: the
    write is a compare-and-set on (id, lookup_hash, 'registered') and the
    losers re-read to report what happened.

    If actor_role is given it must be staff or admin (Forbidden otherwise).
    Raises UpdateFailed when the store write errors.
    """
    if actor_role is not None and actor_role not in STAFF_ROLES:
        raise Forbidden(actor_role)

    token = normalize_secret(secret)
    if token is None:
        log.info("qr_verify_invalid", extra={"reason": "malformed"})
        return _outcome("invalid")

    digest = lookup_hash(token)
    try:
        reg = await store.get_by_hash(digest)
    except StoreError as e:
        raise UpdateFailed("lookup") from e

    if reg is None:
        log.info("qr_verify_invalid", extra={"reason": "unknown", "hash_prefix": digest[:12]})
        return _outcome("invalid")

    # replay check before any write
    if reg.attended:
        log.info("qr_verify_replay", extra={"registration_id": str(reg.id)})
        return _outcome("already_checked_in")

    now = _now_utc()
    try:
        won = await store.mark_attended(
            reg.id,
            lookup_hash=digest,
            checked_in_at=now,
            checked_in_by=staff_actor_id,
            notes=notes,
        )
    except StoreError as e:
        log.error("qr_verify_update_failed", extra={"registration_id": str(reg.id)})
        raise UpdateFailed(str(reg.id)) from e

    if not won:
        # lost the race: either someone redeemed it or it was re-issued meanwhile
        try:
            current = await store.get_by_id(reg.id)
        except StoreError as e:
            raise UpdateFailed(str(reg.id)) from e
        if current is not None and current.attended:
            log.info("qr_verify_replay", extra={"registration_id": str(reg.id)})
            return _outcome("already_checked_in")
        log.info("qr_verify_invalid", extra={"reason": "superseded", "registration_id": str(reg.id)})
        return _outcome("invalid")

    log.info(
        "qr_verified",
        extra={"registration_id": str(reg.id), "checked_in_by": staff_actor_id or ""},
    )
    return _outcome("ok", reg, checked_in_at=now)
