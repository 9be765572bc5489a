from __future__ import annotations

from ..repos.base import RegistrationRecord, RegistrationStore

STAFF_ROLES = frozenset({"staff", "admin"})


def is_staff(role: str | None) -> bool:
    return role in STAFF_ROLES


async def can_issue_for(store: RegistrationStore, *, user_id: str, role: str | None, reg: RegistrationRecord) -> bool:
    # subject, their linked caregiver, or staff/admin
    if is_staff(role):
        return True
    if reg.user_id == user_id:
        return True
    return await store.manages_participant(user_id, reg.user_id)
