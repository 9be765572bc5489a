from __future__ import annotations
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse

from ...auth.deps import Actor, get_current_actor, require_staff
from ...domain.schemas.tickets import (
    AttendanceRowOut, IssueIn, IssueOut, VerifyIn, VerifyOkOut, VerifyRejectedOut,
)
from ...repos.base import RegistrationStore, StoreError
from ...repos.registrations import get_store
from ...services.rate_limit import limit_qr_issue, limit_qr_verify
from ...services.ticket_access import can_issue_for
from ...services.ticket_errors import Forbidden, IssuanceFailed, NotFound, UpdateFailed
from ...services.ticket_issuer import issue_ticket
from ...services.ticket_verifier import verify_ticket

router = APIRouter(tags=["tickets"])


@router.post(
    "/qr/issue",
    response_model=IssueOut,
    responses={200: {"content": {"image/png": {}}}},
)
async def issue(
    payload: IssueIn,
    request: Request,
    fmt: Literal["json", "png"] = Query(default="json", alias="format"),
    current: Actor = Depends(get_current_actor),
    store: RegistrationStore = Depends(get_store),
):
    await limit_qr_issue(request, current.user_id)

    try:
        reg = await store.get_by_id(payload.registration_id)
        allowed = reg is not None and await can_issue_for(
            store, user_id=current.user_id, role=current.role, reg=reg
        )
    except StoreError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="registration lookup failed")
    if reg is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="registration not found")
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")

    try:
        ticket = await issue_ticket(store, payload.registration_id)
    except NotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="registration not found")
    except IssuanceFailed:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="failed to issue QR code; try again")

    # the secret only travels inside the image
    if fmt == "png":
        return Response(content=ticket.png, media_type="image/png", headers={"Cache-Control": "no-store"})
    return IssueOut(registration_id=ticket.registration_id, qr_code=ticket.data_uri)


@router.post(
    "/qr/verify",
    response_model=VerifyOkOut,
    responses={
        status.HTTP_409_CONFLICT: {"model": VerifyRejectedOut},
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": VerifyRejectedOut},
    },
)
async def verify(
    payload: VerifyIn,
    request: Request,
    current: Actor = Depends(require_staff),
    store: RegistrationStore = Depends(get_store),
):
    await limit_qr_verify(request, current.user_id)

    try:
        outcome = await verify_ticket(
            store,
            payload.token,
            staff_actor_id=current.user_id,
            notes=payload.notes or None,
            actor_role=current.role,
        )
    except Forbidden:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only staff can verify attendance")
    except UpdateFailed:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="failed to record attendance; scan again")

    if outcome.status == "already_checked_in":
        body = VerifyRejectedOut(reason="already_checked_in", error="This attendee has already checked in.")
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump())
    if outcome.status == "invalid":
        body = VerifyRejectedOut(reason="invalid_token", error="Invalid QR code.")
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=body.model_dump())

    return VerifyOkOut(
        registration_id=outcome.registration_id,
        attendee_name=outcome.attendee_name,
        role=outcome.attendee_role,
        checked_in_at=outcome.checked_in_at,
    )


@router.get("/events/{event_id}/attendance", response_model=list[AttendanceRowOut])
async def event_attendance(
    event_id: uuid.UUID,
    current: Actor = Depends(require_staff),
    store: RegistrationStore = Depends(get_store),
):
    try:
        rows = await store.list_for_event(event_id)
    except StoreError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="roster lookup failed")

    out = [
        AttendanceRowOut(
            registration_id=r.id,
            user_id=r.user_id,
            attendee_name=r.attendee_name,
            attendee_role=r.attendee_role,
            attendance_state=r.attendance_state,
            ticket_issued=r.lookup_hash is not None,
            checked_in_at=r.checked_in_at,
            checked_in_by=r.checked_in_by,
            attendance_notes=r.attendance_notes,
        )
        for r in rows
    ]
    # not yet arrived first, then by arrival time
    out.sort(key=lambda r: (0 if r.attendance_state == "registered" else 1, r.checked_in_at or 0))
    return out
