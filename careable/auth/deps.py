from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from jwt import PyJWTError
from fastapi import status

from ..services.ticket_access import is_staff
from .jwt import role_from_claims, session_token, verify_jwt


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return is_staff(self.role)


async def get_current_actor(request: Request) -> Actor:
    token = session_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        claims = verify_jwt(token)
    except PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")

    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")
    return Actor(user_id=str(user_id), role=role_from_claims(claims))


async def require_staff(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only staff can verify attendance")
    return actor
