from __future__ import annotations
from typing import Any, Dict, Optional
import jwt  # PyJWT
from fastapi import Request

from ..config import get_settings

S = get_settings()


def verify_jwt(token: str) -> Dict[str, Any]:
    """Decode a session token minted by the identity provider."""
    options = {"verify_aud": S.JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        S.JWT_SECRET,
        algorithms=[S.JWT_ALGORITHM],
        audience=S.JWT_AUDIENCE,
        issuer=S.JWT_ISSUER,
        options=options,
    )


def role_from_claims(claims: Dict[str, Any]) -> Optional[str]:
    # providers put custom roles either top-level or under public metadata
    role = claims.get("role")
    if not role:
        meta = claims.get("metadata") or {}
        if isinstance(meta, dict):
            role = meta.get("role")
    return role or None


def session_token(request: Request) -> Optional[str]:
    """Bearer header first, then the identity provider's session cookie."""
    auth = request.headers.get("authorization")
    if auth and auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return request.cookies.get(S.SESSION_COOKIE_NAME)
