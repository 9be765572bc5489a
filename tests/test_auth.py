import time

import jwt
import pytest
from fastapi import HTTPException
from starlette.requests import Request

from careable.auth.deps import get_current_actor, require_staff
from careable.auth.jwt import role_from_claims, session_token
from careable.config import get_settings
from tests.conftest import mk_token

pytestmark = pytest.mark.asyncio


def _request(headers: dict | None = None, cookies: dict | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    if cookies:
        raw.append((b"cookie", "; ".join(f"{k}={v}" for k, v in cookies.items()).encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw, "query_string": b""})


async def test_actor_from_bearer_header():
    actor = await get_current_actor(_request({"Authorization": f"Bearer {mk_token('user_s', 'staff')}"}))
    assert actor.user_id == "user_s"
    assert actor.role == "staff"
    assert actor.is_staff


async def test_actor_from_session_cookie():
    S = get_settings()
    actor = await get_current_actor(_request(cookies={S.SESSION_COOKIE_NAME: mk_token("user_p", "participant")}))
    assert actor.user_id == "user_p"
    assert not actor.is_staff


async def test_expired_token_is_rejected():
    S = get_settings()
    now = int(time.time())
    claims = {"sub": "user_s", "role": "staff", "iat": now - 120, "exp": now - 60}
    if S.JWT_AUDIENCE:
        claims["aud"] = S.JWT_AUDIENCE
    if S.JWT_ISSUER:
        claims["iss"] = S.JWT_ISSUER
    token = jwt.encode(claims, S.JWT_SECRET, algorithm=S.JWT_ALGORITHM)
    with pytest.raises(HTTPException) as e:
        await get_current_actor(_request({"Authorization": f"Bearer {token}"}))
    assert e.value.status_code == 401


async def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "user_s", "role": "admin"}, "some-other-secret-that-is-long-enough", algorithm="HS256")
    with pytest.raises(HTTPException) as e:
        await get_current_actor(_request({"Authorization": f"Bearer {token}"}))
    assert e.value.status_code == 401


async def test_require_staff():
    actor = await get_current_actor(_request({"Authorization": f"Bearer {mk_token('user_v', 'volunteer')}"}))
    with pytest.raises(HTTPException) as e:
        await require_staff(actor)
    assert e.value.status_code == 403

    admin = await get_current_actor(_request({"Authorization": f"Bearer {mk_token('user_a', 'admin', in_metadata=True)}"}))
    assert await require_staff(admin) is admin


async def test_role_claim_locations():
    assert role_from_claims({"role": "staff"}) == "staff"
    assert role_from_claims({"metadata": {"role": "admin"}}) == "admin"
    assert role_from_claims({"metadata": "junk"}) is None
    assert role_from_claims({}) is None


async def test_session_token_prefers_bearer_over_cookie():
    S = get_settings()
    both = _request({"Authorization": "Bearer from-header"}, cookies={S.SESSION_COOKIE_NAME: "from-cookie"})
    assert session_token(both) == "from-header"
    assert session_token(_request(cookies={S.SESSION_COOKIE_NAME: "from-cookie"})) == "from-cookie"
    assert session_token(_request({"Authorization": "Bearer   "})) is None
    assert session_token(_request()) is None
