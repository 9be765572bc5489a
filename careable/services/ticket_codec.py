from __future__ import annotations
import hashlib
import re
import secrets
from typing import Optional

SECRET_BYTES = 32  # 256 bits -> 43 url-safe base64 chars

# url-safe base64 without padding, never shorter than a freshly minted secret
_SECRET_RE = re.compile(r"^[A-Za-z0-9_-]{43,128}$")


def new_secret() -> str:
    return secrets.token_urlsafe(SECRET_BYTES)


def lookup_hash(secret: str) -> str:
    """Verification hash stored in place of the secret.

    Plain SHA-256, no salt: the secret is high-entropy random, so there is no
    dictionary to defend against and lookups must stay deterministic.
    """
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def normalize_secret(raw) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    candidate = raw.strip()
    if not _SECRET_RE.match(candidate):
        return None
    return candidate
