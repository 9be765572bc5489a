from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass, field

from ..observability.metrics import TICKETS_ISSUED
from ..repos.base import RegistrationStore, StoreError
from . import qr_image
from .ticket_codec import lookup_hash, new_secret
from .ticket_errors import IssuanceFailed, NotFound

log = logging.getLogger("careable.tickets")


@dataclass(frozen=True)
class IssuedTicket:
    registration_id: uuid.UUID
    secret: str = field(repr=False)
    lookup_hash: str
    png: bytes = field(repr=False)

    @property
    def data_uri(self) -> str:
        return qr_image.to_data_uri(self.png)


async def issue_ticket(store: RegistrationStore, registration_id: uuid.UUID) -> IssuedTicket:
    """
    Mint a fresh ticket for a registration and return it with its QR image.

    - The stored lookup hash is replaced, so every earlier secret for this
      registration stops verifying at once.
    - All-or-nothing: the secret is only handed back after the hash write
      committed. The image is rendered first so nothing can fail after it.
    - Authorization is the caller's job; this only writes.

    Raises NotFound if the registration does not exist, IssuanceFailed if the
    store write did not complete.
    """
    secret = new_secret()
    digest = lookup_hash(secret)
    png = qr_image.render_png(secret)

    try:
        found = await store.set_hash(registration_id, digest)
    except StoreError as e:
        log.error("qr_issue_failed", extra={"registration_id": str(registration_id)})
        raise IssuanceFailed(str(registration_id)) from e

    if not found:
        raise NotFound(str(registration_id))

    TICKETS_ISSUED.inc()
    log.info(
        "qr_issued",
        extra={"registration_id": str(registration_id), "hash_prefix": digest[:12]},
    )
    return IssuedTicket(registration_id=registration_id, secret=secret, lookup_hash=digest, png=png)
