from __future__ import annotations
import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from ..config import get_settings

S = get_settings()


def render_png(payload: str, *, box_size: int | None = None, border: int | None = None) -> bytes:
    """Encode payload as a QR code and return PNG bytes."""
    qr = qrcode.QRCode(
        version=None,  # smallest version that fits
        error_correction=ERROR_CORRECT_M,  # ~15% damage tolerance
        box_size=box_size or S.QR_BOX_SIZE,
        border=S.QR_BORDER if border is None else border,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_uri(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
