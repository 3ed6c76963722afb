from __future__ import annotations

import io
import secrets
from datetime import datetime, timezone

import qrcode

from ..core.constants import QR_CODE_SUFFIX_BYTES


def new_qr_code_data(name: str, now: datetime) -> str:
    """Opaque payload printed into a session's QR image: ``<name>-<random>-<epoch ms>``."""
    stamp = now if now.tzinfo else now.replace(tzinfo=timezone.utc)
    millis = int(stamp.timestamp() * 1000)
    return f"{name}-{secrets.token_urlsafe(QR_CODE_SUFFIX_BYTES)}-{millis}"


def render_qr_png(data: str, *, box_size: int = 10, border: int = 2) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
