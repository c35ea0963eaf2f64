"""QR rendering for placement tokens.

Consumes the token string only; nothing about the placement is looked up here.
"""
from __future__ import annotations

import io

import qrcode


def render_qr_png(token: str, box_size: int = 10, border: int = 4) -> bytes:
    if not token:
        raise ValueError("token must be non-empty")
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(token)
    qr.make(fit=True)
    img = qr.make_image()
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


__all__ = ["render_qr_png"]
