"""QR code image rendering."""
import io
import re

import qrcode
from qrcode.constants import ERROR_CORRECT_H

from qr_service.core.setting import settings


def build_qr_payload(qr_code, base_url: str = settings.BASE_URL) -> str:
    """Return what the printed image encodes.

    Dynamic codes point at the redirector so the destination can change
    without reprinting. Static codes embed the destination itself.
    """
    if qr_code.is_dynamic:
        return f"{base_url.rstrip('/')}/r/{qr_code.id}"
    return qr_code.destination_url


def render_qr_png(payload: str, box_size: int = settings.QR_BOX_SIZE) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_H,
        box_size=box_size,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def download_filename(name: str) -> str:
    """``"Menu do Dia"`` -> ``"Menu-do-Dia-qrcode.png"``"""
    slug = re.sub(r"\s+", "-", name.strip())
    return f"{slug}-qrcode.png"
