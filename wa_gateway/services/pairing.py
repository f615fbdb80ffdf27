"""
wa_gateway/services/pairing.py

Purpose: Pairing code rendering

- Encodes the engine's raw pairing token as a QR PNG
- Returns it as a data URL the backend can drop into an <img>
"""

import base64
import io
from dataclasses import dataclass, field
from datetime import datetime, timezone

import qrcode

from wa_gateway.core.config import settings


@dataclass(frozen=True)
class PairingArtifact:
    """Latest pairing code for one user. Held in memory only."""
    token: str
    data_url: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def render_qr_png(token: str) -> bytes:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=settings.QR_BOX_SIZE,
        border=settings.QR_BORDER,
    )
    qr.add_data(token)
    qr.make(fit=True)
    img = qr.make_image(fill_color="#000000", back_color="#FFFFFF").convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_pairing(token: str) -> PairingArtifact:
    png = render_qr_png(token)
    data_url = "data:image/png;base64," + base64.b64encode(png).decode("ascii")
    return PairingArtifact(token=token, data_url=data_url)
