"""Check-in code generation.

A check-in code is a QR image encoding ``{event_code}-{mobile}``. Every
generation is uploaded under a fresh
``qrcodes/{mobile}-{millis}-{nonce}.png`` path, so regenerating twice in the
same millisecond cannot collide; previous images are left in place.
"""
import io
import logging
import re
import secrets
import time

import qrcode
from qrcode.exceptions import DataOverflowError

from reunion.collaborators import StorageClient

logger = logging.getLogger(__name__)

QR_PREFIX = "qrcodes"


def qr_seed(event_code: str, mobile: str) -> str:
    """The exact string encoded in a participant's check-in code."""
    return f"{event_code}-{mobile}"


def render_qr_png(data: str) -> bytes:
    """Render ``data`` as a PNG QR code.

    Raises ``ValueError`` when ``data`` does not fit in the largest QR version.
    """
    qr = qrcode.QRCode(box_size=10, border=4)
    qr.add_data(data)
    try:
        qr.make(fit=True)
    except DataOverflowError as e:
        raise ValueError(f"Too much data for a QR code ({len(data)} characters)") from e

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def safe_path_part(value: str) -> str:
    """Reduce a phone number to characters safe in a storage path."""
    return re.sub(r"[^0-9A-Za-z+-]", "", value) or "unknown"


class ArtifactGenerator:
    """Renders check-in codes and publishes them to object storage."""

    def __init__(self, storage: StorageClient, event_code: str, clock=time.time):
        self.storage = storage
        self.event_code = event_code
        self._clock = clock

    def artifact_path(self, mobile: str) -> str:
        millis = int(self._clock() * 1000)
        nonce = secrets.token_hex(4)
        return f"{QR_PREFIX}/{safe_path_part(mobile)}-{millis}-{nonce}.png"

    async def generate(self, mobile: str) -> str:
        """Create and upload a new code for ``mobile``; return its public URL.

        Storage failures propagate as ``CollaboratorFailure``.
        """
        png = render_qr_png(qr_seed(self.event_code, mobile))
        path = self.artifact_path(mobile)
        await self.storage.put_object(path, png, "image/png")
        url = self.storage.public_url(path)
        logger.info(f"Generated check-in code {path}")
        return url
