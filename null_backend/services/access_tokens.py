"""
Emissione token di accesso / Access token issuer.
Payload QR versionato + token Bluetooth casuale per ogni sessione.
Versioned QR payload + random Bluetooth token per session.
"""

import base64
import hmac
import io
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

import qrcode
import qrcode.constants

from null_backend.utils.clock import epoch_ms, utcnow

logger = logging.getLogger(__name__)

QR_VERSION = "1.0"
QR_IMAGE_SIZE = 256


@dataclass(frozen=True)
class AccessTokens:
    qr_payload: str
    bluetooth_token: str
    qr_image: str | None = None  # data:image/png;base64,... se il rendering riesce


class AccessTokenIssuer:
    """Token QR/Bluetooth simulati / Simulated QR/Bluetooth tokens."""

    @staticmethod
    def build_payload(rental_code: str, cell_code: str, locker_code: str, issued_at: datetime | None = None) -> str:
        """Payload QR in JSON compatto / Compact JSON QR payload."""
        record = {
            "noleggioId": rental_code,
            "cellaId": cell_code,
            "lockerId": locker_code,
            "timestamp": epoch_ms(issued_at or utcnow()),
            "type": "cell_access",
            "version": QR_VERSION,
        }
        return json.dumps(record, separators=(",", ":"))

    @staticmethod
    def render_qr(payload: str) -> str | None:
        """Rendering PNG in data URL / PNG rendering as a data URL.

        Ritorna None se il rendering fallisce / Returns None when rendering fails.
        """
        try:
            qr = qrcode.QRCode(
                version=None,
                error_correction=qrcode.constants.ERROR_CORRECT_M,
                box_size=8,
                border=2,
            )
            qr.add_data(payload)
            qr.make(fit=True)
            img = qr.make_image(fill_color="black", back_color="white")
            img = img.resize((QR_IMAGE_SIZE, QR_IMAGE_SIZE))

            buffer = io.BytesIO()
            img.save(buffer, format="PNG")
            encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
            return f"data:image/png;base64,{encoded}"
        except Exception as e:
            logger.warning("QR rendering failed, returning raw payload only: %s", e)
            return None

    @classmethod
    def issue(cls, rental_code: str, cell_code: str, locker_code: str, render: bool = True) -> AccessTokens:
        """Nuova coppia di token, mai riusata tra sessioni / New token pair, never reused across sessions."""
        payload = cls.build_payload(rental_code, cell_code, locker_code)
        return AccessTokens(
            qr_payload=payload,
            bluetooth_token=str(uuid.uuid4()),
            qr_image=cls.render_qr(payload) if render else None,
        )

    @staticmethod
    def matches(stored: str | None, supplied: str) -> bool:
        """Confronto esatto a tempo costante / Exact constant-time comparison."""
        if stored is None:
            return False
        return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))
