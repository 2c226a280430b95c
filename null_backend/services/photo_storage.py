"""Archivio foto / Photo storage (base64 data URL -> file under UPLOAD_DIR)."""

import base64
import binascii
import logging
import re
from pathlib import Path

from null_backend.config import settings
from null_backend.errors import ValidationError
from null_backend.utils.clock import epoch_ms, utcnow

logger = logging.getLogger(__name__)

DATA_URL_RE = re.compile(r"^data:image/(jpeg|jpg|png|webp);base64,(.+)$", re.DOTALL)

PUBLIC_PREFIX = "/uploads/photos"


class PhotoStorage:
    """Salva le foto delle sessioni / Stores session photos."""

    def __init__(self, root: str | Path | None = None, max_bytes: int | None = None):
        self.root = Path(root or settings.UPLOAD_DIR) / "photos"
        self.max_bytes = max_bytes or settings.MAX_PHOTO_BYTES

    def decode(self, data_url: str) -> tuple[str, bytes]:
        """Estrae (estensione, contenuto) / Extract (extension, content)."""
        match = DATA_URL_RE.match(data_url or "")
        if not match:
            raise ValidationError("Invalid photo format: JPEG, PNG or WEBP base64 data URL required")
        ext = "jpg" if match.group(1) == "jpeg" else match.group(1)
        try:
            content = base64.b64decode(match.group(2), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Invalid photo encoding")
        if len(content) > self.max_bytes:
            raise ValidationError(f"Photo too large (max {self.max_bytes // (1024 * 1024)}MB)")
        return ext, content

    def save(self, data_url: str, rental_code: str) -> str:
        """Scrive il file e ritorna l'URL pubblico / Write the file and return its public URL."""
        ext, content = self.decode(data_url)
        self.root.mkdir(parents=True, exist_ok=True)
        filename = f"photo-{rental_code}-{epoch_ms(utcnow())}.{ext}"
        (self.root / filename).write_bytes(content)
        logger.info("Photo stored: %s (%d bytes)", filename, len(content))
        return f"{PUBLIC_PREFIX}/{filename}"

    def discard(self, url: str | None) -> None:
        """Rimuove una foto di una transazione annullata / Remove a photo of a rolled back transaction."""
        if not url:
            return
        path = self.root / url.rsplit("/", 1)[-1]
        path.unlink(missing_ok=True)
        logger.info("Photo discarded: %s", path.name)
