"""Utilità orarie / Time helpers.

Gli istanti sono salvati in UTC naive, le etichette HH:MM nel fuso locale.
Instants are stored as naive UTC, HH:MM labels use the local timezone.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from null_backend.config import settings


def utcnow() -> datetime:
    """Istante corrente UTC senza tzinfo / Current UTC instant without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clock_label(moment: datetime) -> str:
    """Orario HH:MM nel fuso locale / HH:MM label in the local timezone."""
    aware = moment.replace(tzinfo=timezone.utc)
    return aware.astimezone(ZoneInfo(settings.LOCAL_TIMEZONE)).strftime("%H:%M")


def epoch_ms(moment: datetime) -> int:
    return int(moment.replace(tzinfo=timezone.utc).timestamp() * 1000)


def to_naive_utc(moment: datetime | None) -> datetime | None:
    """Normalizza un input con fuso in UTC naive / Normalize a tz-aware input to naive UTC."""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)
