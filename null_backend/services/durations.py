"""
Durate delle sessioni / Session durations.
Formato "{N}h" o "{N}d"; i prestiti accettano solo giorni.
Format "{N}h" or "{N}d"; borrows accept days only.
"""

import re
from dataclasses import dataclass
from datetime import timedelta

from null_backend.errors import ValidationError
from null_backend.models.rental import RentalType

DURATION_RE = re.compile(r"^([0-9]+)(h|d)$")

MAX_DAYS = 30
MAX_HOURS = MAX_DAYS * 24

DEFAULT_DURATIONS = {
    RentalType.DEPOSIT: "1h",
    RentalType.BORROW: "7d",
    RentalType.PICKUP: "1d",
}


@dataclass(frozen=True)
class Duration:
    """Durata analizzata / Parsed duration."""
    amount: int
    unit: str  # "h" | "d"

    @property
    def hours(self) -> int:
        return self.amount if self.unit == "h" else self.amount * 24

    def as_timedelta(self) -> timedelta:
        return timedelta(hours=self.hours)

    def __str__(self) -> str:
        return f"{self.amount}{self.unit}"


def _parse(raw: str) -> Duration | None:
    match = DURATION_RE.match((raw or "").strip().lower())
    if not match:
        return None
    return Duration(amount=int(match.group(1)), unit=match.group(2))


def parse_duration(raw: str | None, rental_type: RentalType) -> Duration:
    """Valida la durata secondo il tipo di sessione / Validate the duration for the session type.

    Deposito e ritiro: da 1h a 30d inclusi. Prestito: da 1 a 30 giorni, solo "{N}d".
    Deposit and pickup: 1h to 30d inclusive. Borrow: 1 to 30 days, "{N}d" only.
    """
    if raw is None or not str(raw).strip():
        raw = DEFAULT_DURATIONS[rental_type]

    duration = _parse(str(raw))

    if rental_type == RentalType.BORROW:
        if duration is None or duration.unit != "d":
            raise ValidationError(
                f'Invalid borrow duration "{raw}": use "{{N}}d" with N between 1 and {MAX_DAYS} days'
            )
        if not 1 <= duration.amount <= MAX_DAYS:
            raise ValidationError(f"Borrow duration must be between 1 and {MAX_DAYS} days")
        return duration

    if duration is None:
        raise ValidationError(
            f'Invalid duration "{raw}": use "{{N}}h" or "{{N}}d" (e.g. "2h", "3d")'
        )
    if not 1 <= duration.hours <= MAX_HOURS:
        raise ValidationError(f"Duration must be between 1h and {MAX_DAYS}d")
    return duration
