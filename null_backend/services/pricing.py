"""
Motore tariffario / Pricing engine.
Tariffe orarie e giornaliere per taglia di cella, arrotondamento half-up a 2 decimali.
Hourly and daily tiers per cell size, half-up rounding to 2 decimals.
"""

from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from null_backend.models.cell import CellSize
from null_backend.services.durations import Duration

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class Tariff:
    hourly: Decimal
    daily: Decimal


# EUR, chiavi = valori di CellSize / keys = CellSize values
TARIFFS: dict[str, Tariff] = {
    CellSize.SMALL.value: Tariff(hourly=Decimal("0.50"), daily=Decimal("5.00")),
    CellSize.MEDIUM.value: Tariff(hourly=Decimal("1.00"), daily=Decimal("10.00")),
    CellSize.LARGE.value: Tariff(hourly=Decimal("2.00"), daily=Decimal("20.00")),
    CellSize.EXTRA_LARGE.value: Tariff(hourly=Decimal("3.00"), daily=Decimal("30.00")),
}


def round_money(value: Decimal) -> Decimal:
    """Arrotonda ai centesimi (half-up) / Round to cents (half-up)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class PricingEngine:
    """Calcolo dei costi di deposito / Deposit cost calculation."""

    @staticmethod
    def tariff(size: CellSize | str | None) -> Tariff:
        """Taglia sconosciuta = media / Unknown size falls back to medium."""
        key = size.value if isinstance(size, CellSize) else size
        return TARIFFS.get(key or "", TARIFFS[CellSize.MEDIUM.value])

    @staticmethod
    def quote(size: CellSize | str | None, duration: Duration) -> Decimal:
        """
        Costo per una durata / Cost for a duration.
        Ore: tariffa oraria x ore. Giorni: tariffa giornaliera x giorni.
        Hours: hourly rate x hours. Days: daily rate x days.
        """
        tariff = PricingEngine.tariff(size)
        if duration.unit == "h":
            return round_money(tariff.hourly * duration.amount)
        return round_money(tariff.daily * duration.amount)

    @staticmethod
    def final_cost(size: CellSize | str | None, elapsed: timedelta) -> Decimal:
        """Costo a chiusura: ore trascorse, minimo una tariffa oraria /
        Closing cost: elapsed hours, at least one hourly unit."""
        hourly = PricingEngine.tariff(size).hourly
        hours = Decimal(str(max(elapsed.total_seconds(), 0))) / Decimal(3600)
        return max(hourly, round_money(hourly * hours))

    @staticmethod
    def price_for_cell(size: CellSize | str | None, price_hint: Decimal | None = None) -> dict:
        """Prezzi mostrati per una cella / Prices displayed for a cell."""
        tariff = PricingEngine.tariff(size)
        hourly = round_money(price_hint) if price_hint is not None else tariff.hourly
        return {"hourly": float(hourly), "daily": float(tariff.daily)}
