"""Test del motore tariffario e delle durate / Pricing engine and duration tests."""

from datetime import timedelta
from decimal import Decimal

import pytest

from null_backend.errors import ValidationError
from null_backend.models.rental import RentalType
from null_backend.services.durations import Duration, parse_duration
from null_backend.services.pricing import PricingEngine, round_money


def test_hourly_quote_per_size():
    assert PricingEngine.quote("small", Duration(3, "h")) == Decimal("1.50")
    assert PricingEngine.quote("medium", Duration(2, "h")) == Decimal("2.00")
    assert PricingEngine.quote("large", Duration(2, "h")) == Decimal("4.00")
    assert PricingEngine.quote("extra-large", Duration(1, "h")) == Decimal("3.00")


def test_daily_quote_uses_daily_tier():
    assert PricingEngine.quote("medium", Duration(3, "d")) == Decimal("30.00")
    assert PricingEngine.quote("small", Duration(1, "d")) == Decimal("5.00")


def test_unknown_size_falls_back_to_medium():
    assert PricingEngine.quote("gigantic", Duration(2, "h")) == Decimal("2.00")
    assert PricingEngine.quote(None, Duration(1, "d")) == Decimal("10.00")


def test_final_cost_has_one_hour_floor():
    assert PricingEngine.final_cost("medium", timedelta(seconds=5)) == Decimal("1.00")
    assert PricingEngine.final_cost("large", timedelta(0)) == Decimal("2.00")


def test_final_cost_on_elapsed_hours():
    assert PricingEngine.final_cost("medium", timedelta(hours=2, minutes=30)) == Decimal("2.50")
    # 0.5 EUR/h x 1h20m = 0.666.. -> 0.67
    assert PricingEngine.final_cost("small", timedelta(hours=1, minutes=20)) == Decimal("0.67")


def test_round_half_up():
    assert round_money(Decimal("0.125")) == Decimal("0.13")
    assert round_money(Decimal("2.675")) == Decimal("2.68")


def test_price_for_cell_hint_overrides_hourly():
    assert PricingEngine.price_for_cell("medium") == {"hourly": 1.0, "daily": 10.0}
    assert PricingEngine.price_for_cell("medium", Decimal("1.5")) == {"hourly": 1.5, "daily": 10.0}


@pytest.mark.parametrize("raw,hours", [("1h", 1), ("24h", 24), ("1d", 24), ("30d", 720), (" 2H ", 2), ("720h", 720)])
def test_deposit_durations_accepted(raw, hours):
    assert parse_duration(raw, RentalType.DEPOSIT).hours == hours


@pytest.mark.parametrize("raw", ["0h", "721h", "31d", "0d", "2w", "h", "1.5h", "-1h", "abc", "\u0662h", "\uff12h"])
def test_deposit_durations_rejected(raw):
    with pytest.raises(ValidationError):
        parse_duration(raw, RentalType.DEPOSIT)


def test_deposit_format_message_names_grammar():
    with pytest.raises(ValidationError) as exc:
        parse_duration("2 weeks", RentalType.DEPOSIT)
    assert '"{N}h" or "{N}d"' in exc.value.message


def test_borrow_accepts_days_only():
    assert parse_duration("10d", RentalType.BORROW).amount == 10
    with pytest.raises(ValidationError):
        parse_duration("12h", RentalType.BORROW)
    with pytest.raises(ValidationError):
        parse_duration("\u0661\u0660d", RentalType.BORROW)


def test_borrow_range_message():
    with pytest.raises(ValidationError) as exc:
        parse_duration("31d", RentalType.BORROW)
    assert "between 1 and 30 days" in exc.value.message


def test_defaults_per_type():
    assert str(parse_duration(None, RentalType.DEPOSIT)) == "1h"
    assert str(parse_duration("", RentalType.BORROW)) == "7d"
    assert str(parse_duration(None, RentalType.PICKUP)) == "1d"
