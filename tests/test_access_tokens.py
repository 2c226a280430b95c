"""Test dei token di accesso e del pagamento simulato / Access token and mock payment tests."""

import json
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from null_backend.errors import ValidationError
from null_backend.models.rental import Rental, RentalState, RentalType
from null_backend.services.access_tokens import AccessTokenIssuer
from null_backend.services.payment_gateway import MockPaymentGateway
from null_backend.services.photo_storage import PhotoStorage

from conftest import PHOTO


def test_qr_payload_structure():
    payload = json.loads(AccessTokenIssuer.build_payload("NOL-001", "CEL-001-1", "LCK-001"))
    assert payload["noleggioId"] == "NOL-001"
    assert payload["cellaId"] == "CEL-001-1"
    assert payload["lockerId"] == "LCK-001"
    assert payload["type"] == "cell_access"
    assert payload["version"] == "1.0"
    assert isinstance(payload["timestamp"], int)


def test_issue_renders_png_data_url():
    tokens = AccessTokenIssuer.issue("NOL-001", "CEL-001-1", "LCK-001")
    assert tokens.qr_image.startswith("data:image/png;base64,")
    assert len(tokens.bluetooth_token) == 36


def test_bluetooth_tokens_are_not_reused():
    first = AccessTokenIssuer.issue("NOL-001", "CEL-001-1", "LCK-001", render=False)
    second = AccessTokenIssuer.issue("NOL-002", "CEL-001-1", "LCK-001", render=False)
    assert first.bluetooth_token != second.bluetooth_token


def test_render_failure_degrades_to_payload_only():
    with patch("null_backend.services.access_tokens.qrcode.QRCode", side_effect=RuntimeError("no PIL")):
        tokens = AccessTokenIssuer.issue("NOL-001", "CEL-001-1", "LCK-001")
    assert tokens.qr_image is None
    assert json.loads(tokens.qr_payload)["noleggioId"] == "NOL-001"


def test_matches_is_exact():
    assert AccessTokenIssuer.matches("abc", "abc")
    assert not AccessTokenIssuer.matches("abc", "abc ")
    assert not AccessTokenIssuer.matches(None, "abc")


def test_photo_storage_rejects_bad_input(tmp_path):
    storage = PhotoStorage(root=tmp_path, max_bytes=10)
    with pytest.raises(ValidationError):
        storage.decode("data:image/gif;base64,R0lGOD")
    with pytest.raises(ValidationError):
        storage.decode(PHOTO)  # oltre 10 byte / over 10 bytes


def test_photo_storage_saves_file(tmp_path):
    url = PhotoStorage(root=tmp_path).save(PHOTO, "NOL-007")
    assert url.startswith("/uploads/photos/photo-NOL-007-")
    assert url.endswith(".png")
    assert len(list((tmp_path / "photos").iterdir())) == 1


def _deposit(cost: str, state: RentalState = RentalState.ACTIVE) -> Rental:
    return Rental(
        rental_code="NOL-001", rental_type=RentalType.DEPOSIT, state=state,
        cost=Decimal(cost), started_at=datetime(2026, 1, 1), expected_end_at=datetime(2026, 1, 1, 2),
    )


async def test_payment_defaults_to_expected_amount():
    receipt = await MockPaymentGateway(latency_seconds=0).charge(_deposit("2.00"))
    assert receipt.amount == Decimal("2.00")
    assert receipt.status == "success"
    assert receipt.payment_id.startswith("PAY-")


async def test_payment_rejects_underpayment():
    with pytest.raises(ValidationError) as exc:
        await MockPaymentGateway(latency_seconds=0).charge(_deposit("3.00"), amount=2.99)
    assert "3.00" in exc.value.message


async def test_payment_rejects_zero_and_bad_method():
    gateway = MockPaymentGateway(latency_seconds=0)
    with pytest.raises(ValidationError):
        await gateway.charge(_deposit("0.00"), amount=0)
    with pytest.raises(ValidationError):
        await gateway.charge(_deposit("1.00"), method="cash")


async def test_payment_rejects_cancelled_session():
    with pytest.raises(ValidationError):
        await MockPaymentGateway(latency_seconds=0).charge(_deposit("1.00", RentalState.CANCELLED))


@pytest.mark.parametrize("amount", [float("nan"), float("inf"), Decimal("NaN"), "Infinity"])
async def test_payment_rejects_non_finite_amount(amount):
    with pytest.raises(ValidationError) as exc:
        await MockPaymentGateway(latency_seconds=0).charge(_deposit("1.00"), amount=amount)
    assert exc.value.message == "Amount must be a number"
