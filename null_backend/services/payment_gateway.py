"""
Gateway di pagamento simulato / Mock payment gateway.
Nessun addebito reale: valida l'importo rispetto al costo del deposito e risponde sempre "success".
No real charge: validates the amount against the deposit cost and always answers "success".
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from null_backend.config import settings
from null_backend.errors import ValidationError
from null_backend.models.rental import Rental, RentalState, RentalType
from null_backend.services.pricing import round_money

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("mock_card", "mock_wallet", "mock_bank")


@dataclass(frozen=True)
class PaymentReceipt:
    payment_id: str
    transaction_id: str
    rental_code: str
    amount: Decimal
    method: str
    status: str
    timestamp: str


class MockPaymentGateway:
    """Regolamento simulato / Simulated settlement."""

    def __init__(self, latency_seconds: float | None = None):
        self.latency_seconds = settings.MOCK_PAYMENT_LATENCY_SECONDS if latency_seconds is None else latency_seconds

    @staticmethod
    def expected_amount(rental: Rental) -> Decimal:
        return round_money(Decimal(rental.cost))

    async def charge(self, rental: Rental, amount: float | Decimal | None = None, method: str = "mock_card") -> PaymentReceipt:
        if method not in PAYMENT_METHODS:
            raise ValidationError(f"Invalid payment method, use one of: {', '.join(PAYMENT_METHODS)}")
        if rental.rental_type != RentalType.DEPOSIT:
            raise ValidationError("Only deposits can be paid")
        if rental.state not in (RentalState.ACTIVE, RentalState.ENDED):
            raise ValidationError(f"Rental {rental.rental_code} cannot be paid ({rental.state.value})")

        expected = self.expected_amount(rental)
        if amount is None:
            paid = expected
        else:
            try:
                paid = round_money(Decimal(str(amount)))
            except InvalidOperation:
                raise ValidationError("Amount must be a number")
            if not paid.is_finite():
                raise ValidationError("Amount must be a number")
        if paid <= 0:
            raise ValidationError("Amount must be greater than 0")
        if paid < expected:
            raise ValidationError(f"Insufficient amount: expected at least {expected} EUR")

        # Latenza di rete simulata / Simulated network latency
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)

        receipt = PaymentReceipt(
            payment_id=f"PAY-{uuid.uuid4().hex[:8].upper()}",
            transaction_id=str(uuid.uuid4()),
            rental_code=rental.rental_code,
            amount=paid,
            method=method,
            status="success",
            timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )
        logger.info("Mock payment %s for %s: %s EUR via %s", receipt.payment_id, rental.rental_code, paid, method)
        return receipt
