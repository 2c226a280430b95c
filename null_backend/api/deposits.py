"""Route Depositi / Deposit routes (sessioni a pagamento / paid sessions)."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.api.deps import get_current_user, get_ledger, get_payment_gateway
from null_backend.database import get_db
from null_backend.models.rental import RentalType
from null_backend.models.user import User
from null_backend.schemas.common import envelope
from null_backend.schemas.rental import DepositCreate, DepositExtend, PaymentRequest, PhotoBody, RentalRead
from null_backend.services.payment_gateway import MockPaymentGateway
from null_backend.services.rental_ledger import RentalLedger

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_deposit(
    data: DepositCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Apre un deposito / Open a deposit session."""
    opened = await ledger.open(
        db, user, data.locker_id, RentalType.DEPOSIT,
        duration=data.duration, cell_code=data.cell_id, photo=data.photo,
        latitude=data.latitude, longitude=data.longitude,
    )
    return envelope(deposit=RentalRead.from_rental(opened.rental).dump(), qrCodeImage=opened.tokens.qr_image)


@router.get("/active")
async def active_deposits(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    rentals = await ledger.active_for_user(db, user, RentalType.DEPOSIT)
    return envelope(deposits=[RentalRead.from_rental(r).dump() for r in rentals], total=len(rentals))


@router.put("/{rental_id}/extend")
async def extend_deposit(
    rental_id: str,
    data: DepositExtend,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Proroga un deposito attivo / Extend an active deposit."""
    rental, extra = await ledger.extend(db, user, rental_id, data.duration)
    return envelope(deposit=RentalRead.from_rental(rental).dump(), additionalCost=float(extra))


@router.put("/{rental_id}/end")
async def end_deposit(
    rental_id: str,
    data: PhotoBody | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Chiude il deposito e calcola il costo finale / End the deposit and compute the final cost."""
    rental = await ledger.finish(
        db, user, rental_code=rental_id, photo=data.photo if data else None,
        allowed_types=(RentalType.DEPOSIT,),
    )
    return envelope(deposit=RentalRead.from_rental(rental).dump(), finalCost=float(rental.cost))


@router.post("/payments")
async def pay_deposit(
    data: PaymentRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
    gateway: MockPaymentGateway = Depends(get_payment_gateway),
):
    """Pagamento simulato / Mock payment."""
    rental = await ledger.get_owned(db, user, data.rental_id)
    receipt = await gateway.charge(rental, data.amount, data.method)
    return envelope(
        paymentId=receipt.payment_id,
        transactionId=receipt.transaction_id,
        rentalId=receipt.rental_code,
        amount=float(receipt.amount),
        method=receipt.method,
        status=receipt.status,
        timestamp=receipt.timestamp,
    )
