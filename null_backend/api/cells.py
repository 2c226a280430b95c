"""
Route accesso celle / Cell access routes.
Richiesta generica, apertura, chiusura sportello, restituzione, storico.
Generic request, unlock, door closed, return, history.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.api.deps import get_current_user, get_ledger
from null_backend.config import settings
from null_backend.database import get_db
from null_backend.errors import ValidationError
from null_backend.models.rental import RentalType
from null_backend.models.user import User
from null_backend.rate_limit import limiter
from null_backend.schemas.common import envelope, pagination
from null_backend.schemas.rental import CellClose, CellOpen, CellRequest, CellReturn, RentalRead
from null_backend.services.rental_ledger import RentalLedger
from null_backend.utils.clock import to_naive_utc

router = APIRouter()

REQUEST_TYPES = {
    "deposited": RentalType.DEPOSIT,
    "deposit": RentalType.DEPOSIT,
    "borrow": RentalType.BORROW,
    "pickup": RentalType.PICKUP,
}


@router.post("/request", status_code=status.HTTP_201_CREATED)
async def request_cell(
    data: CellRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Richiesta generica di una cella / Generic cell request (any type)."""
    rental_type = REQUEST_TYPES.get(data.type.strip().lower())
    if rental_type is None:
        raise ValidationError("type must be one of: deposited, borrow, pickup")
    opened = await ledger.open(
        db, user, data.locker_id, rental_type,
        duration=data.duration, cell_code=data.cell_id, photo=data.photo,
        latitude=data.latitude, longitude=data.longitude,
    )
    return envelope(rental=RentalRead.from_rental(opened.rental).dump(), qrCodeImage=opened.tokens.qr_image)


@router.post("/open")
@limiter.limit(settings.RATE_LIMIT_CELL_ACCESS)
async def open_cell(
    request: Request,
    data: CellOpen,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Sblocco della cella / Cell unlock (verifica token e foto / token and photo check)."""
    rental = await ledger.unlock(
        db, user, data.cell_id, photo=data.photo, qr_code=data.qr_code,
        bluetooth_token=data.bluetooth_token, latitude=data.latitude, longitude=data.longitude,
    )
    return envelope(rental=RentalRead.from_rental(rental).dump(), operation="opened")


@router.post("/close")
@limiter.limit(settings.RATE_LIMIT_CELL_ACCESS)
async def close_cell(
    request: Request,
    data: CellClose,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Sportello chiuso; la sessione resta attiva / Door closed; the session stays active."""
    rental = await ledger.lock_closed(db, user, data.cell_id, data.door_closed)
    return envelope(rental=RentalRead.from_rental(rental).dump(), operation="closed")


@router.post("/return")
async def return_cell(
    data: CellReturn,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Restituzione prestito/ritiro; i depositi si chiudono con PUT /deposits/{id}/end /
    Borrow/pickup return; deposits end through PUT /deposits/{id}/end."""
    rental = await ledger.finish(
        db, user, rental_code=data.rental_id, cell_code=data.cell_id, photo=data.photo,
        allowed_types=(RentalType.BORROW, RentalType.PICKUP),
    )
    return envelope(rental=RentalRead.from_rental(rental).dump())


@router.get("/active")
async def active_sessions(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    rentals = await ledger.active_for_user(db, user)
    return envelope(rentals=[RentalRead.from_rental(r).dump() for r in rentals], total=len(rentals))


@router.get("/history")
async def rental_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    rental_type: str = Query(default="all", alias="type"),
    from_date: datetime | None = Query(default=None, alias="fromDate"),
    to_date: datetime | None = Query(default=None, alias="toDate"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Storico paginato / Paginated history."""
    if rental_type == "all":
        parsed_type = None
    else:
        try:
            parsed_type = RentalType(rental_type)
        except ValueError:
            raise ValidationError("type must be one of: deposit, borrow, pickup, all")
    rentals, total = await ledger.history(
        db, user, page=page, limit=limit, rental_type=parsed_type,
        from_date=to_naive_utc(from_date), to_date=to_naive_utc(to_date),
    )
    return envelope(
        rentals=[RentalRead.from_rental(r).dump() for r in rentals],
        pagination=pagination(page, limit, total),
    )
