"""Route Prestiti / Borrow routes (attrezzatura gratuita / free equipment)."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.api.deps import get_current_user, get_ledger
from null_backend.database import get_db
from null_backend.errors import ValidationError
from null_backend.models.cell import Cell, CellPurpose, CellSize, CellState
from null_backend.models.locker import Locker, LockerState
from null_backend.models.rental import RentalType
from null_backend.models.user import User
from null_backend.schemas.common import envelope
from null_backend.schemas.locker import CellRead
from null_backend.schemas.rental import BorrowCreate, PhotoBody, RentalRead
from null_backend.services.rental_ledger import RentalLedger

router = APIRouter()


@router.get("/available")
async def available_items(
    locker_id: str | None = Query(default=None, alias="lockerId"),
    category: str | None = Query(default=None),
    size: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    """Attrezzatura disponibile / Available equipment (celle prestito libere / free borrow cells)."""
    query = (
        select(Cell)
        .join(Locker, Cell.locker_id == Locker.id)
        .where(
            Cell.purpose == CellPurpose.BORROW,
            Cell.state == CellState.FREE,
            Locker.state == LockerState.ACTIVE,
            Locker.online.is_(True),
        )
    )
    if locker_id:
        query = query.where(Locker.locker_code == locker_id)
    if category:
        query = query.where(Cell.category == category)
    if size:
        try:
            query = query.where(Cell.size == CellSize(size))
        except ValueError:
            raise ValidationError(f"Invalid size, use one of: {', '.join(s.value for s in CellSize)}")
    result = await db.execute(query.order_by(Locker.id, Cell.number))
    cells = result.scalars().all()
    return envelope(items=[CellRead.from_cell(c).dump() for c in cells], total=len(cells))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_borrow(
    data: BorrowCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Apre un prestito (costo 0) / Open a borrow session (cost 0)."""
    opened = await ledger.open(
        db, user, data.locker_id, RentalType.BORROW,
        duration=data.duration, cell_code=data.cell_id, photo=data.photo,
        latitude=data.latitude, longitude=data.longitude,
        item_type=data.item_type, item_description=data.item_description,
    )
    return envelope(borrow=RentalRead.from_rental(opened.rental).dump(), qrCodeImage=opened.tokens.qr_image)


@router.get("/active")
async def active_borrows(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    rentals = await ledger.active_for_user(db, user, RentalType.BORROW)
    return envelope(borrows=[RentalRead.from_rental(r).dump() for r in rentals], total=len(rentals))


@router.post("/{rental_id}/return")
async def return_borrow(
    rental_id: str,
    data: PhotoBody | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    ledger: RentalLedger = Depends(get_ledger),
):
    """Restituzione dell'attrezzatura / Equipment return."""
    rental = await ledger.finish(
        db, user, rental_code=rental_id, photo=data.photo if data else None,
        allowed_types=(RentalType.BORROW,),
    )
    return envelope(borrow=RentalRead.from_rental(rental).dump())
