"""Route Locker (consultazione pubblica) / Locker routes (public discovery)."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.config import settings
from null_backend.database import get_db
from null_backend.errors import ValidationError
from null_backend.models.cell import CellPurpose
from null_backend.schemas.common import envelope
from null_backend.schemas.locker import CellRead, LockerRead
from null_backend.services.cell_registry import CellRegistry
from null_backend.services.locker_registry import LockerRegistry

router = APIRouter()


def parse_purpose(value: str | None) -> CellPurpose | None:
    if not value:
        return None
    try:
        return CellPurpose(value)
    except ValueError:
        raise ValidationError(f"Invalid cell type, use one of: {', '.join(p.value for p in CellPurpose)}")


@router.get("")
async def list_lockers(
    category: str | None = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db),
):
    """Elenco locker con disponibilità / Locker list with availability."""
    lockers = await LockerRegistry.list_lockers(db, category=category)
    items = [
        LockerRead.from_locker(locker, availability=await LockerRegistry.availability(db, locker)).dump()
        for locker in lockers
    ]
    return envelope(lockers=items, total=len(items))


@router.get("/nearby")
async def nearby_lockers(
    lat: float = Query(...),
    lng: float = Query(...),
    radius: float = Query(default=settings.NEARBY_DEFAULT_RADIUS_M),
    category: str | None = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db),
):
    """Locker entro `radius` metri / Lockers within `radius` metres."""
    found = await LockerRegistry.nearby(db, lat, lng, radius, category=category)
    items = [
        LockerRead.from_locker(
            locker, availability=await LockerRegistry.availability(db, locker), distance_m=distance
        ).dump()
        for locker, distance in found
    ]
    return envelope(lockers=items, total=len(items), radius=radius)


@router.get("/{locker_id}")
async def get_locker(locker_id: str, db: AsyncSession = Depends(get_db)):
    locker = await LockerRegistry.get_by_code(db, locker_id)
    availability = await LockerRegistry.availability(db, locker)
    return envelope(locker=LockerRead.from_locker(locker, availability=availability).dump())


@router.get("/{locker_id}/cells")
async def list_locker_cells(
    locker_id: str,
    cell_type: str | None = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db),
):
    """Celle di un locker, filtrabili per tipo / Cells of a locker, filterable by type."""
    locker = await LockerRegistry.get_by_code(db, locker_id)
    cells = await CellRegistry.list_for_locker(db, locker, parse_purpose(cell_type))
    return envelope(cells=[CellRead.from_cell(c).dump() for c in cells], total=len(cells))


@router.get("/{locker_id}/cells/stats")
async def locker_cell_stats(locker_id: str, db: AsyncSession = Depends(get_db)):
    locker = await LockerRegistry.get_by_code(db, locker_id)
    return envelope(
        lockerId=locker.locker_code,
        byType=await CellRegistry.stats(db, locker),
        **await LockerRegistry.availability(db, locker),
    )
