"""Route celle commerciali / Commercial cell routes (operatori / operators)."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.api.deps import client_ip, get_audit_recorder, require_operator
from null_backend.database import get_db
from null_backend.errors import NotFoundError
from null_backend.models.user import User
from null_backend.schemas.common import envelope, pagination
from null_backend.schemas.locker import CellRead, CommercialAssign, CommercialAssignmentUpdate
from null_backend.services.audit_recorder import AuditRecorder
from null_backend.services.cell_registry import CellRegistry
from null_backend.services.locker_registry import LockerRegistry
from null_backend.utils.clock import to_naive_utc

router = APIRouter()


@router.get("")
async def list_commercial_cells(
    assigned: bool | None = Query(default=None),
    locker_id: str | None = Query(default=None, alias="lockerId"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
):
    """Celle commerciali e di ritiro / Commercial and pickup cells."""
    locker_pk = None
    if locker_id:
        locker_pk = (await LockerRegistry.get_by_code(db, locker_id)).id
    cells, total = await CellRegistry.list_commercial(db, assigned=assigned, locker_id=locker_pk, page=page, limit=limit)
    return envelope(cells=[CellRead.from_cell(c).dump() for c in cells], pagination=pagination(page, limit, total))


@router.post("/assign")
async def assign_commercial_cell(
    request: Request,
    data: CommercialAssign,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Assegna una cella a un negozio / Assign a cell to a shop."""
    locker = await LockerRegistry.get_by_code(db, data.locker_id)
    cell = await CellRegistry.get_by_code(db, data.cell_id)
    if cell.locker_id != locker.id:
        raise NotFoundError(f"Cell {data.cell_id} not found in locker {data.locker_id}")

    await CellRegistry.assign_to_shop(
        db, cell, data.shop_id,
        start=to_naive_utc(data.start_date), end=to_naive_utc(data.end_date), notes=data.notes,
    )
    await db.commit()
    await audit.record(
        "cell", cell.cell_code, "ASSIGN_SHOP",
        {"shopId": data.shop_id, "from": cell.assigned_from, "until": cell.assigned_until},
        user=user.username, ip_address=client_ip(request),
    )
    return envelope(cell=CellRead.from_cell(cell).dump())


@router.put("/{cell_id}")
async def update_commercial_cell(
    cell_id: str,
    request: Request,
    data: CommercialAssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Modifica o rimuove l'assegnazione / Change or clear the assignment (shopId null = rimuovi)."""
    cell = await CellRegistry.get_by_code(db, cell_id)
    sent = data.model_fields_set
    changes = {}
    if "shop_id" in sent:
        changes["shop_user_id"] = data.shop_id
    if "start_date" in sent:
        changes["assigned_from"] = to_naive_utc(data.start_date)
    if "end_date" in sent:
        changes["assigned_until"] = to_naive_utc(data.end_date)
    if "notes" in sent:
        changes["notes"] = data.notes

    await CellRegistry.update_assignment(db, cell, changes)
    await db.commit()
    await audit.record(
        "cell", cell.cell_code, "UPDATE_ASSIGNMENT", changes,
        user=user.username, ip_address=client_ip(request),
    )
    return envelope(cell=CellRead.from_cell(cell).dump())
