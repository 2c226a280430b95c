"""
Route amministrazione locker / Locker administration routes.
Riservate a operatori e admin; ogni modifica lascia un record di audit best-effort.
Operators and admins only; every change leaves a best-effort audit record.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.api.deps import client_ip, get_audit_recorder, get_notifier, require_operator
from null_backend.database import get_db
from null_backend.models.cell import CellPurpose, CellSize
from null_backend.models.user import User
from null_backend.schemas.common import envelope
from null_backend.schemas.locker import (
    CellBatch, CellRead, LockerCreate, LockerMaintenanceUpdate, LockerRead, LockerStatusUpdate,
)
from null_backend.services.audit_recorder import AuditRecorder
from null_backend.services.cell_registry import CellRegistry
from null_backend.services.locker_registry import LockerRegistry
from null_backend.services.notifier import Notifier
from null_backend.utils.clock import to_naive_utc

router = APIRouter()


@router.get("")
async def list_all_lockers(
    category: str | None = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
):
    """Tutti i locker, anche disattivati / Every locker, disabled ones included."""
    lockers = await LockerRegistry.list_lockers(db, category=category, include_disabled=True)
    items = [
        LockerRead.from_locker(locker, availability=await LockerRegistry.availability(db, locker)).dump()
        for locker in lockers
    ]
    return envelope(lockers=items, total=len(items))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_locker(
    request: Request,
    data: LockerCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    locker = await LockerRegistry.create(
        db,
        name=data.name,
        latitude=data.latitude,
        longitude=data.longitude,
        size=data.size,
        category=data.category,
        address=data.address,
        description=data.description,
        created_by_user_id=user.id,
        cells=[batch.as_spec() for batch in data.cells],
    )
    availability = await LockerRegistry.availability(db, locker)
    await db.commit()
    await audit.record(
        "locker", locker.locker_code, "CREATE",
        {"name": locker.name, "cells": availability["totalCells"]},
        user=user.username, ip_address=client_ip(request),
    )
    return envelope(locker=LockerRead.from_locker(locker, availability=availability).dump())


@router.post("/{locker_id}/cells", status_code=status.HTTP_201_CREATED)
async def add_cells(
    locker_id: str,
    request: Request,
    data: CellBatch,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Aggiunge celle a un locker / Provision cells in a locker."""
    locker = await LockerRegistry.get_by_code(db, locker_id)
    cells = [
        await CellRegistry.provision(
            db, locker,
            purpose=CellPurpose(data.type),
            size=CellSize(data.size),
            photo_required=data.photo_required,
            price_hint=data.price_hint,
            category=data.category,
        )
        for _ in range(data.count)
    ]
    await db.commit()
    await audit.record(
        "locker", locker.locker_code, "ADD_CELLS",
        {"cells": [c.cell_code for c in cells]},
        user=user.username, ip_address=client_ip(request),
    )
    return envelope(cells=[CellRead.from_cell(c).dump() for c in cells], total=len(cells))


@router.put("/{locker_id}/status")
async def set_locker_status(
    locker_id: str,
    request: Request,
    data: LockerStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """online|offline."""
    locker = await LockerRegistry.get_by_code(db, locker_id)
    await LockerRegistry.set_status(db, locker, data.status)
    await db.commit()
    await audit.record(
        "locker", locker.locker_code, "SET_STATUS", {"online": locker.online},
        user=user.username, ip_address=client_ip(request),
    )
    return envelope(locker=LockerRead.from_locker(locker).dump())


@router.put("/{locker_id}/maintenance")
async def set_locker_maintenance(
    locker_id: str,
    request: Request,
    data: LockerMaintenanceUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
    audit: AuditRecorder = Depends(get_audit_recorder),
    notifier: Notifier = Depends(get_notifier),
):
    """Manutenzione on/off; gli utenti con sessioni attive vengono avvisati /
    Maintenance on/off; users with active sessions are notified."""
    locker = await LockerRegistry.get_by_code(db, locker_id)
    await LockerRegistry.set_maintenance(
        db, locker, data.in_maintenance, data.reason, to_naive_utc(data.expected_end),
    )
    affected = await LockerRegistry.users_with_active_rentals(db, locker) if data.in_maintenance else []
    await db.commit()

    await audit.record(
        "locker", locker.locker_code, "SET_MAINTENANCE",
        {"inMaintenance": data.in_maintenance, "reason": data.reason, "expectedEnd": data.expected_end},
        user=user.username, ip_address=client_ip(request),
    )
    if affected:
        await notifier.temporary_closure(locker, affected)
    return envelope(locker=LockerRead.from_locker(locker).dump(), notifiedUsers=len(affected))


@router.put("/{locker_id}/restore")
async def restore_locker(
    locker_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Ripristino completo / Full restore."""
    locker = await LockerRegistry.get_by_code(db, locker_id)
    await LockerRegistry.restore(db, locker)
    await db.commit()
    await audit.record(
        "locker", locker.locker_code, "RESTORE", {"restoredAt": locker.restored_at},
        user=user.username, ip_address=client_ip(request),
    )
    return envelope(locker=LockerRead.from_locker(locker).dump())
