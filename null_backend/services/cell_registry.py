"""
Registro celle / Cell registry.
Inventario per locker, transizioni atomiche free <-> occupied, assegnazioni commerciali.
Per-locker inventory, atomic free <-> occupied flips, commercial assignments.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.errors import NotFoundError, ValidationError
from null_backend.models.cell import Cell, CellPurpose, CellSize, CellState
from null_backend.models.locker import Locker
from null_backend.models.user import User
from null_backend.utils.clock import utcnow

logger = logging.getLogger(__name__)

COMMERCIAL_PURPOSES = (CellPurpose.COMMERCIAL, CellPurpose.PICKUP)


class CellRegistry:
    """Operazioni sulle celle / Cell operations."""

    @staticmethod
    async def get_by_code(db: AsyncSession, cell_code: str) -> Cell:
        result = await db.execute(select(Cell).where(Cell.cell_code == cell_code))
        cell = result.scalar_one_or_none()
        if cell is None:
            raise NotFoundError(f"Cell {cell_code} not found")
        return cell

    @staticmethod
    async def find_available(
        db: AsyncSession,
        locker: Locker,
        purpose: CellPurpose,
        cell_code: str | None = None,
    ) -> Cell:
        """Una cella libera del tipo richiesto, preferendo cell_code /
        One free cell of the requested purpose, preferring cell_code."""
        query = select(Cell).where(
            Cell.locker_id == locker.id,
            Cell.purpose == purpose,
            Cell.state == CellState.FREE,
        )
        if cell_code:
            query = query.where(Cell.cell_code == cell_code)
        result = await db.execute(query.order_by(Cell.number).limit(1))
        cell = result.scalar_one_or_none()
        if cell is None:
            if cell_code:
                raise NotFoundError(f"Cell {cell_code} is not available for {purpose.value} in locker {locker.locker_code}")
            raise NotFoundError(f"No free {purpose.value} cell in locker {locker.locker_code}")
        return cell

    @staticmethod
    async def mark_occupied(db: AsyncSession, cell: Cell) -> bool:
        """free -> occupied condizionale; False se già presa / Conditional flip; False if already taken."""
        result = await db.execute(
            update(Cell)
            .where(Cell.id == cell.id, Cell.state == CellState.FREE)
            .values(state=CellState.OCCUPIED)
        )
        return result.rowcount > 0

    @staticmethod
    async def mark_free(db: AsyncSession, cell: Cell) -> bool:
        """occupied -> free condizionale / Conditional occupied -> free flip."""
        result = await db.execute(
            update(Cell)
            .where(Cell.id == cell.id, Cell.state == CellState.OCCUPIED)
            .values(state=CellState.FREE)
        )
        if result.rowcount == 0:
            logger.warning("Cell %s was not occupied when its session ended", cell.cell_code)
        return result.rowcount > 0

    @staticmethod
    async def provision(
        db: AsyncSession,
        locker: Locker,
        purpose: CellPurpose,
        size: CellSize = CellSize.MEDIUM,
        photo_required: bool = False,
        price_hint: Decimal | None = None,
        category: str | None = None,
        item_photo_url: str | None = None,
        weight_kg: float | None = None,
    ) -> Cell:
        """Nuova cella con il numero successivo / New cell with the next number."""
        last = await db.scalar(select(func.max(Cell.number)).where(Cell.locker_id == locker.id))
        number = (last or 0) + 1
        cell = Cell(
            cell_code=f"CEL-{locker.id:03d}-{number}",
            locker_id=locker.id,
            locker=locker,
            number=number,
            purpose=purpose,
            state=CellState.FREE,
            size=size,
            photo_required=photo_required,
            price_hint=price_hint,
            category=category,
            item_photo_url=item_photo_url,
            weight_kg=weight_kg,
        )
        db.add(cell)
        await db.flush()
        return cell

    @staticmethod
    async def list_for_locker(db: AsyncSession, locker: Locker, purpose: CellPurpose | None = None) -> list[Cell]:
        query = select(Cell).where(Cell.locker_id == locker.id)
        if purpose is not None:
            query = query.where(Cell.purpose == purpose)
        result = await db.execute(query.order_by(Cell.number))
        return list(result.scalars().all())

    @staticmethod
    async def stats(db: AsyncSession, locker: Locker) -> dict[str, dict[str, int]]:
        """Totali e libere per tipo / Totals and free cells per purpose."""
        result = await db.execute(
            select(Cell.purpose, Cell.state, func.count(Cell.id))
            .where(Cell.locker_id == locker.id)
            .group_by(Cell.purpose, Cell.state)
        )
        stats = {p.value: {"total": 0, "available": 0} for p in CellPurpose}
        for purpose, state, count in result.all():
            stats[purpose.value]["total"] += count
            if state == CellState.FREE:
                stats[purpose.value]["available"] += count
        return stats

    # --- Celle commerciali / Commercial cells ---

    @staticmethod
    async def assign_to_shop(
        db: AsyncSession,
        cell: Cell,
        shop_user_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
        notes: str | None = None,
    ) -> Cell:
        """Assegna una cella commerciale/ritiro a un negozio / Assign a commercial/pickup cell to a shop."""
        if cell.purpose not in COMMERCIAL_PURPOSES:
            raise ValidationError("Only commercial or pickup cells can be assigned to a shop")

        shop = await db.get(User, shop_user_id)
        if shop is None:
            raise NotFoundError(f"Shop user {shop_user_id} not found")

        if cell.shop_user_id == shop_user_id:
            raise ValidationError(f"Cell {cell.cell_code} is already assigned to this shop")

        start = start or utcnow()
        if end is not None and end <= start:
            raise ValidationError("Assignment end must be after its start")

        cell.shop_user_id = shop_user_id
        cell.assigned_from = start
        cell.assigned_until = end
        cell.assignment_notes = notes
        await db.flush()
        return cell

    @staticmethod
    async def update_assignment(
        db: AsyncSession,
        cell: Cell,
        changes: dict,
    ) -> Cell:
        """Modifica o rimuove l'assegnazione / Change or clear the assignment.

        `changes` contiene solo i campi inviati / holds only the submitted fields
        (shop_user_id, assigned_from, assigned_until, notes).
        """
        if cell.purpose not in COMMERCIAL_PURPOSES:
            raise ValidationError("Only commercial or pickup cells can be assigned to a shop")

        if "shop_user_id" in changes:
            shop_user_id = changes["shop_user_id"]
            if shop_user_id is None:
                cell.shop_user_id = None
                cell.assigned_from = None
                cell.assigned_until = None
                cell.assignment_notes = None
            else:
                if await db.get(User, shop_user_id) is None:
                    raise NotFoundError(f"Shop user {shop_user_id} not found")
                cell.shop_user_id = shop_user_id
                cell.assigned_from = cell.assigned_from or utcnow()

        if "assigned_from" in changes and changes["assigned_from"] is not None:
            cell.assigned_from = changes["assigned_from"]
        if "assigned_until" in changes:
            cell.assigned_until = changes["assigned_until"]
        if "notes" in changes:
            cell.assignment_notes = changes["notes"]

        if cell.assigned_from and cell.assigned_until and cell.assigned_until <= cell.assigned_from:
            raise ValidationError("Assignment end must be after its start")

        await db.flush()
        return cell

    @staticmethod
    async def list_commercial(
        db: AsyncSession,
        assigned: bool | None = None,
        locker_id: int | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Cell], int]:
        query = select(Cell).where(Cell.purpose.in_(COMMERCIAL_PURPOSES))
        count_query = select(func.count(Cell.id)).where(Cell.purpose.in_(COMMERCIAL_PURPOSES))

        if assigned is True:
            query = query.where(Cell.shop_user_id.is_not(None))
            count_query = count_query.where(Cell.shop_user_id.is_not(None))
        elif assigned is False:
            query = query.where(Cell.shop_user_id.is_(None))
            count_query = count_query.where(Cell.shop_user_id.is_(None))
        if locker_id:
            query = query.where(Cell.locker_id == locker_id)
            count_query = count_query.where(Cell.locker_id == locker_id)

        total = await db.scalar(count_query) or 0
        result = await db.execute(query.order_by(Cell.locker_id, Cell.number).offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total
