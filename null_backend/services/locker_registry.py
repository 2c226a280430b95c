"""
Registro locker / Locker registry.
Stato operativo, online/offline, manutenzione e disponibilità.
Operational state, online flag, maintenance and availability.
"""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.errors import NotFoundError, ValidationError
from null_backend.models.cell import Cell, CellPurpose, CellSize, CellState
from null_backend.models.locker import Locker, LockerSize, LockerState
from null_backend.models.rental import Rental, RentalState
from null_backend.services.cell_registry import CellRegistry
from null_backend.utils.clock import utcnow
from null_backend.utils.geo import bounding_box, haversine

logger = logging.getLogger(__name__)


class LockerRegistry:
    """Transizioni di stato dei locker / Locker state transitions."""

    @staticmethod
    async def get_by_code(db: AsyncSession, locker_code: str) -> Locker:
        result = await db.execute(select(Locker).where(Locker.locker_code == locker_code))
        locker = result.scalar_one_or_none()
        if locker is None:
            raise NotFoundError(f"Locker {locker_code} not found")
        return locker

    @staticmethod
    async def create(
        db: AsyncSession,
        name: str,
        latitude: float,
        longitude: float,
        size: LockerSize = LockerSize.MEDIUM,
        category: str | None = None,
        address: str | None = None,
        description: str | None = None,
        created_by_user_id: int | None = None,
        cells: list[dict] | None = None,
    ) -> Locker:
        """Nuovo locker con celle iniziali opzionali / New locker with optional initial cells.

        Ogni voce di `cells` ha purpose, size, count e photo_required opzionali.
        Each `cells` entry has purpose, size, count and optional photo_required.
        """
        locker = Locker(
            name=name,
            latitude=latitude,
            longitude=longitude,
            size=size,
            category=category,
            address=address,
            description=description,
            state=LockerState.ACTIVE,
            online=True,
            created_by_user_id=created_by_user_id,
        )
        db.add(locker)
        await db.flush()
        locker.locker_code = f"LCK-{locker.id:03d}"

        for spec in cells or []:
            for _ in range(spec.get("count", 1)):
                await CellRegistry.provision(
                    db,
                    locker,
                    purpose=CellPurpose(spec["purpose"]),
                    size=CellSize(spec.get("size", CellSize.MEDIUM.value)),
                    photo_required=spec.get("photo_required", False),
                    price_hint=spec.get("price_hint"),
                    category=spec.get("category"),
                )
        await db.flush()
        logger.info("Locker created: %s (%s)", locker.locker_code, locker.name)
        return locker

    @staticmethod
    async def set_status(db: AsyncSession, locker: Locker, status: str) -> Locker:
        """online|offline."""
        if status not in ("online", "offline"):
            raise ValidationError('Status must be "online" or "offline"')
        locker.online = status == "online"
        await db.flush()
        logger.info("Locker %s is now %s", locker.locker_code, status)
        return locker

    @staticmethod
    async def set_maintenance(
        db: AsyncSession,
        locker: Locker,
        enabled: bool,
        reason: str | None = None,
        expected_end: datetime | None = None,
    ) -> Locker:
        """Attiva/disattiva la manutenzione / Toggle maintenance.

        Attivando: stato maintenance. Disattivando da maintenance: stato active.
        Enabling: state maintenance. Disabling from maintenance: state active.
        """
        locker.in_maintenance = enabled
        if enabled:
            locker.state = LockerState.MAINTENANCE
            locker.maintenance_reason = reason
            locker.maintenance_expected_end = expected_end
            locker.last_maintenance_at = utcnow()
        else:
            if locker.state == LockerState.MAINTENANCE:
                locker.state = LockerState.ACTIVE
            locker.maintenance_reason = None
            locker.maintenance_expected_end = None
        await db.flush()
        logger.info("Locker %s maintenance=%s", locker.locker_code, enabled)
        return locker

    @staticmethod
    async def restore(db: AsyncSession, locker: Locker) -> Locker:
        """Ritorno a {active, online, nessuna manutenzione} / Back to {active, online, no maintenance}."""
        locker.state = LockerState.ACTIVE
        locker.online = True
        locker.in_maintenance = False
        locker.maintenance_reason = None
        locker.maintenance_expected_end = None
        locker.restored_at = utcnow()
        await db.flush()
        logger.info("Locker %s restored", locker.locker_code)
        return locker

    @staticmethod
    async def availability(db: AsyncSession, locker: Locker) -> dict:
        """Celle totali, libere e percentuale / Total cells, free cells and percentage."""
        total = await db.scalar(select(func.count(Cell.id)).where(Cell.locker_id == locker.id)) or 0
        available = await db.scalar(
            select(func.count(Cell.id)).where(Cell.locker_id == locker.id, Cell.state == CellState.FREE)
        ) or 0
        percentage = round(available / total * 100, 2) if total else 0.0
        return {"totalCells": total, "availableCells": available, "availabilityPercentage": percentage}

    @staticmethod
    async def list_lockers(
        db: AsyncSession,
        category: str | None = None,
        include_disabled: bool = False,
    ) -> list[Locker]:
        query = select(Locker)
        if not include_disabled:
            query = query.where(Locker.state != LockerState.DISABLED)
        if category:
            query = query.where(Locker.category == category)
        result = await db.execute(query.order_by(Locker.id))
        return list(result.scalars().all())

    @staticmethod
    async def nearby(
        db: AsyncSession,
        lat: float,
        lng: float,
        radius_m: float,
        category: str | None = None,
    ) -> list[tuple[Locker, float]]:
        """Locker entro il raggio, ordinati per distanza (metri) /
        Lockers within the radius, sorted by distance (metres)."""
        if not -90 <= lat <= 90 or not -180 <= lng <= 180:
            raise ValidationError("Invalid coordinates")
        if radius_m <= 0:
            raise ValidationError("Radius must be positive")

        lat_min, lat_max, lon_min, lon_max = bounding_box(lat, lng, radius_m / 1000)
        query = select(Locker).where(
            Locker.state != LockerState.DISABLED,
            Locker.latitude.between(lat_min, lat_max),
            Locker.longitude.between(lon_min, lon_max),
        )
        if category:
            query = query.where(Locker.category == category)
        result = await db.execute(query)

        found = []
        for locker in result.scalars().all():
            distance_m = haversine(lat, lng, locker.latitude, locker.longitude) * 1000
            if distance_m <= radius_m:
                found.append((locker, round(distance_m)))
        found.sort(key=lambda item: item[1])
        return found

    @staticmethod
    async def users_with_active_rentals(db: AsyncSession, locker: Locker) -> list[int]:
        result = await db.execute(
            select(Rental.user_id)
            .where(Rental.locker_id == locker.id, Rental.state == RentalState.ACTIVE)
            .distinct()
        )
        return list(result.scalars().all())
