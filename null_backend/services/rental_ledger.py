"""
Registro noleggi / Rental ledger.
Macchina a stati delle sessioni di deposito, prestito e ritiro.
State machine of deposit, borrow and pickup sessions.

    active --(return/end)--> ended
    active --(cancel)------> cancelled

Le transizioni principali fanno commit prima delle notifiche.
Primary transitions commit before notifications are published.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.errors import NotFoundError, UnauthorizedError, ValidationError
from null_backend.models.cell import Cell, CellPurpose
from null_backend.models.rental import Rental, RentalState, RentalType
from null_backend.models.user import User
from null_backend.services.access_tokens import AccessTokenIssuer, AccessTokens
from null_backend.services.cell_registry import CellRegistry
from null_backend.services.durations import parse_duration
from null_backend.services.locker_registry import LockerRegistry
from null_backend.services.notifier import Notifier
from null_backend.services.photo_storage import PhotoStorage
from null_backend.services.pricing import ZERO, PricingEngine, round_money
from null_backend.utils.clock import clock_label, utcnow

logger = logging.getLogger(__name__)

CELL_PURPOSE_FOR = {
    RentalType.DEPOSIT: CellPurpose.DEPOSIT,
    RentalType.BORROW: CellPurpose.BORROW,
    RentalType.PICKUP: CellPurpose.PICKUP,
}

# Un lock per locker, rilasciato quando nessuno lo usa / One lock per locker, dropped when unused
_locker_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()


def _locker_lock(locker_id: int) -> asyncio.Lock:
    lock = _locker_locks.get(locker_id)
    if lock is None:
        lock = asyncio.Lock()
        _locker_locks[locker_id] = lock
    return lock


def _is_active_cell_conflict(exc: IntegrityError) -> bool:
    """Violazione di "una sessione attiva per cella" / Violation of "one active session per cell"."""
    detail = str(exc.orig)
    return "uq_rentals_active_cell" in detail or "rentals.cell_id" in detail


@dataclass
class OpenedSession:
    rental: Rental
    tokens: AccessTokens


class RentalLedger:
    """Operazioni sulle sessioni / Session operations."""

    def __init__(
        self,
        notifier: Notifier | None = None,
        photos: PhotoStorage | None = None,
        render_qr: bool = True,
    ):
        self.notifier = notifier or Notifier()
        self.photos = photos or PhotoStorage()
        self.render_qr = render_qr

    # --- Apertura / Open ---

    async def open(
        self,
        db: AsyncSession,
        user: User,
        locker_code: str,
        rental_type: RentalType,
        duration: str | None = None,
        cell_code: str | None = None,
        photo: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        item_type: str | None = None,
        item_description: str | None = None,
    ) -> OpenedSession:
        """Prenota una cella e apre la sessione / Reserve a cell and open the session."""
        locker = await LockerRegistry.get_by_code(db, locker_code)
        if not locker.accepts_sessions:
            raise NotFoundError(f"Locker {locker_code} is not available")

        parsed = parse_duration(duration, rental_type)
        if photo:
            # Valida prima di toccare lo stato / Validate before touching any state
            self.photos.decode(photo)

        photo_url = None
        async with _locker_lock(locker.id):
            try:
                cell = await CellRegistry.find_available(db, locker, CELL_PURPOSE_FOR[rental_type], cell_code)
                if not await CellRegistry.mark_occupied(db, cell):
                    raise NotFoundError(f"Cell {cell.cell_code} is no longer available")

                if rental_type == RentalType.DEPOSIT:
                    cost = PricingEngine.quote(cell.size, parsed)
                else:
                    cost = ZERO

                now = utcnow()
                rental = Rental(
                    user_id=user.id,
                    cell_id=cell.id,
                    cell=cell,
                    locker_id=locker.id,
                    locker=locker,
                    rental_type=rental_type,
                    state=RentalState.ACTIVE,
                    started_at=now,
                    start_clock=clock_label(now),
                    expected_end_at=now + parsed.as_timedelta(),
                    cost=cost,
                    latitude=latitude,
                    longitude=longitude,
                    item_type=item_type,
                    item_description=item_description,
                )
                db.add(rental)
                await db.flush()
                rental.rental_code = f"NOL-{rental.id:03d}"

                tokens = AccessTokenIssuer.issue(rental.rental_code, cell.cell_code, locker.locker_code, render=False)
                rental.qr_payload = tokens.qr_payload
                rental.bluetooth_token = tokens.bluetooth_token
                if photo:
                    photo_url = self.photos.save(photo, rental.rental_code)
                    rental.anomaly_photo_url = photo_url
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                self.photos.discard(photo_url)
                # Solo l'indice per cella indica una corsa persa / Only the per-cell index means a lost race
                if not _is_active_cell_conflict(e):
                    raise
                raise NotFoundError(f"Cell in locker {locker_code} is no longer available")
            except Exception:
                await db.rollback()
                self.photos.discard(photo_url)
                raise

        logger.info(
            "%s opened: %s for user %s on %s, cost %s",
            rental_type.value.capitalize(), rental.rental_code, user.id, cell.cell_code, rental.cost,
        )
        if self.render_qr:
            tokens = AccessTokens(
                qr_payload=tokens.qr_payload,
                bluetooth_token=tokens.bluetooth_token,
                qr_image=AccessTokenIssuer.render_qr(tokens.qr_payload),
            )
        await self.notifier.cell_operation(rental, "reserved")
        return OpenedSession(rental=rental, tokens=tokens)

    # --- Accesso fisico / Physical access ---

    async def unlock(
        self,
        db: AsyncSession,
        user: User,
        cell_code: str,
        photo: str | None = None,
        qr_code: str | None = None,
        bluetooth_token: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> Rental:
        """Apre la cella; la sessione resta attiva / Open the cell; the session stays active.

        I token forniti devono coincidere, quelli assenti non sono richiesti.
        Supplied tokens must match, absent ones are not required.
        """
        cell = await CellRegistry.get_by_code(db, cell_code)
        rental = await self._active_on_cell(db, cell, user)

        if cell.photo_required and not photo:
            raise ValidationError("A photo is required to open this cell")
        if qr_code is not None and not AccessTokenIssuer.matches(rental.qr_payload, qr_code):
            raise ValidationError("Invalid QR code")
        if bluetooth_token is not None and not AccessTokenIssuer.matches(rental.bluetooth_token, bluetooth_token):
            raise ValidationError("Invalid Bluetooth token")

        if latitude is not None and longitude is not None:
            rental.latitude = latitude
            rental.longitude = longitude
        photo_url = None
        try:
            if photo:
                photo_url = self.photos.save(photo, rental.rental_code)
                rental.anomaly_photo_url = photo_url
            await db.commit()
        except Exception:
            await db.rollback()
            self.photos.discard(photo_url)
            raise

        logger.info("Cell %s opened by user %s (%s)", cell.cell_code, user.id, rental.rental_code)
        await self.notifier.cell_operation(rental, "opened")
        return rental

    async def lock_closed(self, db: AsyncSession, user: User, cell_code: str, door_closed: bool | None) -> Rental:
        """Registra la chiusura dello sportello / Record the door being closed."""
        if door_closed is not True:
            raise ValidationError("doorClosed must be true")
        cell = await CellRegistry.get_by_code(db, cell_code)
        rental = await self._active_on_cell(db, cell, user)

        rental.door_closed_at = utcnow()
        await db.commit()

        logger.info("Cell %s closed by user %s (%s)", cell.cell_code, user.id, rental.rental_code)
        await self.notifier.cell_operation(rental, "closed")
        return rental

    # --- Chiusura / Return or end ---

    async def finish(
        self,
        db: AsyncSession,
        user: User,
        rental_code: str | None = None,
        cell_code: str | None = None,
        photo: str | None = None,
        allowed_types: tuple[RentalType, ...] = tuple(RentalType),
    ) -> Rental:
        """Transizione terminale active -> ended / Terminal active -> ended transition.

        Non reversibile: una seconda chiamata fallisce con "not active".
        Not reversible: a second call fails with "not active".
        """
        if rental_code:
            rental = await self.get_owned(db, user, rental_code)
        elif cell_code:
            cell = await CellRegistry.get_by_code(db, cell_code)
            rental = await self._active_on_cell(db, cell, user)
        else:
            raise ValidationError("rentalId or cellId is required")

        if rental.rental_type not in allowed_types:
            expected = "/".join(t.value for t in allowed_types)
            raise ValidationError(f"Rental {rental.rental_code} is not a {expected} session")
        if not rental.is_active:
            raise ValidationError(f"Rental {rental.rental_code} is not active ({rental.state.value})")
        if rental.cell.photo_required and not photo:
            raise ValidationError("A photo is required to return this cell")
        if photo:
            self.photos.decode(photo)

        photo_url = None
        try:
            await self._close(db, rental, RentalState.ENDED)
            if photo:
                photo_url = self.photos.save(photo, rental.rental_code)
                rental.anomaly_photo_url = photo_url
            await db.commit()
        except Exception:
            await db.rollback()
            self.photos.discard(photo_url)
            raise

        logger.info(
            "%s ended: %s for user %s, final cost %s",
            rental.rental_type.value.capitalize(), rental.rental_code, user.id, rental.cost,
        )
        await self.notifier.cell_operation(rental, "returned")
        return rental

    async def cancel(self, db: AsyncSession, rental: Rental) -> Rental:
        """active -> cancelled, cella liberata, costo invariato / cell freed, cost unchanged."""
        if not rental.is_active:
            raise ValidationError(f"Rental {rental.rental_code} is not active ({rental.state.value})")
        try:
            await self._close(db, rental, RentalState.CANCELLED)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Rental cancelled: %s", rental.rental_code)
        return rental

    async def _close(self, db: AsyncSession, rental: Rental, state: RentalState) -> None:
        # Guardia compare-and-set contro doppio invio / Compare-and-set guard against double submission
        result = await db.execute(
            update(Rental)
            .where(Rental.id == rental.id, Rental.state == RentalState.ACTIVE)
            .values(state=state)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ValidationError(f"Rental {rental.rental_code} is not active")

        now = utcnow()
        rental.state = state
        rental.ended_at = now
        rental.end_clock = clock_label(now)
        if state == RentalState.ENDED and rental.rental_type == RentalType.DEPOSIT:
            rental.cost = PricingEngine.final_cost(rental.cell.size, now - rental.started_at)
        await CellRegistry.mark_free(db, rental.cell)

    # --- Estensione / Extend ---

    async def extend(self, db: AsyncSession, user: User, rental_code: str, additional: str | None) -> tuple[Rental, Decimal]:
        """Proroga un deposito attivo / Extend an active deposit.

        Ritorna (noleggio, costo aggiuntivo) / Returns (rental, additional cost).
        """
        if not additional or not str(additional).strip():
            raise ValidationError("Duration is required")
        rental = await self.get_owned(db, user, rental_code)
        if rental.rental_type != RentalType.DEPOSIT:
            raise ValidationError("Only deposits can be extended")
        if not rental.is_active:
            raise ValidationError(f"Deposit {rental.rental_code} is not active ({rental.state.value})")

        parsed = parse_duration(additional, RentalType.DEPOSIT)
        extra = PricingEngine.quote(rental.cell.size, parsed)
        rental.cost = round_money(Decimal(rental.cost) + extra)
        rental.expected_end_at = rental.expected_end_at + parsed.as_timedelta()
        await db.commit()

        logger.info("Deposit extended: %s by %s, cost now %s", rental.rental_code, parsed, rental.cost)
        return rental, extra

    # --- Letture / Reads ---

    async def get_owned(self, db: AsyncSession, user: User, rental_code: str) -> Rental:
        """Noleggio per codice, solo del proprietario / Rental by code, owner only."""
        result = await db.execute(select(Rental).where(Rental.rental_code == rental_code))
        rental = result.scalar_one_or_none()
        if rental is None:
            raise NotFoundError(f"Rental {rental_code} not found")
        if rental.user_id != user.id:
            raise UnauthorizedError("You are not authorized to access this rental")
        return rental

    @staticmethod
    async def _active_on_cell(db: AsyncSession, cell: Cell, user: User) -> Rental:
        result = await db.execute(
            select(Rental).where(
                Rental.cell_id == cell.id,
                Rental.user_id == user.id,
                Rental.state == RentalState.ACTIVE,
            )
        )
        rental = result.scalar_one_or_none()
        if rental is None:
            raise NotFoundError(f"No active session on cell {cell.cell_code} for this user")
        return rental

    @staticmethod
    async def active_for_user(db: AsyncSession, user: User, rental_type: RentalType | None = None) -> list[Rental]:
        query = select(Rental).where(Rental.user_id == user.id, Rental.state == RentalState.ACTIVE)
        if rental_type is not None:
            query = query.where(Rental.rental_type == rental_type)
        result = await db.execute(query.order_by(Rental.started_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def history(
        db: AsyncSession,
        user: User,
        page: int = 1,
        limit: int = 20,
        rental_type: RentalType | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> tuple[list[Rental], int]:
        """Storico paginato / Paginated history (newest first)."""
        if from_date and to_date and from_date > to_date:
            raise ValidationError("fromDate must not be after toDate")

        filters = [Rental.user_id == user.id]
        if rental_type is not None:
            filters.append(Rental.rental_type == rental_type)
        if from_date:
            filters.append(Rental.started_at >= from_date)
        if to_date:
            filters.append(Rental.started_at <= to_date)

        total = await db.scalar(select(func.count(Rental.id)).where(*filters)) or 0
        result = await db.execute(
            select(Rental).where(*filters).order_by(Rental.started_at.desc(), Rental.id.desc())
            .offset((page - 1) * limit).limit(limit)
        )
        return list(result.scalars().all()), total
