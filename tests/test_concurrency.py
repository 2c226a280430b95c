"""Test di concorrenza sulle celle / Cell concurrency tests."""

import asyncio

from sqlalchemy import func, select

from null_backend.database import async_session
from null_backend.errors import NotFoundError, ValidationError
from null_backend.models.cell import Cell
from null_backend.models.rental import Rental, RentalState, RentalType
from null_backend.models.user import User
from null_backend.services.rental_ledger import OpenedSession, RentalLedger

from conftest import RecordingNotifier


async def _attempt(ledger, user_id, locker_code, cell_code=None):
    async with async_session() as session:
        user = await session.get(User, user_id)
        return await ledger.open(session, user, locker_code, RentalType.DEPOSIT, "1h", cell_code=cell_code)


async def test_concurrent_opens_on_same_cell_exactly_one_wins(db, user, other_user, locker):
    ledger = RentalLedger(notifier=RecordingNotifier(), render_qr=False)

    results = await asyncio.gather(
        _attempt(ledger, user.id, locker.locker_code, "CEL-001-1"),
        _attempt(ledger, other_user.id, locker.locker_code, "CEL-001-1"),
        return_exceptions=True,
    )

    assert sum(isinstance(r, OpenedSession) for r in results) == 1
    assert sum(isinstance(r, NotFoundError) for r in results) == 1

    cell_id = await db.scalar(select(Cell.id).where(Cell.cell_code == "CEL-001-1"))
    active = await db.scalar(
        select(func.count(Rental.id)).where(Rental.cell_id == cell_id, Rental.state == RentalState.ACTIVE)
    )
    assert active == 1


async def test_concurrent_opens_get_distinct_cells_and_codes(db, user, locker):
    ledger = RentalLedger(notifier=RecordingNotifier(), render_qr=False)

    results = await asyncio.gather(
        _attempt(ledger, user.id, locker.locker_code),
        _attempt(ledger, user.id, locker.locker_code),
        _attempt(ledger, user.id, locker.locker_code),
    )

    assert len({r.rental.cell_id for r in results}) == 3
    assert len({r.rental.rental_code for r in results}) == 3
    assert len({r.rental.bluetooth_token for r in results}) == 3


async def test_concurrent_finish_only_one_succeeds(db, user, locker):
    ledger = RentalLedger(notifier=RecordingNotifier(), render_qr=False)
    opened = await ledger.open(db, user, locker.locker_code, RentalType.DEPOSIT, "1h")
    code = opened.rental.rental_code

    async def finish():
        async with async_session() as session:
            owner = await session.get(User, user.id)
            return await ledger.finish(session, owner, rental_code=code)

    results = await asyncio.gather(finish(), finish(), return_exceptions=True)

    assert sum(isinstance(r, Rental) for r in results) == 1
    assert sum(isinstance(r, ValidationError) for r in results) == 1
