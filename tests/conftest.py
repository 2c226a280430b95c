"""Fixture condivise / Shared fixtures."""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="null-lockers-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["UPLOAD_DIR"] = f"{_TMP_DIR}/uploads"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["MOCK_PAYMENT_LATENCY_SECONDS"] = "0"
os.environ["DEBUG"] = "true"

import base64  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

import null_backend.models  # noqa: E402,F401
from null_backend.database import Base, async_session, engine  # noqa: E402
from null_backend.main import app  # noqa: E402
from null_backend.models.cell import CellPurpose, CellSize  # noqa: E402
from null_backend.models.user import User, UserRole  # noqa: E402
from null_backend.services.locker_registry import LockerRegistry  # noqa: E402
from null_backend.services.notifier import Notifier  # noqa: E402
from null_backend.utils.auth import create_access_token, hash_password  # noqa: E402

PHOTO = "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\nnot-really-a-png").decode()


class RecordingNotifier(Notifier):
    """Registra le notifiche invece di scriverle / Records notifications instead of writing them."""

    def __init__(self):
        super().__init__()
        self.events: list[tuple[str, str]] = []

    async def cell_operation(self, rental, operation):
        self.events.append((operation, rental.rental_code))

    async def temporary_closure(self, locker, user_ids):
        for user_id in user_ids:
            self.events.append(("temporary_closure", str(user_id)))


@pytest.fixture
async def schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db(schema):
    async with async_session() as session:
        yield session


@pytest.fixture
async def client(schema):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def make_user(db, username: str, role: UserRole = UserRole.USER) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        hashed_password=hash_password("password123"),
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def user(db):
    return await make_user(db, "mario")


@pytest.fixture
async def other_user(db):
    return await make_user(db, "luigi")


@pytest.fixture
async def operator(db):
    return await make_user(db, "operatore", UserRole.OPERATOR)


@pytest.fixture
async def locker(db):
    """Locker con celle di ogni tipo / Locker with cells of every purpose.

    CEL-001-1, 2: deposit medium; 3: deposit small photo-required;
    4, 5: borrow; 6: borrow photo-required; 7: pickup; 8: commercial.
    """
    created = await LockerRegistry.create(
        db,
        name="Piazza Duomo",
        latitude=45.4642,
        longitude=9.1900,
        category="personali",
        cells=[
            {"purpose": CellPurpose.DEPOSIT.value, "size": CellSize.MEDIUM.value, "count": 2},
            {"purpose": CellPurpose.DEPOSIT.value, "size": CellSize.SMALL.value, "photo_required": True},
            {"purpose": CellPurpose.BORROW.value, "count": 2, "category": "sport"},
            {"purpose": CellPurpose.BORROW.value, "photo_required": True, "category": "sport"},
            {"purpose": CellPurpose.PICKUP.value},
            {"purpose": CellPurpose.COMMERCIAL.value},
        ],
    )
    await db.commit()
    return created
