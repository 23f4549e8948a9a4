"""
Pytest fixtures for test database, client, offices and authentication.

Tables are created and dropped around every test. SQLite (aiosqlite) is used
unless TEST_DATABASE_URL points elsewhere; NullPool gives every session its
own connection, which the concurrency tests rely on.
"""

import os
import tempfile
from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from coworking.main import app
from coworking.db.base import Base
from coworking.db.session import get_db
from coworking.core.security import create_access_token
from coworking.models.office import Office
from coworking.models.reservation import Reservation
from coworking.services.interfaces.memory_lock import InProcessLockManager
from coworking.services.interfaces.notifier import Notifier
from coworking.services.strategy_factory import get_lock_manager, get_notifier

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "coworking_test.db"),
)

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

VISITOR_ID = 1
HOST_ID = 2
OTHER_VISITOR_ID = 3


class RecordingNotifier(Notifier):
    """Keeps sent notifications in memory; optionally fails every send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, recipient_id: int, event_type: str, payload: dict) -> None:
        if self.fail:
            raise RuntimeError("notification backend down")
        self.sent.append((recipient_id, event_type, payload))


def days_from_today(days: int) -> date:
    return date.today() + timedelta(days=days)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def lock_manager() -> InProcessLockManager:
    return InProcessLockManager()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    lock_manager: InProcessLockManager,
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB session, lock manager and notifier overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_manager] = lambda: lock_manager
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def headers_for(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user_id)})}"}


@pytest.fixture
def auth_headers() -> dict:
    """Authorization headers for the visitor."""
    return headers_for(VISITOR_ID)


@pytest.fixture
def host_headers() -> dict:
    return headers_for(HOST_ID)


async def make_office(db: AsyncSession, **overrides) -> Office:
    values = {
        "owner_id": HOST_ID,
        "title": "Harbour View Desk",
        "price_per_day": 1_000,
        "monthly_discount": 10,
        "is_hidden": False,
        "approval_status": Office.APPROVAL_APPROVED,
    }
    values.update(overrides)
    office = Office(**values)
    db.add(office)
    await db.commit()
    await db.refresh(office)
    return office


async def make_reservation(db: AsyncSession, office: Office, **overrides) -> Reservation:
    values = {
        "user_id": VISITOR_ID,
        "office_id": office.id,
        "start_date": days_from_today(1),
        "end_date": days_from_today(5),
        "status": Reservation.STATUS_ACTIVE,
        "price": 15_000,
        "wifi_password": "fixture-secret",
    }
    values.update(overrides)
    reservation = Reservation(**values)
    db.add(reservation)
    await db.commit()
    await db.refresh(reservation)
    return reservation


@pytest_asyncio.fixture
async def test_office(db_session: AsyncSession) -> Office:
    """Approved, visible office owned by the host: 1000/day, 10% monthly discount."""
    return await make_office(db_session)


@pytest_asyncio.fixture
async def pending_office(db_session: AsyncSession) -> Office:
    return await make_office(db_session, title="Pending Loft", approval_status=Office.APPROVAL_PENDING)


@pytest_asyncio.fixture
async def hidden_office(db_session: AsyncSession) -> Office:
    return await make_office(db_session, title="Hidden Studio", is_hidden=True)
