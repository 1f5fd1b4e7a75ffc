"""Shared test configuration and fixtures.

Uses a transactional rollback strategy per test for full isolation:
- Each test gets its own transaction that rolls back after the test.
- The database is a throwaway SQLite file unless ``TEST_DATABASE_URL`` points
  at a real PostgreSQL test database.
"""

import os
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from maxed_homes.api.deps import get_booking_engine
from maxed_homes.auth.jwt import auth_header_for
from maxed_homes.bookings.config import EngineConfig
from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.bookings.events import RecordingDispatcher
from maxed_homes.database import Base, get_db, make_engine
from maxed_homes.main import app
from maxed_homes.models.payment_config import PaymentConfig
from maxed_homes.models.property import Property
from maxed_homes.models.user import User

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


class FakeClock:
    """Naive-UTC clock the tests move by hand."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# ---------------------------------------------------------------------------
# Database: fresh schema per test, transactional rollback inside it
# ---------------------------------------------------------------------------


@pytest.fixture
def test_db_url(tmp_path) -> str:
    return TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'maxed_homes_test.db'}"


@pytest_asyncio.fixture
async def test_engine(test_db_url: str):
    """Create an engine with all tables, dropped again after the test."""
    engine = make_engine(test_db_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


# ---------------------------------------------------------------------------
# Booking engine with a controllable clock and an in-memory dispatcher
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0))


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def booking_engine(engine_config: EngineConfig, dispatcher: RecordingDispatcher, clock: FakeClock) -> BookingEngine:
    return BookingEngine(engine_config, dispatcher=dispatcher, clock=clock)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, booking_engine: BookingEngine) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test session and engine."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_engine] = lambda: booking_engine

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: users, tokens, property
# ---------------------------------------------------------------------------


async def create_user(db_session: AsyncSession, role: str = "guest", is_active: bool = True) -> User:
    """Insert a user with a unique email."""
    unique = uuid.uuid4().hex[:8]
    user = User(
        email=f"{role}-{unique}@test.com",
        name=f"Test {role.title()}",
        is_active=is_active,
        role=role,
    )
    db_session.add(user)
    await db_session.flush()
    return user


@pytest_asyncio.fixture
async def host_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "host")


@pytest_asyncio.fixture
async def guest_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "guest")


@pytest_asyncio.fixture
async def other_guest(db_session: AsyncSession) -> User:
    return await create_user(db_session, "guest")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "admin")


@pytest.fixture
def host_headers(host_user: User) -> dict[str, str]:
    return auth_header_for(str(host_user.id))


@pytest.fixture
def guest_headers(guest_user: User) -> dict[str, str]:
    return auth_header_for(str(guest_user.id))


@pytest.fixture
def other_guest_headers(other_guest: User) -> dict[str, str]:
    return auth_header_for(str(other_guest.id))


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_header_for(str(admin_user.id))


@pytest_asyncio.fixture
async def payment_configs(db_session: AsyncSession) -> list[PaymentConfig]:
    """Active accounts for every default payment method."""
    configs = [
        PaymentConfig(
            payment_method="mtn_momo",
            account_name="Maxed Homes",
            account_number="+229 97 00 00 01",
            display_order=1,
        ),
        PaymentConfig(
            payment_method="moov_momo",
            account_name="Maxed Homes",
            account_number="+229 95 00 00 02",
            display_order=2,
        ),
        PaymentConfig(
            payment_method="bank_transfer",
            account_name="Maxed Homes",
            account_number="BJ066 01001 000000000001 17",
            bank_name="Ecobank Benin",
            display_order=3,
        ),
    ]
    db_session.add_all(configs)
    await db_session.flush()
    return configs


@pytest_asyncio.fixture
async def test_property(db_session: AsyncSession, host_user: User, payment_configs: list[PaymentConfig]) -> Property:
    """A 4-guest listing at 100/night with a 20 cleaning fee and 50 deposit.

    Requests ``payment_configs`` so bookings on it can be paid for end to end.
    """
    prop = Property(
        host_id=host_user.id,
        title="Villa Test",
        city="Cotonou",
        max_guests=4,
        price_per_night=Decimal("100"),
        cleaning_fee=Decimal("20"),
        security_deposit=Decimal("50"),
        is_active=True,
    )
    db_session.add(prop)
    await db_session.flush()
    return prop
