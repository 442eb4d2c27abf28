"""Shared test configuration and fixtures.

Every test gets its own in-memory SQLite database (through aiosqlite), so no
server is needed and tests are fully isolated. The app's ``get_db``
dependency is overridden to hand out the test session.
"""

import os

# Must be set before staydesk.config is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-the-suite-only")

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

import staydesk.models  # noqa: F401  (registers every table on Base.metadata)
from staydesk.auth.security import hash_password
from staydesk.database import Base, get_db
from staydesk.main import app
from staydesk.models.promotion import Promotion
from staydesk.models.room import Room
from staydesk.models.user import User
from tests.helpers import headers_for, hotel_today

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """A fresh in-memory database with all tables created."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session = AsyncSession(bind=test_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory creating users directly in the DB."""

    async def _make(role: str = "guest", is_active: bool = True, password: str = "testpass123") -> User:
        unique = uuid.uuid4().hex[:8]
        user = User(
            email=f"{role}-{unique}@test.com",
            hashed_password=hash_password(password),
            name=f"Test {role.title()}",
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.flush()
        await db_session.refresh(user)
        return user

    return _make


@pytest_asyncio.fixture
async def guest_user(make_user) -> User:
    return await make_user("guest")


@pytest_asyncio.fixture
async def guest_headers(guest_user: User) -> dict[str, str]:
    return headers_for(guest_user)


@pytest_asyncio.fixture
async def receptionist_user(make_user) -> User:
    return await make_user("receptionist")


@pytest_asyncio.fixture
async def staff_headers(receptionist_user: User) -> dict[str, str]:
    return headers_for(receptionist_user)


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin")


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict[str, str]:
    return headers_for(admin_user)


# ---------------------------------------------------------------------------
# Rooms and promotions
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_room(db_session: AsyncSession) -> Room:
    """A $100/night standard room."""
    room = Room(name="Room 101", room_type="standard", price=100.0, capacity=2, status="available")
    db_session.add(room)
    await db_session.flush()
    await db_session.refresh(room)
    return room


@pytest_asyncio.fixture
async def make_promotion(db_session: AsyncSession) -> Callable[..., Awaitable[Promotion]]:
    """Factory creating promotions valid around today unless overridden."""

    async def _make(**overrides) -> Promotion:
        today = hotel_today()
        fields = {
            "title": "Summer Saver",
            "discount_type": "percentage",
            "discount_percent": 10.0,
            "discount_amount": 0.0,
            "minimum_amount": 0.0,
            "maximum_uses": None,
            "current_uses": 0,
            "start_date": today - timedelta(days=5),
            "end_date": today + timedelta(days=90),
            "is_active": True,
        }
        fields.update(overrides)
        promotion = Promotion(**fields)
        db_session.add(promotion)
        await db_session.flush()
        await db_session.refresh(promotion)
        return promotion

    return _make
