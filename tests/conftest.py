"""
Pytest fixtures for test database, client, and API-key headers.

Each test gets a fresh in-memory SQLite database (aiosqlite) with the full
schema, so tests are isolated without a PostgreSQL server. Redis is
disabled; the cache layer degrades to a no-op.
"""

import os

# Settings are read once and cached; point them at the test setup before
# anything from rentalhub is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_ENABLED"] = "false"
os.environ["API_KEY"] = "test-api-key"
os.environ["ENVIRONMENT"] = "test"

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rentalhub.main import app
from rentalhub.db.base import Base
from rentalhub.db.session import get_db
from rentalhub.models import Asset, Booking, Customer

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_API_KEY = "test-api-key"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh schema on a single shared in-memory connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Independent sessions over one file database, for interleaving transactions."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rentalhub.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        # Same rollback contract as the real dependency
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    # Unhandled errors come back as the 500 envelope instead of being re-raised
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_headers() -> dict:
    return {"X-API-KEY": TEST_API_KEY}


async def _persist(session: AsyncSession, *entities):
    """Commit, load, then detach so later rollbacks cannot expire them."""
    session.add_all(entities)
    await session.commit()
    for entity in entities:
        await session.refresh(entity)
        session.expunge(entity)
    return entities


@pytest_asyncio.fixture
async def test_asset(db_session: AsyncSession) -> Asset:
    (asset,) = await _persist(
        db_session,
        Asset(name="Drill", category="Tools", daily_rate=Decimal("150.00"), available=True),
    )
    return asset


@pytest_asyncio.fixture
async def second_asset(db_session: AsyncSession) -> Asset:
    (asset,) = await _persist(
        db_session,
        Asset(name="Trailer", category="Vehicles", daily_rate=Decimal("400.00"), available=True),
    )
    return asset


@pytest_asyncio.fixture
async def test_customer(db_session: AsyncSession) -> Customer:
    (customer,) = await _persist(
        db_session,
        Customer(first_name="Anna", last_name="Karlsson", email="a@example.com", phone="0701111111"),
    )
    return customer


@pytest_asyncio.fixture
async def other_customer(db_session: AsyncSession) -> Customer:
    (customer,) = await _persist(
        db_session,
        Customer(first_name="Johan", last_name="Nilsson", email="johan@example.com"),
    )
    return customer


@pytest_asyncio.fixture
async def rented_asset(db_session: AsyncSession, test_customer: Customer) -> Asset:
    """An asset with an active booking, stored consistently (unavailable)."""
    (asset,) = await _persist(
        db_session,
        Asset(name="Projector", category="Electronics", daily_rate=Decimal("250.00"), available=False),
    )
    await _persist(
        db_session,
        Booking(
            asset_id=asset.id,
            customer_id=test_customer.id,
            start_date=date(2026, 10, 1),
            active=True,
            note="For the renovation",
        ),
    )
    return asset
