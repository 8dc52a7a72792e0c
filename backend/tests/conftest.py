"""
Test Configuration — Fixtures for async DB, test client, and mock data.

Each test gets its own in-memory SQLite database, so app code is free to
commit and roll back per item exactly as it does in production.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api.deps import get_current_user, get_db
from api.main import app
from db.models import InventoryItem
from db.session import Base
from ml.registry import SAMPLE_MODEL, upsert_model_version

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Create a fresh in-memory database with all tables."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    SessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session


@pytest.fixture
def mock_user():
    """Mock authenticated user."""
    return {
        "sub": "auth|test-user-id",
        "email": "test@medstock.local",
        "role": "admin",
    }


@pytest.fixture
async def client(test_db, mock_user):
    """Create an async test client with dependency overrides."""

    async def override_get_db():
        yield test_db

    def override_get_current_user():
        return mock_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def anon_client(test_db):
    """Client with the real bearer-token check in place."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def active_model(test_db):
    """Register the sample model as the active one."""
    row, _ = await upsert_model_version(test_db, SAMPLE_MODEL, created_by="tests")
    await test_db.commit()
    return row


@pytest.fixture
def make_item(test_db):
    """Factory: insert an inventory item with sensible defaults."""

    async def _make(**overrides) -> InventoryItem:
        fields = {
            "item_name": "Ventilator",
            "item_type": "Equipment",
            "current_stock": 2487,
            "min_required": 656,
            "max_capacity": 3556,
            "unit_cost": 5832.29,
            "avg_usage_per_day": 55,
            "restock_lead_time": 12,
            "vendor_name": "MedSupply Inc",
        }
        fields.update(overrides)
        item = InventoryItem(**fields)
        test_db.add(item)
        await test_db.commit()
        return item

    return _make
