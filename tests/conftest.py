"""
Test configuration and fixtures for pytest.

Every test gets a fresh in-memory SQLite database and a temporary media
root. The application's session and media store dependencies are overridden
to point at them, and requests go through httpx against the ASGI app.
"""

import os
import tempfile

# settings are read when the package is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="food-delivery-media-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from food_delivery import app
from food_delivery.core.dependencies import get_db, get_storage
from food_delivery.db.base import Base
from food_delivery.db.database import enable_sqlite_foreign_keys
from food_delivery.models import User
from food_delivery.services.storage_service import MediaStorage


API = "/api/v1"

WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@pytest.fixture
async def engine():
    """In-memory database shared by every connection of one test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def storage(tmp_path):
    return MediaStorage(root=str(tmp_path / "media"), base_url="/media", max_file_size=1024 * 1024, timeout=5)


@pytest.fixture
async def client(session_factory, storage):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()


@pytest.fixture
def create_user(session_factory):
    """Factory inserting users with unique emails."""
    counter = {"n": 0}

    async def _create_user(name: str = "Test User", **kwargs) -> User:
        counter["n"] += 1
        user = User(name=name, email=kwargs.pop("email", f"user{counter['n']}@example.com"), **kwargs)
        async with session_factory() as session:
            session.add(user)
            await session.commit()
            await session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def restaurant_payload():
    """Factory building a valid restaurant creation body."""

    def _payload(owner_id: int, **overrides) -> dict:
        payload = {
            "name": "Spice Route",
            "description": "Slow cooked curries and fresh breads",
            "cuisineType": ["North Indian", "Chinese"],
            "foodType": ["Vegetarian", "Non-Vegetarian"],
            "tags": ["family", "spicy"],
            "location": {
                "address": "12 MG Road",
                "city": "Bengaluru",
                "state": "Karnataka",
                "pinCode": "560001",
                "latitude": 12.9716,
                "longitude": 77.5946,
                "zoneId": 3,
            },
            "contact": {"phone": "9876543210", "email": "Hello@SpiceRoute.in"},
            "openingHours": [{"day": day, "open": "09:00", "close": "22:00"} for day in WEEK],
            "priceRange": 2,
            "ownerId": owner_id,
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def create_restaurant(client, restaurant_payload):
    """Factory creating a restaurant through the API and returning its JSON."""

    async def _create_restaurant(owner_id: int, **overrides) -> dict:
        response = await client.post(f"{API}/restaurants/", json=restaurant_payload(owner_id, **overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create_restaurant
