"""
Centralized Test Configuration.

Each test gets its own SQLite file so the dashboards' parallel fetches,
which open one session each, see the same committed data.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool, Pool

from postal.app.main import app
from postal.app.db.session import get_db, get_session_factory, Base
from postal.app.core.redis_client import get_redis
from postal.app.services.change_feed import ChangeFeed, get_change_feed
from postal.app.services.shipping_method_service import ShippingMethodService
from postal.app.services.user_service import UserService
from postal.tests.helpers import bearer, sign_up


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def setex(self, key, ttl, value):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'postal.db'}",
        poolclass=NullPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def redis_client():
    return MockRedis()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, redis_client, feed):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_change_feed] = lambda: feed
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user_auth(client):
    """A signed-up regular user: (token response, headers)."""
    data = await sign_up(client, "alice@example.com")
    return data, bearer(data["access_token"])


@pytest.fixture
async def admin_auth(client, db_session):
    """A user promoted to admin directly in the database."""
    data = await sign_up(client, "root@example.com", address="HQ")
    await UserService(db_session).update(data["user_id"], {"priv": True})
    return data, bearer(data["access_token"])


@pytest.fixture
async def methods(db_session):
    service = ShippingMethodService(db_session)
    standard = await service.create({"name": "Standard", "cost": 5.0})
    express = await service.create({"name": "Express", "cost": 12.5})
    return standard, express
