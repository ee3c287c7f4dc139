"""Shared pytest fixtures configured to use SQLite in-memory for unit tests."""

import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from uuid import uuid4

# Must be set before the app (and its settings/engine) is imported
os.environ["NOTEGUARD_SKIP_LIFESPAN_DB"] = "1"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="noteguard-logs-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from noteguard.config import Settings, get_settings
from noteguard.core import redis_client as redis_client_module
from noteguard.core.models import BaseModel, Note
from noteguard.core.schemas.access import Caller, Role
from noteguard.database import get_db_session
from noteguard.main import app
from noteguard.security.jwt import create_caller_token

# Silence extremely verbose DEBUG logs from aiosqlite to keep test output readable
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


@pytest.fixture(scope="session")
def test_settings():
    """Override settings for testing using SQLite in-memory DB."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret-key",
        debug=True,
    )


@pytest.fixture
async def test_engine(test_settings):
    """Fresh SQLite in-memory database per test."""
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
        poolclass=StaticPool,  # keep the same memory DB across connections
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def test_session(test_engine):
    """Database session per test."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis."""

    def __init__(self):
        self.storage = {}
        self.closed = False

    async def ping(self):
        return True

    async def set(self, key, value):
        self.storage[key] = value
        return True

    async def setex(self, key, seconds, value):
        self.storage[key] = value
        return True

    async def exists(self, key):
        return int(key in self.storage)

    async def aclose(self):
        self.closed = True


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Every test gets a connected revocation list backed by a dict."""
    fake = FakeRedis()
    client = redis_client_module.RedisClient()
    client.redis = fake
    monkeypatch.setattr(redis_client_module, "_redis_client", client)
    return fake


@pytest.fixture
def override_get_db(test_session):
    """Override the get_db_session dependency."""

    async def _override_get_db():
        yield test_session

    return _override_get_db


@pytest.fixture
def test_app(override_get_db, test_settings):
    """FastAPI app with overridden dependencies."""
    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app):
    """Async test client running in the test's event loop."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 10, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def org_id():
    return uuid4()


@pytest.fixture
def alice(org_id):
    return Caller(user_id=uuid4(), org_id=org_id)


@pytest.fixture
def bob(org_id):
    return Caller(user_id=uuid4(), org_id=org_id)


@pytest.fixture
def carol(org_id):
    return Caller(user_id=uuid4(), org_id=org_id)


@pytest.fixture
def admin(org_id):
    return Caller(user_id=uuid4(), org_id=org_id, role=Role.ADMIN)


@pytest.fixture
def outsider():
    """Admin of another organization."""
    return Caller(user_id=uuid4(), org_id=uuid4(), role=Role.ADMIN)


def auth_headers_for(caller: Caller) -> dict:
    return {"Authorization": f"Bearer {create_caller_token(caller)}"}


@pytest.fixture
def auth_headers():
    """Build bearer headers for any caller."""
    return auth_headers_for


@pytest.fixture
def make_note(test_session):
    """Persist a note with the given access configuration."""

    async def _make_note(creator: Caller, **fields) -> Note:
        fields.setdefault("title", "Test Note")
        note = Note(creator_id=creator.user_id, org_id=creator.org_id, **fields)
        test_session.add(note)
        await test_session.commit()
        await test_session.refresh(note)
        return note

    return _make_note


@pytest.fixture
def app_logs(caplog, monkeypatch):
    """caplog for the application loggers, which don't propagate to root."""
    monkeypatch.setattr(logging.getLogger("noteguard"), "propagate", True)
    caplog.set_level(logging.INFO, logger="noteguard")
    return caplog
