"""
Test infrastructure for the CMS API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- get_cache is overridden with an in-memory fake per test, so cache hits,
  misses and invalidations can be asserted without Redis.
"""
import json
from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from cms.cache import get_cache
from cms.database import Base, get_db, make_engine, make_session_factory
from cms.main import app
from cms.models import Channel

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# make_engine picks StaticPool for :memory: URLs and installs the query counter.
engine_test = make_engine(TEST_DATABASE_URL)
async_session_test = make_session_factory(engine_test)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# In-memory cache
# ---------------------------------------------------------------------------

class InMemoryCache:
    """
    Dict-backed stand-in for CacheManager.

    Values are JSON round-tripped like the Redis-backed manager, so a cache
    hit hands services exactly the shapes they would get in production.
    TTLs are recorded but never expire.
    """

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.hits = 0
        self.misses = 0

    async def get(self, key: str) -> Any | None:
        if key not in self.store:
            self.misses += 1
            return None
        self.hits += 1
        return json.loads(self.store[key])

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self.store[key] = json.dumps(value, default=str)
        self.ttls[key] = ttl

    async def delete(self, key: str) -> None:
        self.store.pop(key, None)

    async def delete_by_prefix(self, prefix: str) -> None:
        for key in [k for k in self.store if k.startswith(prefix)]:
            del self.store[key]

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self.store if k.startswith(prefix))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def fake_cache() -> InMemoryCache:
    """A fresh in-memory cache wired into the app for every test."""
    cache = InMemoryCache()
    app.dependency_overrides[get_cache] = lambda: cache
    yield cache
    app.dependency_overrides.pop(get_cache, None)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def headers(
    site_id: int | str = 1, role: str | None = "MANAGE", user_id: int | None = None
) -> dict[str, str]:
    """Request headers for *site_id* acting as *role* (None omits the role)."""
    result = {"Site-Id": str(site_id)}
    if role is not None:
        result["X-User-Type"] = role
    if user_id is not None:
        result["X-User-Id"] = str(user_id)
    return result


async def make_channel(db: AsyncSession, site_id: int = 1, **kwargs) -> Channel:
    """Insert and commit a NORMAL channel for *site_id*."""
    channel = Channel(name=kwargs.pop("name", "News"), site_id=site_id, **kwargs)
    db.add(channel)
    await db.commit()
    return channel
