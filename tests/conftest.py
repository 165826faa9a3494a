"""
Test infrastructure for the Linkshare API.

Strategy
--------
- JWT_SECRET is required by ``app.config``; a test value is put in the
  environment before anything from ``app`` is imported.
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after.
- The Redis cache is disabled by setting cache._redis = None; the
  CacheManager treats that as a permanent miss, so like counts always come
  from the database.
"""
import os

os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import models  # noqa: E402,F401
from app.cache import cache  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.datastore import SqlDatastore  # noqa: E402
from app.main import app  # noqa: E402
from app.middleware import install_query_counter  # noqa: E402

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


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
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    cache._redis = None
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def datastore(db_session: AsyncSession) -> SqlDatastore:
    """A SQL datastore on a live test session, cache disabled."""
    return SqlDatastore(db_session, cache=None)


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def make_user(async_client: AsyncClient):
    """
    Return a coroutine that signs up *username* through the API and yields
    ``(user_id, auth_headers)`` for it.
    """

    async def _make(username: str) -> tuple[str, dict]:
        resp = await async_client.post("/api/v1/signup", json={
            "firstName": username.title(),
            "lastName": "Tester",
            "email": f"{username}@example.com",
            "username": username,
            "password": f"{username}-password",
        })
        assert resp.status_code == 200
        headers = {"Authorization": f"Bearer {resp.json()['jwt']}"}

        me = await async_client.get("/api/v1/users", headers=headers)
        assert me.status_code == 200
        return me.json()["user"]["id"], headers

    return _make


async def create_post(client: AsyncClient, headers: dict, title: str, url: str) -> str:
    """Create a post through the API and return its generated id."""
    resp = await client.post("/api/v1/posts", json={"title": title, "url": url}, headers=headers)
    assert resp.status_code == 200

    listing = await client.get("/api/v1/posts", headers=headers)
    matches = [p["id"] for p in listing.json()["posts"] if p["title"] == title]
    assert len(matches) == 1
    return matches[0]
