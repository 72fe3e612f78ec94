"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite; no Postgres instance is needed.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- Callers authenticate with real bearer tokens minted by
  ``blog.security.create_access_token``; the admin and regular users are
  inserted up front so their roles are fixed before the first request.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from blog.database import Base, get_db
from blog.main import app
from blog.middleware import install_query_counter
from blog.models import User, UserRole
from blog.security import create_access_token

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Register the per-request SQL query counter on the test engine.
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
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that call services directly.
    Nothing is committed; the tables are dropped after the test.
    """
    async with async_session_test() as session:
        yield session


async def _insert_user(open_id: str, name: str, role: UserRole) -> User:
    async with async_session_test() as session:
        user = User(open_id=open_id, name=name, role=role)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest_asyncio.fixture
async def admin_user() -> User:
    return await _insert_user("admin-open-id", "Admin User", UserRole.admin)


@pytest_asyncio.fixture
async def regular_user() -> User:
    return await _insert_user("reader-open-id", "Regular Reader", UserRole.user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(admin_user.open_id)}"}


@pytest.fixture
def user_headers(regular_user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(regular_user.open_id)}"}


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
