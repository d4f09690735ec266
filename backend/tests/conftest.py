"""
Pytest configuration and shared fixtures for LoadShop tests.

Provides an in-memory SQLite session, SQL and in-memory store pairs, an
httpx client bound to the app, and token helpers.
"""
import pytest
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only-0123456789"
settings.checkout_work_ms = 0

from main import app  # noqa: E402
from database import Base, get_db  # noqa: E402
from services.catalog_store import MemoryCatalogStore, SqlCatalogStore  # noqa: E402
from services.order_ledger import MemoryOrderLedger, SqlOrderLedger  # noqa: E402
from tests.helpers import ADMIN_ID, ALICE_ID, BOB_ID, auth_headers  # noqa: E402


# ── Settings isolation ───────────────────────────────────────────────


@pytest.fixture(autouse=True)
def restore_settings():
    """Undo per-test changes to the global settings object."""
    saved = settings.model_dump()
    yield
    for key, value in saved.items():
        setattr(settings, key, value)


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def sql_catalog(db_session) -> SqlCatalogStore:
    return SqlCatalogStore(db_session)


@pytest.fixture
def sql_ledger(db_session) -> SqlOrderLedger:
    return SqlOrderLedger(db_session)


@pytest.fixture
def memory_catalog() -> MemoryCatalogStore:
    return MemoryCatalogStore()


@pytest.fixture
def memory_ledger() -> MemoryOrderLedger:
    return MemoryOrderLedger()


@pytest.fixture(params=["sql", "memory"])
def stores(request, db_session):
    """(catalog, ledger) for each backend; engine tests run against both."""
    if request.param == "sql":
        return SqlCatalogStore(db_session), SqlOrderLedger(db_session)
    return MemoryCatalogStore(), MemoryOrderLedger()


# ── HTTP client ──────────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client bound to the app with the in-memory database.

    Overrides get_db so routes share the test session. Lifespan is not run.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ── Test Data Fixtures ────────────────────────────────────────────────


@pytest.fixture
def alice_headers() -> dict:
    return auth_headers("alice", ALICE_ID)


@pytest.fixture
def bob_headers() -> dict:
    return auth_headers("bob", BOB_ID)


@pytest.fixture
def admin_headers() -> dict:
    return auth_headers("root", ADMIN_ID, is_admin=True)
