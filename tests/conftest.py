"""
Pytest configuration and fixtures for testing
"""
import os

# Settings are read at import time, so the environment must be ready first
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key"
os.environ["REVENUECAT_WEBHOOK_AUTH_KEY"] = "test-webhook-secret"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.pop("REDIS_URL", None)
os.environ.pop("ENV", None)

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from crud.user import UserRepository

# Create in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# One shared connection, otherwise every session would see its own empty database
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestAsyncSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

WEBHOOK_SECRET = "test-webhook-secret"
STRONG_PASSWORD = "TestPassword123!"


async def override_get_db():
    """Override get_db to use test database"""
    async with TestAsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@pytest.fixture
async def test_db():
    """
    Fixture that provides an isolated, in-memory SQLite database for each test.

    This fixture:
    - Creates all tables before the test runs
    - Yields a clean AsyncSession for the test
    - Drops all tables after the test completes
    """
    async with test_engine.begin() as conn:
        # Import models to ensure they're registered with Base
        import database_models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)

    async with TestAsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Each test runs on its own event loop; do not carry the connection over
    await test_engine.dispose()


@pytest.fixture
async def async_client(test_db):
    """
    httpx client bound to the app with the test database.

    Data seeded through ``test_db`` must be committed before a request is made,
    since both share the single in-memory connection.
    """
    from main import app

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def create_user(db: AsyncSession, email: str = "owner@example.com"):
    """Insert a user directly, for service level tests."""
    user = await UserRepository(db).create_user({"email": email, "hashed_password": "not-a-real-hash"})
    await db.commit()
    return user


async def signup(client: AsyncClient, email: str) -> tuple[str, dict]:
    """Sign up through the API; returns the user id and a Bearer header."""
    response = await client.post("/api/auth/signup", json={"email": email, "password": STRONG_PASSWORD})
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["userId"], {"Authorization": f"Bearer {data['token']}"}
