"""Pytest configuration and shared fixtures.

This module provides:
- In-memory SQLite database (aiosqlite) with tables created per test
- Async session fixtures for repository/service tests
- FastAPI test client for route tests, with an auth override
- Cache and settings resets between tests
"""

# Set environment variables BEFORE any imports that trigger Settings validation
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SESSION_SECRET_KEY", "test_session_secret_key_for_testing")
os.environ.setdefault("REQUIRE_HTTPS", "false")
os.environ.setdefault("SEED_ACHIEVEMENTS_ON_STARTUP", "false")

from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from core.cache import clear_all_caches
from core.config import clear_settings_cache
from core.database import Base, configure_sqlite_engine

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Module-level constant for tests that need to set up data directly
TEST_USER_ID = "user_test_123456789"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory database per test.

    StaticPool keeps the single connection alive, so every session sees the
    same database. Sessions sharing it must not hold overlapping
    transactions: commit test setup before issuing requests.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    configure_sqlite_engine(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Provide a database session for each test."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seeded_catalog(db_session: AsyncSession) -> None:
    """Default achievements present and committed."""
    from services.achievement_catalog import seed_achievements

    await seed_achievements(db_session)
    await db_session.commit()


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest.fixture
def test_user_id() -> str:
    return TEST_USER_ID


@pytest_asyncio.fixture(scope="function")
async def app(
    test_engine: AsyncEngine,
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[FastAPI]:
    """FastAPI app wired to the test database.

    ASGITransport does not run the lifespan, so app state is set here.
    """
    from main import app as fastapi_app

    fastapi_app.state.engine = test_engine
    fastapi_app.state.session_maker = session_maker
    fastapi_app.state.init_done = True
    fastapi_app.state.init_error = None

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Unauthenticated async HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def authenticated_client(
    app: FastAPI,
    test_user_id: str,
) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client whose requests authenticate as test_user_id."""
    from core.auth import require_auth

    app.dependency_overrides[require_auth] = lambda: test_user_id

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# =============================================================================
# Utility Fixtures
# =============================================================================


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio backend for anyio (required by httpx)."""
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None]:
    """Reset settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_caches() -> Generator[None]:
    """The catalog cache is process-wide; each test starts cold."""
    clear_all_caches()
    yield
    clear_all_caches()
