"""Pytest configuration and shared fixtures.

This module provides:
- A fresh in-memory SQLite database per test (aiosqlite, foreign keys on)
- Async session fixtures for repository/service tests
- FastAPI app and httpx clients for route tests
- Rate limiter bypass (tokens come from tests.factories.auth_headers)
"""

# Set environment variables BEFORE any imports that trigger Settings validation
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from collections.abc import AsyncGenerator, Generator
from unittest.mock import patch

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

from core.database import create_all, create_session_maker, enable_sqlite_foreign_keys

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine]:
    """Create a fresh in-memory database engine for each test.

    StaticPool keeps the single in-memory connection alive so every session
    in the test sees the same database.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_maker(test_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Provide a database session for each test."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _disable_rate_limiter() -> Generator[None]:
    """Disable slowapi rate limiting so route handlers can be called directly."""
    with patch("core.ratelimit.limiter.enabled", False):
        yield


@pytest_asyncio.fixture(scope="function")
async def app(
    test_engine: AsyncEngine,
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[FastAPI]:
    """FastAPI app wired to the test database.

    httpx's ASGITransport does not run the lifespan, so the engine and
    session maker are placed on app.state here.
    """
    from main import app as fastapi_app

    fastapi_app.state.engine = test_engine
    fastapi_app.state.session_maker = session_maker

    yield fastapi_app


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing routes."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
