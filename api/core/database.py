"""Async engine and per-request session for the Project Ops database.

The engine is created once in the application lifespan and stored on
``app.state``; every request gets its own ``AsyncSession`` through
``get_db`` which services receive as an explicit argument.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import QueuePool

from core.config import get_settings
from core.logger import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores FOREIGN KEY constraints unless enabled per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _setup_pool_event_listeners(engine: AsyncEngine) -> None:
    pool = engine.sync_engine.pool

    @event.listens_for(pool, "checkout")
    def _on_checkout(dbapi_conn, connection_record, connection_proxy):
        if isinstance(pool, QueuePool) and pool.overflow() > 0:
            logger.warning(
                "db.pool.overflow",
                db_pool_checked_out=pool.checkedout(),
                db_pool_size=pool.size(),
                db_pool_overflow_count=pool.overflow(),
            )


def create_engine() -> AsyncEngine:
    settings = get_settings()

    if settings.is_sqlite:
        engine = create_async_engine(settings.database_url, echo=settings.db_echo)
        enable_sqlite_foreign_keys(engine)
        return engine

    engine = create_async_engine(
        settings.database_url,
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        connect_args={
            "server_settings": {
                "statement_timeout": str(settings.db_statement_timeout_ms)
            }
        },
    )
    _setup_pool_event_listeners(engine)
    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession]:
    """Yield one session per request and own its transaction.

    Services and repositories only flush; the commit happens here once the
    route returns, and any exception rolls the whole request back.
    """
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            try:
                await session.rollback()
            except Exception as rollback_err:
                logger.warning("db.rollback.failed", error=str(rollback_err))
            raise


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def init_db(engine: AsyncEngine) -> None:
    """Verify database is reachable. Schema is managed outside the app."""
    logger.info("db.connectivity.verifying")
    await check_db_connection(engine)
    logger.info("db.connectivity.verified")


async def create_all(engine: AsyncEngine) -> None:
    """Create every table from the model metadata (local development, tests)."""
    import models  # noqa: F401  (registers tables on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("db.engine.disposed")


async def check_db_connection(engine: AsyncEngine) -> None:
    """Run SELECT 1, giving up after 30 seconds."""
    async with asyncio.timeout(30):
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.rollback()
