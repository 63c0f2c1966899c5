"""Async SQLAlchemy engine, session management and transaction retries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy import event
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bomber.config import get_settings
from bomber.errors import ConcurrencyConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    """Take the write lock at BEGIN so SQLite serializes writers like row locks would."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


async def init_db(url: str) -> None:
    """Initialize the database engine and session factory."""
    global _engine, _session_factory  # noqa: PLW0603
    if url.startswith("sqlite"):
        _engine = create_async_engine(url, echo=False, connect_args={"timeout": 30})
        _install_sqlite_locking(_engine)
    else:
        _engine = create_async_engine(
            url,
            pool_size=20,
            max_overflow=10,
            pool_pre_ping=True,
            echo=False,
            connect_args={"statement_cache_size": 0},
        )
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema() -> None:
    """Create all tables from the ORM metadata (SQLite and local runs; Postgres uses Alembic)."""
    from bomber.db.base import Base
    from bomber.db import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the database engine."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def get_engine() -> AsyncEngine:
    """Get the async engine instance."""
    if _engine is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory."""
    if _session_factory is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency)."""
    async with get_session_factory()() as session:
        yield session


def is_retryable(exc: DBAPIError) -> bool:
    """True for serialization failures, deadlocks and SQLite lock timeouts."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    return "database is locked" in str(orig)


async def run_in_transaction(
    fn: Callable[[AsyncSession], Awaitable[T]],
    *,
    retries: int | None = None,
) -> T:
    """Run ``fn`` in a fresh session and commit, retrying serialization failures.

    Each attempt gets its own session so nothing from a failed attempt leaks
    into the next one. Domain errors raised by ``fn`` roll back and propagate
    unchanged.
    """
    settings = get_settings()
    attempts = 1 + (settings.tx_max_retries if retries is None else retries)
    factory = get_session_factory()

    for attempt in range(1, attempts + 1):
        async with factory() as session:
            try:
                result = await fn(session)
                await session.commit()
                return result
            except DBAPIError as exc:
                await session.rollback()
                if not is_retryable(exc):
                    raise
                logger.warning("Serialization failure (attempt %d/%d): %s", attempt, attempts, exc.orig)
        await asyncio.sleep(0.05 * attempt)

    msg = "Too much contention on this player; try again"
    raise ConcurrencyConflict(msg, retry_after=settings.tx_retry_after_seconds)
