"""Database engine and session management.

Engines are built from :class:`DatabaseSettings`. PostgreSQL goes through
psycopg3; SQLite goes through aiosqlite with the driver's own transaction
handling switched off so that SAVEPOINTs (used by every tree mutation
inside a caller's transaction) behave.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from nested_set.core.database.base import Base
from nested_set.core.settings import get_db_settings, get_logging_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from nested_set.core.settings import DatabaseSettings

logger = logging.getLogger(__name__)
sql_logger = logging.getLogger("nested_set.sql")


# ============================================================================
# Engine Construction
# ============================================================================


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy, not pysqlite, emit BEGIN so SAVEPOINT works."""

    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_connect(dbapi_connection: Any, connection_record: Any) -> None:
        _ = connection_record
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _sqlite_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def register_query_logging(engine: AsyncEngine) -> None:
    """Log every statement, its parameters and duration on ``nested_set.sql`` at DEBUG."""

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _before_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: Any
    ) -> None:
        _ = conn, cursor, statement, parameters, executemany
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def _after_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: Any
    ) -> None:
        _ = conn, cursor, executemany
        if not sql_logger.isEnabledFor(logging.DEBUG):
            return
        duration = time.perf_counter() - getattr(context, "_query_start_time", time.perf_counter())
        sql_logger.debug(
            statement,
            extra={"parameters": repr(parameters), "duration_ms": round(duration * 1000, 3)},
        )


def create_engine_from_settings(
    db_settings: DatabaseSettings | None = None,
    *,
    log_sql: bool | None = None,
    **overrides: Any,
) -> AsyncEngine:
    """Create an async engine for the configured database.

    Args:
        db_settings: Connection settings (cached DB_* settings by default)
        log_sql: Attach the SQL debug logger (defaults to LOG_LOG_SQL)
        overrides: Extra create_async_engine keyword arguments
    """
    db_settings = db_settings or get_db_settings()
    engine = create_async_engine(db_settings.url, **{**db_settings.sqlalchemy_engine_kwargs(), **overrides})

    if db_settings.is_sqlite:
        enable_sqlite_savepoints(engine)
    if log_sql if log_sql is not None else get_logging_settings().log_sql:
        register_query_logging(engine)

    logger.debug("Database engine created", extra={"dialect": engine.dialect.name})
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory matching the repository conventions."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Process-wide engine built from settings."""
    return create_engine_from_settings()


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return create_session_factory(get_engine())


# ============================================================================
# Session and Lifecycle
# ============================================================================


@asynccontextmanager
async def get_async_session(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession]:
    """Get async database session.

    Yields:
        Database session that is automatically closed.

    Example:
        async with get_async_session() as session:
            tree = await Category.get_tree(session)
    """
    factory = session_factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_database(engine: AsyncEngine | None = None) -> None:
    """Check connectivity and create any missing tables.

    Raises:
        SQLAlchemyError: If the database is unreachable
    """
    engine = engine or get_engine()
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error("Failed to initialize database", extra={"error": str(e)})
        raise
    logger.info("Database initialized", extra={"dialect": engine.dialect.name})


async def close_database(engine: AsyncEngine | None = None) -> None:
    """Dispose of the engine's connection pool."""
    engine = engine or get_engine()
    await engine.dispose()
    logger.info("Database connection closed")


__all__ = [
    "close_database",
    "create_engine_from_settings",
    "create_session_factory",
    "enable_sqlite_savepoints",
    "get_async_session",
    "get_engine",
    "get_session_factory",
    "init_database",
    "register_query_logging",
]
