"""Database infrastructure package.

Example:
    from nested_set.infra.database import get_async_session, init_database

    await init_database()
    async with get_async_session() as session:
        tree = await Category.get_tree(session)
"""

from .session import (
    close_database,
    create_engine_from_settings,
    create_session_factory,
    enable_sqlite_savepoints,
    get_async_session,
    get_engine,
    get_session_factory,
    init_database,
    register_query_logging,
)

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
