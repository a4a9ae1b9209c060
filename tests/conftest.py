"""Pytest configuration and shared fixtures.

Organization:
    - Environment: keep tests independent of any local .env
    - Database Fixtures: in-memory SQLite engine and session with SAVEPOINT support
    - Tree Fixtures: repository, root node and a small prebuilt tree
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Iterator
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from nested_set.core.database import Base, NestedSetRepository
from nested_set.core.models import Category
from nested_set.core.settings import clear_settings_cache
from nested_set.infra.database import create_session_factory, enable_sqlite_savepoints

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

# Keep test runs quiet and independent of any local database
os.environ.pop("DATABASE_URL", None)
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Reload settings for every test so monkeypatched env vars apply."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite.

    StaticPool keeps the single in-memory database alive across
    connections; SAVEPOINT support is switched on the same way the
    application engine does it.

    Yields:
        Async SQLAlchemy engine connected to in-memory SQLite.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create async database session with automatic table creation and cleanup.

    This fixture:
    1. Creates all tables defined in Base.metadata
    2. Provides a session (expire_on_commit=False, autoflush=False)
    3. Rolls back anything left open after each test
    4. Drops the tables after the test

    Example:
        async def test_create_root(db_session):
            root = await Category.create_root(db_session, name="root")
            assert (root.left, root.right) == (1, 2)
    """
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with create_session_factory(db_engine)() as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ============================================================================
# Tree Fixtures
# ============================================================================


@pytest.fixture
def repo() -> NestedSetRepository[Category]:
    """Repository for the Category tree."""
    return NestedSetRepository(Category)


@pytest.fixture
async def root(db_session: AsyncSession) -> Category:
    """Sentinel root at (1, 2)."""
    return await Category.create_root(db_session, name="root")


@pytest.fixture
async def sample_tree(
    db_session: AsyncSession, repo: NestedSetRepository[Category], root: Category
) -> dict[str, Category]:
    """Build a small tree and return its nodes by name.

    Shape (intervals in brackets):

        root (1, 14)
        ├── electronics (2, 9)
        │   ├── phones (3, 6)
        │   │   └── android (4, 5)
        │   └── laptops (7, 8)
        └── books (10, 13)
            └── fiction (11, 12)
    """
    nodes: dict[str, Category] = {}
    for name, parent in [
        ("electronics", None),
        ("phones", "electronics"),
        ("android", "phones"),
        ("laptops", "electronics"),
        ("books", None),
        ("fiction", "books"),
    ]:
        parent_id = nodes[parent].id if parent else None
        nodes[name] = await repo.create(db_session, Category(name=name, parent_id=parent_id))
    nodes["root"] = root
    return nodes
