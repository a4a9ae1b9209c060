"""Test utilities for inspecting stored trees.

Usage:
    from tests.utils import stored_intervals

    assert (await stored_intervals(session))["books"] == (10, 13)

These read plain columns, so they never depend on (or refresh) instances
held in the identity map; after a rolled back mutation those instances are
expired and must not be touched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from nested_set.core.database.hierarchy import find_violations
from nested_set.core.models import Category

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def stored_intervals(session: AsyncSession, model: type[Any] = Category) -> dict[str, tuple[int, int]]:
    """Map each row's name to its stored ``(left, right)``."""
    config = model.nested_set_config()
    left = config.left_attr(model)
    right = config.right_attr(model)
    result = await session.execute(select(model.name, left, right))
    return {name: (lft, rgt) for name, lft, rgt in result.all()}


async def stored_parents(session: AsyncSession, model: type[Any] = Category) -> dict[str, str | None]:
    """Map each row's name to its parent's name."""
    config = model.nested_set_config()
    id_attr = config.id_attr(model)
    parent_attr = config.parent_attr(model)
    rows = (await session.execute(select(id_attr, parent_attr, model.name))).all()
    names = {row_id: name for row_id, _, name in rows}
    return {name: names.get(parent_id) for _, parent_id, name in rows}


async def stored_violations(session: AsyncSession, model: type[Any] = Category) -> list[str]:
    """Run the invariant checker against plain column rows."""
    config = model.nested_set_config()
    stmt = select(
        config.id_attr(model).label("id"),
        config.parent_attr(model).label("parent_id"),
        config.left_attr(model).label("left"),
        config.right_attr(model).label("right"),
    )
    rows = (await session.execute(stmt)).all()
    return find_violations(rows, root_id=config.root_id)
