"""Repository that keeps nested-set intervals in step with saves and deletes.

The generic repository only adds, flushes and deletes. This one calls the
tree mutator exactly once per logical event, inside the same transaction as
the row change:

    create  -> on_creating, then INSERT
    move    -> on_updating (parent_id changed)
    delete  -> snapshot, DELETE, on_deleted

Example:
    repo = NestedSetRepository(Category)
    books = await repo.create(session, Category(name="Books"))
    fiction = await repo.create(session, Category(name="Fiction", parent_id=books.id))
    await repo.move(session, fiction, new_parent_id=1)
    await repo.delete(session, books)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.orm.attributes import set_committed_value

from nested_set.core.database.hierarchy.config import NestedSetConfig
from nested_set.core.database.hierarchy.mutator import TreeMutator
from nested_set.core.database.hierarchy.reader import TreeNode, TreeReader
from nested_set.core.database.hierarchy.validation import find_violations
from nested_set.core.database.repository import BaseRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


class NestedSetRepository(BaseRepository[T]):
    """Repository for nested-set models.

    Provides, on top of BaseRepository:
        - create(session, node) -> T        appended as the parent's last child
        - move(session, node, parent_id)    subtree relocated under a new parent
        - save(session, node) -> T          flush, moving first if parent_id changed
        - delete(session, node) -> None     children reattached one level up
        - tree / ancestors / descendants / children reads
        - rebuild(session), check(session)

    Session is always explicit. When the session is idle each mutation runs
    in its own committed transaction; inside a caller's transaction it runs
    under a SAVEPOINT and the caller commits.
    """

    __slots__ = ("config", "mutator", "reader")

    def __init__(self, model: type[T], config: NestedSetConfig | None = None) -> None:
        super().__init__(model)
        self.mutator = TreeMutator(model, config)
        self.config = self.mutator.config
        self.reader = TreeReader(model, self.config)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, session: AsyncSession, instance: T) -> T:
        """Insert ``instance`` as the last child of its parent (the root when unset).

        Raises:
            NotFoundError: If the parent does not exist
        """
        async with self.mutator.transaction(session, "create"):
            await self.mutator.on_creating(session, instance)
            session.add(instance)
            await session.flush()

        self._logger.info(
            "Node created",
            extra={
                "entity": self.model.__name__,
                "id": str(self.config.id_of(instance)),
                "parent_id": str(self.config.parent_of(instance)),
                "operation": "tree.create",
            },
        )
        return instance

    async def move(self, session: AsyncSession, instance: T, new_parent_id: Any) -> T:
        """Re-parent ``instance`` and its whole subtree.

        Moving to the current parent does nothing. The parent attribute is
        only updated once the move has succeeded, so a rejected move leaves
        both the stored row and the instance as they were.

        Raises:
            InvalidMoveError: For the root, or a target inside the subtree
            NotFoundError: If the target does not exist
        """
        await self.mutator.on_updating(
            session, instance, self.config.parent_of(instance), new_parent_id
        )
        return instance

    async def save(self, session: AsyncSession, instance: T) -> T:
        """Flush pending changes, running the move hook when ``parent_id`` changed.

        A changed parent is taken back off the pending state before any
        flush, so the move writes it inside its own unit.
        """
        parent_column = self.config.parent_id_column
        history = inspect(instance).attrs[parent_column].history
        moved = history.has_changes() and bool(history.deleted)
        if moved:
            new_parent_id = self.config.parent_of(instance)
            set_committed_value(instance, parent_column, history.deleted[0])

        async with self.mutator.transaction(session, "save"):
            if moved:
                await self.mutator.on_updating(session, instance, history.deleted[0], new_parent_id)
            await session.flush()
        return instance

    async def delete(self, session: AsyncSession, instance: T) -> None:
        """Delete ``instance`` and close the gap it leaves.

        Its direct children are reattached to its parent; the rest of the
        subtree keeps its parents and moves up one level.

        Raises:
            InvalidMoveError: For the root
        """
        async with self.mutator.transaction(session, "delete"):
            snapshot = await self.mutator.snapshot(session, instance)
            self.mutator.check_not_root(snapshot.id, "deleted")
            await session.delete(instance)
            await session.flush()
            await self.mutator.on_deleted(session, snapshot)

    async def rebuild(self, session: AsyncSession) -> int:
        """Recompute every interval from ``parent_id``; returns rows changed."""
        return await self.mutator.rebuild(session)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_root(self, session: AsyncSession) -> T | None:
        return await self.get(session, self.config.root_id)

    async def get_tree(self, session: AsyncSession) -> list[TreeNode]:
        return await self.reader.get_tree(session)

    async def get_flat_tree(self, session: AsyncSession) -> Sequence[T]:
        return await self.reader.flat_tree(session)

    async def get_children(self, session: AsyncSession, parent_id: Any) -> Sequence[T]:
        return await self.reader.children_of(session, parent_id)

    async def get_ancestors(self, session: AsyncSession, instance: T) -> Sequence[T]:
        return await self.reader.ancestors_of(session, instance)

    async def get_descendants(self, session: AsyncSession, instance: T) -> Sequence[T]:
        return await self.reader.descendants_of(session, instance)

    async def check(self, session: AsyncSession) -> list[str]:
        """Run the invariant checker over every stored row, root included.

        Reads plain columns, so loaded instances never stand in for what the
        table actually holds.
        """
        cfg = self.config
        stmt = select(
            cfg.id_attr(self.model).label(cfg.id_column),
            cfg.parent_attr(self.model).label(cfg.parent_id_column),
            cfg.left_attr(self.model).label(cfg.left_column),
            cfg.right_attr(self.model).label(cfg.right_column),
        ).order_by(cfg.left_attr(self.model))
        rows = (await session.execute(stmt)).all()
        violations = find_violations(
            rows,
            root_id=cfg.root_id,
            id_attr=cfg.id_column,
            parent_attr=cfg.parent_id_column,
            left_attr=cfg.left_column,
            right_attr=cfg.right_column,
        )
        if violations:
            self._logger.warning(
                "Tree integrity violations found",
                extra={"entity": self.model.__name__, "count": len(violations), "operation": "tree.check"},
            )
        return violations


__all__ = ["NestedSetRepository"]
