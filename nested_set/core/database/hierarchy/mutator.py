"""Structural changes to a nested-set tree.

Each hook runs one structural change as a single all-or-nothing unit: it
reads the current state straight from the table, asks the allocator for the
shifts, applies them as bulk UPDATE statements in order and writes the
node's own interval. Any failure rolls the unit back and the original
exception propagates unchanged.

The hooks are called explicitly by whoever owns the record's save/delete
path (normally :class:`~nested_set.core.database.hierarchy.repository.NestedSetRepository`):

    on_creating(session, node)                       before the INSERT
    on_updating(session, node, original_parent_id)   when parent_id changes
    on_deleted(session, snapshot)                    after the DELETE

Example:
    >>> mutator = TreeMutator(Category)
    >>> node = Category(name="Books", parent_id=1)
    >>> await mutator.on_creating(session, node)
    >>> session.add(node)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update
from sqlalchemy.orm.attributes import set_committed_value

from nested_set.core.database.exceptions import (
    InvalidMoveError,
    NotFoundError,
    TreeIntegrityError,
)
from nested_set.core.database.hierarchy.allocator import (
    LEAF_WIDTH,
    Column,
    Comparison,
    RangeShift,
    ShiftPlan,
    plan_deletion,
    plan_insertion,
    plan_move,
)
from nested_set.core.database.hierarchy.config import NestedSetConfig, resolve_config
from nested_set.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute

logger = logging.getLogger(__name__)

# Keeps loaded instances in step with bulk UPDATEs
SYNC_OPTIONS = {"synchronize_session": "auto"}

# session.info key counting open tree units
_UNIT_DEPTH_KEY = "nested_set.tree_units"

# on_updating reads the target from the node unless one is passed
_FROM_NODE: Any = object()


@dataclass(frozen=True, slots=True)
class NodeInterval:
    """Persisted position of one node, read straight from the table."""

    id: Any
    parent_id: Any
    left: int
    right: int

    @property
    def width(self) -> int:
        return self.right - self.left + 1

    def contains(self, other: NodeInterval) -> bool:
        """Whether ``other`` lies strictly inside this interval."""
        return self.left < other.left and self.right > other.right


class TreeMutator:
    """Applies create, move and delete renumbering for one nested-set model.

    Args:
        model: Mapped class carrying the interval and parent columns
        config: Column mapping; defaults to the model's ``__nested_set__``
            or the NESTED_SET_* settings
    """

    def __init__(self, model: type[Any], config: NestedSetConfig | None = None) -> None:
        self.model = model
        self.config = resolve_config(model, config)
        self._lazy = get_lazy_logger(__name__, model=model.__name__)

    # ------------------------------------------------------------------
    # Column helpers
    # ------------------------------------------------------------------

    @property
    def _id(self) -> InstrumentedAttribute[Any]:
        return self.config.id_attr(self.model)

    @property
    def _parent(self) -> InstrumentedAttribute[Any]:
        return self.config.parent_attr(self.model)

    @property
    def _left(self) -> InstrumentedAttribute[Any]:
        return self.config.left_attr(self.model)

    @property
    def _right(self) -> InstrumentedAttribute[Any]:
        return self.config.right_attr(self.model)

    def _bound(self, column: Column) -> InstrumentedAttribute[Any]:
        return self._left if column is Column.LEFT else self._right

    # ------------------------------------------------------------------
    # Transaction and row access
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self, session: AsyncSession, operation: str = "tree") -> AsyncIterator[None]:
        """Run a block as one atomic unit.

        Opens a SAVEPOINT when the session already has a transaction in
        progress, otherwise begins (and on success commits) a new one.
        Either way, an exception rolls back everything done in the block and
        is re-raised as is. Units nest; only the outermost one logs the
        rollback.
        """
        depth = session.info.get(_UNIT_DEPTH_KEY, 0)
        unit = session.begin_nested() if session.in_transaction() else session.begin()
        session.info[_UNIT_DEPTH_KEY] = depth + 1
        try:
            async with unit:
                yield
        except Exception as exc:
            if depth == 0:
                logger.warning(
                    "Tree mutation rolled back",
                    extra={
                        "model": self.model.__name__,
                        "operation": operation,
                        "error": type(exc).__name__,
                    },
                )
            raise
        finally:
            session.info[_UNIT_DEPTH_KEY] = depth

    async def fetch(self, session: AsyncSession, node_id: Any, *, lock: bool = False) -> NodeInterval:
        """Read a node's persisted interval, root included.

        Selects plain columns so the identity map (and any unflushed values
        held by loaded instances) never stands in for the stored row.

        Raises:
            NotFoundError: If no row has that primary key
        """
        stmt = select(self._id, self._parent, self._left, self._right).where(self._id == node_id)
        if lock and self.config.lock_parent_rows:
            stmt = stmt.with_for_update()
        row = (await session.execute(stmt)).one_or_none()
        if row is None:
            raise NotFoundError(self.model.__name__, {self.config.id_column: node_id})
        return NodeInterval(*row)

    async def snapshot(self, session: AsyncSession, node: Any) -> NodeInterval:
        """Fresh copy of a node's stored position, for use after its row is gone."""
        return await self.fetch(session, self.config.id_of(node))

    async def _shift(self, session: AsyncSession, shift: RangeShift, *, exclude_id: Any = None) -> int:
        column = self._bound(shift.column)
        predicate = column >= shift.boundary if shift.comparison is Comparison.GTE else column > shift.boundary
        stmt = update(self.model).where(predicate).values({column: column + shift.delta})
        if exclude_id is not None:
            stmt = stmt.where(self._id != exclude_id)
        result = await session.execute(stmt, execution_options=SYNC_OPTIONS)
        self._lazy.debug(lambda: f"shift {shift} -> {result.rowcount} rows")
        return result.rowcount

    async def _apply(self, session: AsyncSession, plan: ShiftPlan, *, exclude_id: Any = None) -> None:
        for shift in plan.shifts:
            await self._shift(session, shift, exclude_id=exclude_id)

    def _default_parent(self, parent_id: Any) -> Any:
        return self.config.root_id if parent_id is None else parent_id

    def check_not_root(self, node_id: Any, action: str) -> None:
        if node_id == self.config.root_id:
            raise InvalidMoveError(f"The root node cannot be {action}", node_id=node_id)

    # ------------------------------------------------------------------
    # Root
    # ------------------------------------------------------------------

    async def create_root(self, session: AsyncSession, **values: Any) -> Any:
        """Insert the sentinel root at ``(1, 2)`` unless it already exists.

        Returns:
            The root instance (existing or new)
        """
        async with self.transaction(session, "create_root"):
            existing = await session.get(self.model, self.config.root_id)
            if existing is not None:
                return existing

            root = self.model(**values)
            setattr(root, self.config.id_column, self.config.root_id)
            setattr(root, self.config.parent_id_column, None)
            setattr(root, self.config.left_column, 1)
            setattr(root, self.config.right_column, LEAF_WIDTH)
            session.add(root)
            await session.flush()
            await self._sync_id_sequence(session)

        logger.info(
            "Tree root created",
            extra={"model": self.model.__name__, "node_id": self.config.root_id, "operation": "tree.create_root"},
        )
        return root

    async def _sync_id_sequence(self, session: AsyncSession) -> None:
        # An explicit root id does not advance a PostgreSQL serial sequence
        connection = await session.connection()
        if connection.dialect.name != "postgresql":
            return
        column = self._id.property.columns[0]
        await session.execute(
            select(
                func.setval(
                    func.pg_get_serial_sequence(column.table.fullname, column.name),
                    select(func.max(self._id)).scalar_subquery(),
                )
            )
        )

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    async def on_creating(self, session: AsyncSession, node: Any) -> None:
        """Carve out a leaf interval for ``node`` as its parent's last child.

        An empty parent reference attaches the node to the root. The node's
        own row, if it already exists, is left out of the shifts.

        Raises:
            NotFoundError: If the parent does not exist (nothing is written)
        """
        cfg = self.config
        parent_id = self._default_parent(cfg.parent_of(node))
        setattr(node, cfg.parent_id_column, parent_id)

        async with self.transaction(session, "create"):
            parent = await self.fetch(session, parent_id, lock=True)
            plan = plan_insertion(parent.right)

            setattr(node, cfg.left_column, plan.left)
            setattr(node, cfg.right_column, plan.right)
            await self._apply(session, plan, exclude_id=cfg.id_of(node))

        self._lazy.debug(
            lambda: f"created under {parent_id}: ({plan.left}, {plan.right}), parent right was {parent.right}"
        )

    async def on_updating(
        self, session: AsyncSession, node: Any, original_parent_id: Any, new_parent_id: Any = _FROM_NODE
    ) -> bool:
        """Move ``node`` and its subtree when its parent reference changed.

        The subtree is quarantined by negating its bounds, the gap it leaves
        is closed, a slot is opened as the new parent's last child, the node
        is placed there and the subtree is restored shifted by the distance
        the node travelled.

        The target is the node's parent reference unless ``new_parent_id``
        is given. Either way the node's parent attribute holds the target,
        with nothing pending, only after the move succeeds.

        Returns:
            False when the parent did not change (nothing is done), True otherwise

        Raises:
            InvalidMoveError: Moving the root, or under the node itself or a descendant
            NotFoundError: If the node or the new parent does not exist
        """
        cfg = self.config
        if new_parent_id is _FROM_NODE:
            new_parent_id = cfg.parent_of(node)
        new_parent_id = self._default_parent(new_parent_id)
        if new_parent_id == original_parent_id:
            return False

        node_id = cfg.id_of(node)
        self.check_not_root(node_id, "moved")

        async with self.transaction(session, "move"):
            current = await self.fetch(session, node_id, lock=True)
            target = await self.fetch(session, new_parent_id, lock=True)
            if target.id == current.id or current.contains(target):
                raise InvalidMoveError(
                    "A node cannot be moved under itself or one of its descendants",
                    node_id=node_id,
                    target_id=new_parent_id,
                )

            plan = plan_move(current.left, current.right)

            # Take the subtree out of the positive range
            await session.execute(
                update(self.model)
                .where(self._left > current.left, self._right < current.right)
                .values({self._left: self._left * -1, self._right: self._right * -1}),
                execution_options=SYNC_OPTIONS,
            )

            await self._apply(session, plan.close_gap, exclude_id=node_id)

            new_parent_right = (await self.fetch(session, new_parent_id)).right
            slot = plan.open_slot(new_parent_right)
            await self._apply(session, slot, exclude_id=node_id)

            new_left, new_right, distance = plan.placement(new_parent_right)
            await session.execute(
                update(self.model)
                .where(self._id == node_id)
                .values({self._left: new_left, self._right: new_right, self._parent: new_parent_id}),
                execution_options=SYNC_OPTIONS,
            )

            # Bring the subtree back, shifted along with its root
            await session.execute(
                update(self.model)
                .where(self._left < -current.left, self._right > -current.right)
                .values({self._left: distance - self._left, self._right: distance - self._right}),
                execution_options=SYNC_OPTIONS,
            )

        set_committed_value(node, cfg.parent_id_column, new_parent_id)
        logger.info(
            "Node moved",
            extra={
                "model": self.model.__name__,
                "node_id": node_id,
                "from_parent": original_parent_id,
                "to_parent": new_parent_id,
                "subtree_size": plan.width // LEAF_WIDTH,
                "operation": "tree.move",
            },
        )
        self._lazy.debug(
            lambda: f"moved {node_id}: ({current.left}, {current.right}) -> ({new_left}, {new_right}), distance {distance}"
        )
        return True

    async def on_deleted(self, session: AsyncSession, deleted: NodeInterval) -> None:
        """Close the hole left by a deleted node.

        Direct children are reattached to the deleted node's parent and the
        whole former subtree moves up one level, keeping its order.

        Args:
            session: Database session
            deleted: Snapshot of the removed row taken before the DELETE
        """
        self.check_not_root(deleted.id, "deleted")

        async with self.transaction(session, "delete"):
            await session.execute(
                update(self.model)
                .where(self._parent == deleted.id)
                .values({self._parent: deleted.parent_id}),
                execution_options=SYNC_OPTIONS,
            )
            await session.execute(
                update(self.model)
                .where(self._left > deleted.left, self._right < deleted.right)
                .values({self._left: self._left - 1, self._right: self._right - 1}),
                execution_options=SYNC_OPTIONS,
            )
            await self._apply(session, plan_deletion(deleted.left, deleted.right))

        logger.info(
            "Node deleted",
            extra={
                "model": self.model.__name__,
                "node_id": deleted.id,
                "reattached_to": deleted.parent_id,
                "operation": "tree.delete",
            },
        )

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    async def rebuild(self, session: AsyncSession) -> int:
        """Recompute every interval from parent references alone.

        Siblings keep their current left-to-right order (ties broken by
        primary key). Rows that cannot be reached from the root are reported
        instead of being guessed at.

        Returns:
            Number of rows whose interval changed

        Raises:
            NotFoundError: If the root row is missing
            TreeIntegrityError: If some rows are unreachable from the root
        """
        cfg = self.config
        async with self.transaction(session, "rebuild"):
            await self.fetch(session, cfg.root_id, lock=True)
            rows = (
                await session.execute(
                    select(self._id, self._parent, self._left, self._right).order_by(self._left, self._id)
                )
            ).all()

            children: dict[Any, list[Any]] = defaultdict(list)
            current: dict[Any, tuple[int, int]] = {}
            for node_id, parent_id, left, right in rows:
                current[node_id] = (left, right)
                if node_id != cfg.root_id:
                    children[parent_id].append(node_id)

            assigned: dict[Any, tuple[int, int]] = {}
            counter = 1
            lefts: dict[Any, int] = {cfg.root_id: counter}
            stack: list[tuple[Any, int]] = [(cfg.root_id, 0)]
            while stack:
                node_id, index = stack.pop()
                kids = children.get(node_id, [])
                if index < len(kids):
                    stack.append((node_id, index + 1))
                    child = kids[index]
                    if child in lefts:
                        continue
                    counter += 1
                    lefts[child] = counter
                    stack.append((child, 0))
                else:
                    counter += 1
                    assigned[node_id] = (lefts[node_id], counter)

            unreachable = sorted((str(i) for i in current if i not in assigned))
            if unreachable:
                raise TreeIntegrityError([f"node {i} is not reachable from the root" for i in unreachable])

            changed = 0
            for node_id, (left, right) in assigned.items():
                if current[node_id] == (left, right):
                    continue
                await session.execute(
                    update(self.model)
                    .where(self._id == node_id)
                    .values({self._left: left, self._right: right}),
                    execution_options=SYNC_OPTIONS,
                )
                changed += 1

        logger.info(
            "Tree rebuilt",
            extra={"model": self.model.__name__, "nodes": len(assigned), "changed": changed, "operation": "tree.rebuild"},
        )
        return changed


__all__ = ["NodeInterval", "SYNC_OPTIONS", "TreeMutator"]
