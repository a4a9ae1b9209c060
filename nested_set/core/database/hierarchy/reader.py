"""Read side of a nested-set tree.

Every listing is a single range query over the interval columns. The
sentinel root is hidden by the ``ignore_root`` scope unless a caller asks
for it with ``include_root=True``.

Nested projections are built in memory from the flat, left-ordered rows by
grouping on parent id.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from nested_set.core.database.exceptions import TreeDepthExceededError
from nested_set.core.database.filters import ExcludeRootFilter, FilterGroup, IntervalFilter, OrderBy
from nested_set.core.database.hierarchy.config import NestedSetConfig, resolve_config
from nested_set.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

_lazy = get_lazy_logger(__name__)


@dataclass(slots=True)
class TreeNode:
    """A record together with its nested children."""

    node: Any
    children: list[TreeNode] = field(default_factory=list)

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self.children)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def size(self) -> int:
        """Number of records in this subtree, itself included."""
        return 1 + sum(child.size() for child in self.children)

    def to_dict(self, *fields: str) -> dict[str, Any]:
        """Plain-dict projection with a ``children`` key.

        Args:
            fields: Attribute names to copy from each record
        """
        data = {name: getattr(self.node, name) for name in fields}
        data["children"] = [child.to_dict(*fields) for child in self.children]
        return data


def build_nested_tree(
    nodes: Iterable[Any],
    root_id: Any,
    *,
    max_depth: int = 256,
    id_attr: str = "id",
    parent_attr: str = "parent_id",
) -> list[TreeNode]:
    """Nest flat records under ``root_id``.

    Records are grouped by parent id and children keep the order they
    arrive in, so left-ordered input gives left-to-right siblings. Records
    whose parent is not in the input are simply not reached.

    Args:
        nodes: Flat records, normally ordered by ``left``
        root_id: Id whose children form the top level (the root itself is
            not part of the result)
        max_depth: Deepest level allowed below ``root_id``
        id_attr: Attribute holding a record's id
        parent_attr: Attribute holding a record's parent id

    Returns:
        Top-level ``TreeNode`` values

    Raises:
        TreeDepthExceededError: If nesting goes past ``max_depth`` levels (a
            very deep tree, or parent references that form a cycle)
    """
    grouped: dict[Any, list[Any]] = defaultdict(list)
    for node in nodes:
        grouped[getattr(node, parent_attr)].append(node)

    def attach(parent_id: Any, depth: int) -> list[TreeNode]:
        children = grouped.get(parent_id)
        if not children:
            return []
        if depth > max_depth:
            raise TreeDepthExceededError(max_depth, node_id=parent_id)
        return [TreeNode(child, attach(getattr(child, id_attr), depth + 1)) for child in children]

    return attach(root_id, 1)


def flatten_tree(tree: Iterable[TreeNode], depth: int = 0) -> Iterator[tuple[int, Any]]:
    """Yield ``(depth, record)`` pairs in pre-order."""
    for item in tree:
        yield depth, item.node
        yield from flatten_tree(item.children, depth + 1)


class TreeReader:
    """Query helpers for one nested-set model.

    Example:
        reader = TreeReader(Category)
        ancestors = await reader.ancestors_of(session, node)
        tree = await reader.get_tree(session)
    """

    def __init__(self, model: type[Any], config: NestedSetConfig | None = None) -> None:
        self.model = model
        self.config = resolve_config(model, config)

    @property
    def _left(self) -> Any:
        return self.config.left_attr(self.model)

    @property
    def _right(self) -> Any:
        return self.config.right_attr(self.model)

    @property
    def scopes(self) -> FilterGroup:
        """Default scopes applied to every listing."""
        return FilterGroup([ExcludeRootFilter(self.config.id_attr(self.model), self.config.root_id)])

    def query(self, *, include_root: bool = False) -> Select[Any]:
        """Base SELECT for the model with default scopes applied."""
        scopes = self.scopes.without("ignore_root") if include_root else self.scopes
        return scopes.apply(select(self.model))

    async def _all(self, session: AsyncSession, stmt: Select[Any]) -> Sequence[Any]:
        result = await session.execute(stmt)
        items = result.scalars().all()
        _lazy.debug(lambda: f"{self.model.__name__}: {len(items)} rows")
        return items

    async def ancestors_of(self, session: AsyncSession, node: Any, *, include_root: bool = False) -> Sequence[Any]:
        """Every record enclosing ``node``, nearest first."""
        left, right = self.config.interval_of(node)
        stmt = IntervalFilter(self._left, self._right, left, right, relation="enclosing").apply(
            self.query(include_root=include_root)
        )
        return await self._all(session, OrderBy(self._left, "desc").apply(stmt))

    async def descendants_of(self, session: AsyncSession, node: Any) -> Sequence[Any]:
        """Every record inside ``node``'s interval, in pre-order."""
        left, right = self.config.interval_of(node)
        stmt = IntervalFilter(self._left, self._right, left, right).apply(self.query())
        return await self._all(session, OrderBy(self._left).apply(stmt))

    async def children_of(self, session: AsyncSession, parent_id: Any) -> Sequence[Any]:
        """Direct children of ``parent_id``, left to right."""
        stmt = self.query().where(self.config.parent_attr(self.model) == parent_id)
        return await self._all(session, OrderBy(self._left).apply(stmt))

    async def subtree_of(self, session: AsyncSession, parent: Any) -> Sequence[Any]:
        """Descendants of ``parent`` by interval containment, ignoring ``parent_id``."""
        return await self.descendants_of(session, parent)

    async def flat_tree(self, session: AsyncSession, *, include_root: bool = False) -> Sequence[Any]:
        """Every record in pre-order, the root only when asked for."""
        return await self._all(session, OrderBy(self._left).apply(self.query(include_root=include_root)))

    async def get_tree(self, session: AsyncSession) -> list[TreeNode]:
        """The whole tree below the root, nested."""
        return build_nested_tree(
            await self.flat_tree(session),
            self.config.root_id,
            max_depth=self.config.max_depth,
            id_attr=self.config.id_column,
            parent_attr=self.config.parent_id_column,
        )

    async def descendants_tree(self, session: AsyncSession, node: Any) -> list[TreeNode]:
        """Descendants of ``node`` nested under it."""
        return build_nested_tree(
            await self.descendants_of(session, node),
            self.config.id_of(node),
            max_depth=self.config.max_depth,
            id_attr=self.config.id_column,
            parent_attr=self.config.parent_id_column,
        )

    async def ancestors_tree(self, session: AsyncSession, node: Any) -> list[TreeNode]:
        """Ancestors of ``node`` as a single chain, outermost first, ending with ``node``."""
        chain = [*reversed(await self.ancestors_of(session, node)), node]
        top: list[TreeNode] = []
        current = top
        for record in chain:
            item = TreeNode(record)
            current.append(item)
            current = item.children
        return top


__all__ = ["TreeNode", "TreeReader", "build_nested_tree", "flatten_tree"]
