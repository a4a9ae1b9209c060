"""Mixin for models stored as a nested-set tree.

Provides interval predicates and async navigation methods for models that
keep ``left``/``right`` bounds and a ``parent_id`` reference. Structural
changes go through :class:`NestedSetRepository`, never through the mixin.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from nested_set.core.database.hierarchy.allocator import descendant_count
from nested_set.core.database.hierarchy.config import NestedSetConfig, resolve_config
from nested_set.core.database.hierarchy.mutator import TreeMutator
from nested_set.core.database.hierarchy.reader import TreeNode, TreeReader

if TYPE_CHECKING:
    from typing import Self

    from sqlalchemy.ext.asyncio import AsyncSession


class NestedSetMixin:
    """Mixin for models with nested-set interval columns.

    The model declares its own columns; the mixin only needs to know their
    names, which come from ``__nested_set__`` (or the NESTED_SET_* settings
    when unset).

    Example:
        >>> class Category(Base, IntegerPKMixin, NestedSetMixin):
        ...     __tablename__ = "categories"
        ...     name: Mapped[str] = mapped_column(String(255))
        ...     parent_id: Mapped[int | None] = mapped_column(index=True)
        ...     left: Mapped[int] = mapped_column(index=True)
        ...     right: Mapped[int] = mapped_column(index=True)
        >>>
        >>> books = await session.get(Category, 2)
        >>> ancestors = await books.get_ancestors(session)
        >>> tree = await Category.get_tree(session)

    Note:
        - The sentinel root is hidden from listings unless asked for
        - Properties read the loaded interval and do NOT query the database
        - All other methods are async and require a session parameter
    """

    __allow_unmapped__ = True

    # Override in subclass to use different column names or root id
    __nested_set__: ClassVar[NestedSetConfig | None] = None

    @classmethod
    def nested_set_config(cls) -> NestedSetConfig:
        """Resolved column mapping for this model."""
        return resolve_config(cls)

    @classmethod
    def tree_reader(cls) -> TreeReader:
        return TreeReader(cls, cls.nested_set_config())

    # ------------------------------------------------------------------
    # Interval predicates (no queries)
    # ------------------------------------------------------------------

    @property
    def interval(self) -> tuple[int, int]:
        return self.nested_set_config().interval_of(self)

    @property
    def width(self) -> int:
        """Number of bound slots the subtree spans (``right - left + 1``)."""
        left, right = self.interval
        return right - left + 1

    @property
    def descendant_count(self) -> int:
        """Number of descendants, computed from the interval alone."""
        return descendant_count(*self.interval)

    @property
    def is_leaf(self) -> bool:
        left, right = self.interval
        return right - left == 1

    @property
    def is_tree_root(self) -> bool:
        return self.nested_set_config().is_root(self)

    def is_ancestor_of(self, other: NestedSetMixin) -> bool:
        """Whether ``other`` lies strictly inside this node's interval.

        Example:
            >>> parent.interval, child.interval
            ((2, 7), (3, 4))
            >>> parent.is_ancestor_of(child)
            True
        """
        left, right = self.interval
        other_left, other_right = other.interval
        return left < other_left and right > other_right

    def is_descendant_of(self, other: NestedSetMixin) -> bool:
        return other.is_ancestor_of(self)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def get_parent(self, session: AsyncSession) -> Self | None:
        """Get parent node.

        Returns:
            Parent instance, or None for the root and for children of the
            root (which is hidden)
        """
        config = self.nested_set_config()
        parent_id = config.parent_of(self)
        if parent_id is None or parent_id == config.root_id:
            return None
        return await session.get(self.__class__, parent_id)

    async def get_children(self, session: AsyncSession) -> list[Self]:
        """Get immediate children, left to right."""
        config = self.nested_set_config()
        return list(await self.tree_reader().children_of(session, config.id_of(self)))

    async def get_siblings(self, session: AsyncSession, *, include_self: bool = False) -> list[Self]:
        """Get nodes sharing this node's parent, left to right.

        Args:
            session: Async database session
            include_self: Include this node in results (default: False)
        """
        config = self.nested_set_config()
        siblings = await self.tree_reader().children_of(session, config.parent_of(self))
        if include_self:
            return list(siblings)
        return [s for s in siblings if config.id_of(s) != config.id_of(self)]

    async def get_ancestors(
        self,
        session: AsyncSession,
        *,
        include_self: bool = False,
        include_root: bool = False,
    ) -> list[Self]:
        """Get all ancestor nodes, nearest first.

        Args:
            session: Async database session
            include_self: Put this node at the start of the list
            include_root: Keep the sentinel root at the end of the list

        Returns:
            Ancestors ordered by ``left`` descending
        """
        ancestors = list(await self.tree_reader().ancestors_of(session, self, include_root=include_root))
        return [self, *ancestors] if include_self else ancestors

    async def get_descendants(self, session: AsyncSession, *, include_self: bool = False) -> list[Self]:
        """Get all descendant nodes in pre-order."""
        descendants = list(await self.tree_reader().descendants_of(session, self))
        return [self, *descendants] if include_self else descendants

    async def get_descendants_tree(self, session: AsyncSession) -> list[TreeNode]:
        """Descendants nested under this node."""
        return await self.tree_reader().descendants_tree(session, self)

    async def get_ancestors_tree(self, session: AsyncSession) -> list[TreeNode]:
        """Chain from the outermost visible ancestor down to this node."""
        return await self.tree_reader().ancestors_tree(session, self)

    # ------------------------------------------------------------------
    # Class-level queries
    # ------------------------------------------------------------------

    @classmethod
    async def get_root(cls, session: AsyncSession) -> Self | None:
        """Get the sentinel root, or None before ``create_root`` ran."""
        return await session.get(cls, cls.nested_set_config().root_id)

    @classmethod
    async def get_tree(cls, session: AsyncSession) -> list[TreeNode]:
        """The whole tree below the root, nested."""
        return await cls.tree_reader().get_tree(session)

    @classmethod
    async def create_root(cls, session: AsyncSession, **values: Any) -> Self:
        """Insert the sentinel root at ``(1, 2)`` unless it exists.

        Args:
            session: Async database session
            values: Extra column values for the root row (e.g. ``name``)
        """
        return await TreeMutator(cls, cls.nested_set_config()).create_root(session, **values)


__all__ = [
    "NestedSetMixin",
]
