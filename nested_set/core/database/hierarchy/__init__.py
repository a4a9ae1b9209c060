"""Hierarchical data support using the nested-set model.

Every node stores a ``left``/``right`` interval that strictly contains the
intervals of all its descendants, so ancestor and descendant lookups are
plain range comparisons. Structural changes renumber the affected rows in
one transaction.

Components:
    - allocator: pure shift planning for insert, delete and move
    - NestedSetConfig: which mapped attributes hold the interval and parent
    - TreeMutator: applies create/move/delete renumbering as bulk UPDATEs
    - TreeReader: ancestor, descendant, children and nested tree queries
    - NestedSetMixin: navigation methods on model instances
    - NestedSetRepository: save/delete path that invokes the mutator
    - find_violations: invariant checker for stored intervals

Example:
    >>> from nested_set.core.database import Base, IntegerPKMixin
    >>> from nested_set.core.database.hierarchy import NestedSetMixin, NestedSetRepository
    >>>
    >>> class Category(Base, IntegerPKMixin, NestedSetMixin):
    ...     __tablename__ = "categories"
    ...     name: Mapped[str] = mapped_column(String(255))
    ...     parent_id: Mapped[int | None] = mapped_column(index=True)
    ...     left: Mapped[int] = mapped_column(index=True)
    ...     right: Mapped[int] = mapped_column(index=True)
    >>>
    >>> await Category.create_root(session, name="root")
    >>> repo = NestedSetRepository(Category)
    >>> books = await repo.create(session, Category(name="Books"))
    >>> tree = await Category.get_tree(session)

Note:
    - Do not put UNIQUE or CHECK constraints on the interval columns; values
      are negated and shifted one statement at a time during a move
    - The root row must exist before the first create
"""

from nested_set.core.database.hierarchy.allocator import (
    LEAF_WIDTH,
    MovePlan,
    RangeShift,
    ShiftPlan,
    plan_deletion,
    plan_insertion,
    plan_move,
)
from nested_set.core.database.hierarchy.config import NestedSetConfig, resolve_config
from nested_set.core.database.hierarchy.mixins import NestedSetMixin
from nested_set.core.database.hierarchy.mutator import NodeInterval, TreeMutator
from nested_set.core.database.hierarchy.reader import (
    TreeNode,
    TreeReader,
    build_nested_tree,
    flatten_tree,
)
from nested_set.core.database.hierarchy.repository import NestedSetRepository
from nested_set.core.database.hierarchy.validation import assert_valid_tree, find_violations

__all__ = [
    "LEAF_WIDTH",
    "MovePlan",
    "NestedSetConfig",
    "NestedSetMixin",
    "NestedSetRepository",
    "NodeInterval",
    "RangeShift",
    "ShiftPlan",
    "TreeMutator",
    "TreeNode",
    "TreeReader",
    "assert_valid_tree",
    "build_nested_tree",
    "find_violations",
    "flatten_tree",
    "plan_deletion",
    "plan_insertion",
    "plan_move",
    "resolve_config",
]
