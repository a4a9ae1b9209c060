"""Nested-set (interval encoded) hierarchies for async SQLAlchemy models."""

from nested_set.core.database.hierarchy import (
    NestedSetConfig,
    NestedSetMixin,
    NestedSetRepository,
    TreeMutator,
    TreeNode,
    TreeReader,
    build_nested_tree,
)

__version__ = "0.1.0"

__all__ = [
    "NestedSetConfig",
    "NestedSetMixin",
    "NestedSetRepository",
    "TreeMutator",
    "TreeNode",
    "TreeReader",
    "__version__",
    "build_nested_tree",
]
