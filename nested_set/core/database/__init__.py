"""Core database package with composable base classes, mixins, and repository.

Base Classes and Mixins:
    - Base: Declarative base with auto table naming and constraint naming
    - IntegerPKMixin: Integer primary key (tree roots are addressed by id)
    - TimestampMixin: created_at, updated_at tracking
    - NestedSetMixin: Tree navigation for models with nested-set intervals

Repository:
    - BaseRepository[T]: Generic CRUD with explicit session passing
    - NestedSetRepository[T]: BaseRepository that keeps intervals consistent

Query Filters:
    - ExcludeRootFilter: Default scope hiding the sentinel root
    - IntervalFilter: Interval containment (descendants / ancestors)
    - OrderBy: Column sorting (asc/desc)
    - FilterGroup: Combine filters, drop named scopes

Exceptions:
    - RepositoryError and its tree-specific subclasses
"""

from nested_set.core.database.base import (
    NAMING_CONVENTION,
    Base,
    IntegerPKMixin,
    TimestampMixin,
)
from nested_set.core.database.exceptions import (
    InvalidIntervalError,
    InvalidMoveError,
    NotFoundError,
    RepositoryError,
    TreeDepthExceededError,
    TreeIntegrityError,
)
from nested_set.core.database.filters import (
    ExcludeRootFilter,
    FilterGroup,
    IntervalFilter,
    OrderBy,
    StatementFilter,
)
from nested_set.core.database.hierarchy import (
    NestedSetConfig,
    NestedSetMixin,
    NestedSetRepository,
    TreeMutator,
    TreeNode,
    TreeReader,
)
from nested_set.core.database.repository import BaseRepository

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "BaseRepository",
    "ExcludeRootFilter",
    "FilterGroup",
    "IntegerPKMixin",
    "IntervalFilter",
    "InvalidIntervalError",
    "InvalidMoveError",
    "NestedSetConfig",
    "NestedSetMixin",
    "NestedSetRepository",
    "NotFoundError",
    "OrderBy",
    "RepositoryError",
    "StatementFilter",
    "TimestampMixin",
    "TreeDepthExceededError",
    "TreeIntegrityError",
    "TreeMutator",
    "TreeNode",
    "TreeReader",
]
