"""Query filtering utilities for SQLAlchemy.

These filters work directly with SQLAlchemy statements without hiding the
query. They're utility helpers, not an abstraction layer.

Usage:
    from sqlalchemy import select
    from nested_set.core.database.filters import ExcludeRootFilter, IntervalFilter, OrderBy

    stmt = select(Category)
    stmt = ExcludeRootFilter(Category.id, root_id=1).apply(stmt)
    stmt = IntervalFilter(Category.left, Category.right, 2, 9, relation="inside").apply(stmt)
    stmt = OrderBy(Category.left).apply(stmt)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, ClassVar, Literal

from sqlalchemy import Select

if TYPE_CHECKING:
    from sqlalchemy.orm import InstrumentedAttribute


class StatementFilter(ABC):
    """Base class for statement filters.

    All filters implement `apply()` which modifies a SQLAlchemy statement.
    Filters that act as default scopes carry a `name` so callers can
    switch them off by name.
    """

    name: ClassVar[str | None] = None

    @abstractmethod
    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply filter to statement.

        Args:
            statement: SQLAlchemy select statement

        Returns:
            Modified select statement
        """
        ...


class ExcludeRootFilter(StatementFilter):
    """Hide the sentinel root node of a nested-set tree.

    Applied by default to tree listings. Administrative tooling that needs
    the unfiltered view skips it (``include_root=True`` on the reader).

    Example:
        stmt = ExcludeRootFilter(Category.id, root_id=1).apply(select(Category))
        # WHERE categories.id != 1
    """

    name: ClassVar[str | None] = "ignore_root"

    def __init__(self, field: InstrumentedAttribute[Any], root_id: Any):
        """Initialize root exclusion.

        Args:
            field: Primary key attribute of the tree model
            root_id: Primary key value of the root node
        """
        self.field = field
        self.root_id = root_id

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply root exclusion to statement."""
        return statement.where(self.field != self.root_id)


class IntervalFilter(StatementFilter):
    """Nested-set interval containment.

    ``relation="inside"`` keeps rows whose interval lies strictly inside
    ``(left, right)`` (descendants). ``relation="enclosing"`` keeps rows whose
    interval strictly encloses it (ancestors).

    Example:
        # Descendants of a node at (2, 9)
        stmt = IntervalFilter(Category.left, Category.right, 2, 9).apply(stmt)
        # WHERE left > 2 AND right < 9
    """

    def __init__(
        self,
        left_field: InstrumentedAttribute[Any],
        right_field: InstrumentedAttribute[Any],
        left: int,
        right: int,
        *,
        relation: Literal["inside", "enclosing"] = "inside",
    ):
        self.left_field = left_field
        self.right_field = right_field
        self.left = left
        self.right = right
        self.relation = relation

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply interval predicate to statement."""
        if self.relation == "enclosing":
            return statement.where(self.left_field < self.left, self.right_field > self.right)
        return statement.where(self.left_field > self.left, self.right_field < self.right)


class OrderBy(StatementFilter):
    """Column ordering/sorting.

    Example:
        # Nearest ancestor first
        stmt = OrderBy(Category.left, "desc").apply(stmt)
    """

    def __init__(
        self,
        fields: InstrumentedAttribute[Any] | Sequence[InstrumentedAttribute[Any]],
        sort_order: Literal["asc", "desc"] | Sequence[Literal["asc", "desc"]] = "asc",
    ):
        """Initialize ordering filter.

        Args:
            fields: Single field or list of fields to order by
            sort_order: Sort direction(s) - 'asc' or 'desc'
        """
        self.fields = [fields] if not isinstance(fields, Sequence) else list(fields)

        if isinstance(sort_order, str):
            self.sort_orders = [sort_order] * len(self.fields)
        else:
            self.sort_orders = list(sort_order)
            if len(self.sort_orders) != len(self.fields):
                msg = "sort_order length must match fields length"
                raise ValueError(msg)

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply ordering to statement."""
        for field, order in zip(self.fields, self.sort_orders, strict=False):
            if order == "desc":
                statement = statement.order_by(field.desc())
            else:
                statement = statement.order_by(field.asc())
        return statement


class FilterGroup(StatementFilter):
    """Apply several filters in sequence (AND semantics).

    Named filters can be removed from a group before applying it.

    Example:
        scopes = FilterGroup([ExcludeRootFilter(Category.id, 1)])
        stmt = scopes.without("ignore_root").apply(select(Category))
    """

    def __init__(self, filters: Sequence[StatementFilter]):
        self.filters = list(filters)

    def without(self, *names: str) -> FilterGroup:
        """Return a copy of the group minus filters with the given names."""
        return FilterGroup([f for f in self.filters if f.name is None or f.name not in names])

    @property
    def names(self) -> list[str]:
        """Names of the named filters in this group."""
        return [f.name for f in self.filters if f.name is not None]

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply all filters to statement."""
        for filter_obj in self.filters:
            statement = filter_obj.apply(statement)
        return statement


__all__ = [
    "ExcludeRootFilter",
    "FilterGroup",
    "IntervalFilter",
    "OrderBy",
    "StatementFilter",
]
