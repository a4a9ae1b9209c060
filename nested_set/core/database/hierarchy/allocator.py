"""Interval allocation for nested-set trees.

Pure functions that work out where a node's interval goes and which ranges
of the table have to shift, and by how much, for an insert, a delete or a
move. Nothing here touches the database; the mutator turns each
``RangeShift`` into one bulk UPDATE.

Shifts in a plan are ordered. Every insert-like plan moves ``right`` bounds
before ``left`` bounds, and the two use different predicates: an ancestor of
the insertion point has its ``right`` at or past the boundary while its
``left`` is still before it, so the ``left`` pass must not touch it.

Example:
    >>> plan = plan_insertion(parent_right=4)
    >>> plan.left, plan.right
    (4, 5)
    >>> [str(s) for s in plan.shifts]
    ['right >= 4: +2', 'left > 4: +2']
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from nested_set.core.database.exceptions import InvalidIntervalError

LEAF_WIDTH = 2


class Column(StrEnum):
    """Interval bound a shift applies to."""

    LEFT = "left"
    RIGHT = "right"


class Comparison(StrEnum):
    """Predicate a row's bound must satisfy for a shift to apply."""

    GT = ">"
    GTE = ">="


@dataclass(frozen=True, slots=True)
class RangeShift:
    """``column += delta`` for every row whose ``column`` compares to ``boundary``."""

    column: Column
    comparison: Comparison
    boundary: int
    delta: int

    def matches(self, value: int) -> bool:
        """Whether a bound with this value is affected by the shift."""
        if self.comparison is Comparison.GTE:
            return value >= self.boundary
        return value > self.boundary

    def __str__(self) -> str:
        return f"{self.column} {self.comparison} {self.boundary}: {self.delta:+d}"


@dataclass(frozen=True, slots=True)
class ShiftPlan:
    """Ordered range shifts plus the interval the subject node ends up with.

    ``left``/``right`` are ``None`` when the plan has no subject interval
    (closing the gap after a delete).
    """

    shifts: tuple[RangeShift, ...]
    left: int | None = None
    right: int | None = None

    def apply(self, left: int, right: int) -> tuple[int, int]:
        """Return where an unrelated interval lands after every shift.

        Mirrors what the bulk UPDATEs do to one row, which keeps planning
        testable without a database.
        """
        for shift in self.shifts:
            if shift.column is Column.RIGHT and shift.matches(right):
                right += shift.delta
            elif shift.column is Column.LEFT and shift.matches(left):
                left += shift.delta
        return left, right


@dataclass(frozen=True, slots=True)
class MovePlan:
    """Renumbering for moving a subtree under a new parent.

    The subtree is taken out of the positive interval space first, the gap
    it leaves is closed, a slot is opened at the new parent and the subtree
    is shifted back in by ``distance``. The slot depends on the new parent's
    ``right`` after the gap closed, so it is computed on demand.
    """

    width: int
    old_left: int
    old_right: int

    @property
    def close_gap(self) -> ShiftPlan:
        """Shifts that remove the subtree's footprint from the rest of the tree."""
        return ShiftPlan(
            shifts=(
                RangeShift(Column.RIGHT, Comparison.GT, self.old_right, -self.width),
                RangeShift(Column.LEFT, Comparison.GT, self.old_right, -self.width),
            )
        )

    def open_slot(self, new_parent_right: int) -> ShiftPlan:
        """Shifts that make room for the subtree as the new parent's last child."""
        left, right, _ = self.placement(new_parent_right)
        return ShiftPlan(
            shifts=(
                RangeShift(Column.RIGHT, Comparison.GTE, new_parent_right, self.width),
                RangeShift(Column.LEFT, Comparison.GT, new_parent_right, self.width),
            ),
            left=left,
            right=right,
        )

    def placement(self, new_parent_right: int) -> tuple[int, int, int]:
        """Return the moved node's ``(left, right)`` and the subtree's ``distance``."""
        left = new_parent_right
        right = new_parent_right + self.width - 1
        return left, right, right - self.old_right


def interval_width(left: int, right: int) -> int:
    """Number of bound slots an interval occupies (``right - left + 1``).

    Raises:
        InvalidIntervalError: If ``left >= right`` or the width is odd
    """
    if left >= right:
        raise InvalidIntervalError(left, right, "left must be smaller than right")
    width = right - left + 1
    if width % 2:
        raise InvalidIntervalError(left, right, "right - left must be odd")
    return width


def descendant_count(left: int, right: int) -> int:
    """Number of descendants encoded by an interval."""
    return (interval_width(left, right) - LEAF_WIDTH) // LEAF_WIDTH


def plan_insertion(parent_right: int, width: int = LEAF_WIDTH) -> ShiftPlan:
    """Plan appending a node of ``width`` as the last child of a parent.

    The new node takes ``[parent_right, parent_right + width - 1]``; every
    ``right >= parent_right`` and every ``left > parent_right`` grows by
    ``width``.
    """
    if width < LEAF_WIDTH or width % 2:
        raise InvalidIntervalError(parent_right, parent_right + width - 1, "width must be even and >= 2")
    return ShiftPlan(
        shifts=(
            RangeShift(Column.RIGHT, Comparison.GTE, parent_right, width),
            RangeShift(Column.LEFT, Comparison.GT, parent_right, width),
        ),
        left=parent_right,
        right=parent_right + width - 1,
    )


def plan_deletion(left: int, right: int) -> ShiftPlan:
    """Plan the gap closing after the node at ``(left, right)`` was removed.

    The node's descendants move up one level by shifting both bounds down by
    one (the mutator does that with the old interval as the predicate). What
    is left is one vacated slot pair, so every bound past ``right`` drops by
    two.
    """
    interval_width(left, right)
    return ShiftPlan(
        shifts=(
            RangeShift(Column.RIGHT, Comparison.GT, right, -LEAF_WIDTH),
            RangeShift(Column.LEFT, Comparison.GT, right, -LEAF_WIDTH),
        )
    )


def plan_move(left: int, right: int) -> MovePlan:
    """Plan moving the subtree rooted at ``(left, right)``."""
    return MovePlan(width=interval_width(left, right), old_left=left, old_right=right)


__all__ = [
    "LEAF_WIDTH",
    "Column",
    "Comparison",
    "InvalidIntervalError",
    "MovePlan",
    "RangeShift",
    "ShiftPlan",
    "descendant_count",
    "interval_width",
    "plan_deletion",
    "plan_insertion",
    "plan_move",
]
