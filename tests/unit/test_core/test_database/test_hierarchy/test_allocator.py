"""Tests for interval allocation plans.

Plans are pure values, so these tests run without a database. ``ShiftPlan.apply``
mirrors what the bulk UPDATEs do to a single row.
"""

from __future__ import annotations

import pytest

from nested_set.core.database.exceptions import InvalidIntervalError
from nested_set.core.database.hierarchy.allocator import (
    LEAF_WIDTH,
    Column,
    Comparison,
    RangeShift,
    descendant_count,
    interval_width,
    plan_deletion,
    plan_insertion,
    plan_move,
)

# ============================================================================
# Helpers
# ============================================================================


def is_nested_set(intervals: list[tuple[int, int]]) -> bool:
    """Every pair disjoint or strictly nested, endpoints 1..2n used once."""
    endpoints = sorted(v for pair in intervals for v in pair)
    if endpoints != list(range(1, 2 * len(intervals) + 1)):
        return False
    for a_left, a_right in intervals:
        for b_left, b_right in intervals:
            if (a_left, a_right) == (b_left, b_right):
                continue
            overlaps = a_left < b_left < a_right < b_right
            if overlaps:
                return False
    return True


# ============================================================================
# RangeShift
# ============================================================================


class TestRangeShift:
    """Tests for RangeShift."""

    def test_gte_includes_boundary(self):
        shift = RangeShift(Column.RIGHT, Comparison.GTE, 4, 2)
        assert shift.matches(4)
        assert shift.matches(9)
        assert not shift.matches(3)

    def test_gt_excludes_boundary(self):
        shift = RangeShift(Column.LEFT, Comparison.GT, 4, 2)
        assert not shift.matches(4)
        assert shift.matches(5)

    def test_str(self):
        assert str(RangeShift(Column.RIGHT, Comparison.GTE, 4, 2)) == "right >= 4: +2"
        assert str(RangeShift(Column.LEFT, Comparison.GT, 7, -4)) == "left > 7: -4"


# ============================================================================
# Widths
# ============================================================================


class TestIntervalWidth:
    """Tests for interval_width and descendant_count functions."""

    @pytest.mark.parametrize(
        ("left", "right", "width", "descendants"),
        [(1, 2, 2, 0), (2, 7, 6, 2), (1, 14, 14, 6)],
    )
    def test_valid(self, left, right, width, descendants):
        assert interval_width(left, right) == width
        assert descendant_count(left, right) == descendants

    @pytest.mark.parametrize(("left", "right"), [(3, 3), (5, 2), (1, 3)])
    def test_invalid(self, left, right):
        with pytest.raises(InvalidIntervalError) as exc_info:
            interval_width(left, right)
        assert exc_info.value.details == {"left": left, "right": right}


# ============================================================================
# Insertion
# ============================================================================


class TestPlanInsertion:
    """Tests for plan_insertion function."""

    def test_leaf_under_empty_root(self):
        plan = plan_insertion(parent_right=2)

        assert (plan.left, plan.right) == (2, 3)
        assert plan.shifts == (
            RangeShift(Column.RIGHT, Comparison.GTE, 2, LEAF_WIDTH),
            RangeShift(Column.LEFT, Comparison.GT, 2, LEAF_WIDTH),
        )

    def test_ancestors_grow_and_later_siblings_move(self):
        # root (1, 8), A (2, 5), C (3, 4), B (6, 7); insert under A
        plan = plan_insertion(parent_right=5)

        assert (plan.left, plan.right) == (5, 6)
        assert plan.apply(1, 8) == (1, 10)  # root
        assert plan.apply(2, 5) == (2, 7)  # parent
        assert plan.apply(3, 4) == (3, 4)  # earlier child
        assert plan.apply(6, 7) == (8, 9)  # later sibling of parent

    def test_result_is_a_valid_tree(self):
        before = [(1, 8), (2, 5), (3, 4), (6, 7)]
        plan = plan_insertion(parent_right=5)
        after = [plan.apply(*pair) for pair in before] + [(plan.left, plan.right)]
        assert is_nested_set(after)

    def test_wider_insert(self):
        plan = plan_insertion(parent_right=2, width=6)
        assert (plan.left, plan.right) == (2, 7)
        assert plan.apply(1, 2) == (1, 8)

    @pytest.mark.parametrize("width", [0, 1, 3])
    def test_invalid_width(self, width):
        with pytest.raises(InvalidIntervalError):
            plan_insertion(parent_right=2, width=width)


# ============================================================================
# Deletion
# ============================================================================


class TestPlanDeletion:
    """Tests for plan_deletion function."""

    def test_closes_two_slots(self):
        # root (1, 8), A (2, 5), C (3, 4), B (6, 7); delete A
        plan = plan_deletion(2, 5)

        assert plan.left is None
        assert plan.apply(1, 8) == (1, 6)
        assert plan.apply(6, 7) == (4, 5)
        # Descendants are handled separately (shifted by -1)
        assert plan.apply(3, 4) == (3, 4)

    def test_rejects_malformed_interval(self):
        with pytest.raises(InvalidIntervalError):
            plan_deletion(4, 4)


# ============================================================================
# Move
# ============================================================================


class TestPlanMove:
    """Tests for plan_move function."""

    def test_width_and_gap(self):
        # root (1, 10), A (2, 7), C (3, 6), D (4, 5), B (8, 9); move C
        plan = plan_move(3, 6)

        assert plan.width == 4
        assert plan.close_gap.apply(2, 7) == (2, 3)
        assert plan.close_gap.apply(8, 9) == (4, 5)
        assert plan.close_gap.apply(1, 10) == (1, 6)

    def test_slot_and_placement_to_the_right(self):
        plan = plan_move(3, 6)
        # B's right after the gap closed
        slot = plan.open_slot(5)

        assert (slot.left, slot.right) == (5, 8)
        assert slot.apply(4, 5) == (4, 9)
        assert slot.apply(1, 6) == (1, 10)
        assert plan.placement(5) == (5, 8, 2)

    def test_placement_to_the_left_has_negative_distance(self):
        # root (1, 8), A (2, 5), C (3, 4), B (6, 7); move B under A
        plan = plan_move(6, 7)
        assert plan.close_gap.apply(1, 8) == (1, 6)
        assert plan.placement(5) == (5, 6, -1)

    def test_full_move_yields_valid_tree(self):
        tree = {"root": (1, 10), "A": (2, 7), "C": (3, 6), "D": (4, 5), "B": (8, 9)}
        plan = plan_move(*tree["C"])
        subtree = {"D": tree["D"]}

        rest = {k: plan.close_gap.apply(*v) for k, v in tree.items() if k not in ("C", "D")}
        new_parent_right = rest["B"][1]
        rest = {k: plan.open_slot(new_parent_right).apply(*v) for k, v in rest.items()}
        left, right, distance = plan.placement(new_parent_right)
        rest["C"] = (left, right)
        rest.update({k: (lft + distance, rgt + distance) for k, (lft, rgt) in subtree.items()})

        assert rest == {"root": (1, 10), "A": (2, 3), "B": (4, 9), "C": (5, 8), "D": (6, 7)}
        assert is_nested_set(list(rest.values()))
