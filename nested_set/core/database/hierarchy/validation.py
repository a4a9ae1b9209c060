"""Consistency checks for stored nested-set intervals.

Pure functions over already-loaded records; nothing here queries.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any

from nested_set.core.database.exceptions import TreeIntegrityError


def find_violations(
    nodes: Iterable[Any],
    *,
    root_id: Any = 1,
    id_attr: str = "id",
    parent_attr: str = "parent_id",
    left_attr: str = "left",
    right_attr: str = "right",
) -> list[str]:
    """List every way the records break the nested-set invariants.

    Checked: ``left < right`` with an odd difference, endpoints unique
    across the table, intervals either disjoint or strictly nested, the
    root enclosing everything, and each record's parent reference naming
    its nearest enclosing interval.

    Returns:
        Human readable descriptions, empty when the tree is consistent
    """
    records = [
        (getattr(n, id_attr), getattr(n, parent_attr), getattr(n, left_attr), getattr(n, right_attr)) for n in nodes
    ]
    violations: list[str] = []

    for node_id, _, left, right in records:
        if left >= right:
            violations.append(f"node {node_id}: left {left} is not smaller than right {right}")
        elif (right - left) % 2 == 0:
            violations.append(f"node {node_id}: width {right - left + 1} is odd")

    endpoints = Counter(value for _, _, left, right in records for value in (left, right))
    duplicates = sorted(value for value, count in endpoints.items() if count > 1)
    if duplicates:
        violations.append(f"duplicate endpoints: {duplicates}")

    root = next((r for r in records if r[0] == root_id), None)
    if root is None:
        violations.append(f"root {root_id} is missing")
    elif records:
        lowest = min(left for _, _, left, _ in records)
        highest = max(right for _, _, _, right in records)
        if (root[2], root[3]) != (lowest, highest):
            violations.append(f"root ({root[2]}, {root[3]}) does not enclose ({lowest}, {highest})")
        if (root[2], root[3]) != (1, 2 * len(records)):
            violations.append(f"root ({root[2]}, {root[3]}) should be (1, {2 * len(records)})")

    open_intervals: list[tuple[Any, int, int]] = []
    for node_id, parent_id, left, right in sorted(records, key=lambda r: r[2]):
        while open_intervals and open_intervals[-1][2] < left:
            open_intervals.pop()
        enclosing = open_intervals[-1] if open_intervals else None
        if enclosing is not None and right > enclosing[2]:
            violations.append(
                f"node {node_id} ({left}, {right}) partially overlaps node {enclosing[0]} "
                f"({enclosing[1]}, {enclosing[2]})"
            )
        elif node_id != root_id:
            expected = enclosing[0] if enclosing is not None else None
            if parent_id != expected:
                violations.append(f"node {node_id}: parent_id is {parent_id!r}, nearest enclosing node is {expected!r}")
        open_intervals.append((node_id, left, right))

    return violations


def assert_valid_tree(nodes: Iterable[Any], **options: Any) -> None:
    """Raise when :func:`find_violations` reports anything.

    Raises:
        TreeIntegrityError: Carrying the full list of violations
    """
    violations = find_violations(nodes, **options)
    if violations:
        raise TreeIntegrityError(violations)


__all__ = ["assert_valid_tree", "find_violations"]
