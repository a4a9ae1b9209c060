"""Tests for the nested-set invariant checker."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from nested_set.core.database.exceptions import TreeIntegrityError
from nested_set.core.database.hierarchy import assert_valid_tree, find_violations


def node(id, parent_id, left, right):  # noqa: A002
    return SimpleNamespace(id=id, parent_id=parent_id, left=left, right=right)


VALID = [
    node(1, None, 1, 10),
    node(2, 1, 2, 7),
    node(3, 2, 3, 4),
    node(4, 2, 5, 6),
    node(5, 1, 8, 9),
]


class TestFindViolations:
    """Tests for find_violations and assert_valid_tree."""

    def test_valid_tree(self):
        assert find_violations(VALID) == []
        assert_valid_tree(VALID)

    def test_root_only(self):
        assert find_violations([node(1, None, 1, 2)]) == []

    def test_missing_root(self):
        assert find_violations(VALID[1:])[0] == "root 1 is missing"

    def test_inverted_interval(self):
        nodes = [node(1, None, 1, 4), node(2, 1, 3, 2)]
        assert "node 2: left 3 is not smaller than right 2" in find_violations(nodes)

    def test_even_difference(self):
        nodes = [node(1, None, 1, 4), node(2, 1, 2, 4)]
        assert "node 2: width 3 is odd" in find_violations(nodes)

    def test_duplicate_endpoints(self):
        nodes = [node(1, None, 1, 6), node(2, 1, 2, 3), node(3, 1, 3, 4)]
        assert "duplicate endpoints: [3]" in find_violations(nodes)

    def test_partial_overlap(self):
        nodes = [node(1, None, 1, 8), node(2, 1, 2, 5), node(3, 2, 4, 7)]
        violations = find_violations(nodes)
        assert "node 3 (4, 7) partially overlaps node 2 (2, 5)" in violations

    def test_stale_parent_reference(self):
        nodes = [*VALID[:3], node(4, 5, 5, 6), VALID[4]]
        assert find_violations(nodes) == ["node 4: parent_id is 5, nearest enclosing node is 2"]

    def test_root_not_enclosing(self):
        nodes = [node(1, None, 1, 2), node(2, 1, 3, 4)]
        violations = find_violations(nodes)
        assert "root (1, 2) does not enclose (1, 4)" in violations

    def test_custom_attributes(self):
        nodes = [SimpleNamespace(pk=7, up=None, lft=1, rgt=4), SimpleNamespace(pk=8, up=7, lft=2, rgt=3)]
        assert (
            find_violations(nodes, root_id=7, id_attr="pk", parent_attr="up", left_attr="lft", right_attr="rgt")
            == []
        )


def test_assert_valid_tree_raises_with_all_violations():
    nodes = [node(1, None, 1, 2), node(2, 1, 3, 4)]

    with pytest.raises(TreeIntegrityError) as exc_info:
        assert_valid_tree(nodes)

    assert exc_info.value.violations == find_violations(nodes)
    assert exc_info.value.details == {"count": len(exc_info.value.violations)}
