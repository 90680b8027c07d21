"""Tests for the TreeIndex walks and the mutation guards.

Pure unit tests: the index is built from plain (id, parent_id, name) rows.
"""

import pytest

from atelier.exceptions import ConflictError, ValidationError
from atelier.services.tree import (
    FOLDER_PATH_SEPARATOR,
    TreeIndex,
    materialize_path,
    validate_delete,
    validate_parent_exists,
    validate_reparent,
    validate_unique_name,
)

# Technology > Software > Python
#            > Hardware
# News
ROWS = [
    (1, None, "Technology"),
    (2, 1, "Software"),
    (3, 2, "Python"),
    (4, 1, "Hardware"),
    (5, None, "News"),
]


@pytest.fixture()
def index():
    return TreeIndex(ROWS)


class TestAscending:

    def test_breadcrumbs_root_first_inclusive(self, index):
        assert index.breadcrumbs(3) == [
            {"id": 1, "name": "Technology"},
            {"id": 2, "name": "Software"},
            {"id": 3, "name": "Python"},
        ]

    def test_display_path(self, index):
        assert index.display_path(3) == "Technology > Software > Python"
        assert index.display_path(3, FOLDER_PATH_SEPARATOR) == "Technology/Software/Python"

    def test_root_has_depth_zero(self, index):
        assert index.depth(5) == 0
        assert index.depth(3) == 2

    def test_dangling_parent_treated_as_root(self):
        orphan = TreeIndex([(7, 99, "Orphan")])
        assert orphan.breadcrumbs(7) == [{"id": 7, "name": "Orphan"}]
        assert orphan.depth(7) == 0

    def test_stored_cycle_terminates(self):
        broken = TreeIndex([(1, 2, "A"), (2, 1, "B")])
        assert [n.id for n in broken.ancestors(1)] == [2]


class TestDescending:

    def test_children_of_none_are_roots(self, index):
        assert index.children(None) == [1, 5]

    def test_descendants_parents_before_children(self, index):
        assert index.descendants(1) == [2, 3, 4]
        assert index.descendants(3) == []

    def test_post_order_children_first_node_last(self, index):
        assert index.post_order(1) == [3, 2, 4, 1]
        assert index.post_order(5) == [5]

    def test_deep_chain_does_not_recurse(self):
        depth = 5000
        rows = [(i, i - 1 if i > 1 else None, f"n{i}") for i in range(1, depth + 1)]
        deep = TreeIndex(rows)
        assert len(deep.descendants(1)) == depth - 1
        assert deep.post_order(1)[0] == depth
        assert deep.depth(depth) == depth - 1


class TestMaterializePath:

    def test_root_path_is_name(self):
        assert materialize_path(None, "Images") == "Images"

    def test_child_path_joins_parent(self):
        assert materialize_path("Images", "2024") == "Images/2024"


class TestGuards:

    def test_move_to_root_always_allowed(self, index):
        validate_reparent(index, 3, None)

    def test_move_under_sibling_subtree_allowed(self, index):
        validate_reparent(index, 4, 2)

    def test_self_parent_conflicts(self, index):
        with pytest.raises(ConflictError):
            validate_reparent(index, 2, 2)

    def test_descendant_parent_conflicts(self, index):
        with pytest.raises(ConflictError):
            validate_reparent(index, 1, 3)

    def test_unknown_parent_is_validation_error(self, index):
        with pytest.raises(ValidationError):
            validate_reparent(index, 1, 42)
        with pytest.raises(ValidationError):
            validate_parent_exists(index, 42)

    def test_delete_with_children_conflicts(self, index):
        with pytest.raises(ConflictError) as exc:
            validate_delete(index, 1, "category")
        assert exc.value.details["child_count"] == 2
        validate_delete(index, 3, "category")

    def test_sibling_names_must_differ(self, index):
        with pytest.raises(ConflictError):
            validate_unique_name(index, 1, "Hardware")
        validate_unique_name(index, 1, "Hardware", exclude_id=4)
        validate_unique_name(index, 2, "Hardware")
