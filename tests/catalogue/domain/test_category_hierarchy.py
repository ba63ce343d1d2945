"""Tests for CategoryHierarchy walks, cycle detection and repair planning."""

import pytest
from protean.exceptions import ValidationError

from storefront.catalogue.category.category import MAX_LEVEL, Category
from storefront.catalogue.category.hierarchy import CategoryHierarchy


def _chain(depth):
    """Categories nested ``depth`` deep, root first."""
    categories = [Category.create(name="Level 0")]
    for level in range(1, depth):
        categories.append(Category.create(name=f"Level {level}", parent_id=categories[-1].id, level=level))
    return categories


class TestWalks:
    def test_descendants_include_self(self):
        root, child, grandchild = _chain(3)
        hierarchy = CategoryHierarchy([root, child, grandchild])
        assert hierarchy.descendant_ids(child.id) == {str(child.id), str(grandchild.id)}

    def test_ancestors_root_first(self):
        root, child, grandchild = _chain(3)
        hierarchy = CategoryHierarchy([root, child, grandchild])
        assert [c.name for c in hierarchy.ancestors(grandchild.id)] == ["Level 0", "Level 1"]
        assert hierarchy.path(grandchild.id) == ["Level 0", "Level 1", "Level 2"]

    def test_breadcrumbs(self):
        root, child = _chain(2)
        crumbs = CategoryHierarchy([root, child]).breadcrumbs(child.id)
        assert [c["slug"] for c in crumbs] == ["level-0", "level-1"]

    def test_subtree_height(self):
        categories = _chain(4)
        hierarchy = CategoryHierarchy(categories)
        assert hierarchy.subtree_height(categories[0].id) == 3
        assert hierarchy.subtree_height(categories[-1].id) == 0

    def test_tree_orders_siblings(self):
        root = Category.create(name="Root")
        late = Category.create(name="B", parent_id=root.id, level=1, sort_order=2)
        early = Category.create(name="A", parent_id=root.id, level=1, sort_order=1)
        [node] = CategoryHierarchy([root, late, early]).tree()
        assert [c["name"] for c in node["children"]] == ["A", "B"]

    def test_tree_can_hide_inactive(self):
        root = Category.create(name="Root")
        hidden = Category.create(name="Hidden", parent_id=root.id, level=1)
        hidden.deactivate()
        [node] = CategoryHierarchy([root, hidden]).tree(include_inactive=False)
        assert node["children"] == []


class TestCycles:
    def test_moving_under_descendant_is_a_cycle(self):
        root, child, grandchild = _chain(3)
        hierarchy = CategoryHierarchy([root, child, grandchild])
        assert hierarchy.would_create_cycle(root.id, grandchild.id)
        assert hierarchy.would_create_cycle(child.id, child.id)
        assert not hierarchy.would_create_cycle(grandchild.id, root.id)
        assert not hierarchy.would_create_cycle(child.id, None)

    def test_relocate_to_self_rejected(self):
        category = Category.create(name="Solo")
        with pytest.raises(ValidationError):
            category.relocate(category.id, 1)

    def test_level_is_bounded(self):
        with pytest.raises(ValidationError):
            Category.create(name="Too deep", level=MAX_LEVEL + 1)


class TestRepairs:
    def test_sound_tree_needs_nothing(self):
        hierarchy = CategoryHierarchy(_chain(3))
        assert hierarchy.validate_tree() == []
        assert hierarchy.plan_repairs() == {}

    def test_dangling_parent_becomes_root(self):
        orphan = Category.create(name="Orphan", parent_id="missing", level=1)
        hierarchy = CategoryHierarchy([orphan])
        assert len(hierarchy.validate_tree()) == 1
        assert hierarchy.plan_repairs() == {str(orphan.id): (None, 0)}

    def test_cycle_members_become_roots(self):
        first = Category.create(name="First")
        second = Category.create(name="Second", parent_id=first.id, level=1)
        first.parent_id = second.id
        first.level = 1
        hierarchy = CategoryHierarchy([first, second])

        assert any("circular" in p for p in hierarchy.validate_tree())
        repairs = hierarchy.plan_repairs()
        assert repairs[str(first.id)] == (None, 0)
        assert repairs[str(second.id)] == (None, 0)

    def test_wrong_level_is_recomputed(self):
        root, child = _chain(2)
        child.level = 3
        repairs = CategoryHierarchy([root, child]).plan_repairs()
        assert repairs == {str(child.id): (str(root.id), 1)}
