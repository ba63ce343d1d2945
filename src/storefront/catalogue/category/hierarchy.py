"""Read-side operations over the category tree.

``CategoryHierarchy`` works on an in-memory snapshot of all categories, so
it can be used from command handlers (move validation, tree repair) and
from the API alike. Every walk guards against cycles, which only exist in
data that has not been through ``plan_repairs``.
"""

from protean.utils.globals import current_domain

from storefront.catalogue.category.category import MAX_LEVEL, Category


class CategoryHierarchy:
    def __init__(self, categories):
        self._by_id = {str(c.id): c for c in categories}
        self._children: dict[str | None, list] = {}
        for category in categories:
            parent = str(category.parent_id) if category.parent_id else None
            self._children.setdefault(parent, []).append(category)
        for siblings in self._children.values():
            siblings.sort(key=lambda c: (c.sort_order or 0, c.name))

    @classmethod
    def load(cls) -> "CategoryHierarchy":
        """Snapshot every stored category."""
        categories = current_domain.repository_for(Category)._dao.query.all().items
        return cls(categories)

    def get(self, category_id) -> Category | None:
        return self._by_id.get(str(category_id))

    def roots(self) -> list[Category]:
        return list(self._children.get(None, []))

    def children(self, category_id) -> list[Category]:
        return list(self._children.get(str(category_id), []))

    def descendant_ids(self, category_id) -> set[str]:
        """Ids of the category and everything below it."""
        start = str(category_id)
        found = {start}
        stack = [start]
        while stack:
            current = stack.pop()
            for child in self._children.get(current, []):
                child_id = str(child.id)
                if child_id not in found:
                    found.add(child_id)
                    stack.append(child_id)
        return found

    def ancestors(self, category_id) -> list[Category]:
        """Ancestors of the category, root first. The category itself is excluded."""
        chain = []
        seen = {str(category_id)}
        current = self.get(category_id)
        while current is not None and current.parent_id:
            parent_id = str(current.parent_id)
            if parent_id in seen:
                break
            seen.add(parent_id)
            current = self.get(parent_id)
            if current is not None:
                chain.append(current)
        chain.reverse()
        return chain

    def path(self, category_id) -> list[str]:
        """Names from the root down to the category."""
        category = self.get(category_id)
        if category is None:
            return []
        return [c.name for c in self.ancestors(category_id)] + [category.name]

    def breadcrumbs(self, category_id) -> list[dict]:
        category = self.get(category_id)
        if category is None:
            return []
        return [{"id": str(c.id), "name": c.name, "slug": c.slug} for c in [*self.ancestors(category_id), category]]

    def subtree_height(self, category_id) -> int:
        """Levels below the category; 0 for a leaf."""
        height = 0
        frontier = [str(category_id)]
        seen = set(frontier)
        while True:
            below = [
                str(child.id)
                for parent_id in frontier
                for child in self._children.get(parent_id, [])
                if str(child.id) not in seen
            ]
            if not below:
                return height
            seen.update(below)
            frontier = below
            height += 1

    def would_create_cycle(self, category_id, new_parent_id) -> bool:
        if new_parent_id is None:
            return False
        return str(new_parent_id) in self.descendant_ids(category_id)

    def tree(self, include_inactive: bool = True) -> list[dict]:
        """Nested dicts from the roots down, siblings ordered by ``sort_order``."""

        def build(category, seen):
            node_id = str(category.id)
            seen = seen | {node_id}
            return {
                "id": node_id,
                "name": category.name,
                "slug": category.slug,
                "level": category.level,
                "sort_order": category.sort_order,
                "is_active": category.is_active,
                "children": [
                    build(child, seen)
                    for child in self._children.get(node_id, [])
                    if str(child.id) not in seen and (include_inactive or child.is_active)
                ],
            }

        return [build(root, set()) for root in self.roots() if include_inactive or root.is_active]

    # -------------------------------------------------------------------
    # Integrity
    # -------------------------------------------------------------------
    def validate_tree(self) -> list[str]:
        """Describe every structural problem; an empty list means the tree is sound."""
        problems = []
        cyclic = self._cyclic_ids()
        for category_id, category in self._by_id.items():
            if category.parent_id and str(category.parent_id) not in self._by_id:
                problems.append(f"Category {category_id} references missing parent {category.parent_id}")
            elif category_id in cyclic:
                problems.append(f"Category {category_id} is part of a circular reference")
            else:
                expected = len(self.ancestors(category_id))
                if category.level != expected:
                    problems.append(f"Category {category_id} has level {category.level}, expected {expected}")
        return problems

    def plan_repairs(self) -> dict[str, tuple[str | None, int]]:
        """Compute ``{category_id: (parent_id, level)}`` for every category that needs fixing.

        Dangling parents and members of cycles become roots; categories
        deeper than the maximum level are attached to their ancestor at the
        level just above the limit; levels are recomputed from the roots.
        """
        parents = {}
        for category_id, category in self._by_id.items():
            parent_id = str(category.parent_id) if category.parent_id else None
            if parent_id is not None and parent_id not in self._by_id:
                parent_id = None
            parents[category_id] = parent_id

        for category_id in self._cyclic_ids(parents):
            parents[category_id] = None

        levels = {}

        def level_of(category_id):
            if category_id in levels:
                return levels[category_id]
            parent_id = parents[category_id]
            if parent_id is None:
                levels[category_id] = 0
            else:
                parent_level = level_of(parent_id)
                if parent_level >= MAX_LEVEL:
                    # Too deep: hang it off the deepest allowed ancestor instead
                    ancestor = parent_id
                    while level_of(ancestor) > MAX_LEVEL - 1:
                        ancestor = parents[ancestor]
                    parents[category_id] = ancestor
                    parent_level = level_of(ancestor)
                levels[category_id] = parent_level + 1
            return levels[category_id]

        repairs = {}
        for category_id, category in self._by_id.items():
            level = level_of(category_id)
            original_parent = str(category.parent_id) if category.parent_id else None
            if parents[category_id] != original_parent or category.level != level:
                repairs[category_id] = (parents[category_id], level)
        return repairs

    def _cyclic_ids(self, parents=None) -> set[str]:
        if parents is None:
            parents = {cid: (str(c.parent_id) if c.parent_id else None) for cid, c in self._by_id.items()}

        cyclic: set[str] = set()
        for start in parents:
            path = []
            seen = set()
            current = start
            while current is not None and current in parents and current not in seen:
                seen.add(current)
                path.append(current)
                current = parents[current]
            if current is not None and current in seen:
                cyclic.update(path[path.index(current) :])
        return cyclic
