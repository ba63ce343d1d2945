"""Domain events for the Category aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Category")
class CategoryCreated:
    __version__ = 1

    category_id: Identifier(required=True)
    name: String(required=True)
    slug: String()
    parent_id: Identifier()
    level: Integer(required=True)


@storefront.event(part_of="Category")
class CategoryDetailsUpdated:
    __version__ = 1

    category_id: Identifier(required=True)
    name: String(required=True)
    slug: String()


@storefront.event(part_of="Category")
class CategoryMoved:
    __version__ = 1

    category_id: Identifier(required=True)
    previous_parent_id: Identifier()
    new_parent_id: Identifier()
    previous_level: Integer(required=True)
    new_level: Integer(required=True)
    moved_at: DateTime()


@storefront.event(part_of="Category")
class CategoryReordered:
    __version__ = 1

    category_id: Identifier(required=True)
    previous_order: Integer()
    new_order: Integer(required=True)


@storefront.event(part_of="Category")
class CategoryDeactivated:
    __version__ = 1

    category_id: Identifier(required=True)
    deactivated_at: DateTime()
