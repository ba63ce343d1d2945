"""Category aggregate root for product categorization."""

from protean import atomic_change
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text, ValueObject

from storefront.catalogue.category.events import (
    CategoryCreated,
    CategoryDeactivated,
    CategoryDetailsUpdated,
    CategoryMoved,
    CategoryReordered,
)
from storefront.catalogue.shared.seo import SeoMetadata
from storefront.catalogue.shared.slug import slugify
from storefront.domain import storefront
from storefront.shared.clock import utcnow

# Levels run 0 (root) to 4, five levels in total
MAX_LEVEL = 4


@storefront.aggregate
class Category:
    """A node in the category tree.

    The tree shape is held through ``parent_id``; ``level`` is denormalized
    depth, kept in step by the move and repair commands.
    """

    name: String(required=True, max_length=100)
    slug: String(required=True, max_length=200)
    description: Text()
    parent_id: Identifier()
    level: Integer(default=0, min_value=0, max_value=MAX_LEVEL)
    sort_order: Integer(default=0)
    is_active: Boolean(default=True)
    image_url: String(max_length=500)
    seo: ValueObject(SeoMetadata)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(cls, name, parent_id=None, level=0, description=None, sort_order=0, slug=None, seo=None):
        now = utcnow()
        category = cls(
            name=name,
            slug=slug or slugify(name),
            description=description,
            parent_id=parent_id,
            level=level,
            sort_order=sort_order,
            seo=seo,
            created_at=now,
            updated_at=now,
        )
        category.raise_(
            CategoryCreated(
                category_id=category.id,
                name=name,
                slug=category.slug,
                parent_id=parent_id,
                level=level,
            )
        )
        return category

    @property
    def is_root(self) -> bool:
        return not self.parent_id

    def update_details(self, name=None, description=None, image_url=None):
        with atomic_change(self):
            if name is not None:
                self.name = name
                self.slug = slugify(name)
            if description is not None:
                self.description = description
            if image_url is not None:
                self.image_url = image_url
            self.updated_at = utcnow()

        self.raise_(CategoryDetailsUpdated(category_id=self.id, name=self.name, slug=self.slug))

    def update_seo(self, seo):
        self.seo = seo
        self.updated_at = utcnow()

    def relocate(self, new_parent_id, new_level):
        """Attach to ``new_parent_id`` at ``new_level``. Cycle checks belong to the caller."""
        if new_parent_id is not None and str(new_parent_id) == str(self.id):
            raise ValidationError({"parent_id": ["A category cannot be its own parent"]})
        if new_level > MAX_LEVEL:
            raise ValidationError({"level": [f"Category hierarchy cannot exceed {MAX_LEVEL + 1} levels"]})

        previous_parent_id = self.parent_id
        previous_level = self.level
        now = utcnow()
        with atomic_change(self):
            self.parent_id = new_parent_id
            self.level = new_level
            self.updated_at = now

        self.raise_(
            CategoryMoved(
                category_id=self.id,
                previous_parent_id=previous_parent_id,
                new_parent_id=new_parent_id,
                previous_level=previous_level,
                new_level=new_level,
                moved_at=now,
            )
        )

    def reorder(self, new_sort_order):
        previous = self.sort_order
        self.sort_order = new_sort_order
        self.updated_at = utcnow()
        self.raise_(CategoryReordered(category_id=self.id, previous_order=previous, new_order=new_sort_order))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"status": ["Category is already inactive"]})

        now = utcnow()
        self.is_active = False
        self.updated_at = now
        self.raise_(CategoryDeactivated(category_id=self.id, deactivated_at=now))
