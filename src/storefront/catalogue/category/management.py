"""Category management: commands and handlers."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.category.category import MAX_LEVEL, Category
from storefront.catalogue.category.hierarchy import CategoryHierarchy
from storefront.catalogue.product.product import Product
from storefront.catalogue.shared.seo import SeoMetadata
from storefront.domain import storefront
from storefront.shared.errors import CategoryHasChildrenError, CircularReferenceError

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Category")
class CreateCategory:
    name: String(required=True, max_length=100)
    parent_id: Identifier()
    description: Text()
    sort_order: Integer(default=0)


@storefront.command(part_of="Category")
class UpdateCategory:
    category_id: Identifier(required=True)
    name: String(max_length=100)
    description: Text()
    image_url: String(max_length=500)


@storefront.command(part_of="Category")
class UpdateCategorySeo:
    category_id: Identifier(required=True)
    seo: Text(required=True)  # JSON object of SeoMetadata fields


@storefront.command(part_of="Category")
class MoveCategory:
    """Re-parent a category; ``new_parent_id`` empty moves it to the root."""

    category_id: Identifier(required=True)
    new_parent_id: Identifier()
    validate_only: Boolean(default=False)


@storefront.command(part_of="Category")
class ReorderCategories:
    orders: Text(required=True)  # JSON: list of {category_id, sort_order}


@storefront.command(part_of="Category")
class DeleteCategory:
    category_id: Identifier(required=True)


@storefront.command(part_of="Category")
class DeactivateCategory:
    category_id: Identifier(required=True)


@storefront.command(part_of="Category")
class RepairCategoryTree:
    """Detach dangling and cyclic categories and recompute levels."""

    dry_run: Boolean(default=False)


@storefront.command_handler(part_of=Category)
class ManageCategoryHandler:
    @handle(CreateCategory)
    def create_category(self, command):
        repo = current_domain.repository_for(Category)

        level = 0
        if command.parent_id:
            parent = repo.get(command.parent_id)
            level = parent.level + 1
            if level > MAX_LEVEL:
                raise ValidationError({"level": [f"Category hierarchy cannot exceed {MAX_LEVEL + 1} levels"]})

        category = Category.create(
            name=command.name,
            parent_id=command.parent_id,
            level=level,
            description=command.description,
            sort_order=command.sort_order or 0,
        )
        repo.add(category)
        return str(category.id)

    @handle(UpdateCategory)
    def update_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)
        category.update_details(
            name=command.name,
            description=command.description,
            image_url=command.image_url,
        )
        repo.add(category)

    @handle(UpdateCategorySeo)
    def update_seo(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)
        seo = json.loads(command.seo) if isinstance(command.seo, str) else command.seo
        category.update_seo(SeoMetadata(**seo))
        repo.add(category)

    @handle(MoveCategory)
    def move_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)

        new_parent_id = command.new_parent_id or None
        new_level = 0
        if new_parent_id is not None:
            parent = repo.get(new_parent_id)
            new_level = parent.level + 1

        hierarchy = CategoryHierarchy.load()
        if hierarchy.would_create_cycle(category.id, new_parent_id):
            raise CircularReferenceError(
                {"parent_id": ["Cannot move a category under itself or one of its descendants"]}
            )

        if new_level + hierarchy.subtree_height(category.id) > MAX_LEVEL:
            raise ValidationError({"level": [f"Move would exceed the maximum of {MAX_LEVEL + 1} levels"]})

        if command.validate_only:
            return

        delta = new_level - category.level
        category.relocate(new_parent_id, new_level)
        repo.add(category)

        if delta:
            for descendant_id in hierarchy.descendant_ids(category.id) - {str(category.id)}:
                descendant = repo.get(descendant_id)
                descendant.relocate(descendant.parent_id, descendant.level + delta)
                repo.add(descendant)

        logger.info(
            "Moved category",
            category_id=str(category.id),
            new_parent_id=str(new_parent_id) if new_parent_id else None,
            level_delta=delta,
        )

    @handle(ReorderCategories)
    def reorder_categories(self, command):
        orders = json.loads(command.orders) if isinstance(command.orders, str) else command.orders
        if not orders:
            return

        repo = current_domain.repository_for(Category)
        # Load everything first so an unknown id leaves every category untouched
        categories = [(repo.get(entry["category_id"]), entry["sort_order"]) for entry in orders]
        for category, sort_order in categories:
            category.reorder(sort_order)
            repo.add(category)

    @handle(DeleteCategory)
    def delete_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)

        if CategoryHierarchy.load().children(category.id):
            raise CategoryHasChildrenError({"category_id": ["Category has sub-categories and cannot be deleted"]})

        if current_domain.repository_for(Product).in_categories([category.id]):
            raise ValidationError({"category_id": ["Category still has products assigned"]})

        repo._dao.delete(category)
        logger.info("Deleted category", category_id=str(category.id))

    @handle(DeactivateCategory)
    def deactivate_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)
        category.deactivate()
        repo.add(category)

    @handle(RepairCategoryTree)
    def repair_tree(self, command):
        repo = current_domain.repository_for(Category)
        hierarchy = CategoryHierarchy.load()
        problems = hierarchy.validate_tree()
        repairs = hierarchy.plan_repairs()
        if command.dry_run:
            return len(repairs)

        for category_id, (parent_id, level) in repairs.items():
            category = repo.get(category_id)
            category.relocate(parent_id, level)
            repo.add(category)

        logger.info("Category tree repaired", problems=len(problems), repairs=len(repairs))
        return len(repairs)
