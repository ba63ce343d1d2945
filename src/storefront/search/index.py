"""Search index: one denormalized row per product, kept current from product events."""

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product.events import (
    ProductActivated,
    ProductCreated,
    ProductDeactivated,
    ProductDetailsUpdated,
    ProductPriceChanged,
    ProductStockChanged,
)
from storefront.catalogue.product.product import Product
from storefront.domain import storefront


@storefront.projection
class SearchIndexEntry:
    product_id: Identifier(identifier=True, required=True)
    sku: String(required=True)
    name: String(required=True)
    slug: String()
    description: Text()
    tags: Text()  # JSON array, copied from the product
    category_id: Identifier()
    price: Float(required=True)
    currency: String()
    stock: Integer(default=0)
    in_stock: Boolean(default=False)
    status: String(required=True)
    created_at: DateTime()


@storefront.projector(projector_for=SearchIndexEntry, aggregates=[Product])
class SearchIndexProjector:
    @on(ProductCreated)
    def on_product_created(self, event):
        stock = event.stock or 0
        current_domain.repository_for(SearchIndexEntry).add(
            SearchIndexEntry(
                product_id=event.product_id,
                sku=event.sku,
                name=event.name,
                slug=event.slug,
                description=event.description,
                tags=event.tags,
                category_id=event.category_id,
                price=event.price,
                currency=event.currency,
                stock=stock,
                in_stock=stock > 0,
                status=event.status,
                created_at=event.created_at,
            )
        )

    @on(ProductDetailsUpdated)
    def on_details_updated(self, event):
        repo = current_domain.repository_for(SearchIndexEntry)
        entry = repo.get(event.product_id)
        entry.name = event.name
        entry.slug = event.slug
        entry.description = event.description
        entry.category_id = event.category_id
        entry.tags = event.tags
        repo.add(entry)

    @on(ProductPriceChanged)
    def on_price_changed(self, event):
        repo = current_domain.repository_for(SearchIndexEntry)
        entry = repo.get(event.product_id)
        entry.price = event.new_price
        repo.add(entry)

    @on(ProductStockChanged)
    def on_stock_changed(self, event):
        repo = current_domain.repository_for(SearchIndexEntry)
        entry = repo.get(event.product_id)
        entry.stock = event.new_stock
        entry.in_stock = event.new_stock > 0
        repo.add(entry)

    @on(ProductActivated)
    def on_activated(self, event):
        repo = current_domain.repository_for(SearchIndexEntry)
        entry = repo.get(event.product_id)
        entry.status = "active"
        repo.add(entry)

    @on(ProductDeactivated)
    def on_deactivated(self, event):
        repo = current_domain.repository_for(SearchIndexEntry)
        entry = repo.get(event.product_id)
        entry.status = event.status
        repo.add(entry)
