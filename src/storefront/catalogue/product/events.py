"""Domain events for the Product aggregate.

Events carry the fields the search index needs, so projectors never read
back from the aggregate's repository.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    __version__ = 1

    product_id: Identifier(required=True)
    sku: String(required=True)
    name: String(required=True)
    slug: String()
    description: Text()
    price: Float(required=True)
    currency: String()
    stock: Integer()
    category_id: Identifier()
    tags: Text()
    status: String(required=True)
    created_at: DateTime()


@storefront.event(part_of="Product")
class ProductDetailsUpdated:
    __version__ = 1

    product_id: Identifier(required=True)
    name: String(required=True)
    slug: String()
    description: Text()
    category_id: Identifier()
    tags: Text()


@storefront.event(part_of="Product")
class ProductPriceChanged:
    __version__ = 1

    product_id: Identifier(required=True)
    previous_price: Float(required=True)
    new_price: Float(required=True)


@storefront.event(part_of="Product")
class ProductStockChanged:
    """Stock was set, reduced by a sale or restored by a cancellation."""

    __version__ = 1

    product_id: Identifier(required=True)
    previous_stock: Integer(required=True)
    new_stock: Integer(required=True)
    reason: String()


@storefront.event(part_of="Product")
class ProductActivated:
    __version__ = 1

    product_id: Identifier(required=True)
    activated_at: DateTime()


@storefront.event(part_of="Product")
class ProductDeactivated:
    __version__ = 1

    product_id: Identifier(required=True)
    status: String(required=True)
    deactivated_at: DateTime()
