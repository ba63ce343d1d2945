"""Moving product stock in and out for orders."""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.inventory.availability import available_stock
from storefront.shared.errors import InsufficientStockError

logger = structlog.get_logger(__name__)


def check_stock(items, user_id=None):
    """Raise ``InsufficientStockError`` for the first line that cannot be served.

    Stock the buyer already holds in their own cart counts as theirs.
    """
    product_repo = current_domain.repository_for(Product)
    for item in items:
        product = product_repo.get(item["product_id"])
        available = available_stock(product.id, product=product, user_id=user_id)
        if available < item["quantity"]:
            raise InsufficientStockError(product.id, item["quantity"], available, product_name=product.name)


def deduct_stock(order):
    product_repo = current_domain.repository_for(Product)
    for item in order.items:
        product = product_repo.get(item.product_id)
        product.reduce_stock(item.quantity, reason="order_placed")
        product_repo.add(product)
    order.stock_committed = True


def restore_stock(order) -> int:
    """Put an order's quantities back on the shelf; returns the lines restored."""
    if not order.stock_committed:
        return 0

    product_repo = current_domain.repository_for(Product)
    restored = 0
    for item in order.items:
        try:
            product = product_repo.get(item.product_id)
        except ObjectNotFoundError:
            logger.warning("Cannot restore stock for missing product", product_id=str(item.product_id))
            continue
        product.restore_stock(item.quantity, reason="order_cancelled")
        product_repo.add(product)
        restored += 1
    order.stock_committed = False
    return restored
