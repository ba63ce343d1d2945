"""Emails triggered by order and stock events.

Failures here are logged and never propagate back into the flow that
raised the event.
"""

import os

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.product.events import ProductStockChanged
from storefront.catalogue.product.product import Product
from storefront.domain import storefront
from storefront.notifications import sending
from storefront.notifications.email import Email
from storefront.orders.events import OrderCancelled, OrderDelivered, OrderPlaced, OrderShipped
from storefront.orders.order import Order

logger = structlog.get_logger(__name__)

DEFAULT_LOW_STOCK_THRESHOLD = 10


def low_stock_threshold() -> int:
    return int(os.environ.get("LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD))


def _notify(sender, order_id, event_name):
    try:
        order = current_domain.repository_for(Order).get(order_id)
        sender(order)
    except (ObjectNotFoundError, ValidationError) as exc:
        logger.warning("Order email not sent", order_id=str(order_id), trigger=event_name, error=str(exc))


@storefront.event_handler(part_of=Email, stream_category="storefront::order")
class OrderEmailsHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        _notify(sending.send_order_confirmation, event.order_id, "OrderPlaced")

    @handle(OrderShipped)
    def on_order_shipped(self, event: OrderShipped) -> None:
        _notify(sending.send_order_shipped, event.order_id, "OrderShipped")

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        _notify(sending.send_order_delivered, event.order_id, "OrderDelivered")

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        _notify(sending.send_order_cancelled, event.order_id, "OrderCancelled")


@storefront.event_handler(part_of=Email, stream_category="storefront::product")
class LowStockAlertHandler:
    @handle(ProductStockChanged)
    def on_stock_changed(self, event: ProductStockChanged) -> None:
        threshold = low_stock_threshold()
        # Alert once, when stock crosses the threshold
        if not (event.previous_stock > threshold >= event.new_stock):
            return

        recipient = os.environ.get("LOW_STOCK_ALERT_EMAIL")
        if not recipient:
            logger.debug("LOW_STOCK_ALERT_EMAIL not set, skipping alert", product_id=str(event.product_id))
            return

        try:
            product = current_domain.repository_for(Product).get(event.product_id)
            sending.send_low_stock_alert(product, recipient)
        except (ObjectNotFoundError, ValidationError) as exc:
            logger.warning("Low stock alert not sent", product_id=str(event.product_id), error=str(exc))
