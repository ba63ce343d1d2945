"""Order management: status changes, cancellation and payment capture."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.inventory.reservations import release_holds
from storefront.orders.order import Order
from storefront.orders.stock import restore_stock

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=30)
    tracking_number = String(max_length=100)
    carrier = String(max_length=100)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)
    payment_method = String(max_length=50)
    transaction_id = String(max_length=255)


def cancel_order(order, reason=None):
    """Cancel ``order`` and hand back whatever stock it holds."""
    order.cancel(reason)
    restored = restore_stock(order)
    released = 0
    if not restored:
        released = release_holds(order_id=order.id, reason="order_cancelled")
    logger.info(
        "Order cancelled",
        order_id=str(order.id),
        order_number=order.order_number,
        reason=reason,
        lines_restored=restored,
        reservations_released=released,
    )


@storefront.command_handler(part_of=Order)
class ManageOrderHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if command.tracking_number:
            order.tracking_number = command.tracking_number
        if command.carrier:
            order.carrier = command.carrier
        order.transition_to(command.status)
        repo.add(order)

    @handle(CancelOrder)
    def cancel(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        cancel_order(order, command.reason)
        repo.add(order)

    @handle(MarkOrderPaid)
    def mark_paid(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_paid(payment_method=command.payment_method, transaction_id=command.transaction_id)
        repo.add(order)
