"""Periodic cleanup: expired reservations, unpaid orders and stale carts.

Each sweep finds its candidates and dispatches one command per item, so a
failure on one item is logged and the rest still go through. Sweeps only
touch records that are still active, which makes re-running them a no-op.
"""

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.inventory.reservation import StockReservation
from storefront.shared.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)

DEFAULT_ORDER_BATCH_SIZE = 100

_SKIPPABLE = (ValidationError, InvalidOperationError, ObjectNotFoundError)


@storefront.command(part_of="StockReservation")
class ExpireReservation:
    reservation_id = Identifier(required=True)


@storefront.command(part_of="StockReservation")
class CleanupExpiredReservations:
    as_of = DateTime()  # Defaults to now


@storefront.command(part_of="StockReservation")
class CleanupExpiredOrders:
    as_of = DateTime()
    batch_size = Integer(default=DEFAULT_ORDER_BATCH_SIZE, min_value=1)


@storefront.command(part_of="StockReservation")
class CleanupExpiredCarts:
    as_of = DateTime()


def _as_of(command):
    return as_utc(command.as_of) if command.as_of else utcnow()


@storefront.command_handler(part_of=StockReservation)
class CleanupHandler:
    @handle(ExpireReservation)
    def expire_reservation(self, command):
        repo = current_domain.repository_for(StockReservation)
        reservation = repo.get(command.reservation_id)
        reservation.mark_expired()
        repo.add(reservation)

    @handle(CleanupExpiredReservations)
    def cleanup_reservations(self, command):
        as_of = _as_of(command)
        logger.info("Checking for expired reservations", as_of=as_of.isoformat())

        expired = [r for r in current_domain.repository_for(StockReservation).active() if r.is_expired(as_of)]
        if not expired:
            logger.info("No expired reservations found")
            return 0

        count = 0
        for reservation in expired:
            try:
                current_domain.process(ExpireReservation(reservation_id=str(reservation.id)), asynchronous=False)
                count += 1
            except _SKIPPABLE as exc:
                logger.warning("Failed to expire reservation", reservation_id=str(reservation.id), error=str(exc))

        logger.info("Expired reservation cleanup complete", expired_count=count)
        return count

    @handle(CleanupExpiredOrders)
    def cleanup_orders(self, command):
        from storefront.orders.management import CancelOrder
        from storefront.orders.order import Order

        as_of = _as_of(command)
        candidates = current_domain.repository_for(Order).awaiting_payment(
            limit=command.batch_size or DEFAULT_ORDER_BATCH_SIZE
        )
        overdue = [o for o in candidates if o.is_payment_expired(as_of)]
        if not overdue:
            return 0

        count = 0
        for order in overdue:
            try:
                current_domain.process(
                    CancelOrder(order_id=str(order.id), reason="payment_timeout"),
                    asynchronous=False,
                )
                count += 1
            except _SKIPPABLE as exc:
                logger.warning("Failed to cancel unpaid order", order_id=str(order.id), error=str(exc))

        logger.info("Unpaid order cleanup complete", cancelled_count=count)
        return count

    @handle(CleanupExpiredCarts)
    def cleanup_carts(self, command):
        from storefront.cart.cart import ShoppingCart
        from storefront.cart.management import ExpireCart

        as_of = _as_of(command)
        stale = [c for c in current_domain.repository_for(ShoppingCart).active() if c.is_expired(as_of)]

        count = 0
        for cart in stale:
            try:
                current_domain.process(ExpireCart(cart_id=str(cart.id)), asynchronous=False)
                count += 1
            except _SKIPPABLE as exc:
                logger.warning("Failed to expire cart", cart_id=str(cart.id), error=str(exc))

        if count:
            logger.info("Expired cart cleanup complete", expired_count=count)
        return count


def run_cleanup(as_of=None) -> dict:
    """One full cleanup pass. Each sweep runs even if an earlier one blew up."""
    results = {}
    for name, command in (
        ("reservations", CleanupExpiredReservations(as_of=as_of)),
        ("orders", CleanupExpiredOrders(as_of=as_of)),
        ("carts", CleanupExpiredCarts(as_of=as_of)),
    ):
        try:
            results[name] = current_domain.process(command, asynchronous=False)
        except Exception:
            logger.exception("Cleanup sweep failed", sweep=name)
            results[name] = None
    return results
