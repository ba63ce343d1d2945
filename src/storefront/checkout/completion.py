"""Turning a paid checkout session into an order.

Completion runs in one unit of work:

1. the session must be active and unexpired
2. stock is checked again
3. the order is recorded as confirmed and paid
4. stock is deducted
5. the session is completed
6. the cart is emptied and converted

A failure in steps 2-5 rolls everything back. Step 6 is best effort. A
session found expired is marked so and the completion is refused.
"""

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.checkout.session import CheckoutSession, CheckoutStatus
from storefront.coupons.redemption import redeem_coupon
from storefront.domain import storefront
from storefront.inventory.reservation import ReservationType
from storefront.inventory.reservations import release_holds
from storefront.orders.numbers import generate_order_number
from storefront.orders.order import Order, OrderStatus, PaymentStatus
from storefront.orders.stock import check_stock, deduct_stock
from storefront.shared.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CheckoutSession")
class CompleteCheckoutSession:
    session_id = String(required=True, max_length=100)
    payment_id = String(max_length=255)


@storefront.command(part_of="CheckoutSession")
class CancelCheckoutSession:
    session_id = String(required=True, max_length=100)


@storefront.command(part_of="CheckoutSession")
class ExpireCheckoutSessions:
    as_of = DateTime()


def complete_checkout(session_id, payment_id=None) -> str:
    """Complete a checkout session and return the new order's id."""
    order_id = current_domain.process(
        CompleteCheckoutSession(session_id=session_id, payment_id=payment_id),
        asynchronous=False,
    )
    if order_id is None:
        raise InvalidOperationError(f"Checkout session {session_id} has expired")
    return order_id


@storefront.command_handler(part_of=CheckoutSession)
class CheckoutCompletionHandler:
    @handle(CompleteCheckoutSession)
    def complete(self, command):
        """Returns the order id, or ``None`` when the session had expired."""
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get_by_session_id(command.session_id)

        if session.status == CheckoutStatus.ACTIVE.value and session.is_expired():
            session.expire()
            repo.add(session)
            logger.warning("Checkout session expired before completion", session_id=session.session_id)
            return None
        if not session.can_be_completed():
            raise InvalidOperationError(f"Checkout session {session.session_id} is {session.status}")

        items = session.item_list
        check_stock(items, user_id=session.user_id)

        order = Order.place(
            order_number=generate_order_number(),
            user_id=session.user_id,
            items=items,
            subtotal=session.subtotal,
            tax_amount=session.tax_amount,
            shipping_amount=session.shipping_amount,
            discount_amount=session.discount_amount,
            total=session.total,
            currency=session.currency,
            status=OrderStatus.CONFIRMED.value,
            payment_status=PaymentStatus.PAID.value,
            payment_method=session.payment_method,
            shipping_address=session.shipping_address,
            billing_address=session.billing_address,
            notes=session.notes,
            coupon_code=session.coupon_code,
            checkout_session_id=session.session_id,
        )
        deduct_stock(order)
        current_domain.repository_for(Order).add(order)

        if session.coupon_code:
            redeem_coupon(session.coupon_code, session.user_id, order.id, session.subtotal)

        session.complete(order.id, payment_id=command.payment_id)
        repo.add(session)

        self._close_cart(session)

        logger.info(
            "Checkout completed",
            session_id=session.session_id,
            order_id=str(order.id),
            order_number=order.order_number,
            total=order.total,
        )
        return str(order.id)

    def _close_cart(self, session):
        try:
            cart_repo = current_domain.repository_for(ShoppingCart)
            cart = cart_repo.get(session.cart_id)
            cart.clear()
            cart.mark_converted()
            cart_repo.add(cart)
            release_holds(
                user_id=session.user_id,
                reservation_type=ReservationType.CART.value,
                reason="checkout_completed",
            )
        except (ObjectNotFoundError, ValidationError, InvalidOperationError) as exc:
            logger.warning("Could not clear cart after checkout", cart_id=str(session.cart_id), error=str(exc))

    @handle(CancelCheckoutSession)
    def cancel(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get_by_session_id(command.session_id)
        session.cancel()
        repo.add(session)

    @handle(ExpireCheckoutSessions)
    def expire_stale(self, command):
        as_of = as_utc(command.as_of) if command.as_of else utcnow()
        repo = current_domain.repository_for(CheckoutSession)
        expired = 0
        for session in repo.stale(as_of):
            session.expire()
            repo.add(session)
            expired += 1
        if expired:
            logger.info("Expired stale checkout sessions", count=expired, as_of=as_of.isoformat())
        return expired
