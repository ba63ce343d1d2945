"""Cash-on-delivery orders.

A COD order is placed straight from the cart with payment
``awaiting_payment``. Stock is checked but not deducted; the buyer has
24 hours before the order counts as unpaid and is swept by cleanup.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.coupons.redemption import redeem_coupon
from storefront.domain import storefront
from storefront.inventory.reservation import ReservationType
from storefront.inventory.reservations import release_holds
from storefront.orders.numbers import generate_order_number
from storefront.orders.order import Order, OrderStatus, PaymentStatus, payment_deadline
from storefront.orders.quote import quote_cart
from storefront.orders.stock import check_stock
from storefront.shared.address import address_from

logger = structlog.get_logger(__name__)

CASH_PAYMENT_METHOD = "cash"


@storefront.command(part_of="Order")
class CreateCodOrder:
    user_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON object
    billing_address = Text()  # JSON object, defaults to the shipping address
    tax_rate = Float(default=0.0)
    shipping_method_id = Identifier()
    coupon_code = String(max_length=50)
    notes = Text()


@storefront.command_handler(part_of=Order)
class CashOnDeliveryHandler:
    @handle(CreateCodOrder)
    def create_cod_order(self, command):
        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.active_for_user(command.user_id)
        if cart is None or cart.is_empty():
            raise ValidationError({"cart": ["Cart is empty"]})

        shipping_address = address_from(command.shipping_address)
        if shipping_address is None:
            raise ValidationError({"shipping_address": ["Shipping address is required"]})

        quote = quote_cart(
            cart,
            tax_rate=command.tax_rate,
            shipping_method_id=command.shipping_method_id,
            coupon_code=command.coupon_code,
            user_id=command.user_id,
        )
        check_stock(quote.items, user_id=command.user_id)

        order = Order.place(
            order_number=generate_order_number(),
            user_id=command.user_id,
            items=quote.items,
            subtotal=quote.subtotal,
            tax_amount=quote.tax_amount,
            shipping_amount=quote.shipping_amount,
            discount_amount=quote.discount_amount,
            total=quote.total,
            currency=quote.currency,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.AWAITING_PAYMENT.value,
            payment_method=CASH_PAYMENT_METHOD,
            shipping_address=shipping_address,
            billing_address=address_from(command.billing_address) or shipping_address,
            notes=command.notes,
            coupon_code=quote.coupon_code,
            payment_timeout=payment_deadline(),
        )
        current_domain.repository_for(Order).add(order)

        if quote.coupon_code:
            redeem_coupon(quote.coupon_code, user_id=command.user_id, order_id=order.id, order_total=quote.subtotal)

        cart.clear()
        cart.mark_converted()
        cart_repo.add(cart)
        release_holds(user_id=command.user_id, reservation_type=ReservationType.CART.value, reason="order_placed")

        logger.info(
            "Cash on delivery order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=order.total,
        )
        return str(order.id)
