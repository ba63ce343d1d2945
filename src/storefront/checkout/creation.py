"""Opening a checkout session from the buyer's active cart."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.checkout.session import CheckoutSession
from storefront.domain import storefront
from storefront.orders.quote import quote_cart
from storefront.orders.stock import check_stock
from storefront.payments.payment import ONLINE_PAYMENT_METHODS, PaymentMethod
from storefront.shared.address import address_from
from storefront.shipping.rates import validate_shipping_address

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CheckoutSession")
class CreateCheckoutSession:
    user_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON object
    billing_address = Text()  # JSON object, defaults to the shipping address
    payment_method = String(required=True, max_length=30)
    tax_rate = Float(default=0.0)
    shipping_method_id = Identifier()
    coupon_code = String(max_length=50)
    notes = Text()


@storefront.command_handler(part_of=CheckoutSession)
class CheckoutCreationHandler:
    @handle(CreateCheckoutSession)
    def create_checkout_session(self, command):
        if command.payment_method == PaymentMethod.CASH.value:
            raise ValidationError({"payment_method": ["Cash on delivery orders are placed directly"]})
        if command.payment_method not in ONLINE_PAYMENT_METHODS:
            raise ValidationError({"payment_method": [f"Unsupported payment method: {command.payment_method}"]})

        shipping_address = address_from(command.shipping_address)
        missing = validate_shipping_address(shipping_address)
        if missing:
            raise ValidationError({"shipping_address": [f"Missing address fields: {', '.join(missing)}"]})

        cart = current_domain.repository_for(ShoppingCart).active_for_user(command.user_id)
        if cart is None:
            raise ValidationError({"cart": ["No active cart found"]})
        if cart.is_empty():
            raise ValidationError({"cart": ["Cart is empty"]})

        quote = quote_cart(
            cart,
            tax_rate=command.tax_rate,
            shipping_method_id=command.shipping_method_id,
            coupon_code=command.coupon_code,
            user_id=command.user_id,
        )
        check_stock(quote.items, user_id=command.user_id)

        session = CheckoutSession.open(
            user_id=command.user_id,
            cart_id=cart.id,
            items=quote.items,
            quote=quote,
            shipping_address=shipping_address,
            billing_address=address_from(command.billing_address),
            payment_method=command.payment_method,
            tax_rate=command.tax_rate,
            shipping_method_id=command.shipping_method_id,
            notes=command.notes,
        )
        current_domain.repository_for(CheckoutSession).add(session)

        logger.info(
            "Checkout session opened",
            session_id=session.session_id,
            user_id=str(command.user_id),
            total=session.total,
        )
        return session.session_id
