"""Domain events for checkout sessions."""

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="CheckoutSession")
class CheckoutStarted:
    __version__ = 1

    checkout_id = Identifier(required=True)
    session_id = String(required=True)
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    total = Float(required=True)
    expires_at = DateTime(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutCompleted:
    __version__ = 1

    checkout_id = Identifier(required=True)
    session_id = String(required=True)
    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutExpired:
    __version__ = 1

    checkout_id = Identifier(required=True)
    session_id = String(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutCancelled:
    __version__ = 1

    checkout_id = Identifier(required=True)
    session_id = String(required=True)
