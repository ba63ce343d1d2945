"""Payment gateway factory.

``PAYMENT_GATEWAY`` picks the adapter: ``fake`` (default), ``stripe`` or
``paypal``. Tests swap implementations with ``set_gateway``.
"""

import os

from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.paypal_adapter import PayPalGateway
from storefront.payments.gateway.port import PaymentGateway
from storefront.payments.gateway.stripe_adapter import StripeGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    choice = os.environ.get("PAYMENT_GATEWAY", "fake").lower()
    if choice == "fake":
        return FakeGateway()
    if choice == "stripe":
        return StripeGateway(
            api_key=os.environ.get("STRIPE_API_KEY", ""),
            webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET", ""),
        )
    if choice == "paypal":
        return PayPalGateway(
            client_id=os.environ.get("PAYPAL_CLIENT_ID", ""),
            client_secret=os.environ.get("PAYPAL_CLIENT_SECRET", ""),
            sandbox=os.environ.get("PAYPAL_SANDBOX", "true").lower() == "true",
        )
    raise ValueError(f"Unknown payment gateway: {choice}")


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
