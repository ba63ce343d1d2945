"""Stripe adapter (production stub); the stripe-python SDK plugs in here."""

from storefront.payments.gateway.port import ChargeResult, PaymentGateway, RefundResult


class StripeGateway(PaymentGateway):
    provider = "stripe"

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method: str,
        order_reference: str,
        idempotency_key: str,
    ) -> ChargeResult:
        raise NotImplementedError("StripeGateway.create_charge() needs a PaymentIntent integration")

    def create_refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        raise NotImplementedError("StripeGateway.create_refund() needs a Refund integration")

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        raise NotImplementedError("StripeGateway.verify_webhook_signature() should use stripe.Webhook.construct_event()")
