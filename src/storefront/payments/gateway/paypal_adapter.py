"""PayPal adapter (production stub) for the Orders v2 REST API."""

from storefront.payments.gateway.port import ChargeResult, PaymentGateway, RefundResult


class PayPalGateway(PaymentGateway):
    provider = "paypal"

    def __init__(self, client_id: str, client_secret: str, sandbox: bool = True) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.sandbox = sandbox

    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method: str,
        order_reference: str,
        idempotency_key: str,
    ) -> ChargeResult:
        raise NotImplementedError("PayPalGateway.create_charge() needs an order create-and-capture integration")

    def create_refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        raise NotImplementedError("PayPalGateway.create_refund() needs a captures refund integration")

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        raise NotImplementedError("PayPalGateway.verify_webhook_signature() needs the verify-webhook-signature call")
