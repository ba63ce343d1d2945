"""Configurable fake payment gateway for development and tests.

No external calls are made. Tests flip it to failure with ``configure`` and
inspect ``calls`` to see what the domain asked for.
"""

from uuid import uuid4

from storefront.payments.gateway.port import ChargeResult, PaymentGateway, RefundResult


class FakeGateway(PaymentGateway):
    provider = "fake"

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method: str,
        order_reference: str,
        idempotency_key: str,
    ) -> ChargeResult:
        self.calls.append(
            {
                "method": "create_charge",
                "amount": amount,
                "currency": currency,
                "payment_method": payment_method,
                "order_reference": order_reference,
                "idempotency_key": idempotency_key,
            }
        )
        if self.should_succeed:
            return ChargeResult(success=True, transaction_id=f"fake_txn_{uuid4().hex[:12]}", status="succeeded")
        return ChargeResult(success=False, status="failed", failure_reason=self.failure_reason)

    def create_refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        self.calls.append(
            {"method": "create_refund", "transaction_id": transaction_id, "amount": amount, "reason": reason}
        )
        if self.should_succeed:
            return RefundResult(success=True, refund_id=f"fake_ref_{uuid4().hex[:12]}", status="succeeded")
        return RefundResult(success=False, status="failed", failure_reason=self.failure_reason)

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"
