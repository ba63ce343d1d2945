"""Payment aggregate: one attempt to collect money for an order."""

from enum import Enum

from protean import invariant
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront
from storefront.payments.events import PaymentFailed, PaymentRefunded, PaymentSucceeded
from storefront.shared.clock import utcnow
from storefront.shared.money import MONEY_EPSILON, round_money


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    APPLE_PAY = "apple_pay"
    GOOGLE_PAY = "google_pay"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"


# Methods that can be charged online; cash is settled on delivery
ONLINE_PAYMENT_METHODS = frozenset(m.value for m in PaymentMethod if m != PaymentMethod.CASH)


class PaymentState(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


@storefront.aggregate
class Payment:
    order_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    method = String(choices=PaymentMethod, required=True)
    provider = String(max_length=50)
    status = String(choices=PaymentState, default=PaymentState.PENDING.value)
    transaction_id = String(max_length=255)
    failure_reason = String(max_length=500)
    refunded_amount = Float(default=0.0, min_value=0.0)
    processed_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def refunds_cannot_exceed_amount(self):
        if (self.refunded_amount or 0) - (self.amount or 0) > MONEY_EPSILON:
            raise ValidationError({"refunded_amount": ["Refunds cannot exceed the amount paid"]})

    @classmethod
    def start(cls, order_id, amount, currency, method, provider):
        now = utcnow()
        return cls(
            order_id=order_id,
            amount=round_money(amount),
            currency=currency,
            method=method,
            provider=provider,
            created_at=now,
            updated_at=now,
        )

    @property
    def refundable_amount(self) -> float:
        return round_money((self.amount or 0) - (self.refunded_amount or 0))

    def complete(self, transaction_id):
        self._ensure_status(PaymentState.PENDING, "complete")
        now = utcnow()
        self.status = PaymentState.COMPLETED.value
        self.transaction_id = transaction_id
        self.processed_at = now
        self.updated_at = now
        self.raise_(
            PaymentSucceeded(
                payment_id=self.id,
                order_id=self.order_id,
                amount=self.amount,
                currency=self.currency,
                method=self.method,
                transaction_id=transaction_id,
                succeeded_at=now,
            )
        )

    def fail(self, reason):
        self._ensure_status(PaymentState.PENDING, "fail")
        now = utcnow()
        self.status = PaymentState.FAILED.value
        self.failure_reason = reason
        self.processed_at = now
        self.updated_at = now
        self.raise_(PaymentFailed(payment_id=self.id, order_id=self.order_id, reason=reason, failed_at=now))

    def refund(self, amount, reason=None):
        self._ensure_status(PaymentState.COMPLETED, "refund")
        if amount <= 0:
            raise ValidationError({"amount": ["Refund amount must be positive"]})
        if amount - self.refundable_amount > MONEY_EPSILON:
            raise ValidationError(
                {"amount": [f"Refund of {amount:.2f} exceeds the remaining {self.refundable_amount:.2f}"]}
            )

        now = utcnow()
        self.refunded_amount = round_money((self.refunded_amount or 0) + amount)
        if self.refundable_amount <= 0:
            self.status = PaymentState.REFUNDED.value
        self.updated_at = now
        self.raise_(
            PaymentRefunded(
                payment_id=self.id,
                order_id=self.order_id,
                amount=amount,
                refunded_amount=self.refunded_amount,
                reason=reason,
                refunded_at=now,
            )
        )

    def _ensure_status(self, expected, action):
        if self.status != expected.value:
            raise InvalidOperationError(f"Cannot {action} a payment in status {self.status}")


@storefront.repository(part_of=Payment)
class PaymentRepository:
    def for_order(self, order_id) -> list[Payment]:
        return self._dao.query.filter(order_id=str(order_id)).all().items
