"""Charging orders through the payment gateway and refunding them."""

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.orders.order import Order, OrderStatus
from storefront.payments.gateway import get_gateway
from storefront.payments.payment import ONLINE_PAYMENT_METHODS, Payment, PaymentMethod

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Payment")
class ProcessPayment:
    order_id = Identifier(required=True)
    method = String(required=True, max_length=30)


@storefront.command(part_of="Payment")
class RefundPayment:
    payment_id = Identifier(required=True)
    amount = Float(required=True)
    reason = String(max_length=255)


@storefront.command_handler(part_of=Payment)
class PaymentProcessingHandler:
    @handle(ProcessPayment)
    def process_payment(self, command):
        """Charge the order once; a declined charge is recorded, not retried.

        Returns a dict with ``payment_id``, ``status`` and ``failure_reason``.
        """
        if command.method == PaymentMethod.CASH.value:
            raise ValidationError({"method": ["Cash orders are paid on delivery, not through the gateway"]})
        if command.method not in ONLINE_PAYMENT_METHODS:
            raise ValidationError({"method": [f"Unsupported payment method: {command.method}"]})

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)
        if order.is_paid():
            raise InvalidOperationError(f"Order {order.order_number} is already paid")
        if order.status == OrderStatus.CANCELLED.value:
            raise InvalidOperationError(f"Order {order.order_number} is cancelled")

        gateway = get_gateway()
        payment = Payment.start(order.id, order.total, order.currency, command.method, gateway.provider)
        result = gateway.create_charge(
            amount=order.total,
            currency=order.currency,
            payment_method=command.method,
            order_reference=order.order_number,
            idempotency_key=str(payment.id),
        )

        if result.success:
            payment.complete(result.transaction_id)
            order.mark_paid(payment_method=command.method, transaction_id=result.transaction_id)
            logger.info("Payment succeeded", order_id=str(order.id), payment_id=str(payment.id), amount=payment.amount)
        else:
            payment.fail(result.failure_reason)
            order.mark_payment_failed(result.failure_reason)
            logger.warning(
                "Payment failed",
                order_id=str(order.id),
                payment_id=str(payment.id),
                reason=result.failure_reason,
            )

        current_domain.repository_for(Payment).add(payment)
        order_repo.add(order)
        return {"payment_id": str(payment.id), "status": payment.status, "failure_reason": payment.failure_reason}

    @handle(RefundPayment)
    def refund_payment(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.refund(command.amount, command.reason)

        result = get_gateway().create_refund(payment.transaction_id, command.amount, command.reason or "")
        if not result.success:
            raise InvalidOperationError(f"Refund failed: {result.failure_reason}")
        repo.add(payment)

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(payment.order_id)
        order.mark_refunded(command.amount, fully_refunded=payment.refundable_amount <= 0)
        order_repo.add(order)

        logger.info(
            "Payment refunded",
            payment_id=str(payment.id),
            amount=command.amount,
            refunded_total=payment.refunded_amount,
        )
        return result.refund_id
