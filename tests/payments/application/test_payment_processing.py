"""Application tests for charging orders through the gateway and refunding them."""

import pytest
from protean import current_domain
from protean.exceptions import InvalidOperationError, ValidationError

from storefront.orders.order import Order, OrderStatus, PaymentStatus
from storefront.payments.gateway import get_gateway
from storefront.payments.payment import Payment, PaymentState
from storefront.payments.processing import ProcessPayment, RefundPayment


@pytest.fixture
def pending_order():
    order = Order.place(
        order_number="ORD-20260101-000000-2000",
        user_id="user-1",
        items=[{"product_id": "prod-1", "quantity": 2, "price": 25.0}],
        subtotal=50.0,
    )
    current_domain.repository_for(Order).add(order)
    return order


def _pay(order, method="credit_card"):
    return current_domain.process(ProcessPayment(order_id=order.id, method=method), asynchronous=False)


def _order(order):
    return current_domain.repository_for(Order).get(order.id)


class TestProcessPayment:
    def test_successful_charge_confirms_order(self, pending_order):
        result = _pay(pending_order)

        assert result["status"] == PaymentState.COMPLETED.value
        order = _order(pending_order)
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.status == OrderStatus.CONFIRMED.value

        [call] = get_gateway().calls
        assert call["amount"] == 50.0
        assert call["order_reference"] == pending_order.order_number
        assert call["idempotency_key"] == result["payment_id"]

    def test_declined_charge_is_recorded(self, pending_order):
        get_gateway().configure(should_succeed=False, failure_reason="Insufficient funds")

        result = _pay(pending_order)

        assert result["status"] == PaymentState.FAILED.value
        assert result["failure_reason"] == "Insufficient funds"
        order = _order(pending_order)
        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.status == OrderStatus.PENDING.value
        payment = current_domain.repository_for(Payment).get(result["payment_id"])
        assert payment.failure_reason == "Insufficient funds"

    def test_failed_order_can_be_retried(self, pending_order):
        get_gateway().configure(should_succeed=False)
        _pay(pending_order)
        get_gateway().configure(should_succeed=True)
        _pay(pending_order)

        assert _order(pending_order).is_paid()
        assert len(current_domain.repository_for(Payment).for_order(pending_order.id)) == 2

    def test_paid_order_is_not_charged_again(self, pending_order):
        _pay(pending_order)
        with pytest.raises(InvalidOperationError):
            _pay(pending_order)

    def test_cash_goes_around_the_gateway(self, pending_order):
        with pytest.raises(ValidationError):
            _pay(pending_order, method="cash")
        assert get_gateway().calls == []

    def test_cancelled_order_is_not_charged(self, pending_order):
        order = _order(pending_order)
        order.cancel()
        current_domain.repository_for(Order).add(order)
        with pytest.raises(InvalidOperationError):
            _pay(pending_order)


class TestRefundPayment:
    def _refund(self, payment_id, amount):
        return current_domain.process(
            RefundPayment(payment_id=payment_id, amount=amount, reason="damaged"),
            asynchronous=False,
        )

    def test_full_refund(self, pending_order):
        payment_id = _pay(pending_order)["payment_id"]

        refund_id = self._refund(payment_id, 50.0)

        assert refund_id.startswith("fake_ref_")
        assert current_domain.repository_for(Payment).get(payment_id).status == PaymentState.REFUNDED.value
        assert _order(pending_order).payment_status == PaymentStatus.REFUNDED.value

    def test_partial_refund_keeps_order_paid(self, pending_order):
        payment_id = _pay(pending_order)["payment_id"]
        self._refund(payment_id, 20.0)

        assert current_domain.repository_for(Payment).get(payment_id).refunded_amount == 20.0
        assert _order(pending_order).payment_status == PaymentStatus.PAID.value

    def test_gateway_refusal_changes_nothing(self, pending_order):
        payment_id = _pay(pending_order)["payment_id"]
        get_gateway().configure(should_succeed=False, failure_reason="Refund window closed")

        with pytest.raises(InvalidOperationError):
            self._refund(payment_id, 50.0)
        assert current_domain.repository_for(Payment).get(payment_id).refunded_amount == 0.0
