"""Order aggregate: a confirmed purchase and its fulfilment lifecycle.

Status machine:

    pending -> confirmed | cancelled
    confirmed -> processing | cancelled
    processing -> ready_to_ship | cancelled
    ready_to_ship -> shipped | cancelled
    shipped -> out_for_delivery | delivered | returned
    out_for_delivery -> delivered | returned
    delivered -> returned | exchanged | refunded

cancelled, refunded, returned and exchanged are terminal. Payment progress is
tracked separately in ``payment_status``.
"""

import json
from datetime import timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.orders.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
    OrderRefunded,
    OrderShipped,
    OrderStatusChanged,
)
from storefront.shared.address import Address
from storefront.shared.clock import as_utc, utcnow
from storefront.shared.money import SUPPORTED_CURRENCIES, money_equal, round_money

PAYMENT_TIMEOUT = timedelta(hours=24)


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    READY_TO_SHIP = "ready_to_ship"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    RETURNED = "returned"
    EXCHANGED = "exchanged"


class PaymentStatus(Enum):
    PENDING = "pending"
    AWAITING_PAYMENT = "awaiting_payment"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.READY_TO_SHIP, OrderStatus.CANCELLED},
    OrderStatus.READY_TO_SHIP: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED, OrderStatus.EXCHANGED, OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
    OrderStatus.RETURNED: set(),
    OrderStatus.EXCHANGED: set(),
}

_NOT_CANCELLABLE = {
    OrderStatus.SHIPPED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
    OrderStatus.RETURNED,
    OrderStatus.EXCHANGED,
}


@storefront.entity(part_of="Order")
class OrderItem:
    """A purchased line, copied from the cart or checkout snapshot."""

    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    product_sku = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    total = Float(required=True, min_value=0.0)


@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    subtotal = Float(default=0.0)
    tax_amount = Float(default=0.0)
    shipping_amount = Float(default=0.0)
    discount_amount = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="USD")
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(max_length=50)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    notes = Text()
    coupon_code = String(max_length=50)
    checkout_session_id = String(max_length=100)
    stock_committed = Boolean(default=False)  # Stock was deducted for this order
    payment_timeout = DateTime()
    tracking_number = String(max_length=100)
    carrier = String(max_length=100)
    cancellation_reason = String(max_length=500)
    processed_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def currency_must_be_supported(self):
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})

    @invariant.post
    def total_must_match_breakdown(self):
        expected = max(
            0.0,
            (self.subtotal or 0) + (self.tax_amount or 0) + (self.shipping_amount or 0) - (self.discount_amount or 0),
        )
        if not money_equal(self.total, expected):
            raise ValidationError({"total": ["Order total does not match subtotal, tax, shipping and discount"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        user_id,
        items,
        subtotal,
        tax_amount=0.0,
        shipping_amount=0.0,
        discount_amount=0.0,
        total=None,
        currency="USD",
        status=OrderStatus.PENDING.value,
        payment_status=PaymentStatus.PENDING.value,
        payment_method=None,
        shipping_address=None,
        billing_address=None,
        notes=None,
        coupon_code=None,
        checkout_session_id=None,
        payment_timeout=None,
    ):
        """Record a new order.

        ``items`` is a list of dicts with product_id, product_name,
        product_sku, quantity and price.
        """
        if not items:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        now = utcnow()
        if total is None:
            total = max(0.0, subtotal + tax_amount + shipping_amount - discount_amount)

        order = cls(
            order_number=order_number,
            user_id=user_id,
            items=[
                OrderItem(
                    product_id=item["product_id"],
                    product_name=item.get("product_name"),
                    product_sku=item.get("product_sku"),
                    quantity=item["quantity"],
                    price=item["price"],
                    total=round_money(item["price"] * item["quantity"]),
                )
                for item in items
            ],
            subtotal=round_money(subtotal),
            tax_amount=round_money(tax_amount),
            shipping_amount=round_money(shipping_amount),
            discount_amount=round_money(discount_amount),
            total=round_money(total),
            currency=currency,
            status=status,
            payment_status=payment_status,
            payment_method=payment_method,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            notes=notes,
            coupon_code=coupon_code,
            checkout_session_id=checkout_session_id,
            payment_timeout=payment_timeout,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=order.id,
                order_number=order.order_number,
                user_id=order.user_id,
                items=json.dumps(
                    [
                        {
                            "product_id": str(i.product_id),
                            "product_name": i.product_name,
                            "quantity": i.quantity,
                            "price": i.price,
                        }
                        for i in order.items
                    ]
                ),
                total=order.total,
                currency=order.currency,
                status=order.status,
                payment_status=order.payment_status,
                payment_method=order.payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    def can_transition_to(self, new_status) -> bool:
        target = OrderStatus(new_status)
        return target in _VALID_TRANSITIONS[OrderStatus(self.status)]

    def can_be_cancelled(self) -> bool:
        return OrderStatus(self.status) not in _NOT_CANCELLABLE

    def can_be_refunded(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value and self.status not in (
            OrderStatus.CANCELLED.value,
            OrderStatus.REFUNDED.value,
            OrderStatus.RETURNED.value,
        )

    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    def is_payment_expired(self, now=None) -> bool:
        if self.payment_timeout is None:
            return False
        return (now or utcnow()) > as_utc(self.payment_timeout)

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def transition_to(self, new_status):
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]})

        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidOperationError(f"Cannot transition order from {current.value} to {target.value}")

        now = utcnow()
        self.status = target.value
        self.updated_at = now
        if target == OrderStatus.PROCESSING and self.processed_at is None:
            self.processed_at = now
        elif target == OrderStatus.SHIPPED and self.shipped_at is None:
            self.shipped_at = now
        elif target == OrderStatus.DELIVERED and self.delivered_at is None:
            self.delivered_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=self.id,
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )
        if target == OrderStatus.SHIPPED:
            self.raise_(
                OrderShipped(
                    order_id=self.id,
                    order_number=self.order_number,
                    user_id=self.user_id,
                    tracking_number=self.tracking_number,
                    carrier=self.carrier,
                    shipped_at=now,
                )
            )
        elif target == OrderStatus.DELIVERED:
            self.raise_(
                OrderDelivered(
                    order_id=self.id,
                    order_number=self.order_number,
                    user_id=self.user_id,
                    delivered_at=now,
                )
            )

    def ship(self, tracking_number=None, carrier=None):
        """Hand the order to a carrier, stepping through ``ready_to_ship`` if needed."""
        if self.status == OrderStatus.PROCESSING.value:
            self.transition_to(OrderStatus.READY_TO_SHIP.value)
        self.tracking_number = tracking_number
        self.carrier = carrier
        self.transition_to(OrderStatus.SHIPPED.value)

    def cancel(self, reason=None):
        if not self.can_be_cancelled():
            raise InvalidOperationError(f"Order in status {self.status} cannot be cancelled")

        now = utcnow()
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.transition_to(OrderStatus.CANCELLED.value)
        self.raise_(
            OrderCancelled(
                order_id=self.id,
                order_number=self.order_number,
                user_id=self.user_id,
                reason=reason,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def mark_paid(self, payment_method=None, transaction_id=None):
        if self.payment_status == PaymentStatus.PAID.value:
            raise InvalidOperationError("Order is already paid")
        if self.status in (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value):
            raise InvalidOperationError(f"Cannot take payment for an order in status {self.status}")

        now = utcnow()
        self.payment_status = PaymentStatus.PAID.value
        if payment_method:
            self.payment_method = payment_method
        self.payment_timeout = None
        self.updated_at = now
        if self.status == OrderStatus.PENDING.value:
            self.transition_to(OrderStatus.CONFIRMED.value)

        self.raise_(
            OrderPaid(
                order_id=self.id,
                order_number=self.order_number,
                amount=self.total,
                payment_method=self.payment_method,
                transaction_id=transaction_id,
                paid_at=now,
            )
        )

    def mark_payment_failed(self, reason=None):
        self.payment_status = PaymentStatus.FAILED.value
        self.updated_at = utcnow()
        self.raise_(OrderPaymentFailed(order_id=self.id, reason=reason))

    def mark_refunded(self, amount, fully_refunded=True):
        now = utcnow()
        if fully_refunded:
            self.payment_status = PaymentStatus.REFUNDED.value
            if self.status == OrderStatus.DELIVERED.value:
                self.transition_to(OrderStatus.REFUNDED.value)
        self.updated_at = now
        self.raise_(
            OrderRefunded(
                order_id=self.id,
                amount=amount,
                fully_refunded=fully_refunded,
                refunded_at=now,
            )
        )


def payment_deadline(now=None):
    return (now or utcnow()) + PAYMENT_TIMEOUT


@storefront.repository(part_of=Order)
class OrderRepository:
    def by_number(self, order_number) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def number_exists(self, order_number) -> bool:
        return self.by_number(order_number) is not None

    def for_user(self, user_id) -> list[Order]:
        return self._dao.query.filter(user_id=str(user_id)).order_by("-created_at").all().items

    def with_status(self, status) -> list[Order]:
        return self._dao.query.filter(status=status).all().items

    def awaiting_payment(self, limit=100) -> list[Order]:
        """Pending orders whose online payment never arrived, oldest first. Cash orders are left alone."""
        return (
            self._dao.query.filter(
                status=OrderStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
            )
            .order_by("created_at")
            .limit(limit)
            .all()
            .items
        )
