"""Checkout session aggregate: a priced, time-boxed snapshot of a cart.

The session freezes the cart's lines and totals for 15 minutes while the
buyer pays. Completing it turns the snapshot into an order.
"""

import json
from datetime import timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text, ValueObject

from storefront.checkout.events import CheckoutCancelled, CheckoutCompleted, CheckoutExpired, CheckoutStarted
from storefront.domain import storefront
from storefront.payments.payment import ONLINE_PAYMENT_METHODS, PaymentMethod
from storefront.shared.address import Address
from storefront.shared.clock import as_utc, utcnow
from storefront.shared.money import SUPPORTED_CURRENCIES

SESSION_TTL = timedelta(minutes=15)


class CheckoutStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@storefront.aggregate
class CheckoutSession:
    session_id = String(required=True, max_length=100, unique=True)
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    items = Text(required=True)  # JSON snapshot of the cart lines
    subtotal = Float(default=0.0)
    tax_rate = Float(default=0.0)
    tax_amount = Float(default=0.0)
    shipping_amount = Float(default=0.0)
    discount_amount = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="USD")
    shipping_method_id = Identifier()
    coupon_code = String(max_length=50)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    payment_method = String(max_length=30)
    payment_id = String(max_length=255)
    notes = Text()
    status = String(choices=CheckoutStatus, default=CheckoutStatus.ACTIVE.value)
    expires_at = DateTime()
    order_id = Identifier()
    completed_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def must_have_items(self):
        if not self.item_list:
            raise ValidationError({"items": ["Checkout needs at least one item"]})

    @invariant.post
    def amounts_must_not_be_negative(self):
        for name in ("subtotal", "tax_amount", "shipping_amount", "discount_amount", "total"):
            if (getattr(self, name) or 0) < 0:
                raise ValidationError({name: [f"{name.replace('_', ' ').capitalize()} cannot be negative"]})

    @invariant.post
    def tax_rate_must_be_a_fraction(self):
        if not 0 <= (self.tax_rate or 0) <= 1:
            raise ValidationError({"tax_rate": ["Tax rate must be between 0 and 1"]})

    @invariant.post
    def shipping_address_required(self):
        if self.shipping_address is None:
            raise ValidationError({"shipping_address": ["Shipping address is required"]})

    @invariant.post
    def payment_method_must_be_online(self):
        if self.payment_method == PaymentMethod.CASH.value:
            raise ValidationError({"payment_method": ["Cash on delivery orders skip checkout sessions"]})
        if self.payment_method not in ONLINE_PAYMENT_METHODS:
            raise ValidationError({"payment_method": [f"Unsupported payment method: {self.payment_method}"]})

    @invariant.post
    def currency_must_be_supported(self):
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})

    @classmethod
    def open(cls, user_id, cart_id, items, quote, shipping_address, payment_method, billing_address=None,
             tax_rate=0.0, shipping_method_id=None, notes=None):
        now = utcnow()
        session = cls(
            session_id="pending",
            user_id=user_id,
            cart_id=cart_id,
            items=json.dumps(items),
            subtotal=quote.subtotal,
            tax_rate=tax_rate or 0.0,
            tax_amount=quote.tax_amount,
            shipping_amount=quote.shipping_amount,
            discount_amount=quote.discount_amount,
            total=quote.total,
            currency=quote.currency,
            shipping_method_id=shipping_method_id,
            coupon_code=quote.coupon_code,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            payment_method=payment_method,
            notes=notes,
            expires_at=now + SESSION_TTL,
            created_at=now,
            updated_at=now,
        )
        session.session_id = f"checkout_{str(session.id)[:8]}_{int(now.timestamp())}"
        session.raise_(
            CheckoutStarted(
                checkout_id=session.id,
                session_id=session.session_id,
                user_id=user_id,
                cart_id=cart_id,
                total=session.total,
                expires_at=session.expires_at,
            )
        )
        return session

    @property
    def item_list(self) -> list[dict]:
        return json.loads(self.items) if self.items else []

    def is_expired(self, now=None) -> bool:
        return self.expires_at is not None and (now or utcnow()) > as_utc(self.expires_at)

    def can_be_completed(self, now=None) -> bool:
        return self.status == CheckoutStatus.ACTIVE.value and not self.is_expired(now)

    def complete(self, order_id, payment_id=None):
        if not self.can_be_completed():
            raise InvalidOperationError(f"Checkout session {self.session_id} cannot be completed")
        now = utcnow()
        self.status = CheckoutStatus.COMPLETED.value
        self.order_id = order_id
        self.payment_id = payment_id
        self.completed_at = now
        self.updated_at = now
        self.raise_(
            CheckoutCompleted(checkout_id=self.id, session_id=self.session_id, order_id=order_id, completed_at=now)
        )

    def expire(self):
        if self.status != CheckoutStatus.ACTIVE.value:
            raise InvalidOperationError(f"Checkout session {self.session_id} is already {self.status}")
        self.status = CheckoutStatus.EXPIRED.value
        self.updated_at = utcnow()
        self.raise_(CheckoutExpired(checkout_id=self.id, session_id=self.session_id))

    def cancel(self):
        if self.status != CheckoutStatus.ACTIVE.value:
            raise InvalidOperationError(f"Checkout session {self.session_id} is already {self.status}")
        self.status = CheckoutStatus.CANCELLED.value
        self.updated_at = utcnow()
        self.raise_(CheckoutCancelled(checkout_id=self.id, session_id=self.session_id))


@storefront.repository(part_of=CheckoutSession)
class CheckoutSessionRepository:
    def by_session_id(self, session_id) -> CheckoutSession | None:
        return self._dao.query.filter(session_id=session_id).all().first

    def get_by_session_id(self, session_id) -> CheckoutSession:
        session = self.by_session_id(session_id)
        if session is None:
            raise ObjectNotFoundError(f"Checkout session {session_id} not found")
        return session

    def stale(self, as_of) -> list[CheckoutSession]:
        return [
            s
            for s in self._dao.query.filter(status=CheckoutStatus.ACTIVE.value).all().items
            if s.is_expired(as_of)
        ]
