"""Shopping Cart aggregate (CQRS): a user's or guest's in-progress selection.

A cart is owned by exactly one user or one guest session. Every mutation
recomputes the derived totals, and the ``totals_must_match_items``
invariant holds the cart to them:

    item.subtotal = item.price * item.quantity
    subtotal      = sum(item.subtotal)
    total         = subtotal + tax_amount + shipping_amount
    item_count    = sum(item.quantity)

Item prices are snapshots taken when the product was added; re-adding a
product refreshes the snapshot to the current price.
"""

import re
from datetime import timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from storefront.cart.events import (
    CartAbandoned,
    CartAssignedToUser,
    CartCleared,
    CartConverted,
    CartCreated,
    CartExpired,
    CartItemAdded,
    CartItemQuantityChanged,
    CartItemRemoved,
    CartsMerged,
)
from storefront.domain import storefront
from storefront.shared.clock import as_utc, utcnow
from storefront.shared.money import SUPPORTED_CURRENCIES, money_equal, round_money

MAX_ITEM_QUANTITY = 100
USER_CART_TTL = timedelta(days=7)
GUEST_CART_TTL = timedelta(days=1)

_SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]{8,128}$")


class CartStatus(Enum):
    ACTIVE = "active"
    ABANDONED = "abandoned"
    CONVERTED = "converted"
    EXPIRED = "expired"


def is_valid_session_id(session_id) -> bool:
    return bool(session_id) and bool(_SESSION_ID_PATTERN.match(session_id))


@storefront.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1, max_value=MAX_ITEM_QUANTITY)
    price = Float(required=True, min_value=0.0)
    subtotal = Float(default=0.0)
    added_at = DateTime()


@storefront.aggregate
class ShoppingCart:
    user_id = Identifier()  # Set for registered users
    session_id = String(max_length=128)  # Set for guests
    items = HasMany(CartItem)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    currency = String(max_length=3, default="USD")
    subtotal = Float(default=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    shipping_amount = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0)
    item_count = Integer(default=0)
    notes = Text()
    expires_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_has_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.session_id):
            raise ValidationError({"owner": ["A cart belongs to either a user or a guest session, not both"]})

    @invariant.post
    def session_id_must_be_well_formed(self):
        if self.session_id and not is_valid_session_id(self.session_id):
            raise ValidationError(
                {"session_id": ["Session id must be 8-128 characters of letters, digits, '-', '_' or '.'"]}
            )

    @invariant.post
    def currency_must_be_supported(self):
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})

    @invariant.post
    def products_appear_once(self):
        product_ids = [str(i.product_id) for i in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can only appear once in a cart"]})

    @invariant.post
    def totals_must_match_items(self):
        for item in self.items:
            if not money_equal(item.subtotal, item.price * item.quantity):
                raise ValidationError({"items": [f"Line total of {item.product_id} does not match price x quantity"]})
        if not money_equal(self.subtotal, sum(i.subtotal for i in self.items)):
            raise ValidationError({"subtotal": ["Cart subtotal does not match its items"]})
        if not money_equal(self.total, self.subtotal + (self.tax_amount or 0) + (self.shipping_amount or 0)):
            raise ValidationError({"total": ["Cart total does not match subtotal, tax and shipping"]})
        if self.item_count != sum(i.quantity for i in self.items):
            raise ValidationError({"item_count": ["Cart item count does not match its items"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id=None, session_id=None, currency="USD"):
        now = utcnow()
        ttl = USER_CART_TTL if user_id else GUEST_CART_TTL
        cart = cls(
            user_id=user_id,
            session_id=None if user_id else session_id,
            status=CartStatus.ACTIVE.value,
            currency=currency,
            expires_at=now + ttl,
            created_at=now,
            updated_at=now,
        )
        cart.raise_(
            CartCreated(
                cart_id=cart.id,
                user_id=cart.user_id,
                session_id=cart.session_id,
                expires_at=cart.expires_at,
            )
        )
        return cart

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_guest(self) -> bool:
        return not self.user_id

    def is_active(self) -> bool:
        return self.status == CartStatus.ACTIVE.value

    def is_expired(self, now=None) -> bool:
        return self.expires_at is not None and as_utc(self.expires_at) <= (now or utcnow())

    def is_empty(self) -> bool:
        return not self.items

    def get_item(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def quantity_of(self, product_id) -> int:
        item = self.get_item(product_id)
        return item.quantity if item else 0

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, price, product_name=None):
        """Add ``quantity`` of a product, or top up an existing line at ``price``."""
        self._ensure_active("Items can only be added to an active cart")
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        existing = self.get_item(product_id)
        new_quantity = quantity + (existing.quantity if existing else 0)
        if new_quantity > MAX_ITEM_QUANTITY:
            raise ValidationError({"quantity": [f"Cannot hold more than {MAX_ITEM_QUANTITY} of one product"]})

        now = utcnow()
        price = round_money(price)
        with atomic_change(self):
            if existing:
                existing.quantity = new_quantity
                existing.price = price
                if product_name:
                    existing.product_name = product_name
            else:
                self.add_items(
                    CartItem(
                        product_id=product_id,
                        product_name=product_name,
                        quantity=quantity,
                        price=price,
                        added_at=now,
                    )
                )
            self._touch(now)

        self.raise_(
            CartItemAdded(
                cart_id=self.id,
                product_id=product_id,
                quantity_added=quantity,
                line_quantity=new_quantity,
                price=price,
            )
        )

    def set_item_quantity(self, product_id, quantity, price=None):
        """Set a line to ``quantity``; zero or less removes it."""
        self._ensure_active("Item quantities can only be updated in an active cart")

        item = self.get_item(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        if quantity <= 0:
            self.remove_item(product_id)
            return

        if quantity > MAX_ITEM_QUANTITY:
            raise ValidationError({"quantity": [f"Cannot hold more than {MAX_ITEM_QUANTITY} of one product"]})

        previous = item.quantity
        with atomic_change(self):
            item.quantity = quantity
            if price is not None:
                item.price = round_money(price)
            self._touch()

        self.raise_(
            CartItemQuantityChanged(
                cart_id=self.id,
                product_id=product_id,
                previous_quantity=previous,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id):
        self._ensure_active("Items can only be removed from an active cart")

        item = self.get_item(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        with atomic_change(self):
            self.remove_items(item)
            self._touch()

        self.raise_(CartItemRemoved(cart_id=self.id, product_id=product_id))

    def clear(self):
        removed = len(self.items)
        with atomic_change(self):
            for item in list(self.items):
                self.remove_items(item)
            self._touch()

        self.raise_(CartCleared(cart_id=self.id, items_removed=removed))

    def apply_charges(self, tax_amount=0.0, shipping_amount=0.0):
        if (tax_amount or 0) < 0 or (shipping_amount or 0) < 0:
            raise ValidationError({"charges": ["Tax and shipping cannot be negative"]})
        with atomic_change(self):
            self.tax_amount = round_money(tax_amount or 0)
            self.shipping_amount = round_money(shipping_amount or 0)
            self._touch()

    def recalculate_totals(self):
        for item in self.items:
            item.subtotal = round_money(item.price * item.quantity)
        self.subtotal = round_money(sum(i.subtotal for i in self.items))
        self.total = round_money(self.subtotal + (self.tax_amount or 0) + (self.shipping_amount or 0))
        self.item_count = sum(i.quantity for i in self.items)

    # -------------------------------------------------------------------
    # Ownership and lifecycle
    # -------------------------------------------------------------------
    def assign_to_user(self, user_id):
        """Turn a guest cart into ``user_id``'s cart (login with no existing user cart)."""
        self._ensure_active("Only active carts can change owner")
        previous_session_id = self.session_id
        with atomic_change(self):
            self.user_id = user_id
            self.session_id = None
            self.expires_at = utcnow() + USER_CART_TTL
            self.updated_at = utcnow()

        self.raise_(
            CartAssignedToUser(
                cart_id=self.id,
                user_id=user_id,
                previous_session_id=previous_session_id,
            )
        )

    def record_merge(self, guest_cart_id, strategy, items_merged, items_skipped=0):
        self.raise_(
            CartsMerged(
                cart_id=self.id,
                guest_cart_id=guest_cart_id,
                strategy=strategy,
                items_merged=items_merged,
                items_skipped=items_skipped,
            )
        )

    def mark_abandoned(self):
        self._ensure_active("Only active carts can be abandoned")
        now = utcnow()
        self.status = CartStatus.ABANDONED.value
        self.updated_at = now
        self.raise_(CartAbandoned(cart_id=self.id, abandoned_at=now))

    def mark_converted(self):
        self._ensure_active("Only active carts can be converted")
        now = utcnow()
        self.status = CartStatus.CONVERTED.value
        self.updated_at = now
        self.raise_(CartConverted(cart_id=self.id, user_id=self.user_id, converted_at=now))

    def mark_expired(self):
        self._ensure_active("Only active carts can expire")
        now = utcnow()
        self.status = CartStatus.EXPIRED.value
        self.updated_at = now
        self.raise_(CartExpired(cart_id=self.id, expired_at=now))

    def _ensure_active(self, message):
        if self.status != CartStatus.ACTIVE.value:
            raise ValidationError({"status": [message]})

    def _touch(self, now=None):
        """Recompute totals and push the expiry out; call inside ``atomic_change``."""
        now = now or utcnow()
        self.recalculate_totals()
        self.expires_at = now + (USER_CART_TTL if self.user_id else GUEST_CART_TTL)
        self.updated_at = now


@storefront.repository(part_of=ShoppingCart)
class ShoppingCartRepository:
    def active_for_user(self, user_id) -> ShoppingCart | None:
        return self._dao.query.filter(user_id=str(user_id), status=CartStatus.ACTIVE.value).all().first

    def active_for_session(self, session_id) -> ShoppingCart | None:
        return self._dao.query.filter(session_id=session_id, status=CartStatus.ACTIVE.value).all().first

    def active_for_owner(self, user_id=None, session_id=None) -> ShoppingCart | None:
        if user_id:
            return self.active_for_user(user_id)
        if session_id:
            return self.active_for_session(session_id)
        return None

    def active(self) -> list[ShoppingCart]:
        return self._dao.query.filter(status=CartStatus.ACTIVE.value).order_by("expires_at").all().items
