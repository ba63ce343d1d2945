"""Folding a guest's cart into a user's cart at login.

Four strategies are supported when both carts hold items:

* ``merge`` / ``auto``: quantities are added together at the current product
  price, capped at the per-line maximum and at available stock. Products that
  vanished, went inactive or have no stock left are skipped.
* ``replace``: the user's cart is emptied and refilled with the guest lines at
  the guest's prices.
* ``keep_user``: the guest cart is abandoned and the user's cart kept as is.

When the user has no cart yet, the guest cart simply changes owner.
``check_merge_conflict`` lets a client preview the outcome before choosing.
"""

from dataclasses import dataclass, field
from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import MAX_ITEM_QUANTITY, ShoppingCart
from storefront.cart.management import get_or_create_cart
from storefront.catalogue.product.product import Product
from storefront.domain import storefront
from storefront.inventory.availability import available_stock
from storefront.inventory.reservation import ReservationType
from storefront.inventory.reservations import hold_for_cart, release_holds, transfer_holds

logger = structlog.get_logger(__name__)


class MergeStrategy(Enum):
    AUTO = "auto"
    MERGE = "merge"
    REPLACE = "replace"
    KEEP_USER = "keep_user"


@dataclass(frozen=True)
class ConflictingItem:
    product_id: str
    product_name: str
    user_quantity: int
    guest_quantity: int
    user_price: float
    guest_price: float
    price_difference: float


@dataclass
class MergeConflict:
    has_conflict: bool = False
    user_cart_exists: bool = False
    guest_cart_exists: bool = False
    conflicting_items: list[ConflictingItem] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


def check_merge_conflict(user_id, session_id) -> MergeConflict:
    """Describe what merging ``session_id``'s cart into ``user_id``'s would collide on."""
    repo = current_domain.repository_for(ShoppingCart)
    conflict = MergeConflict()

    guest_cart = repo.active_for_session(session_id) if session_id else None
    if guest_cart is None:
        conflict.recommendations.append("No guest cart found - nothing to merge")
        return conflict
    conflict.guest_cart_exists = True

    user_cart = repo.active_for_user(user_id)
    if user_cart is None:
        conflict.recommendations.append("No user cart exists - guest cart will become user cart")
        return conflict
    conflict.user_cart_exists = True

    product_repo = current_domain.repository_for(Product)
    for guest_item in guest_cart.items:
        user_item = user_cart.get_item(guest_item.product_id)
        if user_item is None:
            continue
        try:
            product_name = product_repo.get(guest_item.product_id).name
        except ObjectNotFoundError:
            product_name = guest_item.product_name or "Unknown Product"
        conflict.conflicting_items.append(
            ConflictingItem(
                product_id=str(guest_item.product_id),
                product_name=product_name,
                user_quantity=user_item.quantity,
                guest_quantity=guest_item.quantity,
                user_price=user_item.price,
                guest_price=guest_item.price,
                price_difference=round(guest_item.price - user_item.price, 2),
            )
        )

    if conflict.conflicting_items:
        conflict.has_conflict = True
        conflict.recommendations.extend(
            [
                "Items exist in both carts - choose merge strategy:",
                "• 'merge' - Add quantities together",
                "• 'replace' - Replace user cart with guest cart",
                "• 'keep_user' - Keep user cart, discard guest cart",
            ]
        )
    else:
        conflict.recommendations.append("No conflicts found - guest cart items will be added to user cart")
    return conflict


@storefront.command(part_of="ShoppingCart")
class MergeGuestCart:
    user_id = Identifier(required=True)
    session_id = String(required=True, max_length=128)
    strategy = String(max_length=20, default=MergeStrategy.AUTO.value)


@storefront.command_handler(part_of=ShoppingCart)
class MergeGuestCartHandler:
    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        try:
            strategy = MergeStrategy(command.strategy or MergeStrategy.AUTO.value)
        except ValueError:
            raise ValidationError({"strategy": [f"Unknown merge strategy: {command.strategy}"]})

        repo = current_domain.repository_for(ShoppingCart)
        user_id, session_id = command.user_id, command.session_id

        guest_cart = repo.active_for_session(session_id)
        if guest_cart is None or guest_cart.is_empty():
            return str(get_or_create_cart(user_id=user_id).id)

        user_cart = repo.active_for_user(user_id)
        if user_cart is None:
            guest_cart.assign_to_user(user_id)
            repo.add(guest_cart)
            moved = transfer_holds(session_id, user_id)
            logger.info(
                "Guest cart assigned to user",
                cart_id=str(guest_cart.id),
                user_id=str(user_id),
                reservations_moved=moved,
            )
            return str(guest_cart.id)

        if strategy == MergeStrategy.KEEP_USER:
            guest_cart.mark_abandoned()
            repo.add(guest_cart)
            release_holds(session_id=session_id, reservation_type=ReservationType.CART.value, reason="merge_discarded")
            user_cart.record_merge(guest_cart.id, strategy.value, items_merged=0, items_skipped=len(guest_cart.items))
            repo.add(user_cart)
            return str(user_cart.id)

        if strategy == MergeStrategy.REPLACE:
            merged, skipped = self._replace(user_cart, guest_cart, user_id, session_id)
        else:
            merged, skipped = self._merge(user_cart, guest_cart, user_id, session_id)

        user_cart.record_merge(guest_cart.id, strategy.value, items_merged=merged, items_skipped=skipped)
        repo.add(user_cart)
        guest_cart.mark_converted()
        repo.add(guest_cart)

        logger.info(
            "Guest cart merged",
            cart_id=str(user_cart.id),
            guest_cart_id=str(guest_cart.id),
            strategy=strategy.value,
            items_merged=merged,
            items_skipped=skipped,
        )
        return str(user_cart.id)

    def _replace(self, user_cart, guest_cart, user_id, session_id):
        release_holds(user_id=user_id, reservation_type=ReservationType.CART.value, reason="cart_replaced")
        user_cart.clear()
        for guest_item in guest_cart.items:
            user_cart.add_item(
                guest_item.product_id,
                guest_item.quantity,
                guest_item.price,
                product_name=guest_item.product_name,
            )
        transfer_holds(session_id, user_id)
        return len(guest_cart.items), 0

    def _merge(self, user_cart, guest_cart, user_id, session_id):
        product_repo = current_domain.repository_for(Product)

        merged = skipped = 0
        for guest_item in guest_cart.items:
            existing = user_cart.quantity_of(guest_item.product_id)
            release_holds(
                session_id=session_id,
                product_id=guest_item.product_id,
                reservation_type=ReservationType.CART.value,
                reason="merged_into_user_cart",
            )
            try:
                product = product_repo.get(guest_item.product_id)
            except ObjectNotFoundError:
                logger.warning("Skipping missing product during merge", product_id=str(guest_item.product_id))
                skipped += 1
                continue

            target = 0
            if product.is_available():
                available = available_stock(product.id, product=product, user_id=user_id)
                target = min(existing + guest_item.quantity, MAX_ITEM_QUANTITY, available)

            if target <= existing:
                logger.warning(
                    "Skipping unavailable product during merge",
                    product_id=str(product.id),
                    product_name=product.name,
                )
                skipped += 1
                continue

            if existing:
                user_cart.set_item_quantity(product.id, target, price=product.price)
            else:
                user_cart.add_item(product.id, target, product.price, product_name=product.name)
            hold_for_cart(product, target, user_id=user_id)
            merged += 1

        release_holds(session_id=session_id, reservation_type=ReservationType.CART.value, reason="merged_into_user_cart")
        return merged, skipped
