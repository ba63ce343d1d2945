"""Cart management: locating a shopper's cart, clearing and abandoning it."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.domain import storefront
from storefront.inventory.reservation import ReservationType
from storefront.inventory.reservations import release_holds

logger = structlog.get_logger(__name__)


def require_owner(user_id, session_id):
    if not user_id and not session_id:
        raise ValidationError({"owner": ["Either user_id or session_id is required"]})


def get_or_create_cart(user_id=None, session_id=None, currency="USD") -> ShoppingCart:
    """Return the owner's active cart, replacing it first if it has expired."""
    require_owner(user_id, session_id)
    repo = current_domain.repository_for(ShoppingCart)

    cart = repo.active_for_owner(user_id=user_id, session_id=session_id)
    if cart is not None and cart.is_expired():
        logger.info("Abandoning expired cart", cart_id=str(cart.id))
        cart.mark_abandoned()
        repo.add(cart)
        cart = None

    if cart is None:
        cart = ShoppingCart.create(user_id=user_id, session_id=session_id, currency=currency)
        repo.add(cart)
    return cart


@storefront.command(part_of="ShoppingCart")
class GetOrCreateCart:
    user_id = Identifier()
    session_id = String(max_length=128)
    currency = String(max_length=3, default="USD")


@storefront.command(part_of="ShoppingCart")
class ClearCart:
    user_id = Identifier()
    session_id = String(max_length=128)


@storefront.command(part_of="ShoppingCart")
class AbandonCart:
    cart_id = Identifier(required=True)


@storefront.command(part_of="ShoppingCart")
class ExpireCart:
    cart_id = Identifier(required=True)


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(GetOrCreateCart)
    def get_or_create(self, command):
        cart = get_or_create_cart(
            user_id=command.user_id,
            session_id=command.session_id,
            currency=command.currency or "USD",
        )
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        require_owner(command.user_id, command.session_id)
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.active_for_owner(user_id=command.user_id, session_id=command.session_id)
        if cart is None:
            return

        cart.clear()
        repo.add(cart)
        release_holds(
            user_id=command.user_id,
            session_id=None if command.user_id else command.session_id,
            reservation_type=ReservationType.CART.value,
            reason="cart_cleared",
        )

    @handle(AbandonCart)
    def abandon_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.mark_abandoned()
        repo.add(cart)
        release_holds(
            user_id=cart.user_id,
            session_id=cart.session_id,
            reservation_type=ReservationType.CART.value,
            reason="cart_abandoned",
        )

    @handle(ExpireCart)
    def expire_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.mark_expired()
        repo.add(cart)
        release_holds(
            user_id=cart.user_id,
            session_id=cart.session_id,
            reservation_type=ReservationType.CART.value,
            reason="cart_expired",
        )
