"""Cart item commands: adding, resizing and removing lines.

Each line is backed by a ``cart`` stock reservation sized to the line's
quantity, so stock a shopper has in their cart is not offered to others.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import MAX_ITEM_QUANTITY, ShoppingCart
from storefront.cart.management import get_or_create_cart, require_owner
from storefront.catalogue.product.product import Product
from storefront.domain import storefront
from storefront.inventory.availability import available_stock
from storefront.inventory.reservation import ReservationType
from storefront.inventory.reservations import hold_for_cart, release_holds
from storefront.shared.errors import InsufficientStockError


@storefront.command(part_of="ShoppingCart")
class AddToCart:
    user_id = Identifier()
    session_id = String(max_length=128)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1, max_value=MAX_ITEM_QUANTITY)


@storefront.command(part_of="ShoppingCart")
class UpdateCartItem:
    user_id = Identifier()
    session_id = String(max_length=128)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)  # Zero or less removes the line


@storefront.command(part_of="ShoppingCart")
class RemoveFromCart:
    user_id = Identifier()
    session_id = String(max_length=128)
    product_id = Identifier(required=True)


def _owner(command):
    """Registered users own their carts by user id alone."""
    require_owner(command.user_id, command.session_id)
    if command.user_id:
        return command.user_id, None
    return None, command.session_id


def _load_cart(user_id, session_id) -> ShoppingCart:
    cart = current_domain.repository_for(ShoppingCart).active_for_owner(user_id=user_id, session_id=session_id)
    if cart is None:
        raise ValidationError({"cart": ["No active cart found"]})
    return cart


@storefront.command_handler(part_of=ShoppingCart)
class CartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        user_id, session_id = _owner(command)
        product = current_domain.repository_for(Product).get(command.product_id)
        if not product.is_available():
            raise ValidationError({"product_id": [f"Product {product.name} is not available"]})

        cart = get_or_create_cart(user_id=user_id, session_id=session_id)
        new_quantity = cart.quantity_of(product.id) + command.quantity
        if new_quantity > MAX_ITEM_QUANTITY:
            raise ValidationError({"quantity": [f"Cannot hold more than {MAX_ITEM_QUANTITY} of one product"]})

        available = available_stock(product.id, product=product, user_id=user_id, session_id=session_id)
        if new_quantity > available:
            raise InsufficientStockError(product.id, new_quantity, available, product_name=product.name)

        cart.add_item(product.id, command.quantity, product.price, product_name=product.name)
        current_domain.repository_for(ShoppingCart).add(cart)
        hold_for_cart(product, new_quantity, user_id=user_id, session_id=session_id)
        return str(cart.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        user_id, session_id = _owner(command)
        cart = _load_cart(user_id, session_id)
        if cart.get_item(command.product_id) is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        product = current_domain.repository_for(Product).get(command.product_id)
        if command.quantity > 0:
            available = available_stock(product.id, product=product, user_id=user_id, session_id=session_id)
            if command.quantity > available:
                raise InsufficientStockError(product.id, command.quantity, available, product_name=product.name)

        cart.set_item_quantity(product.id, command.quantity)
        current_domain.repository_for(ShoppingCart).add(cart)
        hold_for_cart(product, max(command.quantity, 0), user_id=user_id, session_id=session_id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        user_id, session_id = _owner(command)
        cart = _load_cart(user_id, session_id)
        cart.remove_item(command.product_id)
        current_domain.repository_for(ShoppingCart).add(cart)

        release_holds(
            user_id=user_id,
            session_id=session_id,
            product_id=command.product_id,
            reservation_type=ReservationType.CART.value,
            reason="removed_from_cart",
        )
