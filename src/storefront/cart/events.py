"""Domain events for the ShoppingCart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="ShoppingCart")
class CartCreated:
    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier()
    session_id = String()
    expires_at = DateTime(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the cart, or more of it."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity_added = Integer(required=True)
    line_quantity = Integer(required=True)
    price = Float(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemQuantityChanged:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="ShoppingCart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartAssignedToUser:
    """A guest cart became the cart of a user who just logged in."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_session_id = String()


@storefront.event(part_of="ShoppingCart")
class CartsMerged:
    __version__ = 1

    cart_id = Identifier(required=True)
    guest_cart_id = Identifier(required=True)
    strategy = String(required=True)
    items_merged = Integer(required=True)
    items_skipped = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartAbandoned:
    __version__ = 1

    cart_id = Identifier(required=True)
    abandoned_at = DateTime(required=True)


@storefront.event(part_of="ShoppingCart")
class CartConverted:
    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier()
    converted_at = DateTime(required=True)


@storefront.event(part_of="ShoppingCart")
class CartExpired:
    __version__ = 1

    cart_id = Identifier(required=True)
    expired_at = DateTime(required=True)
