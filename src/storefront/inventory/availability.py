"""Stock availability: on-hand stock minus what active reservations hold."""

from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.inventory.reservation import ReservationType, StockReservation


def reserved_quantity(product_id, user_id=None, session_id=None) -> int:
    """Quantity held by active, unexpired reservations.

    The cart holds of the given owner are left out, so an owner resizing their
    own cart line is only checked against everyone else's holds.
    """
    held = 0
    for reservation in current_domain.repository_for(StockReservation).active_for_product(product_id):
        if reservation.reservation_type == ReservationType.CART.value and _owned_by(reservation, user_id, session_id):
            continue
        held += reservation.quantity
    return held


def available_stock(product_id, product=None, user_id=None, session_id=None) -> int:
    if product is None:
        product = current_domain.repository_for(Product).get(product_id)
    return max(0, (product.stock or 0) - reserved_quantity(product_id, user_id=user_id, session_id=session_id))


def can_reserve(product_id, quantity, product=None, user_id=None, session_id=None) -> bool:
    return available_stock(product_id, product=product, user_id=user_id, session_id=session_id) >= quantity


def _owned_by(reservation, user_id, session_id) -> bool:
    if user_id and reservation.user_id and str(reservation.user_id) == str(user_id):
        return True
    return bool(session_id and reservation.session_id == session_id)
