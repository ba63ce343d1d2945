"""Stock reservation commands and the hold/release helpers used by cart and checkout.

Holds are taken with a check-then-insert: availability is read, then the
reservation row is written. Two concurrent requests can both pass the check;
the store's transaction isolation is what serializes them.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.domain import storefront
from storefront.inventory.availability import available_stock
from storefront.inventory.reservation import (
    DEFAULT_TTL_MINUTES,
    ReservationStatus,
    ReservationType,
    StockReservation,
)
from storefront.shared.errors import InsufficientStockError

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Helpers (run inside the caller's unit of work)
# ---------------------------------------------------------------------------
def reserve(
    product,
    quantity,
    reservation_type=ReservationType.CART.value,
    user_id=None,
    session_id=None,
    order_id=None,
    ttl_minutes=DEFAULT_TTL_MINUTES,
):
    """Check availability and insert a reservation for ``product``."""
    available = available_stock(product.id, product=product)
    if available < quantity:
        raise InsufficientStockError(product.id, quantity, available, product_name=product.name)

    reservation = StockReservation.create(
        product_id=product.id,
        quantity=quantity,
        reservation_type=reservation_type,
        user_id=user_id,
        session_id=session_id,
        order_id=order_id,
        ttl_minutes=ttl_minutes,
    )
    current_domain.repository_for(StockReservation).add(reservation)
    return reservation


def hold_for_cart(product, quantity, user_id=None, session_id=None):
    """Make the owner's cart hold on ``product`` exactly ``quantity`` units.

    A quantity of zero releases the hold.
    """
    repo = current_domain.repository_for(StockReservation)
    holds = repo.for_owner(
        user_id=user_id,
        session_id=session_id,
        product_id=product.id,
        reservation_type=ReservationType.CART.value,
    )

    if quantity <= 0:
        for hold in holds:
            hold.release(reason="removed_from_cart")
            repo.add(hold)
        return None

    available = available_stock(product.id, product=product, user_id=user_id, session_id=session_id)
    if available < quantity:
        raise InsufficientStockError(product.id, quantity, available, product_name=product.name)

    if not holds:
        return reserve(product, quantity, user_id=user_id, session_id=session_id)

    primary, *duplicates = holds
    primary.change_quantity(quantity)
    repo.add(primary)
    for duplicate in duplicates:
        duplicate.release(reason="superseded")
        repo.add(duplicate)
    return primary


def release_holds(
    user_id=None,
    session_id=None,
    order_id=None,
    product_id=None,
    reservation_type=None,
    reason="released",
) -> int:
    """Release every releasable reservation of an owner or an order."""
    repo = current_domain.repository_for(StockReservation)
    if order_id:
        candidates = repo.for_order(order_id)
    else:
        candidates = repo.for_owner(
            user_id=user_id,
            session_id=session_id,
            product_id=product_id,
            reservation_type=reservation_type,
        )

    released = 0
    for reservation in candidates:
        if product_id and str(reservation.product_id) != str(product_id):
            continue
        if reservation.can_be_released():
            reservation.release(reason=reason)
            repo.add(reservation)
            released += 1
    return released


def transfer_holds(session_id, user_id) -> int:
    """Move a guest session's active holds to a user after login."""
    repo = current_domain.repository_for(StockReservation)
    moved = 0
    for reservation in repo.for_owner(session_id=session_id):
        reservation.transfer_to_user(user_id)
        repo.add(reservation)
        moved += 1
    return moved


def confirm_holds(order_id) -> int:
    """Confirm an order's active reservations and deduct the stock they hold."""
    reservation_repo = current_domain.repository_for(StockReservation)
    product_repo = current_domain.repository_for(Product)

    confirmed = 0
    for reservation in reservation_repo.for_order(order_id):
        if reservation.status != ReservationStatus.ACTIVE.value:
            continue
        if not reservation.can_be_confirmed():
            logger.warning(
                "Skipping expired reservation during confirmation",
                reservation_id=str(reservation.id),
                order_id=str(order_id),
            )
            continue

        product = product_repo.get(reservation.product_id)
        product.reduce_stock(reservation.quantity, reason="order_confirmed")
        product_repo.add(product)

        reservation.confirm(order_id=order_id)
        reservation_repo.add(reservation)
        confirmed += 1
    return confirmed


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@storefront.command(part_of="StockReservation")
class ReserveStock:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    reservation_type = String(max_length=20, default=ReservationType.CART.value)
    user_id = Identifier()
    session_id = String(max_length=128)
    order_id = Identifier()
    ttl_minutes = Integer(default=DEFAULT_TTL_MINUTES, min_value=1)


@storefront.command(part_of="StockReservation")
class ReserveStockForOrder:
    """Reserve every line of an order, or none of them."""

    order_id = Identifier(required=True)
    user_id = Identifier()
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    ttl_minutes = Integer(default=DEFAULT_TTL_MINUTES, min_value=1)


@storefront.command(part_of="StockReservation")
class ConfirmReservations:
    order_id = Identifier(required=True)


@storefront.command(part_of="StockReservation")
class ReleaseReservations:
    order_id = Identifier()
    user_id = Identifier()
    session_id = String(max_length=128)
    product_id = Identifier()
    reason = String(max_length=50, default="released")


@storefront.command(part_of="StockReservation")
class ExtendReservation:
    reservation_id = Identifier(required=True)
    minutes = Integer(required=True, min_value=1)


@storefront.command(part_of="StockReservation")
class TransferReservations:
    session_id = String(required=True, max_length=128)
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=StockReservation)
class ReservationHandler:
    @handle(ReserveStock)
    def reserve_stock(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        reservation = reserve(
            product,
            command.quantity,
            reservation_type=command.reservation_type or ReservationType.CART.value,
            user_id=command.user_id,
            session_id=command.session_id,
            order_id=command.order_id,
            ttl_minutes=command.ttl_minutes or DEFAULT_TTL_MINUTES,
        )
        return str(reservation.id)

    @handle(ReserveStockForOrder)
    def reserve_stock_for_order(self, command):
        items = json.loads(command.items) if isinstance(command.items, str) else command.items
        if not items:
            raise ValidationError({"items": ["At least one item is required"]})

        products = current_domain.repository_for(Product).by_ids([i["product_id"] for i in items])

        # Check every line before writing any reservation
        for item in items:
            product = products.get(str(item["product_id"]))
            if product is None:
                raise ValidationError({"product_id": [f"Product {item['product_id']} does not exist"]})
            available = available_stock(product.id, product=product)
            if available < item["quantity"]:
                raise InsufficientStockError(product.id, item["quantity"], available, product_name=product.name)

        reservation_ids = []
        for item in items:
            reservation = reserve(
                products[str(item["product_id"])],
                item["quantity"],
                reservation_type=ReservationType.ORDER.value,
                user_id=command.user_id,
                order_id=command.order_id,
                ttl_minutes=command.ttl_minutes or DEFAULT_TTL_MINUTES,
            )
            reservation_ids.append(str(reservation.id))

        logger.info("Reserved stock for order", order_id=str(command.order_id), reservations=len(reservation_ids))
        return reservation_ids

    @handle(ConfirmReservations)
    def confirm_reservations(self, command):
        return confirm_holds(command.order_id)

    @handle(ReleaseReservations)
    def release_reservations(self, command):
        if not (command.order_id or command.user_id or command.session_id):
            raise ValidationError({"owner": ["An order, user or session is required"]})
        return release_holds(
            user_id=command.user_id,
            session_id=command.session_id,
            order_id=command.order_id,
            product_id=command.product_id,
            reason=command.reason or "released",
        )

    @handle(ExtendReservation)
    def extend_reservation(self, command):
        repo = current_domain.repository_for(StockReservation)
        reservation = repo.get(command.reservation_id)
        reservation.extend(command.minutes)
        repo.add(reservation)

    @handle(TransferReservations)
    def transfer_reservations(self, command):
        return transfer_holds(command.session_id, command.user_id)
