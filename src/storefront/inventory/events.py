"""Domain events for the StockReservation aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="StockReservation")
class StockReserved:
    __version__ = 1

    reservation_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    reservation_type = String(required=True)
    user_id = Identifier()
    session_id = String()
    order_id = Identifier()
    expires_at = DateTime(required=True)


@storefront.event(part_of="StockReservation")
class ReservationQuantityChanged:
    __version__ = 1

    reservation_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="StockReservation")
class ReservationConfirmed:
    __version__ = 1

    reservation_id = Identifier(required=True)
    product_id = Identifier(required=True)
    order_id = Identifier()
    quantity = Integer(required=True)
    confirmed_at = DateTime(required=True)


@storefront.event(part_of="StockReservation")
class ReservationReleased:
    __version__ = 1

    reservation_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    reason = String()
    released_at = DateTime(required=True)


@storefront.event(part_of="StockReservation")
class ReservationExpired:
    __version__ = 1

    reservation_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    expired_at = DateTime(required=True)


@storefront.event(part_of="StockReservation")
class ReservationExtended:
    __version__ = 1

    reservation_id = Identifier(required=True)
    previous_expires_at = DateTime(required=True)
    new_expires_at = DateTime(required=True)
