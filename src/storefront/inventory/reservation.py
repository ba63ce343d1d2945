"""StockReservation aggregate (CQRS): a temporary claim on a product's stock.

State Machine:
    ACTIVE -> CONFIRMED   (order paid; stock is deducted from the product)
    ACTIVE -> RELEASED    (cart emptied, order cancelled)
    ACTIVE -> EXPIRED     (TTL elapsed; reclaimed by the cleanup run)
    CONFIRMED -> RELEASED (order cancelled after confirmation)

An ACTIVE reservation whose ``expires_at`` has passed no longer counts
against available stock, even before the cleanup run marks it EXPIRED.
"""

from datetime import timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.inventory.events import (
    ReservationConfirmed,
    ReservationExpired,
    ReservationExtended,
    ReservationQuantityChanged,
    ReservationReleased,
    StockReserved,
)
from storefront.shared.clock import as_utc, utcnow

DEFAULT_TTL_MINUTES = 30


class ReservationType(Enum):
    ORDER = "order"
    CART = "cart"
    PROMOTION = "promotion"


class ReservationStatus(Enum):
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    RELEASED = "released"
    EXPIRED = "expired"


@storefront.aggregate
class StockReservation:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    reservation_type = String(choices=ReservationType, default=ReservationType.CART.value)
    user_id = Identifier()
    session_id = String(max_length=128)
    order_id = Identifier()
    status = String(choices=ReservationStatus, default=ReservationStatus.ACTIVE.value)
    expires_at = DateTime(required=True)
    confirmed_at = DateTime()
    released_at = DateTime()
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def must_have_an_owner(self):
        if not (self.user_id or self.session_id or self.order_id):
            raise ValidationError({"owner": ["A reservation needs a user, session or order"]})

    @classmethod
    def create(
        cls,
        product_id,
        quantity,
        reservation_type=ReservationType.CART.value,
        user_id=None,
        session_id=None,
        order_id=None,
        ttl_minutes=DEFAULT_TTL_MINUTES,
        notes=None,
    ):
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Reservation quantity must be positive"]})

        now = utcnow()
        expires_at = now + timedelta(minutes=ttl_minutes)
        reservation = cls(
            product_id=product_id,
            quantity=quantity,
            reservation_type=reservation_type,
            user_id=user_id,
            session_id=session_id,
            order_id=order_id,
            status=ReservationStatus.ACTIVE.value,
            expires_at=expires_at,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        reservation.raise_(
            StockReserved(
                reservation_id=reservation.id,
                product_id=product_id,
                quantity=quantity,
                reservation_type=reservation_type,
                user_id=user_id,
                session_id=session_id,
                order_id=order_id,
                expires_at=expires_at,
            )
        )
        return reservation

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_expired(self, now=None) -> bool:
        return as_utc(self.expires_at) <= (now or utcnow())

    def is_active(self, now=None) -> bool:
        return self.status == ReservationStatus.ACTIVE.value and not self.is_expired(now)

    def can_be_confirmed(self, now=None) -> bool:
        return self.is_active(now)

    def can_be_released(self) -> bool:
        return self.status in (ReservationStatus.ACTIVE.value, ReservationStatus.CONFIRMED.value)

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def confirm(self, order_id=None):
        if not self.can_be_confirmed():
            raise InvalidOperationError("Only active, unexpired reservations can be confirmed")

        now = utcnow()
        self.status = ReservationStatus.CONFIRMED.value
        if order_id is not None:
            self.order_id = order_id
        self.confirmed_at = now
        self.updated_at = now
        self.raise_(
            ReservationConfirmed(
                reservation_id=self.id,
                product_id=self.product_id,
                order_id=self.order_id,
                quantity=self.quantity,
                confirmed_at=now,
            )
        )

    def release(self, reason="released"):
        if not self.can_be_released():
            raise InvalidOperationError(f"Reservation in status {self.status} cannot be released")

        now = utcnow()
        self.status = ReservationStatus.RELEASED.value
        self.released_at = now
        self.updated_at = now
        self.raise_(
            ReservationReleased(
                reservation_id=self.id,
                product_id=self.product_id,
                quantity=self.quantity,
                reason=reason,
                released_at=now,
            )
        )

    def mark_expired(self):
        if self.status != ReservationStatus.ACTIVE.value:
            raise InvalidOperationError(f"Reservation in status {self.status} cannot expire")

        now = utcnow()
        self.status = ReservationStatus.EXPIRED.value
        self.updated_at = now
        self.raise_(
            ReservationExpired(
                reservation_id=self.id,
                product_id=self.product_id,
                quantity=self.quantity,
                expired_at=now,
            )
        )

    def extend(self, minutes):
        if minutes is None or minutes <= 0:
            raise ValidationError({"minutes": ["Extension must be a positive number of minutes"]})
        if self.status != ReservationStatus.ACTIVE.value:
            raise InvalidOperationError("Only active reservations can be extended")

        previous = self.expires_at
        base = max(as_utc(previous), utcnow())
        self.expires_at = base + timedelta(minutes=minutes)
        self.updated_at = utcnow()
        self.raise_(
            ReservationExtended(
                reservation_id=self.id,
                previous_expires_at=previous,
                new_expires_at=self.expires_at,
            )
        )

    def change_quantity(self, quantity, ttl_minutes=DEFAULT_TTL_MINUTES):
        """Resize an active hold and restart its TTL."""
        if self.status != ReservationStatus.ACTIVE.value:
            raise InvalidOperationError("Only active reservations can be resized")
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Reservation quantity must be positive"]})

        previous = self.quantity
        now = utcnow()
        self.quantity = quantity
        self.expires_at = now + timedelta(minutes=ttl_minutes)
        self.updated_at = now
        if previous != quantity:
            self.raise_(
                ReservationQuantityChanged(
                    reservation_id=self.id,
                    product_id=self.product_id,
                    previous_quantity=previous,
                    new_quantity=quantity,
                )
            )

    def transfer_to_user(self, user_id):
        self.user_id = user_id
        self.session_id = None
        self.updated_at = utcnow()


@storefront.repository(part_of=StockReservation)
class StockReservationRepository:
    def active(self) -> list[StockReservation]:
        """Reservations still in ACTIVE status, expired or not."""
        return self._dao.query.filter(status=ReservationStatus.ACTIVE.value).all().items

    def active_for_product(self, product_id) -> list[StockReservation]:
        now = utcnow()
        return [
            r
            for r in self._dao.query.filter(product_id=str(product_id), status=ReservationStatus.ACTIVE.value)
            .all()
            .items
            if not r.is_expired(now)
        ]

    def for_order(self, order_id) -> list[StockReservation]:
        return self._dao.query.filter(order_id=str(order_id)).all().items

    def for_owner(self, user_id=None, session_id=None, product_id=None, reservation_type=None):
        criteria = {"status": ReservationStatus.ACTIVE.value}
        if user_id:
            criteria["user_id"] = str(user_id)
        elif session_id:
            criteria["session_id"] = session_id
        else:
            return []
        if product_id:
            criteria["product_id"] = str(product_id)
        if reservation_type:
            criteria["reservation_type"] = reservation_type
        return self._dao.query.filter(**criteria).all().items
