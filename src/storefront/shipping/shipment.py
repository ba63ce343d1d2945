"""Shipment aggregate: a parcel on its way to the buyer, with tracking history."""

from datetime import timedelta
from enum import Enum

from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, String

from storefront.domain import storefront
from storefront.shared.clock import as_utc, utcnow
from storefront.shipping.events import ShipmentCreated, ShipmentStatusChanged

OVERDUE_GRACE = timedelta(hours=24)


class ShipmentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED = "failed"
    RETURNED = "returned"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    ShipmentStatus.PENDING: {ShipmentStatus.PROCESSING, ShipmentStatus.CANCELLED},
    ShipmentStatus.PROCESSING: {ShipmentStatus.SHIPPED, ShipmentStatus.CANCELLED},
    ShipmentStatus.SHIPPED: {
        ShipmentStatus.IN_TRANSIT,
        ShipmentStatus.DELIVERED,
        ShipmentStatus.FAILED,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.IN_TRANSIT: {
        ShipmentStatus.OUT_FOR_DELIVERY,
        ShipmentStatus.DELIVERED,
        ShipmentStatus.FAILED,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.OUT_FOR_DELIVERY: {ShipmentStatus.DELIVERED, ShipmentStatus.FAILED, ShipmentStatus.RETURNED},
    ShipmentStatus.DELIVERED: set(),
    ShipmentStatus.FAILED: set(),
    ShipmentStatus.RETURNED: set(),
    ShipmentStatus.CANCELLED: set(),
}


@storefront.entity(part_of="Shipment")
class TrackingEvent:
    status = String(required=True, max_length=30)
    location = String(max_length=255)
    description = String(max_length=500)
    occurred_at = DateTime(required=True)


@storefront.aggregate
class Shipment:
    order_id = Identifier(required=True)
    shipping_method_id = Identifier()
    carrier = String(max_length=50)
    tracking_number = String(max_length=100)
    label_url = String(max_length=500)
    weight = Float(default=0.0)
    status = String(choices=ShipmentStatus, default=ShipmentStatus.PENDING.value)
    estimated_delivery = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    events = HasMany(TrackingEvent)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, order_id, carrier, tracking_number, shipping_method_id=None, weight=0.0,
               estimated_delivery=None, label_url=None):
        now = utcnow()
        shipment = cls(
            order_id=order_id,
            shipping_method_id=shipping_method_id,
            carrier=carrier,
            tracking_number=tracking_number,
            label_url=label_url,
            weight=weight,
            estimated_delivery=estimated_delivery,
            created_at=now,
            updated_at=now,
        )
        shipment.add_events(
            TrackingEvent(status=ShipmentStatus.PENDING.value, description="Shipment created", occurred_at=now)
        )
        shipment.raise_(
            ShipmentCreated(
                shipment_id=shipment.id,
                order_id=order_id,
                carrier=carrier,
                tracking_number=tracking_number,
                estimated_delivery=estimated_delivery,
            )
        )
        return shipment

    def can_transition_to(self, new_status) -> bool:
        return ShipmentStatus(new_status) in _VALID_TRANSITIONS[ShipmentStatus(self.status)]

    def transition_to(self, new_status, location=None, description=None):
        try:
            target = ShipmentStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown shipment status: {new_status}"]})

        current = ShipmentStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidOperationError(f"Cannot transition shipment from {current.value} to {target.value}")

        now = utcnow()
        self.status = target.value
        self.updated_at = now
        if target == ShipmentStatus.SHIPPED and self.shipped_at is None:
            self.shipped_at = now
        elif target == ShipmentStatus.DELIVERED and self.delivered_at is None:
            self.delivered_at = now

        self.add_events(
            TrackingEvent(
                status=target.value,
                location=location,
                description=description or f"Shipment {target.value.replace('_', ' ')}",
                occurred_at=now,
            )
        )
        self.raise_(
            ShipmentStatusChanged(
                shipment_id=self.id,
                order_id=self.order_id,
                previous_status=current.value,
                new_status=target.value,
                location=location,
                occurred_at=now,
            )
        )

    def is_delivered(self) -> bool:
        return self.status == ShipmentStatus.DELIVERED.value

    def is_overdue(self, now=None) -> bool:
        if self.estimated_delivery is None or self.is_delivered():
            return False
        return (now or utcnow()) > as_utc(self.estimated_delivery) + OVERDUE_GRACE

    def delivery_days(self) -> int:
        if self.shipped_at is None or self.delivered_at is None:
            return 0
        return (as_utc(self.delivered_at) - as_utc(self.shipped_at)).days


@storefront.repository(part_of=Shipment)
class ShipmentRepository:
    def by_tracking_number(self, tracking_number) -> Shipment | None:
        return self._dao.query.filter(tracking_number=tracking_number).all().first

    def for_order(self, order_id) -> list[Shipment]:
        return self._dao.query.filter(order_id=str(order_id)).all().items
