"""Shipping administration and shipment lifecycle commands."""

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.domain import storefront
from storefront.orders.order import Order, OrderStatus
from storefront.shipping.carrier import get_carrier
from storefront.shipping.method import ShippingMethod
from storefront.shipping.shipment import Shipment, ShipmentStatus

logger = structlog.get_logger(__name__)

# Shipment statuses that move the order along with them
_ORDER_STATUS_FOR = {
    ShipmentStatus.OUT_FOR_DELIVERY.value: OrderStatus.OUT_FOR_DELIVERY.value,
    ShipmentStatus.DELIVERED.value: OrderStatus.DELIVERED.value,
    ShipmentStatus.RETURNED.value: OrderStatus.RETURNED.value,
}


@storefront.command(part_of="ShippingMethod")
class CreateShippingMethod:
    name: String(required=True, max_length=100)
    description: Text()
    method_type: String(max_length=20, default="standard")
    carrier: String(max_length=50)
    base_cost: Float(default=0.0)
    cost_per_kg: Float(default=0.0)
    cost_per_km: Float(default=0.0)
    free_shipping_min: Float(default=0.0)
    max_weight: Float(default=0.0)
    min_delivery_days: Integer(default=1)
    max_delivery_days: Integer(default=7)
    sort_order: Integer(default=0)


@storefront.command(part_of="ShippingMethod")
class SetShippingMethodActive:
    method_id: Identifier(required=True)
    is_active: Boolean(required=True)


@storefront.command(part_of="Shipment")
class CreateShipment:
    order_id = Identifier(required=True)
    shipping_method_id = Identifier()
    carrier = String(max_length=50)
    distance = Float()


@storefront.command(part_of="Shipment")
class UpdateShipmentStatus:
    shipment_id = Identifier(required=True)
    status = String(required=True, max_length=30)
    location = String(max_length=255)
    description = String(max_length=500)


@storefront.command_handler(part_of=ShippingMethod)
class ShippingMethodHandler:
    @handle(CreateShippingMethod)
    def create_method(self, command):
        method = ShippingMethod(
            name=command.name,
            description=command.description,
            method_type=command.method_type or "standard",
            carrier=command.carrier,
            base_cost=command.base_cost or 0.0,
            cost_per_kg=command.cost_per_kg or 0.0,
            cost_per_km=command.cost_per_km or 0.0,
            free_shipping_min=command.free_shipping_min or 0.0,
            max_weight=command.max_weight or 0.0,
            min_delivery_days=command.min_delivery_days,
            max_delivery_days=command.max_delivery_days,
            sort_order=command.sort_order or 0,
        )
        current_domain.repository_for(ShippingMethod).add(method)
        return str(method.id)

    @handle(SetShippingMethodActive)
    def set_active(self, command):
        repo = current_domain.repository_for(ShippingMethod)
        method = repo.get(command.method_id)
        method.is_active = command.is_active
        repo.add(method)


def _order_weight(order) -> float:
    products = current_domain.repository_for(Product).by_ids([i.product_id for i in order.items])
    weight = 0.0
    for item in order.items:
        product = products.get(str(item.product_id))
        if product and product.weight:
            weight += product.weight * item.quantity
    return weight


@storefront.command_handler(part_of=Shipment)
class ShipmentHandler:
    @handle(CreateShipment)
    def create_shipment(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)
        if order.status not in (OrderStatus.PROCESSING.value, OrderStatus.READY_TO_SHIP.value):
            raise InvalidOperationError(f"Order in status {order.status} cannot be shipped")

        method = None
        if command.shipping_method_id:
            method = current_domain.repository_for(ShippingMethod).get(command.shipping_method_id)
        carrier_name = command.carrier or (method.carrier if method else None) or "standard"
        weight = _order_weight(order)

        booking = get_carrier().create_shipment(
            str(order.id),
            carrier_name,
            method.method_type if method else "standard",
            weight=weight,
        )
        if booking.get("error"):
            raise ValidationError({"carrier": [booking["error"]]})

        estimated_delivery = method.estimate_delivery(distance=command.distance)[1] if method else None
        shipment = Shipment.create(
            order_id=order.id,
            carrier=carrier_name,
            tracking_number=booking["tracking_number"],
            shipping_method_id=command.shipping_method_id,
            weight=weight,
            estimated_delivery=estimated_delivery,
            label_url=booking.get("label_url"),
        )
        shipment.transition_to(ShipmentStatus.PROCESSING.value)
        shipment.transition_to(ShipmentStatus.SHIPPED.value)
        current_domain.repository_for(Shipment).add(shipment)

        order.ship(tracking_number=shipment.tracking_number, carrier=carrier_name)
        order_repo.add(order)

        logger.info(
            "Shipment created",
            shipment_id=str(shipment.id),
            order_id=str(order.id),
            tracking_number=shipment.tracking_number,
        )
        return str(shipment.id)

    @handle(UpdateShipmentStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get(command.shipment_id)
        shipment.transition_to(command.status, location=command.location, description=command.description)
        repo.add(shipment)

        order_status = _ORDER_STATUS_FOR.get(shipment.status)
        if order_status is None:
            return
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(shipment.order_id)
        if order.can_transition_to(order_status):
            order.transition_to(order_status)
            order_repo.add(order)


def track_shipment(tracking_number) -> dict:
    shipment = current_domain.repository_for(Shipment).by_tracking_number(tracking_number)
    if shipment is None:
        raise ValidationError({"tracking_number": [f"No shipment with tracking number {tracking_number}"]})

    events = sorted(shipment.events, key=lambda e: e.occurred_at)
    return {
        "shipment_id": str(shipment.id),
        "order_id": str(shipment.order_id),
        "tracking_number": shipment.tracking_number,
        "carrier": shipment.carrier,
        "status": shipment.status,
        "estimated_delivery": shipment.estimated_delivery,
        "is_overdue": shipment.is_overdue(),
        "events": [
            {
                "status": e.status,
                "location": e.location,
                "description": e.description,
                "occurred_at": e.occurred_at,
            }
            for e in events
        ],
        "carrier_tracking": get_carrier().get_tracking(shipment.tracking_number),
    }
