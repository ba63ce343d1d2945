"""Domain events for shipments and returns."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Shipment")
class ShipmentCreated:
    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    carrier = String()
    tracking_number = String()
    estimated_delivery = DateTime()


@storefront.event(part_of="Shipment")
class ShipmentStatusChanged:
    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    location = String()
    occurred_at = DateTime(required=True)


@storefront.event(part_of="ReturnRequest")
class ReturnRequested:
    __version__ = 1

    return_id = Identifier(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(required=True)


@storefront.event(part_of="ReturnRequest")
class ReturnStatusChanged:
    __version__ = 1

    return_id = Identifier(required=True)
    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    occurred_at = DateTime(required=True)
