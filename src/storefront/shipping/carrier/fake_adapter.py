"""Fake carrier: deterministic bookings and tracking for tests and development."""

from uuid import uuid4

from storefront.shared.clock import utcnow
from storefront.shipping.carrier.port import CarrierPort


class FakeCarrier(CarrierPort):
    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.bookings = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_shipment(self, order_id: str, carrier: str, method_type: str, weight: float | None = None) -> dict:
        if not self.should_succeed:
            return {"tracking_number": None, "label_url": None, "error": self.failure_reason}

        tracking_number = f"{(carrier or 'FAKE')[:4].upper()}-{uuid4().hex[:12].upper()}"
        self.bookings.append(
            {"order_id": order_id, "carrier": carrier, "method_type": method_type, "weight": weight}
        )
        return {
            "tracking_number": tracking_number,
            "label_url": f"https://fake-carrier.example.com/labels/{tracking_number}.pdf",
        }

    def get_tracking(self, tracking_number: str) -> dict:
        if not self.should_succeed:
            return {"status": "unknown", "location": None, "events": [], "error": self.failure_reason}
        return {
            "status": "in_transit",
            "location": "Distribution Center",
            "events": [
                {
                    "status": "in_transit",
                    "location": "Distribution Center",
                    "description": f"Package {tracking_number} in transit",
                    "occurred_at": utcnow().isoformat(),
                }
            ],
        }

    def cancel_shipment(self, tracking_number: str) -> dict:
        if not self.should_succeed:
            return {"cancelled": False, "reason": self.failure_reason}
        return {"cancelled": True, "reason": "Shipment cancelled successfully"}
