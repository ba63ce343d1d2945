"""Carrier port: what shipment code needs from a shipping carrier."""

from abc import ABC, abstractmethod


class CarrierPort(ABC):
    @abstractmethod
    def create_shipment(self, order_id: str, carrier: str, method_type: str, weight: float | None = None) -> dict:
        """Book a shipment.

        Returns:
            dict with keys: tracking_number, label_url, and ``error`` on failure
        """
        ...

    @abstractmethod
    def get_tracking(self, tracking_number: str) -> dict:
        """Returns a dict with keys: status, location, events."""
        ...

    @abstractmethod
    def cancel_shipment(self, tracking_number: str) -> dict:
        """Returns a dict with keys: cancelled (bool), reason (str)."""
        ...
