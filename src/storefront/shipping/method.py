"""Shipping methods: what a delivery option costs and how long it takes."""

from datetime import timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.domain import storefront
from storefront.shared.clock import utcnow
from storefront.shared.money import round_money

DEFAULT_DISTANCE_KM = 100.0
MAX_EXTRA_DAYS = 3


class ShippingMethodType(Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"
    SAME_DAY = "same_day"
    PICKUP = "pickup"
    FREE = "free"


def add_business_days(start, days):
    """Move ``days`` weekdays forward from ``start``, skipping Saturdays and Sundays."""
    current = start
    while days > 0:
        current = current + timedelta(days=1)
        if current.weekday() < 5:
            days -= 1
    return current


@storefront.aggregate
class ShippingMethod:
    name: String(required=True, max_length=100)
    description: Text()
    method_type: String(choices=ShippingMethodType, default=ShippingMethodType.STANDARD.value)
    carrier: String(max_length=50)
    base_cost: Float(default=0.0, min_value=0.0)
    cost_per_kg: Float(default=0.0, min_value=0.0)
    cost_per_km: Float(default=0.0, min_value=0.0)
    free_shipping_min: Float(default=0.0, min_value=0.0)
    max_weight: Float(default=0.0, min_value=0.0)  # 0 means no limit
    min_delivery_days: Integer(default=1, min_value=0)
    max_delivery_days: Integer(default=7, min_value=0)
    is_active: Boolean(default=True)
    sort_order: Integer(default=0)
    created_at: DateTime(default=utcnow)

    @invariant.post
    def delivery_window_must_be_ordered(self):
        if (self.max_delivery_days or 0) < (self.min_delivery_days or 0):
            raise ValidationError(
                {"max_delivery_days": ["Maximum delivery days cannot be less than minimum delivery days"]}
            )

    def is_available_for_weight(self, weight) -> bool:
        return not self.max_weight or weight <= self.max_weight

    def calculate_cost(self, weight=0.0, distance=None, order_value=0.0) -> float | None:
        """Shipping cost, or ``None`` when the parcel is too heavy for this method."""
        weight = max(weight or 0.0, 0.0)
        if distance is None or distance < 0:
            distance = DEFAULT_DISTANCE_KM
        order_value = max(order_value or 0.0, 0.0)

        if not self.is_available_for_weight(weight):
            return None
        if self.free_shipping_min and order_value >= self.free_shipping_min:
            return 0.0

        cost = self.base_cost or 0.0
        if self.cost_per_kg and weight > 0:
            cost += weight * self.cost_per_kg
        if self.cost_per_km and distance > 0:
            cost += distance * self.cost_per_km
        return round_money(max(cost, 0.0))

    def delivery_days(self, distance=None) -> tuple[int, int]:
        min_days, max_days = self.min_delivery_days or 0, self.max_delivery_days or 0
        if distance and distance > 1000:
            extra = min(int(distance // 1000), MAX_EXTRA_DAYS)
            min_days += extra
            max_days += extra

        if self.method_type == ShippingMethodType.SAME_DAY.value:
            min_days, max_days = 0, 0
        elif self.method_type == ShippingMethodType.OVERNIGHT.value:
            min_days, max_days = 1, 1
        elif self.method_type == ShippingMethodType.EXPRESS.value:
            min_days, max_days = min(min_days, 3), min(max_days, 5)
        elif self.method_type == ShippingMethodType.PICKUP.value:
            min_days, max_days = 0, 1

        min_days = max(min_days, 0)
        return min_days, max(max_days, min_days)

    def estimate_delivery(self, from_date=None, distance=None):
        """Earliest and latest delivery dates, counted in business days."""
        start = from_date or utcnow()
        min_days, max_days = self.delivery_days(distance)
        return add_business_days(start, min_days), add_business_days(start, max_days)


@storefront.repository(part_of=ShippingMethod)
class ShippingMethodRepository:
    def active(self) -> list[ShippingMethod]:
        return self._dao.query.filter(is_active=True).order_by("sort_order").all().items
