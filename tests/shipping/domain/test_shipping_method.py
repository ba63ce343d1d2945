"""Domain tests for shipping method pricing and delivery windows."""

from datetime import datetime, timezone

import pytest
from protean.exceptions import ValidationError

from storefront.shipping.method import ShippingMethod, add_business_days
from storefront.shipping.rates import validate_shipping_address


def _method(**overrides):
    fields = {
        "name": "Standard",
        "base_cost": 5.0,
        "cost_per_kg": 2.0,
        "cost_per_km": 0.01,
        "min_delivery_days": 3,
        "max_delivery_days": 5,
    }
    fields.update(overrides)
    return ShippingMethod(**fields)


class TestCalculateCost:
    def test_base_plus_weight_plus_default_distance(self):
        assert _method().calculate_cost(weight=3.0) == 12.0

    def test_explicit_distance(self):
        assert _method().calculate_cost(weight=1.0, distance=500) == 12.0

    def test_negative_inputs_are_clamped(self):
        assert _method(cost_per_km=0.0).calculate_cost(weight=-4.0, distance=-1) == 5.0

    def test_free_over_threshold(self):
        method = _method(free_shipping_min=50.0)
        assert method.calculate_cost(weight=3.0, order_value=50.0) == 0.0
        assert method.calculate_cost(weight=3.0, order_value=49.99) == 12.0

    def test_too_heavy_returns_none(self):
        method = _method(max_weight=10.0)
        assert method.calculate_cost(weight=10.5) is None
        assert method.calculate_cost(weight=10.0) is not None

    def test_zero_max_weight_means_unlimited(self):
        assert _method(max_weight=0.0).is_available_for_weight(1000.0)


class TestDeliveryDays:
    def test_configured_window(self):
        assert _method().delivery_days() == (3, 5)

    def test_long_distance_adds_days(self):
        assert _method().delivery_days(distance=2500) == (5, 7)

    def test_extra_days_are_capped(self):
        assert _method().delivery_days(distance=9000) == (6, 8)

    @pytest.mark.parametrize(
        "method_type, window",
        [("same_day", (0, 0)), ("overnight", (1, 1)), ("pickup", (0, 1))],
    )
    def test_fixed_windows(self, method_type, window):
        assert _method(method_type=method_type).delivery_days(distance=5000) == window

    def test_express_is_capped(self):
        method = _method(method_type="express", min_delivery_days=4, max_delivery_days=8)
        assert method.delivery_days() == (3, 5)

    def test_window_must_be_ordered(self):
        with pytest.raises(ValidationError):
            _method(min_delivery_days=5, max_delivery_days=2)


class TestBusinessDays:
    def test_skips_weekend(self):
        friday = datetime(2026, 10, 16, 12, tzinfo=timezone.utc)
        assert add_business_days(friday, 1).weekday() == 0
        assert add_business_days(friday, 1).day == 19

    def test_zero_days_is_start(self):
        friday = datetime(2026, 10, 16, 12, tzinfo=timezone.utc)
        assert add_business_days(friday, 0) == friday

    def test_estimate_uses_business_days(self):
        friday = datetime(2026, 10, 16, 12, tzinfo=timezone.utc)
        earliest, latest = _method().estimate_delivery(from_date=friday)
        assert earliest.day == 21
        assert latest.day == 23


class TestAddressCheck:
    def test_complete_address(self, address):
        assert validate_shipping_address(address) == []

    def test_blank_parts_are_reported(self, address):
        address.update(city="  ", postal_code=None)
        assert validate_shipping_address(address) == ["city", "postal_code"]

    def test_missing_address(self):
        assert validate_shipping_address(None) == ["street", "city", "postal_code", "country"]
