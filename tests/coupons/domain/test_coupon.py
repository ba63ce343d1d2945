"""Tests for Coupon validity and discount calculation."""

from datetime import timedelta

import pytest
from protean.exceptions import InvalidOperationError, ValidationError

from storefront.coupons.coupon import Coupon, CouponStatus, CouponType
from storefront.shared.clock import utcnow


def _coupon(coupon_type=CouponType.PERCENTAGE.value, value=10.0, **fields):
    return Coupon.create(code=" save10 ", name="Save", coupon_type=coupon_type, value=value, **fields)


class TestCreation:
    def test_code_is_normalised(self):
        assert _coupon().code == "SAVE10"

    def test_percentage_above_hundred_rejected(self):
        with pytest.raises(ValidationError):
            _coupon(value=120)

    def test_window_must_be_ordered(self):
        now = utcnow()
        with pytest.raises(ValidationError):
            _coupon(starts_at=now, expires_at=now - timedelta(days=1))

    def test_buy_x_get_y_needs_quantities(self):
        with pytest.raises(ValidationError):
            _coupon(coupon_type=CouponType.BUY_X_GET_Y.value, value=0)


class TestDiscounts:
    def test_percentage(self):
        assert _coupon(value=15).calculate_discount(80.0) == 12.0

    def test_percentage_capped_by_max_discount(self):
        assert _coupon(value=50, max_discount=20.0).calculate_discount(100.0) == 20.0

    def test_fixed_never_exceeds_total(self):
        coupon = _coupon(coupon_type=CouponType.FIXED.value, value=25.0)
        assert coupon.calculate_discount(100.0) == 25.0
        assert coupon.calculate_discount(10.0) == 10.0

    def test_below_minimum_order_gives_nothing(self):
        coupon = _coupon(min_order_amount=50.0)
        assert coupon.calculate_discount(49.99) == 0.0
        assert coupon.calculate_discount(50.0) == 5.0

    def test_free_shipping_discounts_nothing_on_total(self):
        assert _coupon(coupon_type=CouponType.FREE_SHIPPING.value, value=0).calculate_discount(100.0) == 0.0


class TestValidity:
    def test_not_started(self):
        coupon = _coupon(starts_at=utcnow() + timedelta(days=1))
        assert not coupon.is_valid()

    def test_expired(self):
        now = utcnow()
        coupon = _coupon(starts_at=now - timedelta(days=2), expires_at=now - timedelta(days=1))
        assert not coupon.is_valid()
        assert coupon.calculate_discount(100.0) == 0.0

    def test_user_restricted(self):
        coupon = _coupon(applicability="users", applicable_ids=["user-1"])
        assert coupon.can_be_used_by("user-1")
        assert not coupon.can_be_used_by("user-2")

    def test_redeem_uses_up_limited_coupon(self):
        coupon = _coupon(usage_limit=1)
        coupon.redeem("user-1", "order-1", 5.0)
        assert coupon.used_count == 1
        assert coupon.status == CouponStatus.USED_UP.value
        assert not coupon.is_valid()

    def test_deactivate_twice_fails(self):
        coupon = _coupon()
        coupon.deactivate()
        with pytest.raises(InvalidOperationError):
            coupon.deactivate()
