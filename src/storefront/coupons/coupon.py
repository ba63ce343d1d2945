"""Coupon aggregate: discount codes with validity windows and usage limits.

``value`` is a percentage (0-100) for ``percentage`` coupons and an amount
for ``fixed`` ones. Free shipping and buy-x-get-y coupons discount nothing
on the order total; they are honoured by shipping and line pricing.
"""

import json
from enum import Enum

from protean import invariant
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from storefront.coupons.events import CouponCreated, CouponDeactivated, CouponRedeemed
from storefront.domain import storefront
from storefront.shared.clock import as_utc, utcnow
from storefront.shared.money import round_money


class CouponType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"
    BUY_X_GET_Y = "buy_x_get_y"


class CouponApplicability(Enum):
    ALL = "all"
    CATEGORIES = "categories"
    PRODUCTS = "products"
    USERS = "users"


class CouponStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    USED_UP = "used_up"


@storefront.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    name = String(required=True, max_length=255)
    description = Text()
    coupon_type = String(choices=CouponType, required=True)
    value = Float(required=True, min_value=0.0)
    max_discount = Float(min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    applicability = String(choices=CouponApplicability, default=CouponApplicability.ALL.value)
    applicable_ids = Text()  # JSON list of category, product or user ids
    usage_limit = Integer(min_value=1)
    usage_limit_per_user = Integer(min_value=1)
    used_count = Integer(default=0, min_value=0)
    buy_quantity = Integer(min_value=1)
    get_quantity = Integer(min_value=1)
    starts_at = DateTime()
    expires_at = DateTime()
    status = String(choices=CouponStatus, default=CouponStatus.ACTIVE.value)
    is_first_time_user = Boolean(default=False)
    is_public = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def percentage_must_not_exceed_hundred(self):
        if self.coupon_type == CouponType.PERCENTAGE.value and self.value > 100:
            raise ValidationError({"value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def window_must_be_ordered(self):
        if self.starts_at and self.expires_at and as_utc(self.expires_at) <= as_utc(self.starts_at):
            raise ValidationError({"expires_at": ["Coupon must expire after it starts"]})

    @invariant.post
    def buy_x_get_y_needs_quantities(self):
        if self.coupon_type == CouponType.BUY_X_GET_Y.value and not (self.buy_quantity and self.get_quantity):
            raise ValidationError({"buy_quantity": ["Buy-x-get-y coupons need buy and get quantities"]})

    @classmethod
    def create(cls, code, name, coupon_type, value, **kwargs):
        now = utcnow()
        applicable_ids = kwargs.pop("applicable_ids", None)
        coupon = cls(
            code=code.strip().upper(),
            name=name,
            coupon_type=coupon_type,
            value=value,
            applicable_ids=json.dumps([str(i) for i in applicable_ids]) if applicable_ids else None,
            created_at=now,
            updated_at=now,
            **kwargs,
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=coupon.id,
                code=coupon.code,
                coupon_type=coupon.coupon_type,
                value=coupon.value,
            )
        )
        return coupon

    @property
    def applicable_id_list(self) -> list[str]:
        return json.loads(self.applicable_ids) if self.applicable_ids else []

    def is_valid(self, now=None) -> bool:
        now = now or utcnow()
        if self.status != CouponStatus.ACTIVE.value:
            return False
        if self.starts_at and now < as_utc(self.starts_at):
            return False
        if self.expires_at and now > as_utc(self.expires_at):
            return False
        return not (self.usage_limit and self.used_count >= self.usage_limit)

    def can_be_used_by(self, user_id, now=None) -> bool:
        if not self.is_valid(now):
            return False
        if self.applicability == CouponApplicability.USERS.value:
            return str(user_id) in self.applicable_id_list
        return True

    def calculate_discount(self, order_total, now=None) -> float:
        if not self.is_valid(now):
            return 0.0
        if self.min_order_amount and order_total < self.min_order_amount:
            return 0.0

        if self.coupon_type == CouponType.PERCENTAGE.value:
            discount = order_total * self.value / 100
            if self.max_discount and discount > self.max_discount:
                discount = self.max_discount
        elif self.coupon_type == CouponType.FIXED.value:
            discount = min(self.value, order_total)
        else:
            discount = 0.0
        return round_money(discount)

    def update_details(self, **changes):
        if "applicable_ids" in changes:
            ids = changes.pop("applicable_ids")
            self.applicable_ids = json.dumps([str(i) for i in ids]) if ids else None
        for field_name, value in changes.items():
            if value is not None:
                setattr(self, field_name, value)
        self.updated_at = utcnow()

    def deactivate(self):
        if self.status == CouponStatus.INACTIVE.value:
            raise InvalidOperationError("Coupon is already inactive")
        self.status = CouponStatus.INACTIVE.value
        self.updated_at = utcnow()
        self.raise_(CouponDeactivated(coupon_id=self.id, code=self.code))

    def redeem(self, user_id, order_id, discount_amount):
        now = utcnow()
        self.used_count = (self.used_count or 0) + 1
        if self.usage_limit and self.used_count >= self.usage_limit:
            self.status = CouponStatus.USED_UP.value
        self.updated_at = now
        self.raise_(
            CouponRedeemed(
                coupon_id=self.id,
                code=self.code,
                user_id=user_id,
                order_id=order_id,
                discount_amount=discount_amount,
                used_count=self.used_count,
                redeemed_at=now,
            )
        )


@storefront.aggregate
class CouponUsage:
    """One redemption of a coupon by a user."""

    coupon_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier()
    discount_amount = Float(default=0.0)
    used_at = DateTime()


@storefront.repository(part_of=Coupon)
class CouponRepository:
    def by_code(self, code) -> Coupon | None:
        if not code:
            return None
        return self._dao.query.filter(code=code.strip().upper()).all().first

    def public(self) -> list[Coupon]:
        return self._dao.query.filter(is_public=True, status=CouponStatus.ACTIVE.value).all().items


@storefront.repository(part_of=CouponUsage)
class CouponUsageRepository:
    def count_for_user(self, coupon_id, user_id) -> int:
        return self._dao.query.filter(coupon_id=str(coupon_id), user_id=str(user_id)).all().total
