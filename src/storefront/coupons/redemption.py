"""Checking and redeeming coupon codes."""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.coupons.coupon import Coupon, CouponUsage
from storefront.domain import storefront
from storefront.orders.order import Order
from storefront.shared.clock import utcnow

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CouponValidation:
    is_valid: bool
    discount_amount: float = 0.0
    message: str = ""
    coupon_id: str | None = None


def validate_coupon(code, user_id, order_total, order_id=None) -> CouponValidation:
    """Check ``code`` for a purchase of ``order_total``; ``order_id`` is the order being paid for, if any."""
    coupon = current_domain.repository_for(Coupon).by_code(code)
    if coupon is None:
        return CouponValidation(is_valid=False, message="Coupon not found")

    coupon_id = str(coupon.id)
    if not coupon.is_valid():
        return CouponValidation(is_valid=False, message="Coupon is not valid or has expired", coupon_id=coupon_id)
    if user_id and not coupon.can_be_used_by(user_id):
        return CouponValidation(is_valid=False, message="Coupon cannot be used by this user", coupon_id=coupon_id)

    if user_id and coupon.usage_limit_per_user:
        used = current_domain.repository_for(CouponUsage).count_for_user(coupon.id, user_id)
        if used >= coupon.usage_limit_per_user:
            return CouponValidation(
                is_valid=False,
                message="Coupon usage limit reached for this user",
                coupon_id=coupon_id,
            )

    if coupon.is_first_time_user and user_id and _has_prior_orders(user_id, order_id):
        return CouponValidation(is_valid=False, message="Coupon is only for first-time customers", coupon_id=coupon_id)

    if coupon.min_order_amount and order_total < coupon.min_order_amount:
        return CouponValidation(
            is_valid=False,
            message=f"Minimum order amount is {coupon.min_order_amount:.2f}",
            coupon_id=coupon_id,
        )

    return CouponValidation(
        is_valid=True,
        discount_amount=coupon.calculate_discount(order_total),
        message="Coupon is valid",
        coupon_id=coupon_id,
    )


def _has_prior_orders(user_id, order_id) -> bool:
    orders = current_domain.repository_for(Order).for_user(user_id)
    return any(str(o.id) != str(order_id) for o in orders)


def redeem_coupon(code, user_id, order_id, order_total) -> float:
    """Validate ``code`` for ``user_id`` and record its use; returns the discount."""
    validation = validate_coupon(code, user_id, order_total, order_id=order_id)
    if not validation.is_valid:
        raise ValidationError({"coupon_code": [validation.message]})

    repo = current_domain.repository_for(Coupon)
    coupon = repo.get(validation.coupon_id)
    coupon.redeem(user_id, order_id, validation.discount_amount)
    repo.add(coupon)

    current_domain.repository_for(CouponUsage).add(
        CouponUsage(
            coupon_id=coupon.id,
            user_id=user_id,
            order_id=order_id,
            discount_amount=validation.discount_amount,
            used_at=utcnow(),
        )
    )
    logger.info(
        "Coupon redeemed",
        code=coupon.code,
        user_id=str(user_id),
        order_id=str(order_id) if order_id else None,
        discount=validation.discount_amount,
    )
    return validation.discount_amount


@storefront.command(part_of="Coupon")
class ApplyCoupon:
    code = String(required=True, max_length=50)
    user_id = Identifier(required=True)
    order_id = Identifier()
    order_total = Float(required=True, min_value=0.0)


@storefront.command_handler(part_of=Coupon)
class CouponRedemptionHandler:
    @handle(ApplyCoupon)
    def apply_coupon(self, command):
        return redeem_coupon(command.code, command.user_id, command.order_id, command.order_total)
