"""Coupon administration: commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.coupons.coupon import Coupon
from storefront.domain import storefront


@storefront.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    name = String(required=True, max_length=255)
    description = Text()
    coupon_type = String(required=True, max_length=20)
    value = Float(required=True, min_value=0.0)
    max_discount = Float()
    min_order_amount = Float()
    applicability = String(max_length=20, default="all")
    applicable_ids = Text()  # JSON list
    usage_limit = Integer()
    usage_limit_per_user = Integer()
    buy_quantity = Integer()
    get_quantity = Integer()
    starts_at = DateTime()
    expires_at = DateTime()
    is_first_time_user = Boolean(default=False)
    is_public = Boolean(default=True)


@storefront.command(part_of="Coupon")
class UpdateCoupon:
    coupon_id = Identifier(required=True)
    name = String(max_length=255)
    description = Text()
    value = Float()
    max_discount = Float()
    min_order_amount = Float()
    usage_limit = Integer()
    usage_limit_per_user = Integer()
    starts_at = DateTime()
    expires_at = DateTime()
    is_public = Boolean()


@storefront.command(part_of="Coupon")
class DeactivateCoupon:
    coupon_id = Identifier(required=True)


def _ids(value):
    if not value:
        return None
    return json.loads(value) if isinstance(value, str) else value


@storefront.command_handler(part_of=Coupon)
class ManageCouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        if repo.by_code(command.code):
            raise ValidationError({"code": [f"Coupon code {command.code.upper()} already exists"]})

        coupon = Coupon.create(
            code=command.code,
            name=command.name,
            coupon_type=command.coupon_type,
            value=command.value,
            description=command.description,
            max_discount=command.max_discount,
            min_order_amount=command.min_order_amount,
            applicability=command.applicability or "all",
            applicable_ids=_ids(command.applicable_ids),
            usage_limit=command.usage_limit,
            usage_limit_per_user=command.usage_limit_per_user,
            buy_quantity=command.buy_quantity,
            get_quantity=command.get_quantity,
            starts_at=command.starts_at,
            expires_at=command.expires_at,
            is_first_time_user=command.is_first_time_user,
            is_public=command.is_public,
        )
        repo.add(coupon)
        return str(coupon.id)

    @handle(UpdateCoupon)
    def update_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.update_details(
            name=command.name,
            description=command.description,
            value=command.value,
            max_discount=command.max_discount,
            min_order_amount=command.min_order_amount,
            usage_limit=command.usage_limit,
            usage_limit_per_user=command.usage_limit_per_user,
            starts_at=command.starts_at,
            expires_at=command.expires_at,
            is_public=command.is_public,
        )
        repo.add(coupon)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.deactivate()
        repo.add(coupon)
