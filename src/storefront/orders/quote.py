"""Pricing a cart for checkout or cash on delivery."""

from dataclasses import dataclass, field

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.coupons.redemption import validate_coupon
from storefront.orders.pricing import calculate_order_total, validate_order_items
from storefront.shipping.rates import quote_shipping


@dataclass
class OrderQuote:
    items: list[dict] = field(default_factory=list)
    subtotal: float = 0.0
    tax_amount: float = 0.0
    shipping_amount: float = 0.0
    discount_amount: float = 0.0
    total: float = 0.0
    currency: str = "USD"
    coupon_code: str | None = None


def cart_lines(cart) -> list[dict]:
    """Snapshot a cart's lines, filling in SKUs from the catalogue."""
    products = current_domain.repository_for(Product).by_ids([i.product_id for i in cart.items])
    lines = []
    for item in cart.items:
        product = products.get(str(item.product_id))
        lines.append(
            {
                "product_id": str(item.product_id),
                "product_name": item.product_name or (product.name if product else None),
                "product_sku": product.sku if product else None,
                "quantity": item.quantity,
                "price": item.price,
                "subtotal": item.subtotal,
                "weight": (product.weight or 0.0) if product else 0.0,
            }
        )
    return lines


def quote_cart(cart, tax_rate=0.0, shipping_method_id=None, coupon_code=None, user_id=None) -> OrderQuote:
    if tax_rate is not None and not 0 <= tax_rate <= 1:
        raise ValidationError({"tax_rate": ["Tax rate must be between 0 and 1"]})

    items = cart_lines(cart)
    validate_order_items(items)

    subtotal = sum(line["subtotal"] for line in items)
    shipping_amount = 0.0
    if shipping_method_id:
        weight = sum(line["weight"] * line["quantity"] for line in items)
        shipping_amount = quote_shipping(shipping_method_id, weight=weight, order_value=subtotal)

    discount_amount = 0.0
    if coupon_code:
        validation = validate_coupon(coupon_code, user_id=user_id, order_total=subtotal)
        if not validation.is_valid:
            raise ValidationError({"coupon_code": [validation.message]})
        discount_amount = validation.discount_amount

    subtotal, tax_amount, total = calculate_order_total(items, tax_rate or 0.0, shipping_amount, discount_amount)
    return OrderQuote(
        items=items,
        subtotal=subtotal,
        tax_amount=tax_amount,
        shipping_amount=shipping_amount,
        discount_amount=min(discount_amount, subtotal + tax_amount + shipping_amount),
        total=total,
        currency=cart.currency,
        coupon_code=coupon_code.upper() if coupon_code else None,
    )
