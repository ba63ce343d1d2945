"""Order pricing and line validation shared by checkout and cash-on-delivery."""

from protean.exceptions import ValidationError

from storefront.catalogue.product.product import MAX_PRICE
from storefront.shared.money import money_equal, round_money

MAX_LINE_QUANTITY = 100
MAX_ORDER_QUANTITY = 1000


def calculate_order_total(items, tax_rate=0.0, shipping_cost=0.0, discount_amount=0.0):
    """Return ``(subtotal, tax_amount, total)`` for ``items``.

    Each item needs ``price`` and ``quantity``. Negative rates and amounts
    count as zero, a rate above 1 is read as a percentage, and a discount
    larger than everything else brings the total to zero.
    """
    tax_rate = max(tax_rate or 0.0, 0.0)
    if tax_rate > 1:
        tax_rate = tax_rate / 100
    shipping_cost = max(shipping_cost or 0.0, 0.0)
    discount_amount = max(discount_amount or 0.0, 0.0)

    subtotal = round_money(sum(_line_total(item) for item in items))
    tax_amount = round_money(subtotal * tax_rate)
    total = max(0.0, round_money(subtotal + tax_amount + shipping_cost - discount_amount))
    return subtotal, tax_amount, total


def validate_order_items(items):
    if not items:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    seen = set()
    total_quantity = 0
    for position, item in enumerate(items, start=1):
        quantity = item.get("quantity") or 0
        price = item.get("price") or 0.0
        product_id = str(item.get("product_id") or "")

        if quantity <= 0:
            raise ValidationError({"items": [f"Item {position}: quantity must be greater than 0"]})
        if quantity > MAX_LINE_QUANTITY:
            raise ValidationError({"items": [f"Item {position}: quantity cannot exceed {MAX_LINE_QUANTITY}"]})
        if price <= 0:
            raise ValidationError({"items": [f"Item {position}: price must be greater than 0"]})
        if price > MAX_PRICE:
            raise ValidationError({"items": [f"Item {position}: price cannot exceed {MAX_PRICE:,.2f}"]})
        if not product_id:
            raise ValidationError({"items": [f"Item {position}: invalid product id"]})
        if product_id in seen:
            raise ValidationError({"items": [f"Item {position}: duplicate product in order"]})
        seen.add(product_id)

        if "subtotal" in item and not money_equal(item["subtotal"], price * quantity):
            raise ValidationError(
                {"items": [f"Item {position}: subtotal {item['subtotal']:.2f} does not match {price * quantity:.2f}"]}
            )
        total_quantity += quantity

    if total_quantity > MAX_ORDER_QUANTITY:
        raise ValidationError(
            {"items": [f"Total items in order ({total_quantity}) cannot exceed {MAX_ORDER_QUANTITY}"]}
        )


def _line_total(item) -> float:
    if item.get("subtotal") is not None:
        return item["subtotal"]
    return item["price"] * item["quantity"]
