"""Shipping quotes and address checks used by checkout and the storefront API."""

from dataclasses import dataclass
from datetime import datetime

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.shipping.method import ShippingMethod

REQUIRED_ADDRESS_FIELDS = ("street", "city", "postal_code", "country")


@dataclass(frozen=True)
class ShippingOption:
    method_id: str
    name: str
    method_type: str
    carrier: str | None
    cost: float
    min_delivery_date: datetime
    max_delivery_date: datetime


def validate_shipping_address(address) -> list[str]:
    """Names of the required address parts that are missing or blank."""
    if address is None:
        return list(REQUIRED_ADDRESS_FIELDS)
    data = address if isinstance(address, dict) else address.to_dict()
    return [name for name in REQUIRED_ADDRESS_FIELDS if not (data.get(name) or "").strip()]


def quote_shipping(method_id, weight=0.0, order_value=0.0, distance=None) -> float:
    method = current_domain.repository_for(ShippingMethod).get(method_id)
    if not method.is_active:
        raise ValidationError({"shipping_method_id": [f"Shipping method {method.name} is not available"]})

    cost = method.calculate_cost(weight=weight, distance=distance, order_value=order_value)
    if cost is None:
        raise ValidationError(
            {"shipping_method_id": [f"Shipping method {method.name} cannot carry {weight:.2f} kg"]}
        )
    return cost


def shipping_options(weight=0.0, distance=None, order_value=0.0, from_date=None) -> list[ShippingOption]:
    """Active methods that can carry ``weight``, cheapest first."""
    options = []
    for method in current_domain.repository_for(ShippingMethod).active():
        cost = method.calculate_cost(weight=weight, distance=distance, order_value=order_value)
        if cost is None:
            continue
        earliest, latest = method.estimate_delivery(from_date=from_date, distance=distance)
        options.append(
            ShippingOption(
                method_id=str(method.id),
                name=method.name,
                method_type=method.method_type,
                carrier=method.carrier,
                cost=cost,
                min_delivery_date=earliest,
                max_delivery_date=latest,
            )
        )
    return sorted(options, key=lambda option: option.cost)
