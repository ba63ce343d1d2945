"""Postal address value object used by checkout, orders and shipping."""

import json

from protean.fields import String

from storefront.domain import storefront

ADDRESS_FIELDS = ("recipient_name", "phone", "street", "street2", "city", "state", "postal_code", "country")


@storefront.value_object
class Address:
    """A delivery or billing address, frozen once captured on an order."""

    recipient_name = String(max_length=200)
    phone = String(max_length=30)
    street = String(required=True, max_length=255)
    street2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


def address_from(value) -> Address | None:
    """Build an ``Address`` from a JSON string, a dict or an ``Address``.

    Missing required parts raise ``ValidationError``; unknown keys are dropped.
    """
    if value is None or value == "":
        return None
    if isinstance(value, Address):
        return value
    data = json.loads(value) if isinstance(value, str) else dict(value)
    return Address(**{k: v for k, v in data.items() if k in ADDRESS_FIELDS})
