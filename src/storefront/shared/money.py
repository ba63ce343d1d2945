"""Monetary helpers and the currencies the storefront trades in."""

from enum import Enum


class Currency(Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    VND = "VND"


SUPPORTED_CURRENCIES = frozenset(c.value for c in Currency)

# Tolerance when comparing computed amounts
MONEY_EPSILON = 0.01


def round_money(amount: float) -> float:
    """Round to cents, half away from zero."""
    if amount is None:
        return 0.0
    cents = int(abs(amount) * 100 + 0.5)
    return cents / 100 if amount >= 0 else -cents / 100


def money_equal(left: float, right: float) -> bool:
    return abs((left or 0.0) - (right or 0.0)) < MONEY_EPSILON
