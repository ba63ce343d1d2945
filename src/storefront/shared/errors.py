"""Error categories shared across the storefront.

Invalid input and broken rules surface as ``ValidationError``, illegal state
changes as ``InvalidOperationError`` and missing records as
``ObjectNotFoundError`` (all from ``protean.exceptions``). The classes here
refine those categories where callers need structured details.
"""

from protean.exceptions import InvalidOperationError, ValidationError


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds the stock that is free to sell."""

    def __init__(self, product_id, requested: int, available: int, product_name: str | None = None):
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
        label = product_name or self.product_id
        super().__init__(
            {"stock": [f"Insufficient stock for {label}: requested {requested}, available {available}"]}
        )


class CircularReferenceError(InvalidOperationError):
    """A category move would make a category its own ancestor."""


class CategoryHasChildrenError(InvalidOperationError):
    """A category with sub-categories cannot be deleted."""
