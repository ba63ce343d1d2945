"""Human-readable order numbers: ``ORD-YYYYMMDD-HHMMSS-NNNN``."""

import secrets

import structlog
from protean.utils.globals import current_domain

from storefront.orders.order import Order
from storefront.shared.clock import utcnow

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 10


class OrderNumberExhaustedError(RuntimeError):
    """No unused order number was found within ``MAX_ATTEMPTS`` tries."""


def format_order_number(now, suffix: int) -> str:
    return f"ORD-{now:%Y%m%d}-{now:%H%M%S}-{suffix}"


def generate_order_number(now=None) -> str:
    repo = current_domain.repository_for(Order)
    for attempt in range(1, MAX_ATTEMPTS + 1):
        candidate = format_order_number(now or utcnow(), 1000 + secrets.randbelow(9000))
        if not repo.number_exists(candidate):
            return candidate
        logger.debug("Order number collision", order_number=candidate, attempt=attempt)

    raise OrderNumberExhaustedError(f"Failed to generate a unique order number after {MAX_ATTEMPTS} attempts")
