"""Storefront domain: catalogue, carts, checkout, orders and the services around them.

A single Protean domain hosts every aggregate so that the multi-aggregate
flows (guest cart merge, checkout completion, COD orders) run inside one
unit of work.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
