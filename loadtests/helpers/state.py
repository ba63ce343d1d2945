"""Per-user state for Locust scenarios.

Each Locust user keeps its own ids; nothing is shared across users.
"""

from dataclasses import dataclass, field


@dataclass
class CatalogueState:
    category_ids: list[str] = field(default_factory=list)
    product_ids: list[str] = field(default_factory=list)


@dataclass
class ShopperState:
    user_id: str | None = None
    session_id: str | None = None
    product_ids: list[str] = field(default_factory=list)
    checkout_session_id: str | None = None
    order_id: str | None = None
    coupon_code: str | None = None
