"""Wishlist aggregate: the products a customer wants to come back to."""

from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, HasMany, Identifier

from storefront.domain import storefront
from storefront.shared.clock import utcnow


@storefront.entity(part_of="Wishlist")
class WishlistItem:
    product_id = Identifier(required=True)
    added_at = DateTime(required=True)


@storefront.aggregate
class Wishlist:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(WishlistItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id):
        now = utcnow()
        return cls(user_id=user_id, created_at=now, updated_at=now)

    def contains(self, product_id) -> bool:
        return self._find(product_id) is not None

    @property
    def count(self) -> int:
        return len(self.items)

    def add(self, product_id):
        if self.contains(product_id):
            raise InvalidOperationError("Product is already in the wishlist")
        now = utcnow()
        self.add_items(WishlistItem(product_id=product_id, added_at=now))
        self.updated_at = now

    def remove(self, product_id):
        item = self._find(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in the wishlist"]})
        self.remove_items(item)
        self.updated_at = utcnow()

    def clear(self):
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = utcnow()

    def newest_first(self) -> list[WishlistItem]:
        return sorted(self.items, key=lambda item: item.added_at, reverse=True)

    def _find(self, product_id):
        return next((item for item in self.items if str(item.product_id) == str(product_id)), None)


@storefront.repository(part_of=Wishlist)
class WishlistRepository:
    def for_user(self, user_id) -> Wishlist | None:
        return self._dao.query.filter(user_id=str(user_id)).all().first
