"""Wishlist commands and read helpers."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.domain import storefront
from storefront.wishlist.wishlist import Wishlist

MAX_PAGE_SIZE = 100


@storefront.command(part_of="Wishlist")
class AddToWishlist:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Wishlist")
class RemoveFromWishlist:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Wishlist")
class ClearWishlist:
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=Wishlist)
class WishlistHandler:
    @handle(AddToWishlist)
    def add(self, command):
        if not current_domain.repository_for(Product).by_ids([command.product_id]):
            raise ValidationError({"product_id": ["Product not found"]})

        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.for_user(command.user_id) or Wishlist.create(command.user_id)
        wishlist.add(command.product_id)
        repo.add(wishlist)
        return str(wishlist.id)

    @handle(RemoveFromWishlist)
    def remove(self, command):
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.for_user(command.user_id)
        if wishlist is None:
            raise ValidationError({"product_id": ["Product is not in the wishlist"]})
        wishlist.remove(command.product_id)
        repo.add(wishlist)

    @handle(ClearWishlist)
    def clear(self, command):
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.for_user(command.user_id)
        if wishlist is not None and wishlist.items:
            wishlist.clear()
            repo.add(wishlist)


def get_wishlist(user_id, limit=10, offset=0) -> dict:
    """Wishlist page with product details, newest additions first."""
    limit = min(max(limit or 10, 1), MAX_PAGE_SIZE)
    offset = max(offset or 0, 0)

    wishlist = current_domain.repository_for(Wishlist).for_user(user_id)
    items = wishlist.newest_first() if wishlist else []
    page = items[offset : offset + limit]
    products = current_domain.repository_for(Product).by_ids([item.product_id for item in page])

    return {
        "items": [
            {
                "product_id": str(item.product_id),
                "added_at": item.added_at,
                "product": products.get(str(item.product_id)),
            }
            for item in page
        ],
        "total": len(items),
        "limit": limit,
        "offset": offset,
    }


def is_in_wishlist(user_id, product_id) -> bool:
    wishlist = current_domain.repository_for(Wishlist).for_user(user_id)
    return wishlist is not None and wishlist.contains(product_id)


def wishlist_count(user_id) -> int:
    wishlist = current_domain.repository_for(Wishlist).for_user(user_id)
    return wishlist.count if wishlist else 0
