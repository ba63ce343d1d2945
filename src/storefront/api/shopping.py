"""FastAPI endpoints for the shopping cart and the wishlist."""

from dataclasses import asdict

from fastapi import APIRouter
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddToCartRequest,
    CartItemResponse,
    CartResponse,
    IdResponse,
    MergeCartRequest,
    MergeConflictResponse,
    OwnerSchema,
    StatusResponse,
    UpdateCartItemRequest,
    WishlistItemRequest,
)
from storefront.cart.cart import ShoppingCart
from storefront.cart.items import AddToCart, RemoveFromCart, UpdateCartItem
from storefront.cart.management import ClearCart, GetOrCreateCart
from storefront.cart.merge import MergeGuestCart, check_merge_conflict
from storefront.wishlist.management import (
    AddToWishlist,
    ClearWishlist,
    RemoveFromWishlist,
    get_wishlist,
    is_in_wishlist,
    wishlist_count,
)

cart_router = APIRouter(prefix="/cart", tags=["cart"])
wishlist_router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def _cart_response(cart: ShoppingCart) -> CartResponse:
    return CartResponse(
        cart_id=str(cart.id),
        user_id=str(cart.user_id) if cart.user_id else None,
        session_id=cart.session_id,
        status=cart.status,
        currency=cart.currency,
        items=[
            CartItemResponse(
                product_id=str(item.product_id),
                product_name=item.product_name,
                quantity=item.quantity,
                price=item.price,
                subtotal=item.subtotal,
            )
            for item in cart.items
        ],
        item_count=cart.item_count,
        subtotal=cart.subtotal,
        tax_amount=cart.tax_amount,
        shipping_amount=cart.shipping_amount,
        total=cart.total,
        expires_at=cart.expires_at,
    )


def _current_cart(user_id, session_id) -> CartResponse:
    cart_id = current_domain.process(
        GetOrCreateCart(user_id=user_id, session_id=session_id),
        asynchronous=False,
    )
    return _cart_response(current_domain.repository_for(ShoppingCart).get(cart_id))


# --- Cart endpoints ---


@cart_router.get("", response_model=CartResponse)
async def get_cart(user_id: str | None = None, session_id: str | None = None) -> CartResponse:
    return _current_cart(user_id, session_id)


@cart_router.post("/items", response_model=CartResponse)
async def add_to_cart(body: AddToCartRequest) -> CartResponse:
    command = AddToCart(
        user_id=body.user_id,
        session_id=body.session_id,
        product_id=body.product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _current_cart(body.user_id, body.session_id)


@cart_router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(product_id: str, body: UpdateCartItemRequest) -> CartResponse:
    command = UpdateCartItem(
        user_id=body.user_id,
        session_id=body.session_id,
        product_id=product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _current_cart(body.user_id, body.session_id)


@cart_router.delete("/items/{product_id}", response_model=StatusResponse)
async def remove_from_cart(product_id: str, user_id: str | None = None, session_id: str | None = None) -> StatusResponse:
    command = RemoveFromCart(user_id=user_id, session_id=session_id, product_id=product_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.post("/clear", response_model=StatusResponse)
async def clear_cart(body: OwnerSchema) -> StatusResponse:
    current_domain.process(ClearCart(user_id=body.user_id, session_id=body.session_id), asynchronous=False)
    return StatusResponse()


@cart_router.get("/merge-conflicts", response_model=MergeConflictResponse)
async def merge_conflicts(user_id: str, session_id: str) -> MergeConflictResponse:
    return MergeConflictResponse(**asdict(check_merge_conflict(user_id, session_id)))


@cart_router.post("/merge", response_model=CartResponse)
async def merge_guest_cart(body: MergeCartRequest) -> CartResponse:
    command = MergeGuestCart(user_id=body.user_id, session_id=body.session_id, strategy=body.strategy)
    cart_id = current_domain.process(command, asynchronous=False)
    return _cart_response(current_domain.repository_for(ShoppingCart).get(cart_id))


# --- Wishlist endpoints ---


@wishlist_router.get("/{user_id}")
async def wishlist(user_id: str, limit: int = 10, offset: int = 0) -> dict:
    page = get_wishlist(user_id, limit=limit, offset=offset)
    for item in page["items"]:
        product = item["product"]
        item["product"] = product.to_dict() if product is not None else None
    return page


@wishlist_router.get("/{user_id}/count")
async def wishlist_size(user_id: str) -> dict:
    return {"count": wishlist_count(user_id)}


@wishlist_router.get("/{user_id}/items/{product_id}")
async def wishlist_contains(user_id: str, product_id: str) -> dict:
    return {"in_wishlist": is_in_wishlist(user_id, product_id)}


@wishlist_router.post("/{user_id}/items", status_code=201, response_model=IdResponse)
async def add_to_wishlist(user_id: str, body: WishlistItemRequest) -> IdResponse:
    result = current_domain.process(AddToWishlist(user_id=user_id, product_id=body.product_id), asynchronous=False)
    return IdResponse(id=result)


@wishlist_router.delete("/{user_id}/items/{product_id}", response_model=StatusResponse)
async def remove_from_wishlist(user_id: str, product_id: str) -> StatusResponse:
    current_domain.process(RemoveFromWishlist(user_id=user_id, product_id=product_id), asynchronous=False)
    return StatusResponse()


@wishlist_router.delete("/{user_id}", response_model=StatusResponse)
async def clear_wishlist(user_id: str) -> StatusResponse:
    current_domain.process(ClearWishlist(user_id=user_id), asynchronous=False)
    return StatusResponse()
