"""Storefront HTTP API: one router per business area."""

from storefront.api.catalogue import category_router, product_router
from storefront.api.notifications import email_router
from storefront.api.orders import checkout_router, coupon_router, order_router, payment_router
from storefront.api.search import search_router
from storefront.api.shipping import return_router, shipping_router
from storefront.api.shopping import cart_router, wishlist_router

routers = [
    product_router,
    category_router,
    search_router,
    cart_router,
    wishlist_router,
    checkout_router,
    order_router,
    payment_router,
    coupon_router,
    shipping_router,
    return_router,
    email_router,
]

__all__ = ["routers"]
