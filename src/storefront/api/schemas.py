"""Pydantic request/response schemas for the storefront HTTP API.

These are the external contracts, kept separate from the Protean commands
they are translated into.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class IdResponse(BaseModel):
    id: str


class AddressSchema(BaseModel):
    recipient_name: str | None = None
    phone: str | None = None
    street: str
    street2: str | None = None
    city: str
    state: str | None = None
    postal_code: str
    country: str


class SeoSchema(BaseModel):
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: str | None = None
    canonical_url: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    og_image: str | None = None
    twitter_title: str | None = None
    twitter_description: str | None = None
    schema_markup: str | None = None


class OwnerSchema(BaseModel):
    """A shopper: a signed-in user or a guest session."""

    user_id: str | None = None
    session_id: str | None = None


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    name: str
    sku: str
    price: float = Field(gt=0)
    description: str | None = None
    stock: int = Field(ge=0, default=0)
    category_id: str | None = None
    currency: str = "USD"
    compare_price: float | None = None
    weight: float = Field(ge=0, default=0.0)
    tags: list[str] = []
    is_featured: bool = False
    status: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Trail Running Shoe",
                    "sku": "TRS-042",
                    "price": 129.99,
                    "stock": 25,
                    "tags": ["running", "outdoor"],
                }
            ]
        }
    }


class UpdateProductRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    category_id: str | None = None
    tags: list[str] | None = None
    weight: float | None = None
    is_featured: bool | None = None


class ChangePriceRequest(BaseModel):
    price: float = Field(gt=0)
    compare_price: float | None = None


class UpdateStockRequest(BaseModel):
    stock: int = Field(ge=0)
    reason: str = "adjustment"


class CreateCategoryRequest(BaseModel):
    name: str
    parent_id: str | None = None
    description: str | None = None
    sort_order: int = 0


class UpdateCategoryRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    image_url: str | None = None


class MoveCategoryRequest(BaseModel):
    new_parent_id: str | None = None
    validate_only: bool = False


class CategorySortOrder(BaseModel):
    category_id: str
    sort_order: int


class ReorderCategoriesRequest(BaseModel):
    orders: list[CategorySortOrder]


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(OwnerSchema):
    product_id: str
    quantity: int = Field(ge=1, le=100, default=1)


class UpdateCartItemRequest(OwnerSchema):
    quantity: int


class MergeCartRequest(BaseModel):
    user_id: str
    session_id: str
    strategy: str = "auto"


class CartItemResponse(BaseModel):
    product_id: str
    product_name: str | None = None
    quantity: int
    price: float
    subtotal: float


class CartResponse(BaseModel):
    cart_id: str
    user_id: str | None = None
    session_id: str | None = None
    status: str
    currency: str
    items: list[CartItemResponse]
    item_count: int
    subtotal: float
    tax_amount: float
    shipping_amount: float
    total: float
    expires_at: datetime | None = None


class ConflictingItemResponse(BaseModel):
    product_id: str
    product_name: str | None = None
    user_quantity: int
    guest_quantity: int
    user_price: float
    guest_price: float
    price_difference: float


class MergeConflictResponse(BaseModel):
    has_conflict: bool
    user_cart_exists: bool
    guest_cart_exists: bool
    conflicting_items: list[ConflictingItemResponse]
    recommendations: list[str]


# ---------------------------------------------------------------------------
# Wishlist
# ---------------------------------------------------------------------------
class WishlistItemRequest(BaseModel):
    product_id: str


# ---------------------------------------------------------------------------
# Checkout and orders
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    user_id: str
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    payment_method: str
    tax_rate: float = Field(ge=0, le=1, default=0.0)
    shipping_method_id: str | None = None
    coupon_code: str | None = None
    notes: str | None = None


class CodOrderRequest(BaseModel):
    user_id: str
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    tax_rate: float = Field(ge=0, le=1, default=0.0)
    shipping_method_id: str | None = None
    coupon_code: str | None = None
    notes: str | None = None


class CheckoutSessionResponse(BaseModel):
    session_id: str


class CompleteCheckoutRequest(BaseModel):
    payment_id: str | None = None


class OrderIdResponse(BaseModel):
    order_id: str


class UpdateOrderStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    carrier: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str | None = None
    product_sku: str | None = None
    quantity: int
    price: float
    total: float


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    user_id: str
    status: str
    payment_status: str
    payment_method: str | None = None
    items: list[OrderItemResponse]
    subtotal: float
    tax_amount: float
    shipping_amount: float
    discount_amount: float
    total: float
    currency: str
    tracking_number: str | None = None
    carrier: str | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class ProcessPaymentRequest(BaseModel):
    order_id: str
    method: str


class PaymentResponse(BaseModel):
    payment_id: str
    status: str
    failure_reason: str | None = None


class RefundRequest(BaseModel):
    amount: float = Field(gt=0)
    reason: str | None = None


class RefundResponse(BaseModel):
    refund_id: str | None = None


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class CreateCouponRequest(BaseModel):
    code: str
    name: str
    description: str | None = None
    coupon_type: str
    value: float = Field(ge=0)
    max_discount: float | None = None
    min_order_amount: float | None = None
    applicability: str = "all"
    applicable_ids: list[str] = []
    usage_limit: int | None = None
    usage_limit_per_user: int | None = None
    buy_quantity: int | None = None
    get_quantity: int | None = None
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_first_time_user: bool = False
    is_public: bool = True


class UpdateCouponRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    value: float | None = None
    max_discount: float | None = None
    min_order_amount: float | None = None
    usage_limit: int | None = None
    usage_limit_per_user: int | None = None
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_public: bool | None = None


class ValidateCouponRequest(BaseModel):
    code: str
    user_id: str
    order_total: float = Field(ge=0)


class CouponValidationResponse(BaseModel):
    is_valid: bool
    discount_amount: float
    message: str
    coupon_id: str | None = None


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------
class CreateShippingMethodRequest(BaseModel):
    name: str
    description: str | None = None
    method_type: str = "standard"
    carrier: str | None = None
    base_cost: float = Field(ge=0, default=0.0)
    cost_per_kg: float = Field(ge=0, default=0.0)
    cost_per_km: float = Field(ge=0, default=0.0)
    free_shipping_min: float = Field(ge=0, default=0.0)
    max_weight: float = Field(ge=0, default=0.0)
    min_delivery_days: int = Field(ge=0, default=1)
    max_delivery_days: int = Field(ge=0, default=7)
    sort_order: int = 0


class ShippingOptionResponse(BaseModel):
    method_id: str
    name: str
    method_type: str
    carrier: str | None = None
    cost: float
    min_delivery_date: datetime
    max_delivery_date: datetime


class CreateShipmentRequest(BaseModel):
    order_id: str
    shipping_method_id: str | None = None
    carrier: str | None = None
    distance: float | None = None


class UpdateShipmentStatusRequest(BaseModel):
    status: str
    location: str | None = None
    description: str | None = None


class CreateReturnRequest(BaseModel):
    order_id: str
    user_id: str
    reason: str
    description: str | None = None


class ProcessReturnRequest(BaseModel):
    action: str
    notes: str | None = None
    tracking_number: str | None = None


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
class SearchHit(BaseModel):
    product_id: str
    name: str
    sku: str
    slug: str | None = None
    price: float
    currency: str | None = None
    category_id: str | None = None
    in_stock: bool


class SearchResponse(BaseModel):
    items: list[SearchHit]
    total: int
    page: int
    page_size: int
    total_pages: int
    facets: dict


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
class SendEmailRequest(BaseModel):
    template: str
    recipient: str
    context: dict = {}
    user_id: str | None = None


class EmailTemplateRequest(BaseModel):
    name: str
    subject: str
    body: str
    html_body: str | None = None


class UpdateEmailTemplateRequest(BaseModel):
    subject: str | None = None
    body: str | None = None
    html_body: str | None = None
    is_active: bool | None = None


class EmailAddressRequest(BaseModel):
    email: str


class SubscriptionRequest(BaseModel):
    email_type: str
