"""FastAPI endpoints for checkout, orders, payments and coupons."""

import json
from dataclasses import asdict

from fastapi import APIRouter
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    CancelOrderRequest,
    CheckoutRequest,
    CheckoutSessionResponse,
    CodOrderRequest,
    CompleteCheckoutRequest,
    CouponValidationResponse,
    CreateCouponRequest,
    IdResponse,
    OrderIdResponse,
    OrderItemResponse,
    OrderResponse,
    PaymentResponse,
    ProcessPaymentRequest,
    RefundRequest,
    RefundResponse,
    StatusResponse,
    UpdateCouponRequest,
    UpdateOrderStatusRequest,
    ValidateCouponRequest,
)
from storefront.checkout.completion import CancelCheckoutSession, complete_checkout
from storefront.checkout.creation import CreateCheckoutSession
from storefront.checkout.session import CheckoutSession
from storefront.coupons.coupon import Coupon
from storefront.coupons.management import CreateCoupon, DeactivateCoupon, UpdateCoupon
from storefront.coupons.redemption import validate_coupon
from storefront.orders.cod import CreateCodOrder
from storefront.orders.management import CancelOrder, UpdateOrderStatus
from storefront.orders.order import Order
from storefront.payments.processing import ProcessPayment, RefundPayment

checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
payment_router = APIRouter(prefix="/payments", tags=["payments"])
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


def _address_json(address):
    return json.dumps(address.model_dump(exclude_none=True)) if address is not None else None


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.user_id),
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                product_name=item.product_name,
                product_sku=item.product_sku,
                quantity=item.quantity,
                price=item.price,
                total=item.total,
            )
            for item in order.items
        ],
        subtotal=order.subtotal,
        tax_amount=order.tax_amount,
        shipping_amount=order.shipping_amount,
        discount_amount=order.discount_amount,
        total=order.total,
        currency=order.currency,
        tracking_number=order.tracking_number,
        carrier=order.carrier,
        created_at=order.created_at,
    )


# --- Checkout endpoints ---


@checkout_router.post("/sessions", status_code=201, response_model=CheckoutSessionResponse)
async def create_checkout_session(body: CheckoutRequest) -> CheckoutSessionResponse:
    command = CreateCheckoutSession(
        user_id=body.user_id,
        shipping_address=_address_json(body.shipping_address),
        billing_address=_address_json(body.billing_address),
        payment_method=body.payment_method,
        tax_rate=body.tax_rate,
        shipping_method_id=body.shipping_method_id,
        coupon_code=body.coupon_code,
        notes=body.notes,
    )
    session_id = current_domain.process(command, asynchronous=False)
    return CheckoutSessionResponse(session_id=session_id)


@checkout_router.get("/sessions/{session_id}")
async def get_checkout_session(session_id: str) -> dict:
    session = current_domain.repository_for(CheckoutSession).get_by_session_id(session_id)
    data = session.to_dict()
    data["items"] = session.item_list
    return data


@checkout_router.post("/sessions/{session_id}/complete", status_code=201, response_model=OrderIdResponse)
async def complete_checkout_session(session_id: str, body: CompleteCheckoutRequest) -> OrderIdResponse:
    return OrderIdResponse(order_id=complete_checkout(session_id, payment_id=body.payment_id))


@checkout_router.post("/sessions/{session_id}/cancel", response_model=StatusResponse)
async def cancel_checkout_session(session_id: str) -> StatusResponse:
    current_domain.process(CancelCheckoutSession(session_id=session_id), asynchronous=False)
    return StatusResponse()


@checkout_router.post("/cod", status_code=201, response_model=OrderIdResponse)
async def create_cod_order(body: CodOrderRequest) -> OrderIdResponse:
    command = CreateCodOrder(
        user_id=body.user_id,
        shipping_address=_address_json(body.shipping_address),
        billing_address=_address_json(body.billing_address),
        tax_rate=body.tax_rate,
        shipping_method_id=body.shipping_method_id,
        coupon_code=body.coupon_code,
        notes=body.notes,
    )
    return OrderIdResponse(order_id=current_domain.process(command, asynchronous=False))


# --- Order endpoints ---


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return _order_response(current_domain.repository_for(Order).get(order_id))


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(user_id: str) -> list[OrderResponse]:
    return [_order_response(order) for order in current_domain.repository_for(Order).for_user(user_id)]


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> StatusResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        tracking_number=body.tracking_number,
        carrier=body.carrier,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    current_domain.process(CancelOrder(order_id=order_id, reason=body.reason), asynchronous=False)
    return StatusResponse()


# --- Payment endpoints ---


@payment_router.post("", status_code=201, response_model=PaymentResponse)
async def process_payment(body: ProcessPaymentRequest) -> PaymentResponse:
    result = current_domain.process(ProcessPayment(order_id=body.order_id, method=body.method), asynchronous=False)
    return PaymentResponse(**result)


@payment_router.post("/{payment_id}/refunds", status_code=201, response_model=RefundResponse)
async def refund_payment(payment_id: str, body: RefundRequest) -> RefundResponse:
    command = RefundPayment(payment_id=payment_id, amount=body.amount, reason=body.reason)
    return RefundResponse(refund_id=current_domain.process(command, asynchronous=False))


# --- Coupon endpoints ---


@coupon_router.post("", status_code=201, response_model=IdResponse)
async def create_coupon(body: CreateCouponRequest) -> IdResponse:
    data = body.model_dump()
    data["applicable_ids"] = json.dumps(data["applicable_ids"])
    result = current_domain.process(CreateCoupon(**data), asynchronous=False)
    return IdResponse(id=result)


@coupon_router.get("")
async def public_coupons() -> list[dict]:
    return [coupon.to_dict() for coupon in current_domain.repository_for(Coupon).public()]


@coupon_router.post("/validate", response_model=CouponValidationResponse)
async def check_coupon(body: ValidateCouponRequest) -> CouponValidationResponse:
    return CouponValidationResponse(**asdict(validate_coupon(body.code, body.user_id, body.order_total)))


@coupon_router.put("/{coupon_id}", response_model=StatusResponse)
async def update_coupon(coupon_id: str, body: UpdateCouponRequest) -> StatusResponse:
    command = UpdateCoupon(coupon_id=coupon_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@coupon_router.post("/{coupon_id}/deactivate", response_model=StatusResponse)
async def deactivate_coupon(coupon_id: str) -> StatusResponse:
    current_domain.process(DeactivateCoupon(coupon_id=coupon_id), asynchronous=False)
    return StatusResponse()
