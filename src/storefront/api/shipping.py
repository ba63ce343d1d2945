"""FastAPI endpoints for shipping methods, shipments and returns."""

from dataclasses import asdict

from fastapi import APIRouter
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    CreateReturnRequest,
    CreateShipmentRequest,
    CreateShippingMethodRequest,
    IdResponse,
    ProcessReturnRequest,
    ShippingOptionResponse,
    StatusResponse,
    UpdateShipmentStatusRequest,
)
from storefront.shipping.management import (
    CreateShipment,
    CreateShippingMethod,
    SetShippingMethodActive,
    UpdateShipmentStatus,
    track_shipment,
)
from storefront.shipping.rates import shipping_options
from storefront.shipping.returns import CreateReturn, ProcessReturn

shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])
return_router = APIRouter(prefix="/returns", tags=["returns"])


@shipping_router.post("/methods", status_code=201, response_model=IdResponse)
async def create_shipping_method(body: CreateShippingMethodRequest) -> IdResponse:
    result = current_domain.process(CreateShippingMethod(**body.model_dump()), asynchronous=False)
    return IdResponse(id=result)


@shipping_router.put("/methods/{method_id}/activate", response_model=StatusResponse)
async def activate_shipping_method(method_id: str) -> StatusResponse:
    current_domain.process(SetShippingMethodActive(method_id=method_id, is_active=True), asynchronous=False)
    return StatusResponse()


@shipping_router.put("/methods/{method_id}/deactivate", response_model=StatusResponse)
async def deactivate_shipping_method(method_id: str) -> StatusResponse:
    current_domain.process(SetShippingMethodActive(method_id=method_id, is_active=False), asynchronous=False)
    return StatusResponse()


@shipping_router.get("/options", response_model=list[ShippingOptionResponse])
async def list_shipping_options(
    weight: float = 0.0,
    order_value: float = 0.0,
    distance: float | None = None,
) -> list[ShippingOptionResponse]:
    options = shipping_options(weight=weight, distance=distance, order_value=order_value)
    return [ShippingOptionResponse(**asdict(option)) for option in options]


@shipping_router.post("/shipments", status_code=201, response_model=IdResponse)
async def create_shipment(body: CreateShipmentRequest) -> IdResponse:
    command = CreateShipment(
        order_id=body.order_id,
        shipping_method_id=body.shipping_method_id,
        carrier=body.carrier,
        distance=body.distance,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@shipping_router.put("/shipments/{shipment_id}/status", response_model=StatusResponse)
async def update_shipment_status(shipment_id: str, body: UpdateShipmentStatusRequest) -> StatusResponse:
    command = UpdateShipmentStatus(
        shipment_id=shipment_id,
        status=body.status,
        location=body.location,
        description=body.description,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@shipping_router.get("/track/{tracking_number}")
async def track(tracking_number: str) -> dict:
    return track_shipment(tracking_number)


@return_router.post("", status_code=201, response_model=IdResponse)
async def create_return(body: CreateReturnRequest) -> IdResponse:
    command = CreateReturn(
        order_id=body.order_id,
        user_id=body.user_id,
        reason=body.reason,
        description=body.description,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@return_router.put("/{return_id}", response_model=StatusResponse)
async def process_return(return_id: str, body: ProcessReturnRequest) -> StatusResponse:
    command = ProcessReturn(
        return_id=return_id,
        action=body.action,
        notes=body.notes,
        tracking_number=body.tracking_number,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
