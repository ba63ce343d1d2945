"""FastAPI endpoints for email templates, sending and subscriptions."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    EmailAddressRequest,
    EmailTemplateRequest,
    IdResponse,
    SendEmailRequest,
    StatusResponse,
    SubscriptionRequest,
    UpdateEmailTemplateRequest,
)
from storefront.notifications.sending import (
    CreateEmailTemplate,
    DeleteEmailTemplate,
    RetryFailedEmails,
    SendEmail,
    UpdateEmailTemplate,
)
from storefront.notifications.subscription import SetEmailAddress, Subscribe, Unsubscribe, get_subscriptions

email_router = APIRouter(prefix="/emails", tags=["emails"])


@email_router.post("", status_code=202)
async def send_email(body: SendEmailRequest) -> dict:
    command = SendEmail(
        template=body.template,
        recipient=body.recipient,
        context=json.dumps(body.context),
        user_id=body.user_id,
    )
    return {"email_id": current_domain.process(command, asynchronous=False)}


@email_router.post("/retry")
async def retry_failed_emails() -> dict:
    return {"delivered": current_domain.process(RetryFailedEmails(), asynchronous=False)}


@email_router.post("/templates", status_code=201, response_model=IdResponse)
async def create_template(body: EmailTemplateRequest) -> IdResponse:
    result = current_domain.process(CreateEmailTemplate(**body.model_dump()), asynchronous=False)
    return IdResponse(id=result)


@email_router.put("/templates/{template_id}", response_model=StatusResponse)
async def update_template(template_id: str, body: UpdateEmailTemplateRequest) -> StatusResponse:
    command = UpdateEmailTemplate(template_id=template_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@email_router.delete("/templates/{template_id}", response_model=StatusResponse)
async def delete_template(template_id: str) -> StatusResponse:
    current_domain.process(DeleteEmailTemplate(template_id=template_id), asynchronous=False)
    return StatusResponse()


@email_router.get("/subscriptions/{user_id}")
async def subscriptions(user_id: str) -> dict:
    return get_subscriptions(user_id)


@email_router.put("/subscriptions/{user_id}/address", response_model=StatusResponse)
async def set_address(user_id: str, body: EmailAddressRequest) -> StatusResponse:
    current_domain.process(SetEmailAddress(user_id=user_id, email=body.email), asynchronous=False)
    return StatusResponse()


@email_router.post("/subscriptions/{user_id}", response_model=StatusResponse)
async def subscribe(user_id: str, body: SubscriptionRequest) -> StatusResponse:
    current_domain.process(Subscribe(user_id=user_id, email_type=body.email_type), asynchronous=False)
    return StatusResponse()


@email_router.delete("/subscriptions/{user_id}/{email_type}", response_model=StatusResponse)
async def unsubscribe(user_id: str, email_type: str) -> StatusResponse:
    current_domain.process(Unsubscribe(user_id=user_id, email_type=email_type), asynchronous=False)
    return StatusResponse()
