"""Sending email: template rendering, preference checks, delivery and retries."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.notifications.channel import get_email_channel
from storefront.notifications.email import Email
from storefront.notifications.subscription import EmailSubscription
from storefront.notifications.template import EmailTemplate, render_template

logger = structlog.get_logger(__name__)


def recipient_for(user_id) -> str | None:
    subscription = current_domain.repository_for(EmailSubscription).for_user(user_id)
    return subscription.email if subscription else None


def deliver(email: Email) -> bool:
    """Hand the email to the channel and record the outcome on the aggregate."""
    try:
        result = get_email_channel().send(
            to=email.recipient,
            subject=email.subject,
            body=email.body,
            html_body=email.html_body,
        )
    except Exception as exc:
        result = {"status": "failed", "error": str(exc)}

    if result.get("status") == "sent":
        email.mark_sent(result.get("message_id"))
        return True

    email.mark_failed(result.get("error", "Unknown delivery error"))
    logger.error(
        "Email delivery failed",
        email_id=str(email.id),
        email_type=email.email_type,
        error=email.error_message,
    )
    return False


def send_email(template, recipient, context=None, user_id=None) -> str | None:
    """Render and deliver one email; returns the email id, or None when skipped."""
    if not recipient:
        raise ValidationError({"recipient": ["Recipient is required"]})

    if user_id:
        subscription = current_domain.repository_for(EmailSubscription).for_user(user_id)
        if subscription is not None and not subscription.is_subscribed_to(template):
            logger.info("User unsubscribed from email type", user_id=str(user_id), email_type=template)
            return None

    rendered = render_template(template, context or {})
    email = Email.compose(
        recipient=recipient,
        email_type=template,
        subject=rendered["subject"],
        body=rendered["body"],
        html_body=rendered["html_body"],
        user_id=user_id,
    )
    deliver(email)
    current_domain.repository_for(Email).add(email)
    return str(email.id)


def send_to_user(template, user_id, context=None) -> str | None:
    """Send to a user's registered address; users without one are skipped."""
    recipient = recipient_for(user_id)
    if not recipient:
        logger.info("No email address on file, skipping", user_id=str(user_id), email_type=template)
        return None
    return send_email(template, recipient, context, user_id=user_id)


# ---------------------------------------------------------------------------
# Convenience senders
# ---------------------------------------------------------------------------
def send_welcome_email(user_id, name=None):
    return send_to_user("welcome", user_id, {"name": name or "there"})


def _order_context(order, **extra):
    context = {
        "order_number": order.order_number,
        "total": f"{order.total:.2f}",
        "currency": order.currency,
        "tracking_number": order.tracking_number,
        "carrier": order.carrier,
        "reason": order.cancellation_reason,
    }
    context.update(extra)
    return context


def send_order_confirmation(order):
    return send_to_user("order_confirmation", order.user_id, _order_context(order))


def send_order_shipped(order):
    return send_to_user("order_shipped", order.user_id, _order_context(order))


def send_order_delivered(order):
    return send_to_user("order_delivered", order.user_id, _order_context(order))


def send_order_cancelled(order):
    return send_to_user("order_cancelled", order.user_id, _order_context(order))


def send_review_request(order):
    return send_to_user("review_request", order.user_id, _order_context(order))


def send_password_reset(user_id, reset_url):
    return send_to_user("password_reset", user_id, {"reset_url": reset_url})


def send_abandoned_cart(cart):
    if not cart.user_id:
        return None
    return send_to_user("abandoned_cart", cart.user_id, {"item_count": cart.item_count})


def send_low_stock_alert(product, recipient):
    return send_email(
        "low_stock_alert",
        recipient,
        {"product_name": product.name, "sku": product.sku, "stock": product.stock},
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@storefront.command(part_of="Email")
class SendEmail:
    template = String(required=True, max_length=100)
    recipient = String(required=True, max_length=254)
    context = Text()  # JSON object of placeholder values
    user_id = Identifier()


@storefront.command(part_of="Email")
class RetryFailedEmails:
    batch_size = Integer(default=100, min_value=1)


@storefront.command(part_of="EmailTemplate")
class CreateEmailTemplate:
    name = String(required=True, max_length=100)
    subject = String(required=True, max_length=255)
    body = Text(required=True)
    html_body = Text()


@storefront.command(part_of="EmailTemplate")
class UpdateEmailTemplate:
    template_id = Identifier(required=True)
    subject = String(max_length=255)
    body = Text()
    html_body = Text()
    is_active = Boolean()


@storefront.command(part_of="EmailTemplate")
class DeleteEmailTemplate:
    template_id = Identifier(required=True)


@storefront.command_handler(part_of=Email)
class EmailHandler:
    @handle(SendEmail)
    def send(self, command):
        context = json.loads(command.context) if command.context else {}
        return send_email(command.template, command.recipient, context, user_id=command.user_id)

    @handle(RetryFailedEmails)
    def retry_failed(self, command):
        repo = current_domain.repository_for(Email)
        retried = 0
        for email in repo.retryable()[: command.batch_size or 100]:
            if deliver(email):
                retried += 1
            repo.add(email)
        logger.info("Retried failed emails", delivered=retried)
        return retried


@storefront.command_handler(part_of=EmailTemplate)
class EmailTemplateHandler:
    @handle(CreateEmailTemplate)
    def create(self, command):
        repo = current_domain.repository_for(EmailTemplate)
        if repo.by_name(command.name.strip().lower()) is not None:
            raise ValidationError({"name": [f"Template '{command.name}' already exists"]})
        template = EmailTemplate.create(
            name=command.name,
            subject=command.subject,
            body=command.body,
            html_body=command.html_body,
        )
        repo.add(template)
        return str(template.id)

    @handle(UpdateEmailTemplate)
    def update(self, command):
        repo = current_domain.repository_for(EmailTemplate)
        template = repo.get(command.template_id)
        template.update(
            subject=command.subject,
            body=command.body,
            html_body=command.html_body,
            is_active=command.is_active,
        )
        repo.add(template)

    @handle(DeleteEmailTemplate)
    def delete(self, command):
        repo = current_domain.repository_for(EmailTemplate)
        template = repo.get(command.template_id)
        repo._dao.delete(template)
