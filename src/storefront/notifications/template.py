"""Email templates: built-in defaults, overridable by stored templates.

Bodies and subjects use ``{placeholder}`` fields. Placeholders missing from
the render context are left as-is rather than failing the send.
"""

import string
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.shared.clock import utcnow


class EmailType(Enum):
    WELCOME = "welcome"
    ORDER_CONFIRMATION = "order_confirmation"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"
    PASSWORD_RESET = "password_reset"
    ABANDONED_CART = "abandoned_cart"
    REVIEW_REQUEST = "review_request"
    LOW_STOCK_ALERT = "low_stock_alert"


DEFAULT_TEMPLATES = {
    EmailType.WELCOME.value: (
        "Welcome to Our Store!",
        "Hi {name},\n\nThanks for creating an account. Happy shopping!",
    ),
    EmailType.ORDER_CONFIRMATION.value: (
        "Order Confirmation - Order #{order_number}",
        "Thank you for your order #{order_number}.\n\n"
        "Order total: {currency} {total}\n\n"
        "We'll let you know as soon as it ships.",
    ),
    EmailType.ORDER_SHIPPED.value: (
        "Your Order Has Been Shipped - Order #{order_number}",
        "Good news! Order #{order_number} is on its way.\n\n"
        "Carrier: {carrier}\nTracking number: {tracking_number}",
    ),
    EmailType.ORDER_DELIVERED.value: (
        "Your Order Has Been Delivered - Order #{order_number}",
        "Order #{order_number} has been delivered. We hope you enjoy it!",
    ),
    EmailType.ORDER_CANCELLED.value: (
        "Your Order Has Been Cancelled - Order #{order_number}",
        "Order #{order_number} has been cancelled.\n\nReason: {reason}",
    ),
    EmailType.PASSWORD_RESET.value: (
        "Reset Your Password",
        "Use the link below to reset your password. It expires in one hour.\n\n{reset_url}",
    ),
    EmailType.ABANDONED_CART.value: (
        "You left something in your cart",
        "You still have {item_count} item(s) waiting in your cart.\n\nCome back and complete your purchase!",
    ),
    EmailType.REVIEW_REQUEST.value: (
        "How was your order #{order_number}?",
        "We'd love to hear what you think about the products in order #{order_number}.",
    ),
    EmailType.LOW_STOCK_ALERT.value: (
        "Low stock: {product_name}",
        "{product_name} (SKU {sku}) is down to {stock} unit(s).",
    ),
}


class _KeepMissing(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def render_text(text, context) -> str:
    if not text:
        return ""
    formatter = string.Formatter()
    try:
        return formatter.vformat(text, (), _KeepMissing({k: v for k, v in (context or {}).items() if v is not None}))
    except (ValueError, IndexError):
        # Stray braces: send the text unrendered
        return text


@storefront.aggregate
class EmailTemplate:
    name = String(required=True, max_length=100, unique=True)
    subject = String(required=True, max_length=255)
    body = Text(required=True)
    html_body = Text()
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, subject, body, html_body=None):
        now = utcnow()
        return cls(
            name=name.strip().lower(),
            subject=subject,
            body=body,
            html_body=html_body,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

    def update(self, subject=None, body=None, html_body=None, is_active=None):
        if subject is not None:
            if not subject.strip():
                raise ValidationError({"subject": ["Subject cannot be blank"]})
            self.subject = subject
        if body is not None:
            if not body.strip():
                raise ValidationError({"body": ["Body cannot be blank"]})
            self.body = body
        if html_body is not None:
            self.html_body = html_body
        if is_active is not None:
            self.is_active = is_active
        self.updated_at = utcnow()

    def render(self, context) -> dict:
        return {
            "subject": render_text(self.subject, context),
            "body": render_text(self.body, context),
            "html_body": render_text(self.html_body, context) or None,
        }


@storefront.repository(part_of=EmailTemplate)
class EmailTemplateRepository:
    def by_name(self, name) -> EmailTemplate | None:
        return self._dao.query.filter(name=name).all().first


def render_template(name, context) -> dict:
    """Render the stored template called ``name``, or the built-in default."""
    stored = current_domain.repository_for(EmailTemplate).by_name(name)
    if stored is not None and stored.is_active:
        return stored.render(context)

    if name not in DEFAULT_TEMPLATES:
        raise ValidationError({"template": [f"Unknown email template: {name}"]})
    subject, body = DEFAULT_TEMPLATES[name]
    return {"subject": render_text(subject, context), "body": render_text(body, context), "html_body": None}
