"""Per-user email preferences and the address emails go to."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.notifications.template import EmailType
from storefront.shared.clock import utcnow

# Sent regardless of preferences
TRANSACTIONAL_TYPES = frozenset(
    {
        EmailType.ORDER_CONFIRMATION.value,
        EmailType.ORDER_CANCELLED.value,
        EmailType.PASSWORD_RESET.value,
        EmailType.LOW_STOCK_ALERT.value,
    }
)

_EMAIL_TYPES = {t.value for t in EmailType}


def _check_email_type(email_type):
    if email_type not in _EMAIL_TYPES:
        raise ValidationError({"email_type": [f"Unknown email type: {email_type}"]})


@storefront.aggregate
class EmailSubscription:
    user_id = Identifier(required=True, unique=True)
    email = String(max_length=254)
    unsubscribed = Text()  # JSON array of email types
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id, email=None):
        now = utcnow()
        return cls(user_id=user_id, email=email, unsubscribed="[]", created_at=now, updated_at=now)

    @property
    def unsubscribed_types(self) -> list[str]:
        return json.loads(self.unsubscribed) if self.unsubscribed else []

    def is_subscribed_to(self, email_type) -> bool:
        return email_type in TRANSACTIONAL_TYPES or email_type not in self.unsubscribed_types

    def subscribe(self, email_type):
        _check_email_type(email_type)
        self.unsubscribed = json.dumps([t for t in self.unsubscribed_types if t != email_type])
        self.updated_at = utcnow()

    def unsubscribe(self, email_type):
        _check_email_type(email_type)
        if email_type in TRANSACTIONAL_TYPES:
            raise ValidationError({"email_type": [f"Transactional emails cannot be unsubscribed: {email_type}"]})
        types = self.unsubscribed_types
        if email_type not in types:
            types.append(email_type)
        self.unsubscribed = json.dumps(sorted(types))
        self.updated_at = utcnow()

    def change_email(self, email):
        if not email or "@" not in email:
            raise ValidationError({"email": ["A valid email address is required"]})
        self.email = email.strip()
        self.updated_at = utcnow()


@storefront.repository(part_of=EmailSubscription)
class EmailSubscriptionRepository:
    def for_user(self, user_id) -> EmailSubscription | None:
        return self._dao.query.filter(user_id=str(user_id)).all().first


@storefront.command(part_of="EmailSubscription")
class SetEmailAddress:
    user_id = Identifier(required=True)
    email = String(required=True, max_length=254)


@storefront.command(part_of="EmailSubscription")
class Subscribe:
    user_id = Identifier(required=True)
    email_type = String(required=True, max_length=50)


@storefront.command(part_of="EmailSubscription")
class Unsubscribe:
    user_id = Identifier(required=True)
    email_type = String(required=True, max_length=50)


def _load_or_create(user_id) -> EmailSubscription:
    return current_domain.repository_for(EmailSubscription).for_user(user_id) or EmailSubscription.create(user_id)


@storefront.command_handler(part_of=EmailSubscription)
class EmailSubscriptionHandler:
    @handle(SetEmailAddress)
    def set_email(self, command):
        subscription = _load_or_create(command.user_id)
        subscription.change_email(command.email)
        current_domain.repository_for(EmailSubscription).add(subscription)

    @handle(Subscribe)
    def subscribe(self, command):
        subscription = _load_or_create(command.user_id)
        subscription.subscribe(command.email_type)
        current_domain.repository_for(EmailSubscription).add(subscription)

    @handle(Unsubscribe)
    def unsubscribe(self, command):
        subscription = _load_or_create(command.user_id)
        subscription.unsubscribe(command.email_type)
        current_domain.repository_for(EmailSubscription).add(subscription)


def get_subscriptions(user_id) -> dict:
    """Subscription state per email type; users without a record get everything."""
    subscription = current_domain.repository_for(EmailSubscription).for_user(user_id)
    return {
        email_type.value: subscription.is_subscribed_to(email_type.value) if subscription else True
        for email_type in EmailType
    }
