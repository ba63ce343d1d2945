"""Domain events for outgoing emails."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Email")
class EmailSent:
    __version__ = 1

    email_id = Identifier(required=True)
    recipient = String(required=True)
    email_type = String(required=True)
    message_id = String()
    sent_at = DateTime(required=True)


@storefront.event(part_of="Email")
class EmailFailed:
    __version__ = 1

    email_id = Identifier(required=True)
    recipient = String(required=True)
    email_type = String(required=True)
    error_message = String()
    retry_count = Integer(required=True)
    failed_at = DateTime(required=True)
