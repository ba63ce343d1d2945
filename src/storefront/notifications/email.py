"""Email aggregate: one outgoing message and its delivery outcome.

    PENDING -> SENT
    PENDING -> FAILED -> (retry) -> SENT | FAILED
"""

from enum import Enum

from protean.exceptions import InvalidOperationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.notifications.events import EmailFailed, EmailSent
from storefront.shared.clock import utcnow

MAX_RETRIES = 3


class EmailStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@storefront.aggregate
class Email:
    recipient = String(required=True, max_length=254)
    user_id = Identifier()
    subject = String(required=True, max_length=255)
    body = Text(required=True)
    html_body = Text()
    email_type = String(required=True, max_length=50)
    status = String(choices=EmailStatus, default=EmailStatus.PENDING.value)
    message_id = String(max_length=255)
    retry_count = Integer(default=0)
    max_retries = Integer(default=MAX_RETRIES)
    error_message = String(max_length=500)
    sent_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def compose(cls, recipient, email_type, subject, body, html_body=None, user_id=None):
        now = utcnow()
        return cls(
            recipient=recipient,
            user_id=user_id,
            email_type=email_type,
            subject=subject,
            body=body,
            html_body=html_body,
            status=EmailStatus.PENDING.value,
            retry_count=0,
            max_retries=MAX_RETRIES,
            created_at=now,
            updated_at=now,
        )

    def can_retry(self) -> bool:
        return self.status == EmailStatus.FAILED.value and (self.retry_count or 0) < (self.max_retries or 0)

    def mark_sent(self, message_id=None):
        if self.status == EmailStatus.SENT.value:
            raise InvalidOperationError("Email has already been sent")
        now = utcnow()
        self.status = EmailStatus.SENT.value
        self.message_id = message_id
        self.error_message = None
        self.sent_at = now
        self.updated_at = now
        self.raise_(
            EmailSent(
                email_id=self.id,
                recipient=self.recipient,
                email_type=self.email_type,
                message_id=message_id,
                sent_at=now,
            )
        )

    def mark_failed(self, error_message):
        if self.status == EmailStatus.SENT.value:
            raise InvalidOperationError("A sent email cannot fail")
        now = utcnow()
        if self.status == EmailStatus.FAILED.value:
            self.retry_count = (self.retry_count or 0) + 1
        self.status = EmailStatus.FAILED.value
        self.error_message = (error_message or "Unknown delivery error")[:500]
        self.updated_at = now
        self.raise_(
            EmailFailed(
                email_id=self.id,
                recipient=self.recipient,
                email_type=self.email_type,
                error_message=self.error_message,
                retry_count=self.retry_count,
                failed_at=now,
            )
        )


@storefront.repository(part_of=Email)
class EmailRepository:
    def retryable(self) -> list[Email]:
        failed = self._dao.query.filter(status=EmailStatus.FAILED.value).order_by("created_at").all().items
        return [email for email in failed if email.can_retry()]

    def for_user(self, user_id) -> list[Email]:
        return self._dao.query.filter(user_id=str(user_id)).order_by("-created_at").all().items
