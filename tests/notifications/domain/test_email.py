"""Domain tests for the Email aggregate and subscription preferences."""

import pytest
from protean.exceptions import InvalidOperationError, ValidationError

from storefront.notifications.email import MAX_RETRIES, Email, EmailStatus
from storefront.notifications.subscription import EmailSubscription


@pytest.fixture
def email():
    return Email.compose(recipient="ada@example.com", email_type="welcome", subject="Hi", body="Hello")


class TestEmailDelivery:
    def test_composed_pending(self, email):
        assert email.status == EmailStatus.PENDING.value
        assert email.retry_count == 0

    def test_mark_sent(self, email):
        email.mark_sent("msg-1")
        assert email.status == EmailStatus.SENT.value
        assert email.sent_at is not None
        assert email._events[-1].__class__.__name__ == "EmailSent"

    def test_cannot_send_twice(self, email):
        email.mark_sent("msg-1")
        with pytest.raises(InvalidOperationError):
            email.mark_sent("msg-2")

    def test_first_failure_does_not_count_as_retry(self, email):
        email.mark_failed("Mailbox full")
        assert email.retry_count == 0
        assert email.can_retry()

    def test_retries_are_bounded(self, email):
        email.mark_failed("Mailbox full")
        for _ in range(MAX_RETRIES):
            email.mark_failed("Mailbox full")
        assert email.retry_count == MAX_RETRIES
        assert not email.can_retry()

    def test_sent_email_cannot_fail(self, email):
        email.mark_sent()
        with pytest.raises(InvalidOperationError):
            email.mark_failed("late bounce")


class TestSubscription:
    @pytest.fixture
    def subscription(self):
        return EmailSubscription.create("user-1", "ada@example.com")

    def test_subscribed_to_everything_by_default(self, subscription):
        assert subscription.is_subscribed_to("abandoned_cart")

    def test_unsubscribe_and_resubscribe(self, subscription):
        subscription.unsubscribe("abandoned_cart")
        assert not subscription.is_subscribed_to("abandoned_cart")
        subscription.subscribe("abandoned_cart")
        assert subscription.is_subscribed_to("abandoned_cart")

    def test_transactional_cannot_be_unsubscribed(self, subscription):
        with pytest.raises(ValidationError):
            subscription.unsubscribe("order_confirmation")

    def test_unknown_type(self, subscription):
        with pytest.raises(ValidationError):
            subscription.unsubscribe("newsletter")

    def test_change_email_requires_at_sign(self, subscription):
        with pytest.raises(ValidationError):
            subscription.change_email("not-an-address")
