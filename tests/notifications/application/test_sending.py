"""Application tests for sending, preferences, retries and event-driven emails."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.catalogue.product.management import UpdateProductStock
from storefront.notifications.channel import get_email_channel
from storefront.notifications.email import Email, EmailStatus
from storefront.notifications.sending import (
    CreateEmailTemplate,
    RetryFailedEmails,
    SendEmail,
    UpdateEmailTemplate,
    send_email,
    send_to_user,
)
from storefront.notifications.subscription import SetEmailAddress, Unsubscribe, get_subscriptions
from storefront.orders.management import CancelOrder


def _register(user_id="user-1", email="ada@example.com"):
    current_domain.process(SetEmailAddress(user_id=user_id, email=email), asynchronous=False)


def _email(email_id):
    return current_domain.repository_for(Email).get(email_id)


class TestSendEmail:
    def test_default_template(self):
        email_id = current_domain.process(
            SendEmail(template="welcome", recipient="ada@example.com", context=json.dumps({"name": "Ada"})),
            asynchronous=False,
        )

        assert _email(email_id).status == EmailStatus.SENT.value
        [sent] = get_email_channel().sent_to("ada@example.com")
        assert sent["subject"] == "Welcome to Our Store!"
        assert sent["body"].startswith("Hi Ada,")

    def test_stored_template_overrides_default(self):
        current_domain.process(
            CreateEmailTemplate(name="welcome", subject="Hello {name}", body="Custom body"),
            asynchronous=False,
        )
        send_email("welcome", "ada@example.com", {"name": "Ada"})
        assert get_email_channel().sent_emails[-1]["subject"] == "Hello Ada"

    def test_inactive_stored_template_falls_back(self):
        template_id = current_domain.process(
            CreateEmailTemplate(name="welcome", subject="Hello {name}", body="Custom body"),
            asynchronous=False,
        )
        current_domain.process(UpdateEmailTemplate(template_id=template_id, is_active=False), asynchronous=False)
        send_email("welcome", "ada@example.com", {"name": "Ada"})
        assert get_email_channel().sent_emails[-1]["subject"] == "Welcome to Our Store!"

    def test_duplicate_template_name(self):
        current_domain.process(CreateEmailTemplate(name="promo", subject="S", body="B"), asynchronous=False)
        with pytest.raises(ValidationError):
            current_domain.process(CreateEmailTemplate(name="Promo", subject="S", body="B"), asynchronous=False)

    def test_unknown_template(self):
        with pytest.raises(ValidationError):
            send_email("newsletter", "ada@example.com")

    def test_failed_delivery_is_recorded(self):
        get_email_channel().configure(should_succeed=False, failure_reason="Mailbox full")
        email = _email(send_email("welcome", "ada@example.com"))
        assert email.status == EmailStatus.FAILED.value
        assert email.error_message == "Mailbox full"


class TestPreferences:
    def test_unsubscribed_user_is_skipped(self):
        _register()
        current_domain.process(Unsubscribe(user_id="user-1", email_type="abandoned_cart"), asynchronous=False)

        assert send_to_user("abandoned_cart", "user-1", {"item_count": 2}) is None
        assert get_email_channel().sent_emails == []

    def test_transactional_still_sent(self):
        _register()
        current_domain.process(Unsubscribe(user_id="user-1", email_type="abandoned_cart"), asynchronous=False)
        assert send_to_user("password_reset", "user-1", {"reset_url": "https://x"}) is not None

    def test_user_without_address_is_skipped(self):
        assert send_to_user("welcome", "user-9") is None

    def test_subscriptions_overview(self):
        assert all(get_subscriptions("user-9").values())
        _register()
        current_domain.process(Unsubscribe(user_id="user-1", email_type="review_request"), asynchronous=False)
        assert get_subscriptions("user-1")["review_request"] is False


class TestRetry:
    def test_retry_delivers_once_channel_recovers(self):
        channel = get_email_channel()
        channel.configure(should_succeed=False)
        email_id = send_email("welcome", "ada@example.com")

        channel.configure(should_succeed=True)
        delivered = current_domain.process(RetryFailedEmails(), asynchronous=False)

        assert delivered == 1
        assert _email(email_id).status == EmailStatus.SENT.value

    def test_retry_counts_further_failures(self):
        get_email_channel().configure(should_succeed=False)
        email_id = send_email("welcome", "ada@example.com")

        assert current_domain.process(RetryFailedEmails(), asynchronous=False) == 0
        assert _email(email_id).retry_count == 1


class TestOrderEmails:
    def test_confirmation_on_placement(self, paid_order):
        _register()
        order = paid_order()

        [sent] = get_email_channel().sent_to("ada@example.com")
        assert order.order_number in sent["subject"]
        assert f"{order.total:.2f}" in sent["body"]

    def test_cancellation_email_has_reason(self, paid_order):
        _register()
        order = paid_order()
        current_domain.process(CancelOrder(order_id=order.id, reason="Out of budget"), asynchronous=False)

        cancelled = [e for e in get_email_channel().sent_emails if "Cancelled" in e["subject"]]
        assert len(cancelled) == 1
        assert "Reason: Out of budget" in cancelled[0]["body"]

    def test_no_address_means_no_email(self, paid_order):
        paid_order()
        assert get_email_channel().sent_emails == []


class TestLowStockAlert:
    def _set_stock(self, product, stock):
        current_domain.process(UpdateProductStock(product_id=product.id, stock=stock), asynchronous=False)

    def test_alert_when_crossing_threshold(self, make_product, monkeypatch):
        monkeypatch.setenv("LOW_STOCK_ALERT_EMAIL", "ops@example.com")
        product = make_product(name="Lamp", stock=50)

        self._set_stock(product, 4)

        [alert] = get_email_channel().sent_to("ops@example.com")
        assert alert["subject"] == "Low stock: Lamp"
        assert "down to 4 unit(s)" in alert["body"]

    def test_no_repeat_below_threshold(self, make_product, monkeypatch):
        monkeypatch.setenv("LOW_STOCK_ALERT_EMAIL", "ops@example.com")
        product = make_product(stock=50)
        self._set_stock(product, 8)
        self._set_stock(product, 3)
        assert len(get_email_channel().sent_to("ops@example.com")) == 1

    def test_custom_threshold(self, make_product, monkeypatch):
        monkeypatch.setenv("LOW_STOCK_ALERT_EMAIL", "ops@example.com")
        monkeypatch.setenv("LOW_STOCK_THRESHOLD", "30")
        product = make_product(stock=50)
        self._set_stock(product, 25)
        assert len(get_email_channel().sent_to("ops@example.com")) == 1

    def test_no_recipient_configured(self, make_product, monkeypatch):
        monkeypatch.delenv("LOW_STOCK_ALERT_EMAIL", raising=False)
        self._set_stock(make_product(stock=50), 1)
        assert get_email_channel().sent_emails == []
