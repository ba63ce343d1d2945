"""Email channel registry.

The fake adapter is the default; set ``EMAIL_CHANNEL=smtp`` to deliver
through an SMTP server.
"""

import os

from storefront.notifications.channel.port import EmailChannel

_channel: EmailChannel | None = None


def get_email_channel() -> EmailChannel:
    global _channel
    if _channel is None:
        name = os.environ.get("EMAIL_CHANNEL", "fake").lower()
        if name == "fake":
            from storefront.notifications.channel.fake_adapter import FakeEmailAdapter

            _channel = FakeEmailAdapter()
        elif name == "smtp":
            from storefront.notifications.channel.smtp_adapter import SmtpEmailAdapter

            _channel = SmtpEmailAdapter()
        else:
            raise ValueError(f"Unknown email channel: {name}")
    return _channel


def set_email_channel(channel: EmailChannel) -> None:
    global _channel
    _channel = channel


def reset_email_channel() -> None:
    global _channel
    _channel = None
