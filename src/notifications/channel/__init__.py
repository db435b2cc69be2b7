"""Email channel registry.

Uses the in-memory FakeEmailAdapter unless a real adapter (SMTP, SendGrid)
is installed with set_email_channel().
"""

from notifications.channel.email_port import EmailPort

_email_channel: EmailPort | None = None


def get_email_channel() -> EmailPort:
    global _email_channel
    if _email_channel is None:
        from notifications.channel.fake_email import FakeEmailAdapter

        _email_channel = FakeEmailAdapter()
    return _email_channel


def set_email_channel(channel: EmailPort) -> None:
    global _email_channel
    _email_channel = channel


def reset_channels() -> None:
    """Drop the configured channel (useful for testing)."""
    global _email_channel
    _email_channel = None
