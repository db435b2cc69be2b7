"""Order notifier — tells the customer an order reached a terminal status.

Notification sits outside the order's consistency boundary: the coordinator
calls it only after the status change has committed, and a NotificationError
raised here is logged by the caller rather than undoing anything.
"""

from abc import ABC, abstractmethod

import structlog

from notifications.channel import get_email_channel
from notifications.templates import get_template

logger = structlog.get_logger(__name__)


class NotificationError(Exception):
    """The channel refused or failed to deliver the message."""


class OrderNotifier(ABC):
    @abstractmethod
    def notify_order_finalized(self, order) -> None:
        """Send the finalized-order message for ``order``."""
        ...


def _customer_ref_as_address(customer_id: str) -> str:
    return customer_id


class EmailOrderNotifier(OrderNotifier):
    """Renders the status template for the order and emails it.

    ``recipient_lookup`` maps a customer reference to an email address. The
    customer directory lives outside this service, so the default treats the
    reference itself as the address.
    """

    def __init__(self, channel=None, recipient_lookup=None):
        self._channel = channel
        self._recipient_lookup = recipient_lookup or _customer_ref_as_address

    @property
    def channel(self):
        return self._channel or get_email_channel()

    def notify_order_finalized(self, order) -> None:
        order_id = str(order.id)
        recipient = self._recipient_lookup(str(order.customer_id))
        if not recipient:
            logger.warning("No email address for customer; skipping notification", order_id=order_id)
            return

        content = get_template(order.status).render(
            {
                "order_id": order_id,
                "amount": order.amount,
                "currency": order.currency,
                "item_count": sum(item.quantity for item in order.items),
            }
        )
        result = self.channel.send(to=recipient, subject=content["subject"], body=content["body"])
        if result.get("status") != "sent":
            raise NotificationError(result.get("error") or "Email delivery failed")

        logger.info(
            "Order notification sent",
            order_id=order_id,
            status=order.status,
            message_id=result.get("message_id"),
        )


_current_notifier: OrderNotifier | None = None


def get_notifier() -> OrderNotifier:
    global _current_notifier
    if _current_notifier is None:
        _current_notifier = EmailOrderNotifier()
    return _current_notifier


def set_notifier(notifier: OrderNotifier) -> None:
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None
