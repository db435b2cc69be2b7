"""Gateway callback events and the order status each one implies.

Duplicate callbacks are expected; the second delivery for the same order
fails with InvalidTransition and changes nothing.
"""

from protean.exceptions import ValidationError

from ordering.order.order import OrderStatus

PAYMENT_EVENT_STATUSES = {
    "payment_intent.succeeded": OrderStatus.PAID,
    "payment_intent.payment_failed": OrderStatus.FAILED,
    "payment_intent.canceled": OrderStatus.CANCELLED,
}


def status_for_event(event_type: str) -> OrderStatus:
    status = PAYMENT_EVENT_STATUSES.get(event_type)
    if status is None:
        raise ValidationError({"event_type": [f"Unsupported payment event: {event_type}"]})
    return status
