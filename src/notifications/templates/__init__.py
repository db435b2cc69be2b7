"""Template registry — maps a finalized order status to its template class."""

from notifications.templates.order_cancellation import OrderCancellationTemplate
from notifications.templates.order_confirmation import OrderConfirmationTemplate
from notifications.templates.payment_failed import PaymentFailedTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    "Paid": OrderConfirmationTemplate,
    "Failed": PaymentFailedTemplate,
    "Cancelled": OrderCancellationTemplate,
}


def get_template(status: str):
    """Look up a template class by order status value."""
    template_cls = TEMPLATE_REGISTRY.get(status)
    if template_cls is None:
        raise ValueError(f"No template registered for order status: {status}")
    return template_cls
