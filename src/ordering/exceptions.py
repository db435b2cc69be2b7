"""Errors surfaced by the ordering core.

Callers handle each failure kind explicitly:

- OrderNotFound: the order id does not resolve (client error)
- InvalidTransition: the order is not in a state that allows the change
- InsufficientStock: a line item could not be decremented; nothing was applied
- GatewayError: payment intent creation failed; the order stays Pending
- TransactionConflict: concurrent modification outlasted the retry limit
"""

from protean.exceptions import ObjectNotFoundError, TransactionError, ValidationError

from inventory.exceptions import InsufficientStock
from payments.gateway.port import GatewayError

__all__ = [
    "GatewayError",
    "InsufficientStock",
    "InvalidTransition",
    "OrderNotFound",
    "TransactionConflict",
]


class OrderNotFound(ObjectNotFoundError):
    def __init__(self, order_id) -> None:
        self.order_id = str(order_id)
        super().__init__({"_entity": f"Order with ID {order_id} not found"})


class InvalidTransition(ValidationError):
    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition from {current} to {target}"]})


class TransactionConflict(TransactionError):
    """Another writer committed first on every attempt.

    None of the transaction's writes were applied.
    """

    def __init__(self, attempts: int, reason: str) -> None:
        self.attempts = attempts
        self.reason = reason
        super().__init__(f"Gave up after {attempts} conflicting attempts: {reason}")
