"""Payment gateway port (abstract interface).

Defines the contract every payment gateway adapter implements. The ordering
core only ever sees PaymentIntent values and GatewayError, whichever adapter
(FakeGateway for dev/test, StripeGateway for production) sits behind it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class GatewayError(Exception):
    """Payment intent creation failed for any reason (declined, network, auth)."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


@dataclass(frozen=True)
class PaymentIntent:
    """An authorized-but-unconfirmed charge held by the gateway."""

    id: str
    client_secret: str
    amount: float
    currency: str
    metadata: dict = field(default_factory=dict)

    @property
    def order_id(self) -> str | None:
        return self.metadata.get("order_id")


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(
        self,
        amount: float,
        metadata: dict,
        customer_ref: str | None,
        currency: str = "usd",
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        """Create a payment intent. Raises GatewayError on failure.

        ``metadata`` must carry the ``order_id`` so reconciliation tooling can
        match intents to orders, including intents created by retried calls.
        """
        ...
