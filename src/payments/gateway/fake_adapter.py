"""Configurable fake payment gateway for development and testing.

Simulates intent creation without any external calls. It can be switched to
fail at runtime, and it records every call for test assertions. A repeated
idempotency key returns the intent created the first time, as Stripe does.
"""

import threading
from uuid import uuid4

from payments.gateway.port import GatewayError, PaymentGateway, PaymentIntent


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self.intents: dict[str, PaymentIntent] = {}
        self._by_idempotency_key: dict[str, PaymentIntent] = {}
        self._lock = threading.Lock()

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_intent(
        self,
        amount: float,
        metadata: dict,
        customer_ref: str | None,
        currency: str = "usd",
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "metadata": dict(metadata),
                "customer_ref": customer_ref,
                "currency": currency,
                "idempotency_key": idempotency_key,
            }
        )

        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        with self._lock:
            if idempotency_key and idempotency_key in self._by_idempotency_key:
                return self._by_idempotency_key[idempotency_key]

            intent_id = f"pi_fake_{uuid4().hex[:16]}"
            intent = PaymentIntent(
                id=intent_id,
                client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}",
                amount=amount,
                currency=currency,
                metadata=dict(metadata),
            )
            self.intents[intent_id] = intent
            if idempotency_key:
                self._by_idempotency_key[idempotency_key] = intent
            return intent

    def intents_for_order(self, order_id: str) -> list[PaymentIntent]:
        """All intents tagged with the given order id (reconciliation view)."""
        return [intent for intent in self.intents.values() if intent.order_id == str(order_id)]
