"""Stripe payment gateway adapter.

Creates PaymentIntents through the stripe-python SDK. Amounts arrive as
major-unit floats and are converted to the integer minor units Stripe
expects. Every SDK error surfaces as GatewayError.
"""

from decimal import ROUND_HALF_UP, Decimal

import stripe
import structlog

from payments.gateway.port import GatewayError, PaymentGateway, PaymentIntent

logger = structlog.get_logger(__name__)

# Currencies Stripe charges in whole units
ZERO_DECIMAL_CURRENCIES = frozenset(
    {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga", "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}
)


def to_minor_units(amount: float, currency: str) -> int:
    """Convert a major-unit amount to Stripe's integer representation."""
    value = Decimal(str(amount))
    if currency.lower() not in ZERO_DECIMAL_CURRENCIES:
        value = value * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, stripe_client=stripe) -> None:
        self.api_key = api_key
        self._stripe = stripe_client

    def create_intent(
        self,
        amount: float,
        metadata: dict,
        customer_ref: str | None,
        currency: str = "usd",
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        params = {
            "amount": to_minor_units(amount, currency),
            "currency": currency.lower(),
            "metadata": {key: str(value) for key, value in metadata.items()},
            "automatic_payment_methods": {"enabled": True},
            "api_key": self.api_key,
        }
        if customer_ref:
            params["customer"] = customer_ref
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            intent = self._stripe.PaymentIntent.create(**params)
        except stripe.StripeError as exc:
            reason = getattr(exc, "user_message", None) or str(exc) or type(exc).__name__
            logger.error(
                "Stripe rejected payment intent",
                order_id=metadata.get("order_id"),
                error_type=type(exc).__name__,
                error=reason,
            )
            raise GatewayError(reason) from exc

        return PaymentIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            amount=amount,
            currency=currency.lower(),
            metadata=dict(metadata),
        )
