"""Payment gateway factory.

Provides get_gateway() / set_gateway() / reset_gateway() to swap implementations:
- FakeGateway for development and testing (default)
- StripeGateway when STRIPE_API_KEY is configured
"""

from shared.settings import get_settings

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway."""
    global _current_gateway
    if _current_gateway is None:
        api_key = get_settings().stripe_api_key
        if api_key:
            from payments.gateway.stripe_adapter import StripeGateway

            _current_gateway = StripeGateway(api_key=api_key)
        else:
            _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
