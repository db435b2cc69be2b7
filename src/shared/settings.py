"""Runtime settings read from environment variables.

Fake adapters are used unless real credentials are configured, so a bare
environment (development, tests) never reaches an external service.
"""

import os


class Settings:
    """Snapshot of the fulfillment settings taken from an environment mapping."""

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ

        self.max_transaction_attempts = max(1, int(env.get("FULFILLMENT_MAX_TRANSACTION_ATTEMPTS", "3")))
        self.retry_backoff_seconds = float(env.get("FULFILLMENT_RETRY_BACKOFF_SECONDS", "0.01"))
        self.default_currency = env.get("FULFILLMENT_DEFAULT_CURRENCY", "usd").lower()
        self.log_level = env.get("FULFILLMENT_LOG_LEVEL", "INFO").upper()
        self.stripe_api_key = env.get("STRIPE_API_KEY") or None


_current_settings: Settings | None = None


def get_settings() -> Settings:
    global _current_settings
    if _current_settings is None:
        _current_settings = Settings()
    return _current_settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _current_settings
    _current_settings = None
