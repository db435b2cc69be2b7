"""Ordering bounded context — order placement and fulfillment coordination.

Owns the Order aggregate and the coordinator that places orders, initiates
payment intents and moves orders to their terminal status together with the
matching inventory decrement.
"""

import structlog
from protean.domain import Domain

from ordering.utils.logging import configure_logging
from shared.settings import get_settings

configure_logging(get_settings().log_level)

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
