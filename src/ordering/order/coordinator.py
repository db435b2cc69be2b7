"""Order coordinator — placement, payment initiation and fulfillment.

place_order:
    1. Persist a Pending order (committed before anything external happens,
       so every payment intent points at an order that exists).
    2. Ask the payment gateway for an intent tagged with the order id.
    3. Record the intent on the order and hand the client secret back.
    A gateway failure leaves the Pending order in place for retry and
    reconciliation; it is never rolled back.

process_order:
    One unit of work covers the status change and the inventory decrement
    of every line item. Either both commit or neither does. Notification
    runs after the commit and can never undo it.

Units of work that lose a concurrent write race are retried a bounded
number of times with exponential backoff. The gateway is never called
while a unit of work is open. Every entry point expects an active
``ordering.domain_context()``.
"""

import time
from dataclasses import dataclass

import structlog
from protean import UnitOfWork, current_domain
from protean.exceptions import ExpectedVersionError, ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError

from inventory.stock.adjuster import InventoryAdjuster
from notifications.notifier import get_notifier
from ordering.exceptions import OrderNotFound, TransactionConflict
from ordering.order.claim import OrderClaim
from ordering.order.order import Order, OrderStatus, parse_status
from ordering.order.payment_events import status_for_event
from payments.gateway import get_gateway
from payments.gateway.port import GatewayError
from shared.settings import get_settings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlacedOrder:
    order_id: str
    client_secret: str


def _is_write_conflict(exc: BaseException | None) -> bool:
    """True when ``exc`` (or what it wraps) means another writer got there first."""
    while exc is not None:
        if isinstance(exc, ExpectedVersionError):
            return True
        if isinstance(exc, IntegrityError):
            message = str(exc).lower()
            return "unique" in message or "duplicate" in message
        if isinstance(exc, OperationalError):
            message = str(exc).lower()
            return "locked" in message or "could not serialize" in message
        exc = exc.__cause__
    return False


class OrderCoordinator:
    def __init__(self, gateway=None, notifier=None, adjuster=None, settings=None):
        self.gateway = gateway or get_gateway()
        self.notifier = notifier or get_notifier()
        self.adjuster = adjuster or InventoryAdjuster()
        self.settings = settings or get_settings()

    @property
    def orders(self):
        return current_domain.repository_for(Order)

    @property
    def claims(self):
        return current_domain.repository_for(OrderClaim)

    # -------------------------------------------------------------------
    # Transaction scope
    # -------------------------------------------------------------------
    def _run_in_transaction(self, work, **log_context):
        """Run ``work(uow)`` in a fresh unit of work, retrying on write conflicts.

        Any other exception rolls the unit of work back and propagates.
        Raises TransactionConflict once every attempt has conflicted.
        """
        attempts = self.settings.max_transaction_attempts
        for attempt in range(1, attempts + 1):
            try:
                with UnitOfWork() as uow:
                    return work(uow)
            except Exception as exc:
                if not _is_write_conflict(exc):
                    logger.warning(
                        "Transaction aborted",
                        error_type=type(exc).__name__,
                        error=str(exc),
                        **log_context,
                    )
                    raise
                if attempt == attempts:
                    logger.error("Transaction conflict; giving up", attempt=attempt, error=str(exc), **log_context)
                    raise TransactionConflict(attempts, str(exc)) from exc
                logger.warning("Transaction conflict; retrying", attempt=attempt, error=str(exc), **log_context)
                time.sleep(self.settings.retry_backoff_seconds * (2 ** (attempt - 1)))

    # -------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------
    def place_order(self, items, amount, customer_ref, currency=None, idempotency_key=None) -> PlacedOrder:
        """Create a Pending order and initiate its payment intent.

        Returns the intent's client secret without waiting for payment. With
        an ``idempotency_key``, a retried request from the same customer
        resolves to the order (and intent) created by the first one. Reusing
        a key for a different order raises ValidationError.
        """
        currency = (currency or self.settings.default_currency).lower()
        logger.info("Placing order", customer_id=customer_ref, amount=amount, currency=currency)

        if idempotency_key:
            order = self._run_in_transaction(
                lambda uow: self._claim_order(idempotency_key, items, amount, customer_ref, currency),
                customer_id=customer_ref,
                idempotency_key=idempotency_key,
            )
        else:
            order = self._run_in_transaction(
                lambda uow: self._create_order(items, amount, customer_ref, currency),
                customer_id=customer_ref,
            )
        order_id = str(order.id)

        if order.payment is not None:
            logger.info("Order already has a payment intent", order_id=order_id, intent_id=order.payment.intent_id)
            return PlacedOrder(order_id=order_id, client_secret=order.payment.client_secret)

        intent = self._create_intent(order, customer_ref, idempotency_key)
        try:
            self._run_in_transaction(lambda uow: self._record_intent(order_id, intent), order_id=order_id)
        except Exception as exc:
            # The intent exists at the gateway and carries the order id, so
            # the caller still gets its secret; reconciliation links the two.
            logger.error(
                "Payment reference not recorded",
                order_id=order_id,
                intent_id=intent.id,
                error_type=type(exc).__name__,
                error=str(exc),
            )

        logger.info("Order placed", order_id=order_id, customer_id=customer_ref, intent_id=intent.id)
        return PlacedOrder(order_id=order_id, client_secret=intent.client_secret)

    def _create_order(self, items, amount, customer_ref, currency, idempotency_key=None) -> Order:
        order = Order.create(
            customer_id=customer_ref,
            items_data=items,
            amount=amount,
            currency=currency,
            idempotency_key=idempotency_key,
        )
        self.orders.add(order)
        logger.info("Order created", order_id=str(order.id), customer_id=customer_ref)
        return order

    def _claim_order(self, idempotency_key, items, amount, customer_ref, currency) -> Order:
        claim = self.claims.get_or_none(OrderClaim.key_for(customer_ref, idempotency_key))
        if claim is None:
            order = self._create_order(items, amount, customer_ref, currency, idempotency_key=idempotency_key)
            self.claims.add(OrderClaim.for_order(order))
            return order

        order = self.orders.get(claim.order_id)
        if not order.matches_request(customer_ref, items, amount=amount, currency=currency):
            logger.warning(
                "Idempotency key reused for a different order",
                customer_id=customer_ref,
                idempotency_key=idempotency_key,
                order_id=str(order.id),
            )
            raise ValidationError({"idempotency_key": ["Key was already used for a different order"]})

        logger.info("Idempotency key already claimed", idempotency_key=idempotency_key, order_id=str(order.id))
        return order

    def _create_intent(self, order: Order, customer_ref, idempotency_key):
        order_id = str(order.id)
        try:
            return self.gateway.create_intent(
                amount=order.amount,
                metadata={"order_id": order_id},
                customer_ref=customer_ref,
                currency=order.currency,
                # Gateway keys are account-wide, so they carry the customer too
                idempotency_key=OrderClaim.key_for(customer_ref, idempotency_key) if idempotency_key else None,
            )
        except GatewayError as exc:
            logger.error("Payment initiation failed; order stays pending", order_id=order_id, error=exc.reason)
            raise
        except Exception as exc:
            logger.error("Payment initiation failed; order stays pending", order_id=order_id, error=str(exc))
            raise GatewayError(str(exc) or type(exc).__name__) from exc

    def _record_intent(self, order_id, intent) -> Order:
        order = self.orders.get(order_id)
        order.record_payment_intent(intent_id=intent.id, client_secret=intent.client_secret)
        self.orders.add(order)
        return order

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def process_order(self, order_id, status) -> Order:
        """Move a Pending order to a terminal status.

        Every line item's stock is decremented in the same unit of work as
        the status write. Raises OrderNotFound, InvalidTransition,
        InsufficientStock or TransactionConflict; in each case nothing was
        written.
        """
        target = parse_status(status)
        order_id = str(order_id)
        logger.info("Processing order", order_id=order_id, status=target.value)

        order = self._run_in_transaction(
            lambda uow: self._finalize(uow, order_id, target),
            order_id=order_id,
            status=target.value,
        )
        logger.info("Order processed", order_id=order_id, status=order.status)

        self._notify(order)
        return order

    def handle_payment_event(self, order_id, event_type: str) -> Order:
        """Process the order a gateway callback refers to."""
        return self.process_order(order_id, status_for_event(event_type))

    def _finalize(self, uow, order_id: str, target: OrderStatus) -> Order:
        order = self.orders.get_or_none(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        previous_status = order.status
        order.transition_to(target)

        # Stock goes first; the version-checked order write is the last to land
        self.adjuster.decrement_for(order.items, uow)
        self.orders.add(order)

        logger.info("Order status change staged", order_id=order_id, previous=previous_status, status=order.status)
        return order

    def _notify(self, order: Order) -> None:
        try:
            self.notifier.notify_order_finalized(order)
        except Exception as exc:
            logger.error(
                "Order notification failed",
                order_id=str(order.id),
                status=order.status,
                error_type=type(exc).__name__,
                error=str(exc),
            )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id) -> Order:
        logger.info("Fetching order", order_id=str(order_id))
        order = self.orders.get_or_none(str(order_id))
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def pending_orders_for(self, customer_ref) -> list[Order]:
        """Pending orders for a customer, oldest first (reconciliation view)."""
        return self.orders.find_by_customer(customer_ref, status=OrderStatus.PENDING.value)


_current_coordinator: OrderCoordinator | None = None


def get_coordinator() -> OrderCoordinator:
    """Return the process-wide coordinator built from the configured collaborators."""
    global _current_coordinator
    if _current_coordinator is None:
        _current_coordinator = OrderCoordinator()
    return _current_coordinator


def set_coordinator(coordinator: OrderCoordinator) -> None:
    global _current_coordinator
    _current_coordinator = coordinator


def reset_coordinator() -> None:
    global _current_coordinator
    _current_coordinator = None
