"""Order aggregate — the unit of consistency for fulfillment.

An order is created Pending with its line items, and later moves exactly
once to a terminal status:

    PENDING → PAID / FAILED / CANCELLED

Line items are snapshots: product, quantity and the unit price at the time
the order was placed. They are never changed afterwards, so historical
orders stay stable when catalogue prices move. A different basket means a
new order.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.domain import ordering
from ordering.exceptions import InvalidTransition


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.FAILED, OrderStatus.CANCELLED},
    OrderStatus.PAID: set(),  # Terminal
    OrderStatus.FAILED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATUSES = frozenset(status for status, targets in _VALID_TRANSITIONS.items() if not targets)


def parse_status(value) -> OrderStatus:
    """Accept an OrderStatus, its value ("Paid") or its name ("PAID")."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        pass
    try:
        return OrderStatus[str(value).upper()]
    except KeyError:
        raise ValidationError({"status": [f"Unknown order status: {value}"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class PaymentReference:
    """The payment intent created for the order at the gateway."""

    intent_id = String(required=True, max_length=255)
    client_secret = String(max_length=255)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class LineItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    items = HasMany(LineItem)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="usd")
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment = ValueObject(PaymentReference)
    idempotency_key = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def amount_must_match_line_items(self):
        total = sum(item.subtotal for item in self.items or [])
        if round(total, 2) != round(self.amount or 0.0, 2):
            raise ValidationError({"amount": [f"Order amount {self.amount} does not match line item total {total}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id, items_data, amount=None, currency="usd", idempotency_key=None):
        """Create a Pending order from already-validated line item dicts.

        Each dict needs product_id, quantity and unit_price; other keys are
        ignored. When ``amount`` is omitted it is derived from the items.
        """
        items = [
            LineItem(
                product_id=str(item["product_id"]),
                quantity=int(item["quantity"]),
                unit_price=float(item["unit_price"]),
            )
            for item in items_data
        ]
        if amount is None:
            amount = round(sum(item.subtotal for item in items), 2)

        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            items=items,
            amount=amount,
            currency=(currency or "usd").lower(),
            status=OrderStatus.PENDING.value,
            idempotency_key=idempotency_key,
            created_at=now,
            updated_at=now,
        )

    def matches_request(self, customer_id, items_data, amount=None, currency="usd") -> bool:
        """True when a placement request describes this exact order."""
        requested = sorted(
            (str(item["product_id"]), int(item["quantity"]), round(float(item["unit_price"]), 2)) for item in items_data
        )
        placed = sorted((str(item.product_id), item.quantity, round(item.unit_price, 2)) for item in self.items)
        if amount is None:
            amount = sum(quantity * unit_price for _, quantity, unit_price in requested)

        return (
            str(customer_id) == str(self.customer_id)
            and requested == placed
            and round(float(amount), 2) == round(self.amount, 2)
            and (currency or "usd").lower() == self.currency
        )

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current.value, target_status.value)

    def transition_to(self, target_status):
        self._assert_can_transition(target_status)
        self.status = target_status.value
        self.updated_at = datetime.now(UTC)

    def record_payment_intent(self, intent_id, client_secret):
        self.payment = PaymentReference(intent_id=intent_id, client_secret=client_secret)
        self.updated_at = datetime.now(UTC)
