"""Idempotency claims — at most one order per customer and idempotency key.

The claim id is derived from the customer and the key, so two placements
racing on the same key try to insert the same row and only one commits.
The loser retries, finds the claim, and gets the winner's order back.
"""

from protean.fields import Identifier, String

from ordering.domain import ordering


@ordering.aggregate
class OrderClaim:
    claim_id = Identifier(identifier=True)
    customer_id = Identifier(required=True)
    idempotency_key = String(required=True, max_length=255)
    order_id = Identifier(required=True)

    @classmethod
    def key_for(cls, customer_id, idempotency_key) -> str:
        return f"{customer_id}:{idempotency_key}"

    @classmethod
    def for_order(cls, order) -> "OrderClaim":
        return cls(
            claim_id=cls.key_for(order.customer_id, order.idempotency_key),
            customer_id=order.customer_id,
            idempotency_key=order.idempotency_key,
            order_id=order.id,
        )
