"""Stock aggregate — on-hand units of one product.

Stock is registered with the ordering domain so that its writes ride the
same unit of work as the order they fulfil. Every update is guarded by the
aggregate version: two transactions that read the same stock cannot both
write it.
"""

from protean.fields import Identifier, Integer

from inventory.exceptions import InsufficientStock
from ordering.domain import ordering


@ordering.aggregate
class Stock:
    product_id = Identifier(identifier=True)
    on_hand = Integer(default=0, min_value=0)

    def adjust(self, quantity_delta: int) -> None:
        """Apply a signed change, refusing to go below zero."""
        new_on_hand = self.on_hand + quantity_delta
        if new_on_hand < 0:
            raise InsufficientStock(self.product_id, requested=-quantity_delta, available=self.on_hand)
        self.on_hand = new_on_hand
