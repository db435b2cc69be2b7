"""Stock ledger — seeding and committed reads of on-hand quantities.

Used for warehouse setup and for checking stock outside the order flow.
Every write runs in its own short unit of work.
"""

from protean import UnitOfWork, current_domain
from protean.exceptions import ValidationError

from inventory.stock.adjuster import InventoryAdjuster, InventoryAdjustment
from inventory.stock.stock import Stock


class StockLedger:
    def set_stock(self, product_id: str, on_hand: int) -> None:
        """Overwrite the on-hand quantity for a product."""
        if on_hand < 0:
            raise ValidationError({"on_hand": ["Stock cannot be negative"]})

        with UnitOfWork():
            repo = current_domain.repository_for(Stock)
            stock = repo.get_or_none(str(product_id))
            if stock is None:
                stock = Stock(product_id=str(product_id), on_hand=on_hand)
            else:
                stock.on_hand = on_hand
            repo.add(stock)

    def receive(self, product_id: str, quantity: int) -> None:
        """Add received units to a product's stock."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        with UnitOfWork() as uow:
            InventoryAdjuster().adjust([InventoryAdjustment(product_id=str(product_id), quantity_delta=quantity)], uow)

    def available(self, product_id: str) -> int:
        stock = current_domain.repository_for(Stock).get_or_none(str(product_id))
        return stock.on_hand if stock else 0
