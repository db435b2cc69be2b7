"""Inventory adjuster — applies stock deltas inside the caller's unit of work.

The adjuster is a participant, never an owner: it is handed the unit of
work its caller opened, stages Stock aggregates through the repository, and
raises InsufficientStock when a decrement cannot be satisfied. Committing
or rolling back is left to whoever opened the unit of work, so a failed item
undoes every delta staged before it.

A product without a Stock record has zero units on hand.
"""

from dataclasses import dataclass

import structlog
from protean import current_domain
from protean.exceptions import InvalidOperationError

from inventory.exceptions import InsufficientStock
from inventory.stock.stock import Stock

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InventoryAdjustment:
    """A signed change to one product's on-hand quantity."""

    product_id: str
    quantity_delta: int


def decrements_for(items) -> list[InventoryAdjustment]:
    """Build one negative adjustment per line item."""
    return [InventoryAdjustment(product_id=str(item.product_id), quantity_delta=-int(item.quantity)) for item in items]


def net_deltas(adjustments) -> dict[str, int]:
    """Sum deltas per product, keeping first-seen order."""
    totals: dict[str, int] = {}
    for adjustment in adjustments:
        product_id = str(adjustment.product_id)
        totals[product_id] = totals.get(product_id, 0) + adjustment.quantity_delta
    return totals


class InventoryAdjuster:
    def adjust(self, adjustments, uow) -> None:
        """Stage every adjustment in ``uow``, raising on the first shortfall."""
        if uow is None or not uow.in_progress:
            raise InvalidOperationError("Stock can only be adjusted inside an open unit of work")

        repo = current_domain.repository_for(Stock)

        for product_id, delta in net_deltas(adjustments).items():
            stock = self._load(repo, product_id)
            available = stock.on_hand if stock else 0

            if available + delta < 0:
                logger.warning(
                    "Stock decrement rejected",
                    product_id=product_id,
                    requested=-delta,
                    available=available,
                )
                raise InsufficientStock(product_id, requested=-delta, available=available)

            if stock is None:
                stock = Stock(product_id=product_id, on_hand=0)
            stock.adjust(delta)
            repo.add(stock)

            logger.debug(
                "Stock adjustment staged",
                product_id=product_id,
                delta=delta,
                on_hand=stock.on_hand,
            )

    def decrement_for(self, items, uow) -> None:
        """Decrement stock by each line item's quantity."""
        self.adjust(decrements_for(items), uow)

    def _load(self, repo, product_id: str) -> Stock | None:
        return repo.get_or_none(product_id)
