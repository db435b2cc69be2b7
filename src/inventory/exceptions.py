"""Inventory business-rule failures."""

from protean.exceptions import ValidationError


class InsufficientStock(ValidationError):
    """A stock decrement would take on-hand quantity below zero."""

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
        super().__init__(
            {"quantity": [f"Insufficient stock for product {product_id}: requested {requested}, available {available}"]}
        )
