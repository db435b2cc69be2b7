from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_by_customer(self, customer_id, status: str | None = None) -> list[Order]:
        """A customer's orders, oldest first, optionally narrowed to one status."""
        query = self.query.filter(customer_id=str(customer_id))
        if status is not None:
            query = query.filter(status=status)
        return query.order_by("created_at").all().items
