"""Tests for stock adjustments inside the caller's unit of work and the stock ledger."""

import threading

import pytest
from inventory.exceptions import InsufficientStock
from inventory.stock.adjuster import (
    InventoryAdjuster,
    InventoryAdjustment,
    decrements_for,
    net_deltas,
)
from inventory.stock.ledger import StockLedger
from inventory.stock.stock import Stock
from ordering.domain import ordering
from ordering.order.order import LineItem
from protean import UnitOfWork
from protean.exceptions import InvalidOperationError, ValidationError


@pytest.fixture
def ledger():
    return StockLedger()


def _items(*pairs):
    return [LineItem(product_id=product_id, quantity=quantity, unit_price=1.0) for product_id, quantity in pairs]


def _committed(product_id):
    """On-hand quantity as another connection sees it."""
    seen = []

    def read():
        with ordering.domain_context():
            seen.append(StockLedger().available(product_id))

    reader = threading.Thread(target=read)
    reader.start()
    reader.join()
    return seen[0]


class TestDecrementsFor:
    def test_one_negative_adjustment_per_line_item(self):
        adjustments = decrements_for(_items(("prod-a", 2), ("prod-b", 1)))
        assert adjustments == [
            InventoryAdjustment(product_id="prod-a", quantity_delta=-2),
            InventoryAdjustment(product_id="prod-b", quantity_delta=-1),
        ]

    def test_net_deltas_keep_first_seen_order(self):
        totals = net_deltas(decrements_for(_items(("prod-b", 1), ("prod-a", 2), ("prod-b", 3))))
        assert list(totals.items()) == [("prod-b", -4), ("prod-a", -2)]


class TestStock:
    def test_adjust_below_zero_rejected(self):
        stock = Stock(product_id="prod-a", on_hand=1)

        with pytest.raises(InsufficientStock):
            stock.adjust(-2)
        assert stock.on_hand == 1


class TestInventoryAdjuster:
    def test_decrement_is_staged_until_commit(self, ledger):
        ledger.set_stock("prod-a", 5)

        with UnitOfWork() as uow:
            InventoryAdjuster().decrement_for(_items(("prod-a", 2)), uow)

            assert ledger.available("prod-a") == 3
            assert _committed("prod-a") == 5

        assert ledger.available("prod-a") == 3

    def test_decrement_to_exactly_zero_is_allowed(self, ledger):
        ledger.set_stock("prod-a", 2)

        with UnitOfWork() as uow:
            InventoryAdjuster().decrement_for(_items(("prod-a", 2)), uow)

        assert ledger.available("prod-a") == 0

    def test_shortfall_raises_with_details(self, ledger):
        ledger.set_stock("prod-a", 1)

        with pytest.raises(InsufficientStock) as exc_info:
            with UnitOfWork() as uow:
                InventoryAdjuster().decrement_for(_items(("prod-a", 3)), uow)

        assert exc_info.value.product_id == "prod-a"
        assert exc_info.value.requested == 3
        assert exc_info.value.available == 1
        assert "quantity" in exc_info.value.messages
        assert ledger.available("prod-a") == 1

    def test_unknown_product_has_no_stock(self):
        with pytest.raises(InsufficientStock) as exc_info:
            with UnitOfWork() as uow:
                InventoryAdjuster().decrement_for(_items(("prod-missing", 1)), uow)

        assert exc_info.value.available == 0

    def test_failed_line_item_discards_earlier_decrements(self, ledger):
        ledger.set_stock("prod-a", 1)
        ledger.set_stock("prod-b", 1)

        with pytest.raises(InsufficientStock):
            with UnitOfWork() as uow:
                InventoryAdjuster().decrement_for(_items(("prod-b", 1), ("prod-a", 2)), uow)

        assert ledger.available("prod-a") == 1
        assert ledger.available("prod-b") == 1

    def test_repeated_product_is_checked_against_its_total(self, ledger):
        ledger.set_stock("prod-a", 3)

        with pytest.raises(InsufficientStock) as exc_info:
            with UnitOfWork() as uow:
                InventoryAdjuster().decrement_for(_items(("prod-a", 2), ("prod-a", 2)), uow)

        assert exc_info.value.requested == 4
        assert ledger.available("prod-a") == 3

    def test_refuses_to_run_without_an_open_unit_of_work(self, ledger):
        ledger.set_stock("prod-a", 5)

        with pytest.raises(InvalidOperationError):
            InventoryAdjuster().decrement_for(_items(("prod-a", 1)), None)

        assert ledger.available("prod-a") == 5

    def test_positive_adjustment_creates_missing_stock(self, ledger):
        with UnitOfWork() as uow:
            InventoryAdjuster().adjust([InventoryAdjustment(product_id="prod-new", quantity_delta=4)], uow)

        assert ledger.available("prod-new") == 4


class TestStockLedger:
    def test_set_stock_overwrites(self, ledger):
        ledger.set_stock("prod-a", 10)
        ledger.set_stock("prod-a", 4)
        assert ledger.available("prod-a") == 4

    def test_negative_stock_rejected(self, ledger):
        with pytest.raises(ValidationError) as exc_info:
            ledger.set_stock("prod-a", -1)
        assert "on_hand" in exc_info.value.messages

    def test_receive_adds_units(self, ledger):
        ledger.set_stock("prod-a", 2)
        ledger.receive("prod-a", 3)
        assert ledger.available("prod-a") == 5

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_receive_requires_positive_quantity(self, ledger, quantity):
        with pytest.raises(ValidationError):
            ledger.receive("prod-a", quantity)

    def test_available_for_unknown_product_is_zero(self, ledger):
        assert ledger.available("prod-unknown") == 0
