import pytest
from inventory.stock.ledger import StockLedger
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.notifier import EmailOrderNotifier
from ordering.order.coordinator import OrderCoordinator, set_coordinator
from payments.gateway.fake_adapter import FakeGateway
from shared.settings import Settings


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def mailbox():
    return FakeEmailAdapter()


@pytest.fixture
def settings():
    return Settings(
        environ={
            "FULFILLMENT_MAX_TRANSACTION_ATTEMPTS": "5",
            "FULFILLMENT_RETRY_BACKOFF_SECONDS": "0.001",
        }
    )


@pytest.fixture
def coordinator(gateway, mailbox, settings):
    coordinator = OrderCoordinator(
        gateway=gateway,
        notifier=EmailOrderNotifier(channel=mailbox),
        settings=settings,
    )
    set_coordinator(coordinator)
    return coordinator


@pytest.fixture
def ledger():
    return StockLedger()
