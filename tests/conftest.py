import os
import tempfile
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the Protean config overlay and a scratch database before any domain is initialized."""
    os.environ["PROTEAN_ENV"] = session.config.option.env
    database = Path(tempfile.mkdtemp(prefix="fulfillment-")) / "test.db"
    os.environ.setdefault("FULFILLMENT_DATABASE_URI", f"sqlite:///{database}")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def ordering_bed():
    from protean.integrations.pytest import DomainFixture

    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests():
    """Reset every process-wide collaborator after each test."""
    yield

    from notifications.channel import reset_channels
    from notifications.notifier import reset_notifier
    from ordering.order.coordinator import reset_coordinator
    from payments.gateway import reset_gateway
    from shared.settings import reset_settings

    reset_coordinator()
    reset_gateway()
    reset_notifier()
    reset_channels()
    reset_settings()
