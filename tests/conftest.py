import os
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
    """Pytest hook to run before collecting tests.

    Select the in-memory adapters. The storefront domain is initialized
    and its context pushed by the storefront conftest.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("STOREFRONT_STORAGE", "memory")
    os.environ.setdefault("STOREFRONT_ORDER_SERVICE", "fake")
    os.environ.setdefault("STOREFRONT_FEED_SOURCE", "push")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def reset_adapters():
    """Drop adapter singletons after every test so state never leaks."""
    yield

    from storefront.feed.sources import reset_status_source
    from storefront.gateway import reset_order_service
    from storefront.storage import reset_storage

    reset_storage()
    reset_order_service()
    reset_status_source()
