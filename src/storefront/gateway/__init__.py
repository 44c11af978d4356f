"""Order service registry — pluggable access to the external order API.

Uses the HTTP adapter pointed at STOREFRONT_API_BASE_URL (with an optional
STOREFRONT_API_TOKEN bearer token). Set STOREFRONT_ORDER_SERVICE=fake to
run against the in-memory adapter.
"""

import os

_order_service_instance = None


def get_order_service():
    """Return the configured order service adapter (singleton)."""
    global _order_service_instance
    if _order_service_instance is None:
        adapter = os.environ.get("STOREFRONT_ORDER_SERVICE", "http")
        if adapter == "http":
            from storefront.gateway.http_order_service import HttpOrderService

            _order_service_instance = HttpOrderService(
                base_url=os.environ.get("STOREFRONT_API_BASE_URL"),
                token=os.environ.get("STOREFRONT_API_TOKEN"),
            )
        elif adapter == "fake":
            from storefront.gateway.fake_order_service import FakeOrderService

            _order_service_instance = FakeOrderService()
        else:
            raise ValueError(f"Unknown order service adapter: {adapter}")
    return _order_service_instance


def reset_order_service():
    """Reset the order service singleton (useful for testing)."""
    global _order_service_instance
    _order_service_instance = None
