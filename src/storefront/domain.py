"""Storefront bounded context — cart, order lifecycle and live order tracking.

Holds the client-side consistency model of the food-delivery storefront:
the single-restaurant shopping cart, the order status machine, the
real-time status feed with its notification log, and the live tracker
read model.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
