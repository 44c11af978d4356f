"""Domain events for the Order aggregate.

Status changes are recorded as facts so the live feed and any UI listener
can react without re-reading the order.
"""

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order was accepted by the order service at checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    total = Float(required=True)
    created_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """An order moved along the customer-visible lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusOverridden:
    """A restaurant operator set the order status directly."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """The customer cancelled an order before the restaurant confirmed it."""

    __version__ = 1

    order_id = Identifier(required=True)
    cancelled_at = DateTime(required=True)
