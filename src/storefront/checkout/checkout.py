"""Checkout — turns the current cart into an order at the order service.

The ordered lines leave the cart only after the order service accepted the
order; a failed submission leaves every line in place so the customer can
retry. Anything added while the order was in flight stays in the cart.
"""

import structlog
from protean.exceptions import ValidationError

logger = structlog.get_logger(__name__)

ORDER_PLACED = "order_placed"


class CheckoutService:
    def __init__(self, cart_store, order_service, order_desk, feed):
        self._cart_store = cart_store
        self._order_service = order_service
        self._order_desk = order_desk
        self._feed = feed

    def place_order(self, delivery_address: dict, payment_method: str | None = None):
        """Submit the cart. Raises RemoteAPIFailure when the order service fails.

        Args:
            delivery_address: Dict with street, city, state, zip_code, instructions.
        """
        snapshot = self._cart_store.snapshot()
        if snapshot.is_empty:
            raise ValidationError({"cart": ["Cannot check out an empty cart"]})
        if snapshot.restaurant_id is None:
            raise ValidationError({"restaurant": ["The cart is not associated with a restaurant"]})

        logger.info(
            "Submitting order",
            restaurant_id=snapshot.restaurant_id,
            line_count=len(snapshot.lines),
            total=str(snapshot.totals.total),
        )
        order = self._order_service.create_order(
            snapshot.restaurant_id,
            [dict(line) for line in snapshot.lines],
            delivery_address,
            payment_method=payment_method,
            total=float(snapshot.totals.total),
        )

        order.mark_placed()
        self._cart_store.settle_checkout(snapshot)
        self._order_desk.remember(order)
        self._feed.add_notification(
            ORDER_PLACED,
            "Order Placed",
            f"Your order {order.id} has been placed",
            related_order_id=str(order.id),
        )
        logger.info("Order placed", order_id=str(order.id), restaurant_id=snapshot.restaurant_id)
        return order
