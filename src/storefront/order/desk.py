"""Order desk — the session's cache of orders and the operations on them.

Reads go to the order service and land in a local cache. Any status the
event feed has already seen for an order wins over an older fetch, and
the feed learns the fetched status in return.

Status writes are validated locally first, so an illegal change never
reaches the order service, and the cached copy only changes once the
order service accepted the write.
"""

import threading

import structlog

from storefront.order.status import (
    InvalidTransition,
    OrderStatus,
    assert_can_override,
    assert_can_transition,
    parse_status,
)

logger = structlog.get_logger(__name__)


class OrderDesk:
    def __init__(self, order_service, feed):
        self._order_service = order_service
        self._feed = feed
        self._orders = {}
        self._lock = threading.RLock()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def cached(self, order_id):
        """The cached copy of an order, or None."""
        return self._orders.get(str(order_id))

    def remember(self, order):
        """Cache an order, reconciling its status with the event feed."""
        with self._lock:
            live = self._feed.latest_status(order.id)
            if live is not None:
                order.catch_up(live)
            self._feed.track_order(order.id, order.status)
            self._orders[str(order.id)] = order
        return order

    def fetch_order(self, order_id):
        return self.remember(self._order_service.fetch_order(order_id))

    def list_my_orders(self):
        return [self.remember(order) for order in self._order_service.list_my_orders()]

    def list_restaurant_orders(self, status=None):
        """Orders received by the restaurant, optionally only those in one status."""
        orders = [self.remember(order) for order in self._order_service.list_restaurant_orders()]
        if status is None:
            return orders
        status = parse_status(status)
        return [order for order in orders if order.current_status == status]

    @staticmethod
    def count_by_status(orders) -> dict:
        counts = {status: 0 for status in OrderStatus}
        for order in orders:
            counts[order.current_status] += 1
        return counts

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def cancel_order(self, order_id):
        """Customer cancellation. Only pending orders can be cancelled."""
        order = self._load(order_id)
        assert_can_transition(order.current_status, OrderStatus.CANCELLED)
        self._order_service.update_order_status(str(order.id), OrderStatus.CANCELLED.value)
        order.cancel()
        return self._publish(order)

    def advance_order(self, order_id, status):
        """Move an order one step along its lifecycle."""
        order = self._load(order_id)
        target = assert_can_transition(order.current_status, status)
        self._order_service.update_order_status(str(order.id), target.value)
        order.advance_to(target)
        return self._publish(order)

    def set_order_status(self, order_id, status):
        """Administrative status set from the restaurant dashboard."""
        order = self._load(order_id)
        target = assert_can_override(order.current_status, status)
        self._order_service.update_order_status(str(order.id), target.value)
        order.override_status(target)
        return self._publish(order)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _load(self, order_id):
        cached = self.cached(order_id)
        if cached is not None:
            return self.remember(cached)
        return self.fetch_order(order_id)

    def _publish(self, order):
        """Broadcast an accepted status write on the event feed."""
        try:
            self._feed.emit_status_change(order.id, order.current_status, trusted=True)
        except InvalidTransition as exc:
            logger.warning(
                "Feed refused a status the order service accepted",
                order_id=str(order.id),
                error=str(exc.messages),
            )
        logger.info("Order status updated", order_id=str(order.id), status=order.status)
        return self.remember(order)
