"""Event feed — the session's live view of order status changes.

Status-change events arrive from an event source (a simulation, or a push
channel in production). Each accepted change updates the per-order
latest status and appends an ``order_update`` notification. The feed only
accepts events while its session is connected.

Strict changes follow the order status machine one step at a time.
Trusted changes come from sources that already validated them (the order
service, an operator override) and may skip steps, but nothing leaves a
terminal status.
"""

import threading

import structlog

from storefront.feed.notification_feed import DEFAULT_CAPACITY, ORDER_UPDATE, NotificationFeed
from storefront.order.status import (
    OrderStatus,
    assert_can_override,
    assert_can_transition,
    parse_status,
    status_message,
)

logger = structlog.get_logger(__name__)

ORDER_UPDATE_TITLE = "Order Update"


class EventFeed:
    def __init__(self, capacity=DEFAULT_CAPACITY):
        self._feed = NotificationFeed.create(capacity=capacity)
        self._connected = False
        self._listeners = []
        self._lock = threading.RLock()

    # -------------------------------------------------------------------
    # Connection state
    # -------------------------------------------------------------------
    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self):
        with self._lock:
            self._connected = True
        logger.info("Event feed connected")

    def disconnect(self):
        """Stop accepting status changes. An emit already holding the lock completes first."""
        with self._lock:
            self._connected = False
        logger.info("Event feed disconnected")

    def subscribe(self, listener):
        """Register a callable receiving every feed domain event. Returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # -------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------
    def track_order(self, order_id, status):
        """Seed the latest status of an order without notifying anyone."""
        status = parse_status(status)
        with self._lock:
            if self._feed.latest_status(order_id) == status.value:
                return
            self._feed.record_status(order_id, status.value)
            events = self._drain()
        self._notify(events)

    def emit_status_change(self, order_id, new_status, trusted=False):
        """Apply a status change and append its notification.

        Returns the new FeedEntry, or None when the feed is disconnected
        or the order already has that status. Raises InvalidTransition when
        the status machine rejects the change.
        """
        with self._lock:
            if not self._connected:
                logger.warning("Event feed disconnected; status change dropped", order_id=str(order_id))
                return None

            target = parse_status(new_status)
            known = self._feed.latest_status(order_id)
            current = parse_status(known) if known else OrderStatus.PENDING

            if current == target:
                if known is not None:
                    return None
                self._feed.record_status(order_id, target.value)
                entry, events = None, self._drain()
            else:
                if trusted:
                    assert_can_override(current, target)
                else:
                    assert_can_transition(current, target)

                self._feed.record_status(order_id, target.value)
                entry = self._feed.append(
                    ORDER_UPDATE,
                    ORDER_UPDATE_TITLE,
                    status_message(target),
                    related_order_id=str(order_id),
                )
                events = self._drain()

        if entry is not None:
            logger.info(
                "Order status changed",
                order_id=str(order_id),
                previous_status=current.value,
                new_status=target.value,
                trusted=trusted,
            )
        self._notify(events)
        return entry

    # -------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------
    def add_notification(self, notification_type, title, message, related_order_id=None):
        """Append a notification that did not come from a status change."""
        with self._lock:
            entry = self._feed.append(notification_type, title, message, related_order_id=related_order_id)
            events = self._drain()
        self._notify(events)
        return entry

    def mark_as_read(self, notification_id):
        with self._lock:
            self._feed.mark_read(notification_id)
            events = self._drain()
        self._notify(events)

    def mark_all_as_read(self):
        with self._lock:
            for entry in self._feed.entries:
                self._feed.mark_read(entry.notification_id)
            events = self._drain()
        self._notify(events)

    def clear_all(self):
        with self._lock:
            self._feed.clear()
            events = self._drain()
        self._notify(events)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def notifications(self):
        """Notifications, newest first."""
        with self._lock:
            return self._feed.newest_first()

    def get_unread_count(self) -> int:
        return self._feed.unread_count

    def latest_status(self, order_id):
        """The most recent status seen for an order, or None."""
        status = self._feed.latest_status(order_id)
        return OrderStatus(status) if status else None

    def order_updates(self) -> dict:
        return {order_id: OrderStatus(status) for order_id, status in self._feed.order_statuses().items()}

    # -------------------------------------------------------------------
    # Fan-out
    # -------------------------------------------------------------------
    def _drain(self):
        events = list(self._feed._events)
        self._feed._events.clear()
        return events

    def _notify(self, events):
        for event in events:
            for listener in list(self._listeners):
                listener(event)
