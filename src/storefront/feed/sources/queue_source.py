"""Queue status source — in-process push channel.

Whatever receives pushed messages (a websocket handler, a webhook, a
test) calls ``publish``; subscribers of that order receive the event.
Messages for an order nobody follows yet are buffered, for at most
``max_pending_orders`` orders; the oldest buffer is dropped first.
A subscription ends once the order reaches a terminal status or the
source is closed.
"""

import asyncio

import structlog

from storefront.feed.sources.status_source_port import StatusEvent, StatusEventSource, ends_subscription

logger = structlog.get_logger(__name__)

DEFAULT_MAX_PENDING_ORDERS = 100

_CLOSED = object()


class QueueStatusSource(StatusEventSource):
    def __init__(self, max_pending_orders=DEFAULT_MAX_PENDING_ORDERS):
        self._queues: dict[str, asyncio.Queue] = {}
        self._subscribers: dict[str, int] = {}
        self._max_pending_orders = max_pending_orders

    def _queue(self, order_id) -> asyncio.Queue:
        key = str(order_id)
        if key not in self._queues:
            self._queues[key] = asyncio.Queue()
            self._evict_unfollowed()
        return self._queues[key]

    def _evict_unfollowed(self):
        pending = [key for key in self._queues if key not in self._subscribers]
        for key in pending[: max(0, len(pending) - self._max_pending_orders)]:
            dropped = self._queues.pop(key)
            logger.warning("Dropping status messages for unfollowed order", order_id=key, count=dropped.qsize())

    @property
    def buffered_orders(self) -> set:
        """Orders holding messages that no subscriber has picked up yet."""
        return {key for key in self._queues if key not in self._subscribers}

    def publish(self, order_id, status):
        """Deliver an inbound status message to the order's subscriber."""
        self._queue(order_id).put_nowait(StatusEvent(order_id=str(order_id), status=status))

    def close(self, order_id=None):
        """End one subscription, or all of them. Unknown orders are ignored."""
        order_ids = [str(order_id)] if order_id is not None else list(self._queues)
        for key in order_ids:
            if key in self._queues:
                self._queues[key].put_nowait(_CLOSED)

    async def subscribe(self, order_id, since=None):
        key = str(order_id)
        self._subscribers[key] = self._subscribers.get(key, 0) + 1
        queue = self._queue(key)
        try:
            while True:
                event = await queue.get()
                if event is _CLOSED:
                    return
                yield event
                if ends_subscription(event.status):
                    return
        finally:
            self._subscribers[key] -= 1
            if not self._subscribers[key]:
                del self._subscribers[key]
                self._queues.pop(key, None)
