"""Storefront session — the explicit context object wiring one customer session.

Replaces ambient global state: every service the UI talks to hangs off a
``StorefrontSession`` built at startup (by the FastAPI app, or by a test)
and torn down when the session ends.

    session = StorefrontSession.from_environment()
    session.start()          # load cart, connect feed
    ...
    await session.close()    # stop live subscriptions, disconnect feed
"""

import uuid

from storefront.cart.store import CartStore
from storefront.checkout.checkout import CheckoutService
from storefront.feed.event_feed import EventFeed
from storefront.feed.notification_feed import DEFAULT_CAPACITY
from storefront.feed.runner import FeedRunner
from storefront.feed.sources import get_status_source
from storefront.gateway import get_order_service
from storefront.order.desk import OrderDesk
from storefront.storage import get_storage
from storefront.tracker.live_tracker import is_trackable, tracker_for
from storefront.utils.logging import bind_session, clear_session, get_logger

logger = get_logger(__name__)


class StorefrontSession:
    def __init__(self, storage, order_service, status_source, feed_capacity=DEFAULT_CAPACITY):
        self.session_id = uuid.uuid4().hex
        self.storage = storage
        self.order_service = order_service
        self.cart = CartStore(storage)
        self.feed = EventFeed(capacity=feed_capacity)
        self.orders = OrderDesk(order_service, self.feed)
        self.checkout = CheckoutService(self.cart, order_service, self.orders, self.feed)
        self.runner = FeedRunner(self.feed, status_source)
        self._trackers = {}

    @classmethod
    def from_environment(cls):
        """Build a session from the configured adapters."""
        return cls(get_storage(), get_order_service(), get_status_source())

    def start(self):
        bind_session(session_id=self.session_id)
        self.cart.load()
        self.feed.connect()
        logger.info("Storefront session started", session_id=self.session_id)

    async def close(self):
        await self.runner.stop()
        self.feed.disconnect()
        logger.info("Storefront session closed", session_id=self.session_id)
        clear_session()

    def place_order(self, delivery_address, payment_method=None, follow=False):
        """Check out the cart; with ``follow`` the order's live status is subscribed."""
        order = self.checkout.place_order(delivery_address, payment_method=payment_method)
        if follow:
            self.runner.follow(order.id)
        return order

    def tracker(self, order_id):
        """The live tracker of an order, synced with the feed. None once cancelled."""
        order_id = str(order_id)
        status = self.feed.latest_status(order_id)
        if status is None:
            status = self.orders.fetch_order(order_id).current_status

        if not is_trackable(status):
            self._trackers.pop(order_id, None)
            return None

        tracker = self._trackers.get(order_id)
        if tracker is None:
            tracker = self._trackers[order_id] = tracker_for(order_id, status)
        else:
            tracker.observe(status)
        return tracker
