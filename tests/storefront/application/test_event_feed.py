"""Tests for EventFeed — strict and trusted status changes, notifications and connection state."""

import threading
import time

import pytest
from storefront.domain import storefront
from storefront.feed.event_feed import EventFeed
from storefront.feed.events import NotificationAdded, OrderStatusRecorded
from storefront.order.status import InvalidTransition, OrderStatus


@pytest.fixture()
def feed():
    feed = EventFeed()
    feed.connect()
    return feed


class TestStrictStatusChanges:
    def test_valid_change_appends_notification(self, feed):
        feed.track_order("ord-1", "pending")
        entry = feed.emit_status_change("ord-1", "confirmed")

        assert entry.title == "Order Update"
        assert entry.message == "Your order has been confirmed!"
        assert entry.notification_type == "order_update"
        assert entry.related_order_id == "ord-1"
        assert feed.latest_status("ord-1") == OrderStatus.CONFIRMED
        assert feed.get_unread_count() == 1

    def test_unknown_order_is_assumed_pending(self, feed):
        feed.emit_status_change("ord-1", "confirmed")
        assert feed.latest_status("ord-1") == OrderStatus.CONFIRMED

    def test_skipping_a_step_is_rejected(self, feed):
        feed.track_order("ord-1", "pending")
        with pytest.raises(InvalidTransition):
            feed.emit_status_change("ord-1", "preparing")
        assert feed.latest_status("ord-1") == OrderStatus.PENDING
        assert feed.notifications() == []

    def test_trusted_change_may_skip_a_step(self, feed):
        feed.track_order("ord-1", "pending")
        entry = feed.emit_status_change("ord-1", "preparing", trusted=True)
        assert entry is not None
        assert feed.latest_status("ord-1") == OrderStatus.PREPARING

    @pytest.mark.parametrize("terminal", ["delivered", "cancelled"])
    @pytest.mark.parametrize("trusted", [False, True])
    def test_terminal_status_is_final(self, feed, terminal, trusted):
        feed.track_order("ord-1", terminal)
        with pytest.raises(InvalidTransition):
            feed.emit_status_change("ord-1", "confirmed", trusted=trusted)
        assert feed.latest_status("ord-1") == OrderStatus(terminal)

    def test_same_status_is_a_no_op(self, feed):
        feed.emit_status_change("ord-1", "confirmed")
        assert feed.emit_status_change("ord-1", "confirmed") is None
        assert len(feed.notifications()) == 1

    def test_full_lifecycle(self, feed):
        for status in ["confirmed", "preparing", "out_for_delivery", "delivered"]:
            feed.emit_status_change("ord-1", status)
        messages = [entry.message for entry in feed.notifications()]
        assert messages[0] == "Your order has been delivered!"
        assert len(messages) == 4
        assert feed.order_updates() == {"ord-1": OrderStatus.DELIVERED}


class TestConnection:
    def test_disconnected_feed_drops_status_changes(self):
        feed = EventFeed()
        assert feed.emit_status_change("ord-1", "confirmed") is None
        assert feed.latest_status("ord-1") is None
        assert feed.notifications() == []

    def test_disconnect_after_connect(self, feed):
        feed.disconnect()
        assert not feed.connected
        assert feed.emit_status_change("ord-1", "confirmed") is None

    def test_emit_waiting_on_the_feed_sees_a_disconnect(self, feed):
        results = []

        def emit():
            with storefront.domain_context():
                results.append(feed.emit_status_change("ord-1", "confirmed"))

        with feed._lock:
            worker = threading.Thread(target=emit)
            worker.start()
            time.sleep(0.05)
            feed.disconnect()
        worker.join(timeout=5)

        assert results == [None]
        assert feed.notifications() == []
        assert feed.latest_status("ord-1") is None


class TestNotifications:
    def test_log_keeps_fifty_newest(self, feed):
        for index in range(60):
            feed.emit_status_change(f"ord-{index}", "confirmed")

        notifications = feed.notifications()
        assert len(notifications) == 50
        assert {entry.related_order_id for entry in notifications} == {f"ord-{i}" for i in range(10, 60)}
        assert notifications[0].related_order_id == "ord-59"
        ids = [entry.notification_id for entry in notifications]
        assert ids == sorted(ids, reverse=True)

    def test_mark_as_read_is_idempotent(self, feed):
        entry = feed.emit_status_change("ord-1", "confirmed")
        feed.mark_as_read(entry.notification_id)
        feed.mark_as_read(entry.notification_id)
        feed.mark_as_read(123)
        assert feed.get_unread_count() == 0
        assert len(feed.notifications()) == 1

    def test_mark_all_as_read(self, feed):
        feed.emit_status_change("ord-1", "confirmed")
        feed.emit_status_change("ord-2", "confirmed")
        feed.mark_all_as_read()
        assert feed.get_unread_count() == 0

    def test_clear_all_keeps_order_statuses(self, feed):
        feed.emit_status_change("ord-1", "confirmed")
        feed.clear_all()
        assert feed.notifications() == []
        assert feed.latest_status("ord-1") == OrderStatus.CONFIRMED

    def test_add_notification(self, feed):
        entry = feed.add_notification("order_placed", "Order Placed", "Your order ord-1 has been placed", "ord-1")
        assert entry.notification_type == "order_placed"
        assert feed.get_unread_count() == 1


class TestListeners:
    def test_listeners_receive_feed_events(self, feed):
        received = []
        feed.subscribe(received.append)
        feed.emit_status_change("ord-1", "confirmed")
        assert [type(e) for e in received] == [OrderStatusRecorded, NotificationAdded]

    def test_track_order_does_not_notify_entries(self, feed):
        feed.track_order("ord-1", "preparing")
        assert feed.notifications() == []
        assert feed.latest_status("ord-1") == OrderStatus.PREPARING
