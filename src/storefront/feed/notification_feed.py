"""NotificationFeed aggregate — bounded notification log plus latest order statuses.

The feed keeps the most recent ``capacity`` notifications (50 by default);
appending beyond that evicts the oldest entry. Notification ids are
integers derived from the clock in milliseconds and never go backwards,
so newest-first ordering is simply descending id order.

``latest_statuses`` maps order ids to the most recent status the feed has
seen. Clearing the notification log leaves it untouched.
"""

import json
import time
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Integer, String, Text

from storefront.domain import storefront
from storefront.feed.events import (
    NotificationAdded,
    NotificationRead,
    NotificationsCleared,
    OrderStatusRecorded,
)

DEFAULT_CAPACITY = 50

ORDER_UPDATE = "order_update"


@storefront.entity(part_of="NotificationFeed")
class FeedEntry:
    notification_id = Integer(required=True)
    notification_type = String(required=True, max_length=50, default=ORDER_UPDATE)
    title = String(required=True, max_length=255)
    message = Text(required=True)
    timestamp = DateTime(required=True)
    read = Boolean(default=False)
    related_order_id = String(max_length=100)


@storefront.aggregate
class NotificationFeed:
    entries = HasMany(FeedEntry)
    latest_statuses = Text()  # JSON: {order_id: status}
    capacity = Integer(default=DEFAULT_CAPACITY, min_value=1)
    last_notification_id = Integer(default=0)

    @invariant.post
    def log_stays_within_capacity(self):
        if len(self.entries) > self.capacity:
            raise ValidationError({"entries": [f"The feed keeps at most {self.capacity} notifications"]})

    @classmethod
    def create(cls, capacity=DEFAULT_CAPACITY):
        return cls(capacity=capacity, latest_statuses=json.dumps({}), last_notification_id=0)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def newest_first(self):
        return sorted(self.entries, key=lambda entry: entry.notification_id, reverse=True)

    def find_entry(self, notification_id):
        return next((e for e in self.entries if e.notification_id == notification_id), None)

    @property
    def unread_count(self) -> int:
        return sum(1 for entry in self.entries if not entry.read)

    def order_statuses(self) -> dict:
        return json.loads(self.latest_statuses) if self.latest_statuses else {}

    def latest_status(self, order_id):
        return self.order_statuses().get(str(order_id))

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def append(self, notification_type, title, message, related_order_id=None, timestamp=None):
        """Add a notification, evicting the oldest ones beyond capacity."""
        notification_id = max(time.time_ns() // 1_000_000, self.last_notification_id + 1)
        entry = FeedEntry(
            notification_id=notification_id,
            notification_type=notification_type,
            title=title,
            message=message,
            timestamp=timestamp or datetime.now(UTC),
            read=False,
            related_order_id=related_order_id,
        )

        with atomic_change(self):
            self.add_entries(entry)
            self.last_notification_id = notification_id
            overflow = len(self.entries) - self.capacity
            if overflow > 0:
                for oldest in sorted(self.entries, key=lambda e: e.notification_id)[:overflow]:
                    self.remove_entries(oldest)

        self.raise_(
            NotificationAdded(
                feed_id=str(self.id),
                notification_id=notification_id,
                notification_type=notification_type,
                title=title,
                related_order_id=related_order_id,
                timestamp=entry.timestamp,
            )
        )
        return entry

    def record_status(self, order_id, status):
        statuses = self.order_statuses()
        previous = statuses.get(str(order_id))
        statuses[str(order_id)] = status
        self.latest_statuses = json.dumps(statuses)

        self.raise_(
            OrderStatusRecorded(
                feed_id=str(self.id),
                order_id=str(order_id),
                previous_status=previous,
                new_status=status,
            )
        )

    def mark_read(self, notification_id) -> bool:
        """Mark one notification read. Unknown or already-read ids change nothing."""
        entry = self.find_entry(notification_id)
        if entry is None or entry.read:
            return False

        entry.read = True
        self.raise_(NotificationRead(feed_id=str(self.id), notification_id=notification_id))
        return True

    def clear(self):
        cleared = len(self.entries)
        with atomic_change(self):
            for entry in list(self.entries):
                self.remove_entries(entry)

        self.raise_(NotificationsCleared(feed_id=str(self.id), cleared_count=cleared))
        return cleared
