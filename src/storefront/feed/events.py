"""Domain events for the NotificationFeed aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="NotificationFeed")
class NotificationAdded:
    """A notification entered the feed."""

    __version__ = 1

    feed_id = Identifier(required=True)
    notification_id = Integer(required=True)
    notification_type = String(required=True)
    title = String(required=True)
    related_order_id = String()
    timestamp = DateTime(required=True)


@storefront.event(part_of="NotificationFeed")
class NotificationRead:
    """The customer read a notification."""

    __version__ = 1

    feed_id = Identifier(required=True)
    notification_id = Integer(required=True)


@storefront.event(part_of="NotificationFeed")
class NotificationsCleared:
    """The customer cleared the notification log."""

    __version__ = 1

    feed_id = Identifier(required=True)
    cleared_count = Integer(required=True)


@storefront.event(part_of="NotificationFeed")
class OrderStatusRecorded:
    """The feed learned a newer status for an order."""

    __version__ = 1

    feed_id = Identifier(required=True)
    order_id = String(required=True)
    previous_status = String()
    new_status = String(required=True)
