"""Live tracker — step-by-step progress view of an order in flight.

A pure read model: it is fed the order's current status (usually from the
event feed) and derives which steps are completed or active, plus a rough
delivery countdown. It never writes the feed.

The countdown starts at 30 minutes and drops by 5 every time the status
advances, never below zero. It is a display heuristic, not logistics data.
Cancelled orders are not tracked.
"""

from dataclasses import dataclass

from storefront.order.status import CANONICAL_PATH, OrderStatus, parse_status

DEFAULT_ESTIMATE_MINUTES = 30
ESTIMATE_DECREMENT_MINUTES = 5


@dataclass(frozen=True)
class StepDefinition:
    status: OrderStatus
    label: str
    description: str


ORDER_STEPS = (
    StepDefinition(OrderStatus.PENDING, "Order Placed", "Your order has been received"),
    StepDefinition(OrderStatus.CONFIRMED, "Confirmed", "Restaurant confirmed your order"),
    StepDefinition(OrderStatus.PREPARING, "Preparing", "Your food is being prepared"),
    StepDefinition(OrderStatus.OUT_FOR_DELIVERY, "Out for Delivery", "Your order is on the way"),
    StepDefinition(OrderStatus.DELIVERED, "Delivered", "Order delivered successfully"),
)


@dataclass(frozen=True)
class TrackerStep:
    status: OrderStatus
    label: str
    description: str
    completed: bool
    active: bool


def step_index(status) -> int:
    """Position of a status in the tracked sequence."""
    status = parse_status(status)
    if status not in CANONICAL_PATH:
        raise ValueError(f"Status '{status.value}' is not part of the tracked progression")
    return CANONICAL_PATH.index(status)


def is_trackable(status) -> bool:
    return parse_status(status) in CANONICAL_PATH


class LiveTracker:
    def __init__(self, order_id, initial_status=OrderStatus.PENDING, estimated_minutes=DEFAULT_ESTIMATE_MINUTES):
        self.order_id = str(order_id)
        self._index = step_index(initial_status)
        self._estimated_minutes = estimated_minutes

    @property
    def current_status(self) -> OrderStatus:
        return CANONICAL_PATH[self._index]

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def estimated_minutes(self) -> int:
        return self._estimated_minutes

    @property
    def show_estimate(self) -> bool:
        return self.current_status != OrderStatus.DELIVERED

    @property
    def driver_en_route(self) -> bool:
        return self.current_status == OrderStatus.OUT_FOR_DELIVERY

    @property
    def is_delivered(self) -> bool:
        return self.current_status == OrderStatus.DELIVERED

    def observe(self, status) -> bool:
        """Project a newly seen status. Returns True when the tracker advanced.

        Statuses at or behind the current step are ignored, so completion
        never goes backwards.
        """
        index = step_index(status)
        if index <= self._index:
            return False
        self._index = index
        self._estimated_minutes = max(0, self._estimated_minutes - ESTIMATE_DECREMENT_MINUTES)
        return True

    def sync(self, feed) -> bool:
        """Read the order's latest status from the event feed and project it."""
        status = feed.latest_status(self.order_id)
        if status is None or not is_trackable(status):
            return False
        return self.observe(status)

    def steps(self) -> list[TrackerStep]:
        return [
            TrackerStep(
                status=definition.status,
                label=definition.label,
                description=definition.description,
                completed=index <= self._index,
                active=index == self._index,
            )
            for index, definition in enumerate(ORDER_STEPS)
        ]


def tracker_for(order_id, status):
    """A tracker for the order, or None when the order cannot be tracked (cancelled)."""
    if not is_trackable(status):
        return None
    return LiveTracker(order_id, initial_status=status)
