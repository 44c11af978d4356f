"""Order status machine — canonical lifecycle of a food order.

State Machine (6 states):
    PENDING → CONFIRMED → PREPARING → OUT_FOR_DELIVERY → DELIVERED
    PENDING → CANCELLED

DELIVERED and CANCELLED are terminal. The customer-visible progression is
strictly forward and never skips a step. Restaurant operators get an
administrative override that may jump to any status, except out of a
terminal one.
"""

from enum import Enum

from protean.exceptions import ValidationError


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class InvalidTransition(ValidationError):
    """A status change that the order status machine does not permit."""


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING},
    OrderStatus.PREPARING: {OrderStatus.OUT_FOR_DELIVERY},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Customer-visible progression, as rendered by the live tracker
CANONICAL_PATH = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

STATUS_MESSAGES = {
    OrderStatus.PENDING: "Your order has been received",
    OrderStatus.CONFIRMED: "Your order has been confirmed!",
    OrderStatus.PREPARING: "Your order is being prepared",
    OrderStatus.OUT_FOR_DELIVERY: "Your order is out for delivery",
    OrderStatus.DELIVERED: "Your order has been delivered!",
    OrderStatus.CANCELLED: "Your order has been cancelled",
}

DEFAULT_STATUS_MESSAGE = "Order status updated"


def parse_status(value) -> OrderStatus:
    """Coerce a wire value (or an OrderStatus) into an OrderStatus."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidTransition({"status": [f"Unknown order status '{value}'"]}) from None


def is_terminal(status) -> bool:
    return parse_status(status) in TERMINAL_STATES


def allowed_transitions(status) -> set[OrderStatus]:
    return set(_VALID_TRANSITIONS[parse_status(status)])


def can_transition(current, target) -> bool:
    return parse_status(target) in _VALID_TRANSITIONS[parse_status(current)]


def assert_can_transition(current, target) -> OrderStatus:
    """Validate a strict, customer-visible transition and return the target."""
    current, target = parse_status(current), parse_status(target)
    if target not in _VALID_TRANSITIONS[current]:
        raise InvalidTransition({"status": [f"Cannot transition from {current.value} to {target.value}"]})
    return target


def assert_can_override(current, target) -> OrderStatus:
    """Validate an administrative status set.

    Adjacency is not enforced, but a terminal order stays where it is.
    """
    current, target = parse_status(current), parse_status(target)
    if current in TERMINAL_STATES:
        raise InvalidTransition({"status": [f"Order is already {current.value}; no further changes allowed"]})
    if target == current:
        raise InvalidTransition({"status": [f"Order is already {current.value}"]})
    return target


def status_message(status) -> str:
    """Human-readable notification text for a status."""
    try:
        return STATUS_MESSAGES[parse_status(status)]
    except InvalidTransition:
        return DEFAULT_STATUS_MESSAGE
