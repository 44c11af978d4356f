"""Status event source port — abstract stream of order status changes."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime

from storefront.order.status import TERMINAL_STATES

TERMINAL_VALUES = frozenset(status.value for status in TERMINAL_STATES)


@dataclass(frozen=True)
class StatusEvent:
    """One status change for one order, as delivered by a source."""

    order_id: str
    status: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class StatusEventSource(ABC):
    """Abstract interface for anything that streams order status changes.

    The feed's notification semantics do not depend on the source: a
    simulation, an in-process queue fed by a push channel, or a server-sent
    event stream all plug in here.
    """

    @abstractmethod
    def subscribe(self, order_id: str, since: str | None = None) -> AsyncIterator[StatusEvent]:
        """Stream status changes for an order.

        Args:
            order_id: The order to follow.
            since: The status the subscriber already knows, if any.
        """
        ...


def ends_subscription(status) -> bool:
    """True once a status is terminal. Unknown statuses keep the stream open."""
    return status in TERMINAL_VALUES
