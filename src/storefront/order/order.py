"""Order aggregate (CQRS) — the client's cached copy of a placed order.

Orders are owned by the external order service once checkout succeeds.
The storefront keeps a read-mostly copy whose ``status`` can run ahead of
the last fetch, because live status events land here first.

Order lines are snapshots taken at checkout: later menu price changes
never reach a placed order.
"""

from datetime import UTC, datetime
from decimal import Decimal

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    OrderStatusOverridden,
)
from storefront.order.status import (
    CANONICAL_PATH,
    TERMINAL_STATES,
    OrderStatus,
    assert_can_override,
    assert_can_transition,
    parse_status,
)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class DeliveryAddress:
    """Where the order is delivered, captured at checkout time."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    instructions = String(max_length=500)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderLine:
    """One meal and its quantity, priced as it was when the order was placed."""

    meal_id = Identifier(required=True)
    name = String(max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    restaurant_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    lines = HasMany(OrderLine)
    delivery_address = ValueObject(DeliveryAddress)
    total = Float(default=0.0, min_value=0.0)
    payment_method = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def from_service(
        cls,
        order_id,
        restaurant_id,
        lines,
        delivery_address,
        status,
        total,
        created_at=None,
        payment_method=None,
    ):
        """Build the cached copy of an order returned by the order service.

        Args:
            lines: List of dicts with meal_id, name, unit_price, quantity.
            delivery_address: Dict with street, city, state, zip_code, instructions.
        """
        now = datetime.now(UTC)
        order = cls(
            id=order_id,
            restaurant_id=restaurant_id,
            status=parse_status(status).value,
            delivery_address=DeliveryAddress(**delivery_address) if delivery_address else None,
            total=total,
            payment_method=payment_method,
            created_at=created_at or now,
            updated_at=now,
        )
        for line in lines:
            order.add_lines(OrderLine(**line))
        return order

    def mark_placed(self):
        """Record that checkout just created this order."""
        self.raise_(
            OrderPlaced(
                order_id=str(self.id),
                restaurant_id=str(self.restaurant_id),
                total=self.total,
                created_at=self.created_at,
            )
        )

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_STATES

    @property
    def is_cancellable(self) -> bool:
        return self.current_status == OrderStatus.PENDING

    @property
    def subtotal(self) -> Decimal:
        return sum((Decimal(str(line.unit_price)) * line.quantity for line in self.lines), Decimal("0"))

    def is_behind(self, status) -> bool:
        """True when ``status`` is further along the canonical path than ours."""
        status = parse_status(status)
        if self.is_terminal:
            return False
        if status == OrderStatus.CANCELLED:
            return self.is_cancellable
        return CANONICAL_PATH.index(status) > CANONICAL_PATH.index(self.current_status)

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def advance_to(self, target):
        """Move the order one step along the customer-visible lifecycle."""
        previous = self.current_status
        target = assert_can_transition(previous, target)
        self._set_status(target)

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous.value,
                new_status=target.value,
                changed_at=self.updated_at,
            )
        )

    def cancel(self):
        """Cancel a placed-but-unconfirmed order on the customer's behalf."""
        assert_can_transition(self.current_status, OrderStatus.CANCELLED)
        self._set_status(OrderStatus.CANCELLED)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                cancelled_at=self.updated_at,
            )
        )

    def override_status(self, target):
        """Administrative status set used by the restaurant dashboard."""
        previous = self.current_status
        target = assert_can_override(previous, target)
        self._set_status(target)

        self.raise_(
            OrderStatusOverridden(
                order_id=str(self.id),
                previous_status=previous.value,
                new_status=target.value,
                changed_at=self.updated_at,
            )
        )

    def catch_up(self, status):
        """Adopt a live status that is ahead of the last fetch. No event is raised."""
        if self.is_behind(status):
            self._set_status(parse_status(status))

    def _set_status(self, status):
        self.status = status.value
        self.updated_at = datetime.now(UTC)
