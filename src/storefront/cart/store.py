"""Cart store — the session's single owner of the shopping cart.

Wraps the ShoppingCart aggregate with the behaviour the UI needs:

- a two-phase add (``request_add_item`` / ``resolve_conflict``) so a meal
  from another restaurant only replaces the cart after the customer agrees
- synchronous persistence of the ``cart`` and ``cartRestaurant`` keys
  after every completed mutation
- fan-out of cart domain events to UI listeners

All mutations run under one lock: concurrent callers never interleave a
read-modify-write of the line list, and the persisted snapshot always
matches the last completed mutation.
"""

import json
import threading
from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ValidationError

from storefront.cart.cart import ShoppingCart
from storefront.storage.storage_port import PersistenceWriteFailure

logger = structlog.get_logger(__name__)

CART_KEY = "cart"
CART_RESTAURANT_KEY = "cartRestaurant"


class AddItemOutcome(Enum):
    ADDED = "added"
    CONFLICT = "conflict"


class NoPendingConflict(Exception):
    """resolve_conflict was called without a pending cross-restaurant add."""


@dataclass(frozen=True)
class PendingAdd:
    """A meal waiting for the customer to confirm replacing the cart."""

    meal: object
    quantity: int
    current_restaurant_id: str
    requested_restaurant_id: str


@dataclass(frozen=True)
class AddItemResult:
    outcome: AddItemOutcome
    line_id: str | None = None
    pending: PendingAdd | None = None

    @property
    def applied(self) -> bool:
        return self.outcome == AddItemOutcome.ADDED


@dataclass(frozen=True)
class CartSnapshot:
    """Immutable copy of the cart handed to checkout and the UI."""

    lines: tuple
    restaurant: dict | None
    totals: object

    @property
    def restaurant_id(self):
        return self.restaurant["restaurant_id"] if self.restaurant else None

    @property
    def is_empty(self) -> bool:
        return not self.lines


def _line_to_dict(line) -> dict:
    return {
        "id": str(line.id),
        "meal_id": str(line.meal_id),
        "name": line.name,
        "unit_price": line.unit_price,
        "quantity": line.quantity,
        "restaurant_id": line.restaurant_id,
    }


def _restaurant_to_dict(restaurant) -> dict | None:
    if restaurant is None:
        return None
    return {
        "restaurant_id": restaurant.restaurant_id,
        "name": restaurant.name,
        "delivery_fee": restaurant.delivery_fee or 0.0,
    }


class CartStore:
    def __init__(self, storage, cart=None):
        self._storage = storage
        self._cart = cart if cart is not None else ShoppingCart.create()
        self._pending = None
        self._listeners = []
        self._lock = threading.RLock()

    # -------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------
    def load(self):
        """Rehydrate the cart from local storage.

        A missing or unreadable snapshot leaves the cart empty.
        """
        with self._lock:
            raw_lines = self._storage.get_item(CART_KEY)
            raw_restaurant = self._storage.get_item(CART_RESTAURANT_KEY)
            try:
                lines_data = json.loads(raw_lines) if raw_lines else []
                restaurant_data = json.loads(raw_restaurant) if raw_restaurant else None
                self._cart = ShoppingCart.restore(lines_data, restaurant_data)
            except (ValueError, TypeError, ValidationError) as exc:
                logger.warning("Discarding unreadable cart snapshot", error=str(exc))
                self._cart = ShoppingCart.create()
            self._pending = None
            logger.info("Cart loaded", line_count=len(self._cart.lines), restaurant_id=self._cart.active_restaurant_id)

    def subscribe(self, listener):
        """Register a callable receiving every cart domain event. Returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # -------------------------------------------------------------------
    # Adding items (two-phase)
    # -------------------------------------------------------------------
    def request_add_item(self, meal, quantity=1) -> AddItemResult:
        """Add a meal, or park it as a pending conflict when it comes from another restaurant."""
        with self._lock:
            if self._cart.conflicts_with(meal):
                self._pending = PendingAdd(
                    meal=meal,
                    quantity=quantity,
                    current_restaurant_id=self._cart.current_restaurant_id,
                    requested_restaurant_id=meal.restaurant.restaurant_id,
                )
                logger.info(
                    "Cart restaurant conflict awaiting confirmation",
                    current_restaurant_id=self._pending.current_restaurant_id,
                    requested_restaurant_id=self._pending.requested_restaurant_id,
                )
                return AddItemResult(outcome=AddItemOutcome.CONFLICT, pending=self._pending)

            if meal.restaurant is None:
                logger.info("Meal has no restaurant; active restaurant left unchanged", meal_id=meal.meal_id)

            line = self._cart.add_meal(meal, quantity)
            events = self._commit()
        self._notify(events)
        return AddItemResult(outcome=AddItemOutcome.ADDED, line_id=str(line.id))

    def resolve_conflict(self, accept: bool) -> bool:
        """Complete or discard the pending cross-restaurant add."""
        with self._lock:
            if self._pending is None:
                raise NoPendingConflict("There is no pending item to confirm")

            pending, self._pending = self._pending, None
            if not accept:
                logger.info("Cart replacement declined", requested_restaurant_id=pending.requested_restaurant_id)
                return False

            if self._cart.conflicts_with(pending.meal):
                self._cart.replace_with(pending.meal, pending.quantity)
            else:
                self._cart.add_meal(pending.meal, pending.quantity)
            events = self._commit()

        logger.info("Cart replaced with new restaurant", restaurant_id=pending.requested_restaurant_id)
        self._notify(events)
        return True

    def add_item(self, meal, quantity=1, confirm=None) -> bool:
        """Add a meal, asking ``confirm()`` before replacing another restaurant's cart.

        Without a ``confirm`` callable a conflicting add is declined.
        """
        result = self.request_add_item(meal, quantity)
        if result.applied:
            return True
        return self.resolve_conflict(bool(confirm and confirm()))

    @property
    def pending_conflict(self):
        return self._pending

    # -------------------------------------------------------------------
    # Other mutations
    # -------------------------------------------------------------------
    def remove_item(self, line_id):
        with self._lock:
            if not self._cart.remove_line(line_id):
                logger.warning("Cart line not found", line_id=str(line_id))
                return
            events = self._commit()
        self._notify(events)

    def update_quantity(self, line_id, quantity):
        with self._lock:
            if not self._cart.update_line_quantity(line_id, quantity):
                logger.warning("Cart line not found", line_id=str(line_id))
                return
            events = self._commit()
        self._notify(events)

    def clear_cart(self):
        with self._lock:
            self._cart.clear()
            self._pending = None
            events = self._commit()
        self._notify(events)

    def settle_checkout(self, snapshot: CartSnapshot):
        """Take the lines of an accepted order out of the cart.

        Only what the snapshot ordered is removed. Lines added, or quantity
        added to an ordered line, after the snapshot was taken stay in the
        cart. When nothing changed in between the cart is simply cleared.
        """
        ordered = {line["id"]: line["quantity"] for line in snapshot.lines}
        with self._lock:
            current = {str(line.id): line.quantity for line in self._cart.lines}
            if current == ordered:
                self._cart.clear()
                self._pending = None
            else:
                for line_id, quantity in ordered.items():
                    if line_id in current:
                        self._cart.update_line_quantity(line_id, current[line_id] - quantity)
                logger.info("Cart changed during checkout; kept unordered lines", line_count=len(self._cart.lines))
            events = self._commit()
        self._notify(events)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def cart(self):
        return self._cart

    @property
    def is_empty(self) -> bool:
        return self._cart.is_empty

    @property
    def active_restaurant_id(self):
        return self._cart.active_restaurant_id

    def get_item_count(self) -> int:
        return self._cart.totals.item_count

    def get_subtotal(self):
        return self._cart.totals.subtotal

    def get_delivery_fee(self):
        return self._cart.totals.delivery_fee

    def get_tax(self):
        return self._cart.totals.tax

    def get_total(self):
        return self._cart.totals.total

    def snapshot(self) -> CartSnapshot:
        with self._lock:
            return CartSnapshot(
                lines=tuple(_line_to_dict(line) for line in self._cart.lines),
                restaurant=_restaurant_to_dict(self._cart.restaurant),
                totals=self._cart.totals,
            )

    # -------------------------------------------------------------------
    # Persistence and fan-out
    # -------------------------------------------------------------------
    def _commit(self):
        """Persist the current cart and drain its pending domain events."""
        self._persist()
        events = list(self._cart._events)
        self._cart._events.clear()
        return events

    def _persist(self):
        lines = [_line_to_dict(line) for line in self._cart.lines]
        restaurant = _restaurant_to_dict(self._cart.restaurant)
        try:
            self._storage.set_item(CART_KEY, json.dumps(lines))
            if restaurant is None:
                self._storage.remove_item(CART_RESTAURANT_KEY)
            else:
                self._storage.set_item(CART_RESTAURANT_KEY, json.dumps(restaurant))
        except PersistenceWriteFailure as exc:
            logger.error("Failed to persist cart", key=exc.key, reason=exc.reason)

    def _notify(self, events):
        for event in events:
            for listener in list(self._listeners):
                listener(event)
