"""Shopping Cart aggregate — a single-restaurant basket of meals.

The cart lives on the customer's device. It holds lines from at most one
restaurant at a time: the first meal that carries a restaurant fixes the
active restaurant, and a meal from any other restaurant can only enter by
replacing the whole cart. An empty cart never remembers a restaurant or a
delivery fee.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from storefront.cart.events import (
    CartCleared,
    CartLineAdded,
    CartLineQuantityUpdated,
    CartLineRemoved,
    CartRestaurantReplaced,
)
from storefront.cart.pricing import calculate_totals
from storefront.domain import storefront


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="ShoppingCart")
class RestaurantRef:
    """The restaurant a cart is ordering from, with its delivery fee."""

    restaurant_id = String(required=True, max_length=100)
    name = String(max_length=255)
    delivery_fee = Float(default=0.0, min_value=0.0)


@storefront.value_object(part_of="ShoppingCart")
class Meal:
    """A menu item as offered by the catalogue when the customer picks it."""

    meal_id = String(required=True, max_length=100)
    name = String(max_length=255)
    price = Float(required=True, min_value=0.0)
    restaurant = ValueObject(RestaurantRef)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="ShoppingCart")
class CartLine:
    meal_id = Identifier(required=True)
    name = String(max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    restaurant_id = String(max_length=100)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class ShoppingCart:
    lines = HasMany(CartLine)
    restaurant = ValueObject(RestaurantRef)
    delivery_fee = Float(default=0.0, min_value=0.0)
    updated_at = DateTime()

    @invariant.post
    def empty_cart_has_no_restaurant(self):
        if not self.lines and (self.restaurant is not None or self.delivery_fee):
            raise ValidationError({"restaurant": ["An empty cart cannot hold a restaurant or delivery fee"]})

    @invariant.post
    def lines_belong_to_one_restaurant(self):
        restaurant_ids = {line.restaurant_id for line in self.lines if line.restaurant_id}
        if len(restaurant_ids) > 1:
            raise ValidationError({"lines": ["All cart lines must come from the same restaurant"]})
        if restaurant_ids and self.restaurant is not None and restaurant_ids != {self.restaurant.restaurant_id}:
            raise ValidationError({"lines": ["Cart lines must come from the active restaurant"]})

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def create(cls):
        return cls(delivery_fee=0.0, updated_at=datetime.now(UTC))

    @classmethod
    def restore(cls, lines_data, restaurant_data=None):
        """Rebuild a cart from its locally stored snapshot.

        When the restaurant record is missing but the lines name a
        restaurant, the restaurant is rebuilt from the lines without a
        delivery fee. Lines naming a different restaurant than the record
        fail the invariants with ValidationError.

        Args:
            lines_data: List of dicts with id, meal_id, name, unit_price, quantity, restaurant_id.
            restaurant_data: Dict with restaurant_id, name, delivery_fee, or None.
        """
        cart = cls.create()
        with atomic_change(cart):
            for line in lines_data:
                cart.add_lines(CartLine(**line))
            if not restaurant_data and cart.line_restaurant_id:
                restaurant_data = {"restaurant_id": cart.line_restaurant_id, "delivery_fee": 0.0}
            if restaurant_data and cart.lines:
                cart._adopt(RestaurantRef(**restaurant_data))
        return cart

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def active_restaurant_id(self):
        return self.restaurant.restaurant_id if self.restaurant else None

    @property
    def line_restaurant_id(self):
        """Restaurant named by the lines themselves, if any line carries one."""
        return next((line.restaurant_id for line in self.lines if line.restaurant_id), None)

    @property
    def current_restaurant_id(self):
        return self.active_restaurant_id or self.line_restaurant_id

    @property
    def totals(self):
        return calculate_totals(self.lines, self.delivery_fee)

    def find_line(self, line_id):
        return next((line for line in self.lines if str(line.id) == str(line_id)), None)

    def conflicts_with(self, meal) -> bool:
        """True when the meal would bring a second restaurant into the cart."""
        if meal.restaurant is None or self.is_empty:
            return False
        current = {line.restaurant_id for line in self.lines if line.restaurant_id}
        if self.restaurant is not None:
            current.add(self.restaurant.restaurant_id)
        return bool(current) and current != {meal.restaurant.restaurant_id}

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_meal(self, meal, quantity=1):
        """Add a meal, merging into the existing line for the same meal."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if self.conflicts_with(meal):
            raise ValidationError({"restaurant": ["Meal belongs to a different restaurant than the cart"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            if meal.restaurant is not None and self.restaurant is None:
                self._adopt(meal.restaurant)
            line = self._merge_line(meal, quantity)
            self.updated_at = now

        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                line_id=str(line.id),
                meal_id=str(meal.meal_id),
                restaurant_id=meal.restaurant.restaurant_id if meal.restaurant else None,
                quantity=quantity,
                unit_price=meal.price,
            )
        )
        return line

    def replace_with(self, meal, quantity=1):
        """Discard every line and start over with a meal from another restaurant."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        previous_restaurant_id = self.active_restaurant_id
        discarded = len(self.lines)
        now = datetime.now(UTC)

        with atomic_change(self):
            self._drop_all()
            if meal.restaurant is not None:
                self._adopt(meal.restaurant)
            line = self._merge_line(meal, quantity)
            self.updated_at = now

        self.raise_(
            CartRestaurantReplaced(
                cart_id=str(self.id),
                previous_restaurant_id=previous_restaurant_id,
                restaurant_id=meal.restaurant.restaurant_id if meal.restaurant else "",
                discarded_line_count=discarded,
            )
        )
        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                line_id=str(line.id),
                meal_id=str(meal.meal_id),
                restaurant_id=meal.restaurant.restaurant_id if meal.restaurant else None,
                quantity=quantity,
                unit_price=meal.price,
            )
        )
        return line

    def update_line_quantity(self, line_id, quantity):
        """Set a line's quantity exactly. Zero or less removes the line.

        Returns False when the line is not in the cart.
        """
        if quantity <= 0:
            return self.remove_line(line_id)

        line = self.find_line(line_id)
        if line is None:
            return False

        previous_quantity = line.quantity
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineQuantityUpdated(
                cart_id=str(self.id),
                line_id=str(line_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )
        return True

    def remove_line(self, line_id):
        """Remove a line. Removing the last one forgets the restaurant and its fee.

        Returns False when the line is not in the cart.
        """
        line = self.find_line(line_id)
        if line is None:
            return False

        with atomic_change(self):
            self.remove_lines(line)
            if not self.lines:
                self._forget_restaurant()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineRemoved(
                cart_id=str(self.id),
                line_id=str(line_id),
                meal_id=str(line.meal_id),
            )
        )
        return True

    def clear(self):
        """Empty the cart unconditionally."""
        discarded = len(self.lines)

        with atomic_change(self):
            self._drop_all()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                discarded_line_count=discarded,
            )
        )

    # -------------------------------------------------------------------
    # Helpers (call inside atomic_change)
    # -------------------------------------------------------------------
    def _adopt(self, restaurant):
        self.restaurant = restaurant
        self.delivery_fee = restaurant.delivery_fee or 0.0

    def _forget_restaurant(self):
        self.restaurant = None
        self.delivery_fee = 0.0

    def _drop_all(self):
        for line in list(self.lines):
            self.remove_lines(line)
        self._forget_restaurant()

    def _merge_line(self, meal, quantity):
        existing = next((line for line in self.lines if str(line.meal_id) == str(meal.meal_id)), None)
        if existing:
            existing.quantity += quantity
            return existing

        line = CartLine(
            meal_id=meal.meal_id,
            name=meal.name,
            unit_price=meal.price,
            quantity=quantity,
            restaurant_id=meal.restaurant.restaurant_id if meal.restaurant else None,
        )
        self.add_lines(line)
        return line
