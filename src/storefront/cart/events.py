"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="ShoppingCart")
class CartLineAdded:
    """A meal was added to the cart, either as a new line or merged into one."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    meal_id = Identifier(required=True)
    restaurant_id = String()
    quantity = Integer(required=True)
    unit_price = Float(required=True)


@storefront.event(part_of="ShoppingCart")
class CartLineQuantityUpdated:
    """The quantity of a cart line was set to a new value."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartLineRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    meal_id = Identifier(required=True)


@storefront.event(part_of="ShoppingCart")
class CartRestaurantReplaced:
    """The customer accepted switching restaurants; the previous lines were discarded."""

    __version__ = 1

    cart_id = Identifier(required=True)
    previous_restaurant_id = String()
    restaurant_id = String(required=True)
    discarded_line_count = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartCleared:
    """Every line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    discarded_line_count = Integer(required=True)
