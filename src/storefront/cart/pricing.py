"""Cart pricing — subtotal, tax and grand total in exact decimal arithmetic."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

# Flat sales tax applied to the food subtotal (delivery fee is not taxed)
TAX_RATE = Decimal("0.08")

_CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert a stored float price into a Decimal without binary noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def to_money(value) -> Decimal:
    return to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartTotals:
    """Derived money figures for a cart."""

    item_count: int
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal


def calculate_totals(lines, delivery_fee) -> CartTotals:
    """Price a sequence of lines exposing ``unit_price`` and ``quantity``."""
    subtotal = sum((to_decimal(line.unit_price) * line.quantity for line in lines), Decimal("0"))
    fee = to_decimal(delivery_fee)
    tax = to_money(subtotal * TAX_RATE)
    return CartTotals(
        item_count=sum(line.quantity for line in lines),
        subtotal=to_money(subtotal),
        delivery_fee=to_money(fee),
        tax=tax,
        total=to_money(subtotal + fee + tax),
    )
