"""Tests for cart pricing — decimal totals, tax and rounding."""

from decimal import Decimal

from storefront.cart.pricing import TAX_RATE, calculate_totals, to_money


class _Line:
    def __init__(self, unit_price, quantity):
        self.unit_price = unit_price
        self.quantity = quantity


class TestCalculateTotals:
    def test_reference_totals(self):
        totals = calculate_totals([_Line(2.00, 2), _Line(3.50, 1)], 1.99)
        assert totals.subtotal == Decimal("7.50")
        assert totals.tax == Decimal("0.60")
        assert totals.delivery_fee == Decimal("1.99")
        assert totals.total == Decimal("10.09")
        assert totals.item_count == 3

    def test_delivery_fee_is_not_taxed(self):
        totals = calculate_totals([_Line(10.00, 1)], 5.00)
        assert totals.tax == Decimal("0.80")
        assert totals.total == Decimal("15.80")

    def test_empty_cart_totals_are_zero(self):
        totals = calculate_totals([], 0)
        assert totals.item_count == 0
        assert totals.subtotal == Decimal("0.00")
        assert totals.total == Decimal("0.00")

    def test_float_prices_do_not_leak_binary_noise(self):
        totals = calculate_totals([_Line(0.1, 3)], 0.2)
        assert totals.subtotal == Decimal("0.30")
        assert totals.total == Decimal("0.52")

    def test_tax_rounds_half_up_to_cents(self):
        # 0.0625 * 8% = 0.005 -> rounds up to 0.01
        assert to_money(Decimal("0.0625") * TAX_RATE) == Decimal("0.01")
