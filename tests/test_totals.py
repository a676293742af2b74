"""Tests for order totals."""

from decimal import Decimal
from types import SimpleNamespace

from order_hub.services.orders import compute_totals


def line(price, qty):
    return SimpleNamespace(unit_price=Decimal(price), quantity_ordered=qty)


class TestComputeTotals:
    def test_two_lines_at_twenty_percent(self):
        totals = compute_totals([line("10.00", 4), line("5.00", 2)], Decimal("20"))
        assert totals.pre_tax == Decimal("50.00")
        assert totals.tax == Decimal("10.00")
        assert totals.total == Decimal("60.00")

    def test_total_is_pre_tax_plus_tax(self):
        totals = compute_totals([line("3.33", 3), line("0.99", 7)], Decimal("5.5"))
        assert totals.total == totals.pre_tax + totals.tax

    def test_tax_rounded_half_up_to_cents(self):
        # 0.25 * 10% = 0.025 -> 0.03
        totals = compute_totals([line("0.25", 1)], Decimal("10"))
        assert totals.tax == Decimal("0.03")
        assert totals.total == Decimal("0.28")

    def test_zero_rate(self):
        totals = compute_totals([line("12.50", 2)], 0)
        assert totals.tax == Decimal("0.00")
        assert totals.total == Decimal("25.00")

    def test_no_lines(self):
        totals = compute_totals([], Decimal("20"))
        assert totals.pre_tax == Decimal("0.00")
        assert totals.total == Decimal("0.00")

    def test_recomputing_gives_same_result(self):
        lines = [line("19.99", 3), line("1.01", 11)]
        assert compute_totals(lines, Decimal("20")) == compute_totals(lines, Decimal("20"))
