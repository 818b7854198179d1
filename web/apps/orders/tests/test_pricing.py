from decimal import Decimal

from apps.orders.domain import LineRequest, Product
from apps.orders.pricing import line_subtotal, money, order_total, price_lines


def test_money_rounds_half_up_to_cents():
    assert money("2.345") == Decimal("2.35")
    assert money(0.1) == Decimal("0.10")
    assert money(Decimal("7")) == Decimal("7.00")


def test_line_subtotal_and_total():
    lines = price_lines(
        [LineRequest(1, 3), LineRequest(2, 2)],
        {1: Product(1, "A", Decimal("19.99"), 5), 2: Product(2, "B", Decimal("0.05"), 5)},
    )
    assert [l.subtotal for l in lines] == [Decimal("59.97"), Decimal("0.10")]
    assert order_total(lines) == Decimal("60.07")
    assert line_subtotal(4, "2.50") == Decimal("10.00")


def test_empty_order_totals_zero():
    assert order_total([]) == Decimal("0.00")
