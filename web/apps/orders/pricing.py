"""Money arithmetic for order lines and totals.

Amounts are ``Decimal`` values quantized to cents with half-up rounding so
totals never drift from the sum of their lines.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, NamedTuple

CENT = Decimal("0.01")


def money(value) -> Decimal:
    """Coerce ``value`` to a cent-quantized Decimal."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(quantity: int, unit_price) -> Decimal:
    return money(money(unit_price) * quantity)


def order_total(items: Iterable) -> Decimal:
    """Sum the ``subtotal`` of every line; an empty order totals zero."""
    return money(sum((money(i.subtotal) for i in items), Decimal("0")))


class PricedLine(NamedTuple):
    """A requested line priced and ready to be persisted."""

    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


def price_lines(requested: Iterable, products: Dict[int, object]) -> List[PricedLine]:
    """Price requested lines at each product's current price.

    Args:
        requested: Objects with ``product_id`` and ``quantity``.
        products: Mapping of product id to product (must hold every id).

    Returns:
        One ``PricedLine`` per requested line, in request order.
    """
    lines = []
    for it in requested:
        price = money(products[it.product_id].price)
        lines.append(PricedLine(it.product_id, it.quantity, price, line_subtotal(it.quantity, price)))
    return lines
