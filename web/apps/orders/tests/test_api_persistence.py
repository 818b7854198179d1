"""Integration tests that assert checkout is persisted.

These tests use the API to build and check out a cart, then read the
tables back with raw SQL so the assertions do not depend on the ORM
mapping.
"""

from decimal import Decimal

import pytest
from django.db import connection

CART_URL = "/api/orders/cart/"
CHECKOUT_URL = "/api/orders/cart/checkout/"


@pytest.mark.django_db
def test_checkout_persists_status_items_and_stock(as_user, buyer, make_product):
    """Check out a two-line cart and read the rows back.

    The order row must be ``ORDERED`` with the summed total, each item row
    must carry the price captured when it was added, and product stock
    must be reduced by the purchased quantity.
    """
    a = make_product(name="Apple", price="2.50", stock=10)
    b = make_product(name="Bread", price="4.00", stock=3)
    client = as_user(buyer)
    client.post(
        CART_URL,
        {"items": [{"productId": a.id, "quantity": 4}, {"productId": b.id, "quantity": 3}]},
        format="json",
    )

    r = client.post(CHECKOUT_URL, format="json")
    assert r.status_code == 200
    oid = r.json()["id"]

    with connection.cursor() as cur:
        cur.execute("select status, total, client_id from orders where id = %s", [oid])
        status, total, client_id = cur.fetchone()
        cur.execute(
            "select product_id, quantity, unit_price, subtotal from order_items where order_id = %s order by product_id",
            [oid],
        )
        items = cur.fetchall()
        cur.execute("select id, stock from products order by id")
        stock = dict(cur.fetchall())

    assert status == "ORDERED"
    assert Decimal(str(total)) == Decimal("22.00")
    assert client_id == buyer.client.id
    assert [(pid, qty, Decimal(str(price)), Decimal(str(sub))) for pid, qty, price, sub in items] == [
        (a.id, 4, Decimal("2.50"), Decimal("10.00")),
        (b.id, 3, Decimal("4.00"), Decimal("12.00")),
    ]
    assert stock == {a.id: 6, b.id: 0}


@pytest.mark.django_db
def test_price_change_after_add_does_not_reprice_cart(as_user, buyer, make_product):
    p = make_product(price="5.00", stock=10)
    client = as_user(buyer)
    client.post(CART_URL, {"items": [{"productId": p.id, "quantity": 1}]}, format="json")

    with connection.cursor() as cur:
        cur.execute("update products set price = %s where id = %s", ["9.00", p.id])

    body = client.post(CART_URL, {"items": [{"productId": p.id, "quantity": 1}]}, format="json").json()
    assert body["items"][0]["unit_price"] == "5.00"
    assert body["total"] == "10.00"
