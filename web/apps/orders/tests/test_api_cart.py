"""API tests for the cart endpoints.

These tests exercise add, read, remove and checkout through the HTTP
layer with the database-backed adapters, and check the role gate on
cart routes.
"""

import pytest

from apps.orders.models import OrderModel
from apps.products.models import ProductModel

CART_URL = "/api/orders/cart/"
CHECKOUT_URL = "/api/orders/cart/checkout/"
ITEM_URL = "/api/orders/cart/{pid}/"


@pytest.mark.django_db
def test_add_then_get_cart(as_user, buyer, make_product):
    p = make_product(price="10.00", stock=5)
    client = as_user(buyer)

    r = client.post(CART_URL, {"items": [{"productId": p.id, "quantity": 3}]}, format="json")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "CART"
    assert body["total"] == "30.00"
    assert body["items"][0]["unit_price"] == "10.00"
    assert body["items"][0]["subtotal"] == "30.00"

    r2 = client.get(CART_URL)
    assert r2.status_code == 200
    assert r2.json()["id"] == body["id"]


@pytest.mark.django_db
def test_two_adds_keep_one_cart(as_user, buyer, make_product):
    p = make_product(stock=10)
    client = as_user(buyer)
    client.post(CART_URL, {"items": [{"productId": p.id, "quantity": 1}]}, format="json")
    r = client.post(CART_URL, {"items": [{"productId": p.id, "quantity": 2}]}, format="json")

    assert r.json()["items"][0]["quantity"] == 3
    assert OrderModel.objects.filter(client__user=buyer, status="CART").count() == 1


@pytest.mark.django_db
def test_get_cart_without_cart_returns_404(as_user, buyer):
    r = as_user(buyer).get(CART_URL)
    assert r.status_code == 404
    assert r.json() == {"detail": "Cart not found", "code": "NOT_FOUND"}


@pytest.mark.django_db
def test_add_unknown_product_returns_404(as_user, buyer):
    r = as_user(buyer).post(CART_URL, {"items": [{"productId": 999, "quantity": 1}]}, format="json")
    assert r.status_code == 404
    assert "999" in r.json()["detail"]


@pytest.mark.django_db
def test_add_over_stock_returns_400(as_user, buyer, make_product):
    p = make_product(name="Lamp", stock=1)
    r = as_user(buyer).post(CART_URL, {"items": [{"productId": p.id, "quantity": 2}]}, format="json")
    assert r.status_code == 400
    assert "Lamp" in r.json()["detail"]


@pytest.mark.django_db
def test_add_validation_error_returns_400(as_user, buyer):
    r = as_user(buyer).post(CART_URL, {"items": [{"productId": 1, "quantity": 0}]}, format="json")
    assert r.status_code == 400
    r = as_user(buyer).post(CART_URL, {"items": []}, format="json")
    assert r.status_code == 400


@pytest.mark.django_db
def test_remove_partial_then_last(as_user, buyer, make_product):
    p = make_product(price="10.00", stock=5)
    client = as_user(buyer)
    client.post(CART_URL, {"items": [{"productId": p.id, "quantity": 3}]}, format="json")

    r = client.delete(ITEM_URL.format(pid=p.id) + "?quantity=2")
    assert r.status_code == 200
    body = r.json()
    assert body["items"][0]["quantity"] == 1
    assert body["items"][0]["subtotal"] == "10.00"
    assert body["total"] == "10.00"

    r = client.delete(ITEM_URL.format(pid=p.id))
    assert r.status_code == 200
    assert r.json()["cart"] is None
    assert "deleted" in r.json()["message"]
    assert not OrderModel.objects.exists()


@pytest.mark.django_db
def test_remove_with_zero_quantity_returns_400(as_user, buyer, make_product):
    p = make_product()
    client = as_user(buyer)
    client.post(CART_URL, {"items": [{"productId": p.id, "quantity": 1}]}, format="json")
    r = client.delete(ITEM_URL.format(pid=p.id) + "?quantity=0")
    assert r.status_code == 400


@pytest.mark.django_db
def test_checkout_deducts_stock(as_user, buyer, make_product):
    p = make_product(stock=5)
    client = as_user(buyer)
    client.post(CART_URL, {"items": [{"productId": p.id, "quantity": 2}]}, format="json")

    r = client.post(CHECKOUT_URL, format="json")

    assert r.status_code == 200
    assert r.json()["status"] == "ORDERED"
    p.refresh_from_db()
    assert p.stock == 3
    assert client.get(CART_URL).status_code == 404


@pytest.mark.django_db
def test_checkout_short_stock_leaves_everything_untouched(as_user, buyer, make_product):
    """Stock 1, line quantity 2 -> 400; stock stays 1, cart stays CART."""
    ok = make_product(name="Apple", stock=10)
    short = make_product(name="Widget", stock=5)
    client = as_user(buyer)
    client.post(
        CART_URL,
        {"items": [{"productId": ok.id, "quantity": 4}, {"productId": short.id, "quantity": 2}]},
        format="json",
    )
    ProductModel.objects.filter(pk=short.id).update(stock=1)

    r = client.post(CHECKOUT_URL, format="json")

    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_REQUEST"
    assert ProductModel.objects.get(pk=ok.id).stock == 10
    assert ProductModel.objects.get(pk=short.id).stock == 1
    assert OrderModel.objects.get(client__user=buyer).status == "CART"


@pytest.mark.django_db
def test_cart_routes_are_client_only(as_user, admin):
    client = as_user(admin)
    assert client.get(CART_URL).status_code == 403
    assert client.post(CHECKOUT_URL, format="json").status_code == 403


@pytest.mark.django_db
def test_cart_requires_authentication(api_client):
    assert api_client.get(CART_URL).status_code == 401
