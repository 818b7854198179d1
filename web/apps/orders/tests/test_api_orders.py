"""API tests for order listing, detail, status updates and deletion."""

from datetime import datetime, timezone

import pytest

from apps.orders.models import OrderItemModel, OrderModel
from apps.products.models import ProductModel

LIST_URL = "/api/orders/"
DETAIL_URL = "/api/orders/{oid}/"


def seed_order(user, product, quantity=1, status="ORDERED", order_date=None):
    order = OrderModel.objects.create(client=user.client, status=status, total=product.price * quantity)
    OrderItemModel.objects.create(
        order=order, product=product, quantity=quantity, unit_price=product.price, subtotal=product.price * quantity
    )
    if order_date is not None:
        OrderModel.objects.filter(pk=order.pk).update(order_date=order_date)
    return order


@pytest.fixture
def product(make_product):
    p = make_product(name="Widget", price="10.00", stock=10)
    p.refresh_from_db()
    return p


@pytest.mark.django_db
def test_get_order_by_id_returns_200_and_payload(as_user, buyer, product):
    o = seed_order(buyer, product, quantity=2)
    r = as_user(buyer).get(DETAIL_URL.format(oid=o.id))
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == o.id
    assert body["status"] == "ORDERED"
    assert body["total"] == "20.00"
    assert body["items"][0]["product_id"] == product.id


@pytest.mark.django_db
def test_get_order_not_found_returns_404(as_user, admin):
    r = as_user(admin).get(DETAIL_URL.format(oid=424242))
    assert r.status_code == 404
    assert r.json()["detail"] == "Order not found"


@pytest.mark.django_db
def test_get_foreign_order_returns_403(as_user, buyer, other_buyer, product):
    o = seed_order(other_buyer, product)
    assert as_user(buyer).get(DETAIL_URL.format(oid=o.id)).status_code == 403


@pytest.mark.django_db
def test_list_orders_scopes_and_meta(as_user, admin, buyer, other_buyer, product):
    mine = seed_order(buyer, product)
    theirs = seed_order(other_buyer, product)
    seed_order(buyer, product, status="CART")

    r = as_user(buyer).get(LIST_URL)
    assert r.status_code == 200
    assert [o["id"] for o in r.json()["data"]] == [mine.id]

    body = as_user(admin).get(LIST_URL).json()
    assert [o["id"] for o in body["data"]] == [mine.id, theirs.id]
    assert body["meta"] == {"totalItems": 2, "itemCount": 2, "itemsPerPage": 20, "totalPages": 1, "currentPage": 1}


@pytest.mark.django_db
def test_list_orders_second_page(as_user, admin, buyer, product):
    ids = [seed_order(buyer, product).id for _ in range(35)]
    body = as_user(admin).get(LIST_URL, {"page": 2}).json()
    assert [o["id"] for o in body["data"]] == ids[20:]
    assert body["meta"]["totalPages"] == 2
    assert body["meta"]["currentPage"] == 2
    assert body["meta"]["itemCount"] == 15


@pytest.mark.django_db
def test_list_orders_filters_status_and_dates(as_user, admin, buyer, product):
    a = seed_order(buyer, product, order_date=datetime(2024, 3, 1, 8, tzinfo=timezone.utc))
    b = seed_order(buyer, product, status="SHIPPED", order_date=datetime(2024, 3, 10, 23, 59, 59, tzinfo=timezone.utc))
    seed_order(buyer, product, order_date=datetime(2024, 3, 11, 0, 0, 1, tzinfo=timezone.utc))
    client = as_user(admin)

    r = client.get(LIST_URL, {"startDate": "2024-03-01", "endDate": "2024-03-10"})
    assert [o["id"] for o in r.json()["data"]] == [a.id, b.id]

    r = client.get(LIST_URL, {"status": "SHIPPED"})
    assert [o["id"] for o in r.json()["data"]] == [b.id]


@pytest.mark.django_db
def test_list_orders_rejects_bad_filters(as_user, admin):
    client = as_user(admin)
    assert client.get(LIST_URL, {"page": 0}).status_code == 400
    assert client.get(LIST_URL, {"status": "NOPE"}).status_code == 400
    assert client.get(LIST_URL, {"startDate": "2024-03-10", "endDate": "2024-03-01"}).status_code == 400


@pytest.mark.django_db
def test_admin_preparing_deducts_stock(as_user, admin, buyer, product):
    o = seed_order(buyer, product, quantity=4)
    r = as_user(admin).patch(DETAIL_URL.format(oid=o.id), {"status": "PREPARING"}, format="json")
    assert r.status_code == 200
    assert r.json()["status"] == "PREPARING"
    assert ProductModel.objects.get(pk=product.id).stock == 6


@pytest.mark.django_db
def test_admin_preparing_short_stock_returns_400_and_keeps_state(as_user, admin, buyer, product):
    o = seed_order(buyer, product, quantity=11)
    r = as_user(admin).patch(DETAIL_URL.format(oid=o.id), {"status": "PREPARING"}, format="json")
    assert r.status_code == 400
    assert ProductModel.objects.get(pk=product.id).stock == 10
    assert OrderModel.objects.get(pk=o.id).status == "ORDERED"


@pytest.mark.django_db
def test_admin_invalid_status_returns_400(as_user, admin, buyer, product):
    o = seed_order(buyer, product)
    r = as_user(admin).patch(DETAIL_URL.format(oid=o.id), {"status": "TELEPORTED"}, format="json")
    assert r.status_code == 400
    r = as_user(admin).patch(DETAIL_URL.format(oid=o.id), {"status": " shipped "}, format="json")
    assert r.status_code == 400
    assert OrderModel.objects.get(pk=o.id).status == "ORDERED"


@pytest.mark.django_db
def test_client_status_rules(as_user, buyer, other_buyer, product):
    o = seed_order(buyer, product)
    client = as_user(buyer)
    assert client.patch(DETAIL_URL.format(oid=o.id), {"status": "PREPARING"}, format="json").status_code == 403

    # Status values are matched exactly
    assert client.patch(DETAIL_URL.format(oid=o.id), {"status": "received"}, format="json").status_code == 403

    r = client.patch(DETAIL_URL.format(oid=o.id), {"status": "RECEIVED"}, format="json")
    assert r.status_code == 200
    assert r.json()["status"] == "RECEIVED"

    foreign = seed_order(other_buyer, product)
    assert client.patch(DETAIL_URL.format(oid=foreign.id), {"status": "CANCELED"}, format="json").status_code == 403


@pytest.mark.django_db
def test_delete_order_admin_only(as_user, admin, buyer, product):
    o = seed_order(buyer, product)
    assert as_user(buyer).delete(DETAIL_URL.format(oid=o.id)).status_code == 403

    r = as_user(admin).delete(DETAIL_URL.format(oid=o.id))
    assert r.status_code == 200
    assert r.json()["id"] == o.id
    assert not OrderModel.objects.filter(pk=o.id).exists()
    assert not OrderItemModel.objects.filter(order_id=o.id).exists()

    assert as_user(admin).delete(DETAIL_URL.format(oid=o.id)).status_code == 404
