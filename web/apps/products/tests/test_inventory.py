import pytest

from apps.common.errors import InvalidRequest, NotFound
from apps.products.repository import DjangoInventory


@pytest.mark.django_db
def test_adjust_stock_applies_delta(make_product):
    p = make_product(stock=5)
    inv = DjangoInventory()
    assert inv.adjust_stock(p.id, -5).stock == 0
    assert inv.adjust_stock(p.id, 3).stock == 3


@pytest.mark.django_db
def test_adjust_stock_never_goes_negative(make_product):
    p = make_product(name="Mug", stock=2)
    with pytest.raises(InvalidRequest, match="Mug"):
        DjangoInventory().adjust_stock(p.id, -3)
    p.refresh_from_db()
    assert p.stock == 2


@pytest.mark.django_db
def test_missing_product():
    inv = DjangoInventory()
    assert inv.get_product(404, for_update=True) is None
    assert inv.list_products([404]) == []
    with pytest.raises(NotFound):
        inv.adjust_stock(404, -1)
