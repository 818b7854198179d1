import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def reset_throttles():
    # Throttle counters live in the cache; keep them from leaking between tests
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    User = get_user_model()

    def _make(email, admin=False):
        return User.objects.create_user(username=email, email=email, password="secret-pass", is_staff=admin)

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin@shop.test", admin=True)


@pytest.fixture
def buyer(make_user):
    """A CLIENT user with a client profile."""
    from apps.clients.models import ClientModel

    user = make_user("buyer@shop.test")
    ClientModel.objects.create(user=user, full_name="Maria Buyer", contact="555-0100", address="1 Main St")
    return user


@pytest.fixture
def other_buyer(make_user):
    from apps.clients.models import ClientModel

    user = make_user("other@shop.test")
    ClientModel.objects.create(user=user, full_name="Otto Other", contact="555-0200", address="2 Side St")
    return user


@pytest.fixture
def as_user(api_client):
    def _as(user):
        api_client.force_authenticate(user=user)
        return api_client

    return _as


@pytest.fixture
def make_product(db):
    from apps.products.models import ProductModel

    def _make(name="Widget", price="10.00", stock=10):
        return ProductModel.objects.create(name=name, description="", price=price, stock=stock)

    return _make
