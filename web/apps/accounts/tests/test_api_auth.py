import pytest
from django.contrib.auth import get_user_model

REGISTER_URL = "/api/auth/register/"
LOGIN_URL = "/api/auth/login/"
ME_URL = "/api/auth/me/"


@pytest.mark.django_db
def test_register_login_and_me(api_client):
    r = api_client.post(REGISTER_URL, {"email": "New@Shop.test", "password": "long-enough"}, format="json")
    assert r.status_code == 201
    assert r.json()["email"] == "new@shop.test"
    assert r.json()["role"] == "CLIENT"

    r = api_client.post(LOGIN_URL, {"email": "new@shop.test", "password": "long-enough"}, format="json")
    assert r.status_code == 200
    token = r.json()["access_token"]

    api_client.credentials(HTTP_AUTHORIZATION=f"Token {token}")
    r = api_client.get(ME_URL)
    assert r.status_code == 200
    assert r.json()["email"] == "new@shop.test"


@pytest.mark.django_db
def test_login_is_stable_across_calls(api_client, make_user):
    make_user("buyer@shop.test")
    creds = {"email": "buyer@shop.test", "password": "secret-pass"}
    t1 = api_client.post(LOGIN_URL, creds, format="json").json()["access_token"]
    t2 = api_client.post(LOGIN_URL, creds, format="json").json()["access_token"]
    assert t1 == t2


@pytest.mark.django_db
def test_login_with_bad_password_returns_401(api_client, make_user):
    make_user("buyer@shop.test")
    r = api_client.post(LOGIN_URL, {"email": "buyer@shop.test", "password": "wrong"}, format="json")
    assert r.status_code == 401


@pytest.mark.django_db
def test_register_duplicate_email_conflicts(api_client, make_user):
    make_user("taken@shop.test")
    r = api_client.post(REGISTER_URL, {"email": "taken@shop.test", "password": "long-enough"}, format="json")
    assert r.status_code == 409


@pytest.mark.django_db
@pytest.mark.parametrize(
    "payload",
    [
        {"email": "not-an-email", "password": "long-enough"},
        {"email": "a@b.test", "password": "short"},
        {"email": "a@b.test", "password": "long-enough", "role": "ROOT"},
    ],
)
def test_register_validation(api_client, payload):
    assert api_client.post(REGISTER_URL, payload, format="json").status_code == 400


@pytest.mark.django_db
def test_only_admins_register_admins(api_client, as_user, admin, buyer):
    payload = {"email": "boss@shop.test", "password": "long-enough", "role": "ADMIN"}

    assert api_client.post(REGISTER_URL, payload, format="json").status_code == 403
    assert as_user(buyer).post(REGISTER_URL, payload, format="json").status_code == 403

    r = as_user(admin).post(REGISTER_URL, payload, format="json")
    assert r.status_code == 201
    assert r.json()["role"] == "ADMIN"
    assert get_user_model().objects.get(email="boss@shop.test").is_staff


@pytest.mark.django_db
def test_me_requires_authentication(api_client):
    assert api_client.get(ME_URL).status_code == 401
