import pytest

HEALTH_URL = "/api/health/"


@pytest.mark.django_db
def test_health_is_public_and_reports_db(client):
    r = client.get(HEALTH_URL)
    assert r.status_code == 200
    assert r.json() == {"ok": True, "components": {"db": {"ok": True}}}


@pytest.mark.django_db
def test_request_id_is_echoed(client):
    r = client.get(HEALTH_URL, HTTP_X_REQUEST_ID="trace-abc")
    assert r.headers["X-Request-ID"] == "trace-abc"


@pytest.mark.django_db
def test_request_id_is_generated_when_missing(client):
    r = client.get(HEALTH_URL)
    assert r.headers["X-Request-ID"]


@pytest.mark.django_db
def test_oversized_body_is_rejected(client, settings):
    settings.API_MAX_BYTES = 10
    r = client.post("/api/orders/", data="x" * 50, content_type="application/json")
    assert r.status_code == 413
    assert r.json()["code"] == "PAYLOAD_TOO_LARGE"
