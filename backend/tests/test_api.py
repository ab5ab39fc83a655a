"""HTTP surface: health checks and tour maintenance endpoints."""

import pytest
from fastapi.testclient import TestClient

from tourseed.api.routes_tours import get_catalog
from tourseed.core.config import settings
from tourseed.core.rate_limiting import limiter
from tourseed.db.database import get_db
from tourseed.main import app

from conftest import tour_entry, tree_counts

API = settings.api_prefix
ADMIN_HEADERS = {"X-API-Key": settings.admin_api_key}


@pytest.fixture
def client(db, make_catalog):
    limiter.enabled = False
    app.state.last_reconcile = None
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_catalog] = lambda: make_catalog({"Test Tour": tour_entry()})
    yield TestClient(app)
    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def offline_client():
    limiter.enabled = False
    app.state.last_reconcile = None
    app.dependency_overrides[get_db] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()
    limiter.enabled = True


def test_root_lists_maintenance_endpoints(client):
    body = client.get("/").json()
    assert body["status"] == "running"
    assert body["endpoints"]["reconcile"] == f"{API}/tours/reconcile"


def test_health_reports_store_and_catalog(client, add_tour):
    add_tour("Test Tour")

    body = client.get(f"{API}/health/").json()

    assert body["status"] == "healthy"
    assert body["database"] == {"status": "available", "tours": 1, "locations": 0}
    assert body["catalog"]["status"] == "loaded"
    assert body["catalog"]["tours"] > 0
    assert body["last_reconcile"] is None
    assert client.get(f"{API}/health/ready").json() == {"ready": True}


def test_health_records_last_reconcile(client, add_tour):
    add_tour("Test Tour")
    add_tour("Other Tour")
    client.post(f"{API}/tours/reconcile", headers=ADMIN_HEADERS)

    last = client.get(f"{API}/health/").json()["last_reconcile"]

    assert (last["updated"], last["skipped"], last["errors"]) == (1, 1, 0)
    assert last["incomplete"] == []
    assert last["finished_at"]


def test_health_degrades_on_unreadable_catalog(client, monkeypatch, tmp_path):
    broken = tmp_path / "catalog.json"
    broken.write_text("{not json", encoding="utf-8")
    monkeypatch.setattr(settings, "catalog_path", str(broken))

    body = client.get(f"{API}/health/").json()

    assert body["status"] == "degraded"
    assert body["catalog"]["status"] == "unavailable"
    ready = client.get(f"{API}/health/ready").json()
    assert ready == {"ready": False, "database": "available", "catalog": "unavailable"}


def test_health_degrades_without_database(offline_client):
    body = offline_client.get(f"{API}/health/").json()
    assert body["status"] == "degraded"
    assert body["database"] == {"status": "unavailable"}
    assert offline_client.get(f"{API}/health/ready").json()["ready"] is False
    assert offline_client.get(f"{API}/health/live").json() == {"alive": True}


def test_reconcile_requires_admin_key(client, add_tour):
    add_tour("Test Tour")

    assert client.post(f"{API}/tours/reconcile").status_code == 403
    assert client.post(f"{API}/tours/reconcile", headers={"X-API-Key": "wrong"}).status_code == 403


def test_reconcile_endpoint(client, db, add_tour):
    tour = add_tour("Test Tour")
    add_tour("Other Tour")

    response = client.post(f"{API}/tours/reconcile", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["updated"], body["skipped"]) == (1, 1)
    assert body["skipped_titles"] == ["Other Tour"]
    assert body["tours"][0]["items_created"] == 1
    assert body["tours"][0]["complete"] is True
    assert tree_counts(db, tour.id) == (1, 1, 1)


def test_audit_endpoint(client, add_tour):
    add_tour("Test Tour")
    client.post(f"{API}/tours/reconcile", headers=ADMIN_HEADERS)

    body = client.get(f"{API}/tours/audit").json()

    entry = body["tours"][0]
    assert entry["city"] == "Rome"
    assert (entry["day_count"], entry["block_count"], entry["item_count"]) == (1, 1, 1)
    assert entry["blocks_per_day"] == {"1": 1}
    assert entry["warning"] == "very few locations"


def test_inventory_endpoint(client, add_tour):
    add_tour("Live")
    add_tour("Draft", published=False)

    body = client.get(f"{API}/tours/inventory").json()

    assert body == {"total_tours": 2, "published": 1, "unpublished": 1, "locations": 0}


@pytest.mark.parametrize("method,path", [
    ("get", "/tours/audit"),
    ("get", "/tours/inventory"),
    ("post", "/tours/reconcile"),
])
def test_store_endpoints_answer_503_without_database(offline_client, method, path):
    response = getattr(offline_client, method)(f"{API}{path}", headers=ADMIN_HEADERS)
    assert response.status_code == 503
