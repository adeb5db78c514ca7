"""Integration tests for /expenses and /prefs routes."""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import make_expense, make_sync_engine
from expenses.api.main import create_app

BODY = {
    "title": "Groceries",
    "amount": 250.5,
    "date": "2025-03-14T18:00:00",
    "category": "food",
    "payment_method": "amex",
}


@pytest.fixture(name="sync_engine")
def sync_engine_fixture(store, remote):
    return make_sync_engine(store, remote, online=True)


@pytest.fixture(name="client")
def client_fixture(sync_engine):
    with TestClient(create_app(sync_engine=sync_engine)) as c:
        yield c


class TestExpenseRoutes:
    def test_list_empty(self, client):
        resp = client.get("/expenses/")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_create_generates_id_and_mirrors(self, client, remote):
        resp = client.post("/expenses/", json=BODY)
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"]
        assert data["synced"] is True
        assert remote.docs[data["id"]]["paymentMethod"] == "amex"

    def test_create_with_explicit_id(self, client, store):
        resp = client.post("/expenses/", json={**BODY, "id": "mine"})
        assert resp.status_code == 201
        assert store.contains("mine")

    def test_create_offline_is_unsynced(self, store, remote):
        app = create_app(sync_engine=make_sync_engine(store, remote, online=False))
        with TestClient(app) as c:
            resp = c.post("/expenses/", json=BODY)
        assert resp.status_code == 201
        assert resp.json()["synced"] is False
        assert remote.docs == {}

    def test_create_rejects_missing_fields(self, client):
        resp = client.post("/expenses/", json={"title": "x"})
        assert resp.status_code == 422

    @pytest.mark.parametrize("override", [
        {"payment_method": "bitcoin"},
        {"category": "lottery"},
        {"category": "other - "},
    ])
    def test_create_rejects_unknown_catalog_values(self, client, store, override):
        resp = client.post("/expenses/", json={**BODY, "id": "bad", **override})
        assert resp.status_code == 422
        assert not store.contains("bad")

    def test_create_accepts_custom_category(self, client, store):
        resp = client.post("/expenses/", json={**BODY, "id": "g", "category": "other - Gifts"})
        assert resp.status_code == 201
        assert store.get("g").category == "other - Gifts"

    def test_payment_method_defaults_to_cash(self, client, store):
        body = {k: v for k, v in BODY.items() if k != "payment_method"}
        resp = client.post("/expenses/", json={**body, "id": "p"})
        assert resp.status_code == 201
        assert store.get("p").payment_method == "cash"

    def test_offset_date_is_stored_as_utc(self, client, store):
        resp = client.post(
            "/expenses/", json={**BODY, "id": "tz", "date": "2025-03-14T12:30:00+05:30"}
        )
        assert resp.status_code == 201
        assert store.get("tz").date == datetime(2025, 3, 14, 7, 0)

    def test_list_newest_first_with_paging(self, client, store):
        for day in (1, 3, 2):
            store.put(make_expense(f"d{day}", date=datetime(2025, 3, day)))

        resp = client.get("/expenses/?limit=2")
        assert [e["id"] for e in resp.json()] == ["d3", "d2"]

        resp = client.get("/expenses/?limit=2&offset=2")
        assert [e["id"] for e in resp.json()] == ["d1"]

    def test_get_one(self, client, store):
        store.put(make_expense("a"))
        resp = client.get("/expenses/a")
        assert resp.status_code == 200
        assert resp.json()["title"] == "Lunch"

    def test_get_missing_returns_404(self, client):
        assert client.get("/expenses/nope").status_code == 404

    def test_update(self, client, store, remote):
        client.post("/expenses/", json={**BODY, "id": "a"})
        resp = client.put("/expenses/a", json={**BODY, "amount": 99.0})
        assert resp.status_code == 200
        assert store.get("a").amount == 99.0
        assert remote.docs["a"]["amount"] == 99.0

    def test_update_missing_returns_404(self, client):
        assert client.put("/expenses/nope", json=BODY).status_code == 404

    def test_delete(self, client, store, remote):
        client.post("/expenses/", json={**BODY, "id": "a"})
        resp = client.delete("/expenses/a")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Expense deleted", "id": "a"}
        assert not store.contains("a")
        assert "a" not in remote.docs

    def test_delete_missing_returns_404(self, client):
        assert client.delete("/expenses/nope").status_code == 404

    def test_category_totals(self, client, store):
        store.put(make_expense("a", amount=10.0, category="food"))
        store.put(make_expense("b", amount=5.0, category="food"))
        store.put(make_expense("c", amount=7.0, category="travel"))

        resp = client.get("/expenses/summary/categories")
        assert resp.json() == {"food": 15.0, "travel": 7.0}

    def test_period_total_excludes_bounds(self, client, store):
        store.put(make_expense("jan", amount=100.0, date=datetime(2025, 1, 10)))
        store.put(make_expense("feb", amount=40.0, date=datetime(2025, 2, 5)))
        store.put(make_expense("edge", amount=60.0, date=datetime(2025, 3, 1)))

        resp = client.get(
            "/expenses/summary/period",
            params={"start": "2025-02-01T00:00:00", "end": "2025-03-01T00:00:00"},
        )
        assert resp.status_code == 200
        assert resp.json()["total"] == 40.0

    def test_period_total_requires_bounds(self, client):
        assert client.get("/expenses/summary/period").status_code == 422

    def test_list_filtered_by_range(self, client, store):
        store.put(make_expense("jan", date=datetime(2025, 1, 10)))
        store.put(make_expense("feb", date=datetime(2025, 2, 5)))

        resp = client.get(
            "/expenses/",
            params={"start": "2025-02-01T00:00:00", "end": "2025-03-01T00:00:00"},
        )
        assert [e["id"] for e in resp.json()] == ["feb"]


class TestPreferenceRoutes:
    def test_dark_mode_defaults_off(self, client):
        resp = client.get("/prefs/dark-mode")
        assert resp.status_code == 200
        assert resp.json() == {"enabled": False}

    def test_dark_mode_round_trip(self, client):
        assert client.put("/prefs/dark-mode", json={"enabled": True}).status_code == 200
        assert client.get("/prefs/dark-mode").json() == {"enabled": True}
