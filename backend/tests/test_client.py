"""KioskClient against a mocked transport and against the real app."""

import json

import httpx
import pytest

from kiosk.client import (
    GENERIC_ERROR,
    ApiError,
    AuthenticationRequired,
    ClientSession,
    JsonFileSessionStore,
    KioskClient,
    MemorySessionStore,
)
from conftest import PASSWORD, make_inventory_item

TENANT = {"id": "t-1", "name": "Lemon Stand", "slug": "lemon"}


def mock_client(handler, store=None):
    return KioskClient("http://kiosk.test", store=store, transport=httpx.MockTransport(handler))


class TestAuthFlow:
    def test_login_stores_token_and_sends_it(self):
        seen = []

        def handler(request):
            seen.append(request)
            if request.url.path == "/api/tenants/slug/lemon":
                return httpx.Response(200, json=TENANT)
            if request.url.path == "/api/auth/login":
                assert json.loads(request.content)["tenant_id"] == "t-1"
                return httpx.Response(200, json={"access_token": "tok", "user": {"id": "u-1"}, "tenant": TENANT})
            return httpx.Response(200, json={"items": [], "count": 0})

        client = mock_client(handler)
        client.resolve_tenant("lemon")
        client.login("cashier", "pw")
        client.list_products()

        assert client.session.token == "tok"
        assert client.session.user == {"id": "u-1"}
        assert "authorization" not in seen[0].headers
        assert seen[-1].headers["authorization"] == "Bearer tok"

    def test_login_needs_tenant(self):
        client = mock_client(lambda request: httpx.Response(200, json={}))
        with pytest.raises(ValueError):
            client.login("cashier", "pw")

    def test_401_clears_token_and_keeps_tenant(self):
        store = MemorySessionStore(ClientSession(token="stale", tenant=TENANT, user={"id": "u-1"}))
        client = mock_client(lambda request: httpx.Response(401, json={"error": "Session expired"}), store=store)

        with pytest.raises(AuthenticationRequired) as exc:
            client.me()

        assert exc.value.status_code == 401
        assert exc.value.message == "Session expired"
        assert store.load().token is None
        assert store.load().user is None
        assert store.load().tenant_id == "t-1"

    def test_logout_clears_even_on_failure(self):
        store = MemorySessionStore(ClientSession(token="tok", tenant=TENANT))
        client = mock_client(lambda request: httpx.Response(500, text="boom"), store=store)

        with pytest.raises(ApiError):
            client.logout()
        assert not store.load().is_authenticated


class TestErrors:
    def test_server_message_surfaces(self):
        client = mock_client(lambda request: httpx.Response(409, json={"error": "Category with id 'hot' already exists"}))
        with pytest.raises(ApiError) as exc:
            client.post("/api/categories", json={"id": "hot", "name": "Hot"})
        assert exc.value.status_code == 409
        assert exc.value.message == "Category with id 'hot' already exists"

    def test_generic_message_when_body_is_not_json(self):
        client = mock_client(lambda request: httpx.Response(502, text="<html>Bad gateway</html>"))
        with pytest.raises(ApiError) as exc:
            client.list_categories()
        assert exc.value.message == GENERIC_ERROR

    def test_none_params_dropped(self):
        def handler(request):
            assert "date" not in request.url.params
            return httpx.Response(200, json={"items": [], "count": 0})

        assert mock_client(handler).latest_inventory() == []


class TestJsonFileSessionStore:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "state" / "session.json"
        JsonFileSessionStore(path).save(ClientSession(token="tok", tenant=TENANT))

        loaded = JsonFileSessionStore(path).load()
        assert loaded.token == "tok"
        assert loaded.tenant_id == "t-1"

    def test_missing_file_is_empty_session(self, tmp_path):
        session = JsonFileSessionStore(tmp_path / "nope.json").load()
        assert session == ClientSession()


class TestAgainstApp:
    def test_cashier_session(self, app, db_session, tenant_a, cashier_a, catalog_a):
        client = KioskClient("http://kiosk.test", transport=httpx.WSGITransport(app=app))

        client.resolve_tenant(tenant_a.slug)
        client.login(cashier_a.username, PASSWORD)

        assert client.me()["user"]["id"] == cashier_a.id
        assert [p["id"] for p in client.list_products()] == [catalog_a["product"]]

        with pytest.raises(ApiError) as exc:
            client.post("/api/categories", json={"id": "hot", "name": "Hot"})
        assert exc.value.status_code == 403

        client.logout()
        assert not client.session.is_authenticated

    def test_inventory_report_from_latest_counts(self, app, db_session, tenant_a, cashier_a):
        lemons = make_inventory_item(db_session, tenant_a, "Lemons", min_stock_level=10)
        make_inventory_item(db_session, tenant_a, "Uncounted")
        client = KioskClient("http://kiosk.test", transport=httpx.WSGITransport(app=app))
        client.resolve_tenant(tenant_a.slug)
        client.login(cashier_a.username, PASSWORD)

        client.record_inventory([{"inventory_item_id": lemons.id, "quantity": 4, "date": "2024-01-10T09:00:00Z"}])
        report = client.submit_inventory_report("2024-01-10")

        items = report["inventory_snapshot"]["items"]
        assert [i["inventory_item_id"] for i in items] == [lemons.id]
        assert items[0]["quantity"] == 4

        with pytest.raises(ApiError) as exc:
            client.submit_inventory_report("2024-01-10")
        assert exc.value.status_code == 409

        assert client.submit_inventory_report("2024-01-10", replace_existing=True)["report_date"] == "2024-01-10"
