"""Inventory items, append-only counts and the latest-stock view."""

from datetime import datetime

from kiosk.models import InventoryRecord
from conftest import make_inventory_item


def record(db_session, tenant, user, item, quantity, when):
    r = InventoryRecord(
        tenant_id=tenant.id,
        user_id=user.id,
        inventory_item_id=item.id,
        quantity=quantity,
        date=when,
    )
    db_session.add(r)
    db_session.commit()
    return r


class TestItems:
    def test_create_normalizes_category(self, client, admin_headers):
        resp = client.post(
            "/api/inventory/items",
            json={"name": "Cups 16oz", "category": "packaging", "unit": "pcs", "min_stock_level": 50},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["category"] == "PACKAGING"
        assert resp.json["min_stock_level"] == 50

    def test_unknown_category_rejected(self, client, admin_headers):
        resp = client.post(
            "/api/inventory/items",
            json={"name": "Gold", "category": "TREASURE", "unit": "bars"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_cashier_cannot_create_items(self, client, cashier_headers):
        resp = client.post(
            "/api/inventory/items",
            json={"name": "Lemons", "category": "MAINS", "unit": "pcs"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_item_with_records_cannot_be_deleted(self, client, db_session, tenant_a, admin_a, admin_headers):
        item = make_inventory_item(db_session, tenant_a)
        record(db_session, tenant_a, admin_a, item, 5, datetime(2024, 1, 1))
        resp = client.delete(f"/api/inventory/items/{item.id}", headers=admin_headers)
        assert resp.status_code == 409

    def test_delete_unused_item(self, client, db_session, tenant_a, admin_headers):
        item = make_inventory_item(db_session, tenant_a)
        resp = client.delete(f"/api/inventory/items/{item.id}", headers=admin_headers)
        assert resp.status_code == 200


class TestRecords:
    def test_cashier_records_count(self, client, db_session, tenant_a, cashier_a, cashier_headers):
        item = make_inventory_item(db_session, tenant_a)
        resp = client.post(
            "/api/inventory/records",
            json={"inventory_item_id": item.id, "quantity": 12.5, "notes": "morning count"},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        assert resp.json["quantity"] == 12.5
        assert resp.json["user_id"] == cashier_a.id

    def test_negative_quantity_rejected(self, client, db_session, tenant_a, admin_headers):
        item = make_inventory_item(db_session, tenant_a)
        resp = client.post(
            "/api/inventory/records",
            json={"inventory_item_id": item.id, "quantity": -1},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_other_tenants_item_rejected(self, client, db_session, tenant_b, admin_headers):
        foreign = make_inventory_item(db_session, tenant_b)
        resp = client.post(
            "/api/inventory/records",
            json={"inventory_item_id": foreign.id, "quantity": 1},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_bulk_writes_all(self, client, db_session, tenant_a, admin_headers):
        lemons = make_inventory_item(db_session, tenant_a, "Lemons")
        sugar = make_inventory_item(db_session, tenant_a, "Sugar", unit="kg")
        resp = client.post(
            "/api/inventory/records/bulk",
            json={"records": [
                {"inventory_item_id": lemons.id, "quantity": 40},
                {"inventory_item_id": sugar.id, "quantity": 2.5},
            ]},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["count"] == 2
        assert db_session.query(InventoryRecord).count() == 2

    def test_bulk_invalid_entry_writes_nothing(self, client, db_session, tenant_a, admin_headers):
        lemons = make_inventory_item(db_session, tenant_a)
        resp = client.post(
            "/api/inventory/records/bulk",
            json={"records": [
                {"inventory_item_id": lemons.id, "quantity": 40},
                {"inventory_item_id": lemons.id, "quantity": -3},
                {"inventory_item_id": lemons.id, "quantity": 12},
            ]},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "records[1]" in resp.json["error"]
        assert db_session.query(InventoryRecord).count() == 0

    def test_bulk_unknown_item_writes_nothing(self, client, db_session, tenant_a, admin_headers):
        lemons = make_inventory_item(db_session, tenant_a)
        resp = client.post(
            "/api/inventory/records/bulk",
            json={"records": [
                {"inventory_item_id": lemons.id, "quantity": 40},
                {"inventory_item_id": "no-such-item", "quantity": 1},
            ]},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert db_session.query(InventoryRecord).count() == 0

    def test_bulk_requires_list(self, client, admin_headers):
        resp = client.post("/api/inventory/records/bulk", json={"records": []}, headers=admin_headers)
        assert resp.status_code == 400

    def test_list_newest_first_with_range(self, client, db_session, tenant_a, admin_a, admin_headers):
        item = make_inventory_item(db_session, tenant_a)
        record(db_session, tenant_a, admin_a, item, 1, datetime(2024, 1, 1))
        record(db_session, tenant_a, admin_a, item, 2, datetime(2024, 1, 2))
        record(db_session, tenant_a, admin_a, item, 3, datetime(2024, 2, 1))

        resp = client.get(
            "/api/inventory/records?startDate=2024-01-01&endDate=2024-01-31",
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert [r["quantity"] for r in resp.json["items"]] == [2, 1]


class TestLatest:
    def test_latest_as_of_date(self, client, db_session, tenant_a, admin_a, admin_headers):
        item = make_inventory_item(db_session, tenant_a)
        record(db_session, tenant_a, admin_a, item, 5, datetime(2024, 1, 1, 8))
        record(db_session, tenant_a, admin_a, item, 10, datetime(2024, 1, 3, 8))
        record(db_session, tenant_a, admin_a, item, 20, datetime(2024, 1, 5, 8))

        resp = client.get("/api/inventory/latest?date=2024-01-03", headers=admin_headers)
        assert resp.status_code == 200
        row = resp.json["items"][0]
        assert row["latest_quantity"] == 10
        assert row["previous_quantity"] == 5
        assert row["latest_record_date"] == "2024-01-03T08:00:00Z"

    def test_latest_without_date_uses_newest(self, client, db_session, tenant_a, admin_a, admin_headers):
        item = make_inventory_item(db_session, tenant_a)
        record(db_session, tenant_a, admin_a, item, 5, datetime(2024, 1, 1))
        record(db_session, tenant_a, admin_a, item, 20, datetime(2024, 1, 5))

        resp = client.get("/api/inventory/latest", headers=admin_headers)
        assert resp.json["items"][0]["latest_quantity"] == 20

    def test_item_without_records_is_null(self, client, db_session, tenant_a, admin_headers):
        make_inventory_item(db_session, tenant_a, "Straws", category="PACKAGING")
        resp = client.get("/api/inventory/latest", headers=admin_headers)
        row = resp.json["items"][0]
        assert row["latest_quantity"] is None
        assert row["is_low_stock"] is False

    def test_stats_low_stock(self, client, db_session, tenant_a, admin_a, admin_headers):
        low = make_inventory_item(db_session, tenant_a, "Lemons", min_stock_level=10)
        ok = make_inventory_item(db_session, tenant_a, "Sugar", min_stock_level=1)
        make_inventory_item(db_session, tenant_a, "Cups")
        record(db_session, tenant_a, admin_a, low, 3, datetime(2024, 1, 1))
        record(db_session, tenant_a, admin_a, ok, 5, datetime(2024, 1, 1))

        resp = client.get("/api/inventory/stats", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["total_items"] == 3
        assert resp.json["items_with_records"] == 2
        assert resp.json["items_without_records"] == 1
        assert resp.json["low_stock_count"] == 1
        assert resp.json["low_stock_items"][0]["name"] == "Lemons"

    def test_query_date_between_records(self, client, db_session, tenant_a, admin_a, admin_headers):
        item = make_inventory_item(db_session, tenant_a)
        record(db_session, tenant_a, admin_a, item, 10, datetime(2024, 1, 1))
        record(db_session, tenant_a, admin_a, item, 7, datetime(2024, 1, 5))

        resp = client.get("/api/inventory/latest?date=2024-01-03", headers=admin_headers)
        assert resp.json["items"][0]["latest_quantity"] == 10


class TestNonFiniteNumbers:
    def test_nan_quantity_rejected(self, client, db_session, tenant_a, admin_headers):
        item = make_inventory_item(db_session, tenant_a)
        resp = client.post(
            "/api/inventory/records",
            data=f'{{"inventory_item_id": "{item.id}", "quantity": NaN}}',
            content_type="application/json",
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "quantity must be a finite number"
        assert db_session.query(InventoryRecord).count() == 0

    def test_infinite_min_stock_level_rejected(self, client, admin_headers):
        resp = client.post(
            "/api/inventory/items",
            data='{"name": "Cups", "category": "PACKAGING", "unit": "pcs", "min_stock_level": Infinity}',
            content_type="application/json",
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "finite" in resp.json["error"]

    def test_nan_string_rejected(self, client, db_session, tenant_a, admin_headers):
        item = make_inventory_item(db_session, tenant_a)
        resp = client.post(
            "/api/inventory/records",
            json={"inventory_item_id": item.id, "quantity": "nan"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
