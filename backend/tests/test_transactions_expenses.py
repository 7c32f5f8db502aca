"""Recording sales and expenses, and the void request/review workflow."""

from datetime import datetime

import pytest

from kiosk.models import Expense, Transaction, TransactionItemAddon
from conftest import make_expense, make_transaction

REASON = "Customer changed their mind"


def sale_payload(catalog, **overrides):
    payload = {
        "receipt_number": "R-0001",
        "subtotal_cents": 10400,
        "total_cents": 10400,
        "payment_method": "CASH",
        "cash_received_cents": 20000,
        "change_cents": 9600,
        "items": [
            {
                "product_id": catalog["product"],
                "size_id": catalog["sizes"][0],
                "quantity": 1,
                "subtotal_cents": 10400,
                "addon_ids": [catalog["addons"][0]],
            }
        ],
    }
    payload.update(overrides)
    return payload


class TestCreateTransaction:
    def test_cashier_records_sale(self, client, db_session, catalog_a, cashier_a, cashier_headers):
        resp = client.post("/api/transactions", json=sale_payload(catalog_a), headers=cashier_headers)

        assert resp.status_code == 201
        body = resp.json
        assert body["user_id"] == cashier_a.id
        assert body["payment_status"] == "COMPLETED"
        assert body["void_status"] == "NONE"
        assert body["items"][0]["product_name"] == "Classic Lemonade"
        assert body["items"][0]["size_name"] == "Regular"
        assert [a["id"] for a in body["items"][0]["addons"]] == [catalog_a["addons"][0]]
        assert db_session.query(TransactionItemAddon).count() == 1

    def test_items_required(self, client, catalog_a, cashier_headers):
        resp = client.post("/api/transactions", json=sale_payload(catalog_a, items=[]), headers=cashier_headers)
        assert resp.status_code == 400

    def test_unknown_payment_method(self, client, catalog_a, cashier_headers):
        resp = client.post(
            "/api/transactions",
            json=sale_payload(catalog_a, payment_method="BARTER"),
            headers=cashier_headers,
        )
        assert resp.status_code == 400

    def test_zero_quantity_rejected(self, client, catalog_a, cashier_headers):
        payload = sale_payload(catalog_a)
        payload["items"][0]["quantity"] = 0
        resp = client.post("/api/transactions", json=payload, headers=cashier_headers)
        assert resp.status_code == 400
        assert "items[0]" in resp.json["error"]

    def test_other_tenants_product_rejected(self, client, db_session, catalog_a, catalog_b, cashier_headers):
        payload = sale_payload(catalog_a)
        payload["items"][0]["product_id"] = catalog_b["product"]

        resp = client.post("/api/transactions", json=payload, headers=cashier_headers)
        assert resp.status_code == 400
        assert db_session.query(Transaction).count() == 0

    def test_other_tenants_addon_rejected(self, client, catalog_a, catalog_b, cashier_headers):
        payload = sale_payload(catalog_a)
        payload["items"][0]["addon_ids"] = [catalog_b["addons"][0]]
        resp = client.post("/api/transactions", json=payload, headers=cashier_headers)
        assert resp.status_code == 400


class TestListTransactions:
    def test_filters(self, client, db_session, tenant_a, admin_a, catalog_a, admin_headers):
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 100, occurred_at=datetime(2024, 1, 1, 9))
        make_transaction(
            db_session, tenant_a, admin_a, catalog_a["product"], 200,
            occurred_at=datetime(2024, 1, 2, 9), payment_method="GCASH",
        )
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 300, occurred_at=datetime(2024, 2, 1, 9))

        resp = client.get(
            "/api/transactions?startDate=2024-01-01&endDate=2024-01-02",
            headers=admin_headers,
        )
        assert [t["total_cents"] for t in resp.json["items"]] == [200, 100]

        resp = client.get("/api/transactions?paymentMethod=gcash", headers=admin_headers)
        assert [t["total_cents"] for t in resp.json["items"]] == [200]

    def test_bad_date(self, client, admin_headers):
        resp = client.get("/api/transactions?startDate=not-a-date", headers=admin_headers)
        assert resp.status_code == 400

    def test_stats_period_validated(self, client, admin_headers):
        assert client.get("/api/transactions/stats?period=daily", headers=admin_headers).status_code == 200
        assert client.get("/api/transactions/stats?period=decade", headers=admin_headers).status_code == 400


class TestTransactionVoids:
    @pytest.fixture
    def sale(self, db_session, tenant_a, cashier_a, catalog_a):
        return make_transaction(
            db_session, tenant_a, cashier_a, catalog_a["product"], 8900, occurred_at=datetime(2024, 1, 1)
        )

    def test_request_then_approve(self, client, sale, cashier_a, admin_a, cashier_headers, admin_headers):
        resp = client.post(f"/api/transactions/{sale.id}/void-request", json={"reason": REASON}, headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["void_status"] == "PENDING"
        assert resp.json["void_requested_by"] == cashier_a.id

        resp = client.post(f"/api/transactions/{sale.id}/void-approve", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["void_status"] == "APPROVED"
        assert resp.json["void_reviewed_by"] == admin_a.id

    def test_reason_too_short(self, client, sale, cashier_headers):
        resp = client.post(f"/api/transactions/{sale.id}/void-request", json={"reason": "oops"}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_reason_required(self, client, sale, cashier_headers):
        resp = client.post(f"/api/transactions/{sale.id}/void-request", json={}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_double_request_rejected(self, client, sale, cashier_headers):
        url = f"/api/transactions/{sale.id}/void-request"
        assert client.post(url, json={"reason": REASON}, headers=cashier_headers).status_code == 200
        assert client.post(url, json={"reason": REASON}, headers=cashier_headers).status_code == 400

    def test_cashier_cannot_approve(self, client, sale, cashier_headers):
        client.post(f"/api/transactions/{sale.id}/void-request", json={"reason": REASON}, headers=cashier_headers)
        resp = client.post(f"/api/transactions/{sale.id}/void-approve", headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "transactions:review"

    def test_approve_without_request(self, client, sale, admin_headers):
        resp = client.post(f"/api/transactions/{sale.id}/void-approve", headers=admin_headers)
        assert resp.status_code == 400

    def test_reject_then_request_again(self, client, sale, cashier_headers, admin_headers):
        client.post(f"/api/transactions/{sale.id}/void-request", json={"reason": REASON}, headers=cashier_headers)
        resp = client.post(
            f"/api/transactions/{sale.id}/void-reject",
            json={"rejection_reason": "Receipt shows it was paid"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["void_status"] == "REJECTED"
        assert resp.json["void_rejection_reason"] == "Receipt shows it was paid"

        again = client.post(f"/api/transactions/{sale.id}/void-request", json={"reason": REASON}, headers=cashier_headers)
        assert again.status_code == 200
        assert again.json["void_rejection_reason"] is None

    def test_approved_cannot_be_requested_again(self, client, sale, cashier_headers, admin_headers):
        client.post(f"/api/transactions/{sale.id}/void-request", json={"reason": REASON}, headers=cashier_headers)
        client.post(f"/api/transactions/{sale.id}/void-approve", headers=admin_headers)
        resp = client.post(f"/api/transactions/{sale.id}/void-request", json={"reason": REASON}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_void_requests_listing(self, client, db_session, sale, tenant_a, cashier_a, catalog_a, cashier_headers, admin_headers):
        other = make_transaction(
            db_session, tenant_a, cashier_a, catalog_a["product"], 100, occurred_at=datetime(2024, 1, 1)
        )
        client.post(f"/api/transactions/{sale.id}/void-request", json={"reason": REASON}, headers=cashier_headers)
        client.post(f"/api/transactions/{other.id}/void-request", json={"reason": REASON}, headers=cashier_headers)
        client.post(f"/api/transactions/{other.id}/void-approve", headers=admin_headers)

        pending = client.get("/api/transactions/void-requests", headers=admin_headers).json
        assert [t["id"] for t in pending["items"]] == [sale.id]

        everything = client.get("/api/transactions/void-requests?status=ALL", headers=admin_headers).json
        assert everything["count"] == 2

        assert client.get("/api/transactions/void-requests?status=MAYBE", headers=admin_headers).status_code == 400

    def test_foreign_transaction_is_404(self, client, db_session, tenant_b, admin_b, catalog_b, cashier_headers):
        foreign = make_transaction(
            db_session, tenant_b, admin_b, catalog_b["product"], 100, occurred_at=datetime(2024, 1, 1)
        )
        resp = client.post(f"/api/transactions/{foreign.id}/void-request", json={"reason": REASON}, headers=cashier_headers)
        assert resp.status_code == 404


class TestExpenses:
    def test_create_and_update(self, client, cashier_headers):
        resp = client.post(
            "/api/expenses",
            json={"description": "Lemons", "amount_cents": 25000, "category": "supplies", "date": "2024-01-10T08:00:00Z"},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        assert resp.json["category"] == "SUPPLIES"
        assert resp.json["date"] == "2024-01-10T08:00:00Z"

        updated = client.patch(f"/api/expenses/{resp.json['id']}", json={"amount_cents": 26000}, headers=cashier_headers)
        assert updated.status_code == 200
        assert updated.json["amount_cents"] == 26000

    def test_amount_must_be_positive(self, client, cashier_headers):
        resp = client.post(
            "/api/expenses",
            json={"description": "Nothing", "amount_cents": 0, "category": "SUPPLIES"},
            headers=cashier_headers,
        )
        assert resp.status_code == 400

    def test_unknown_category(self, client, cashier_headers):
        resp = client.post(
            "/api/expenses",
            json={"description": "Yacht", "amount_cents": 100, "category": "LEISURE"},
            headers=cashier_headers,
        )
        assert resp.status_code == 400

    def test_list_filters(self, client, db_session, tenant_a, admin_a, admin_headers):
        make_expense(db_session, tenant_a, admin_a, 1000, date=datetime(2024, 1, 1))
        make_expense(db_session, tenant_a, admin_a, 5000, date=datetime(2024, 1, 2), category="RENT")
        make_expense(db_session, tenant_a, admin_a, 9000, date=datetime(2024, 3, 1))

        by_range = client.get("/api/expenses?startDate=2024-01-01&endDate=2024-01-31", headers=admin_headers).json
        assert [e["amount_cents"] for e in by_range["items"]] == [5000, 1000]

        by_category = client.get("/api/expenses?category=rent", headers=admin_headers).json
        assert [e["amount_cents"] for e in by_category["items"]] == [5000]

        by_amount = client.get("/api/expenses?minAmount=2000&maxAmount=6000", headers=admin_headers).json
        assert [e["amount_cents"] for e in by_amount["items"]] == [5000]

        assert client.get("/api/expenses?minAmount=lots", headers=admin_headers).status_code == 400

    def test_stats_exclude_approved_voids(self, client, db_session, tenant_a, admin_a, admin_headers):
        make_expense(db_session, tenant_a, admin_a, 1000, date=datetime(2024, 1, 5))
        make_expense(db_session, tenant_a, admin_a, 7000, date=datetime(2024, 1, 6), void_status="APPROVED")

        resp = client.get("/api/expenses/stats?startDate=2024-01-01&endDate=2024-01-31", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["total_amount"] == 1000
        assert resp.json["expense_count"] == 1
        assert resp.json["category_breakdown"] == {"SUPPLIES": {"total": 1000, "count": 1}}

    def test_void_workflow(self, client, db_session, tenant_a, cashier_a, cashier_headers, admin_headers):
        expense = make_expense(db_session, tenant_a, cashier_a, 1500, date=datetime(2024, 1, 5))

        resp = client.post(f"/api/expenses/{expense.id}/void-request", json={"reason": "Entered twice by mistake"}, headers=cashier_headers)
        assert resp.status_code == 200
        assert client.post(f"/api/expenses/{expense.id}/void-approve", headers=cashier_headers).status_code == 403

        resp = client.post(f"/api/expenses/{expense.id}/void-approve", headers=admin_headers)
        assert resp.status_code == 200
        assert db_session.get(Expense, expense.id).void_status == "APPROVED"

    def test_delete(self, client, db_session, tenant_a, admin_a, admin_headers):
        expense = make_expense(db_session, tenant_a, admin_a, 1500, date=datetime(2024, 1, 5))
        expense_id = expense.id
        assert client.delete(f"/api/expenses/{expense_id}", headers=admin_headers).status_code == 200
        assert db_session.get(Expense, expense_id) is None
