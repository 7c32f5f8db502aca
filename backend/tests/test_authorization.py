"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- The policy table denies cashier writes to the catalog and void reviews
- Admin role can perform privileged operations
"""

import pytest

from kiosk.models import ROLE_ADMIN, ROLE_CASHIER
from kiosk.permissions import POLICY, Resource, READ, WRITE, REVIEW, is_allowed


# =============================================================================
# POLICY TABLE
# =============================================================================


class TestPolicyTable:
    def test_admin_can_do_everything(self):
        for action in (READ, WRITE, REVIEW):
            assert is_allowed(ROLE_ADMIN, Resource.PRODUCTS, action)
            assert is_allowed(ROLE_ADMIN, Resource.TRANSACTIONS, action)

    def test_cashier_reads_catalog_but_cannot_write(self):
        assert is_allowed(ROLE_CASHIER, Resource.PRODUCTS, READ)
        assert not is_allowed(ROLE_CASHIER, Resource.PRODUCTS, WRITE)
        assert not is_allowed(ROLE_CASHIER, Resource.CATEGORIES, WRITE)

    def test_cashier_cannot_review_voids(self):
        assert is_allowed(ROLE_CASHIER, Resource.TRANSACTIONS, WRITE)
        assert not is_allowed(ROLE_CASHIER, Resource.TRANSACTIONS, REVIEW)
        assert not is_allowed(ROLE_CASHIER, Resource.EXPENSES, REVIEW)

    def test_unknown_combinations_deny(self):
        assert not is_allowed("OWNER", Resource.PRODUCTS, READ)
        assert not is_allowed(ROLE_ADMIN, "spaceships", READ)
        assert not is_allowed(ROLE_ADMIN, Resource.PRODUCTS, "launch")
        assert not is_allowed(None, Resource.PRODUCTS, READ)

    def test_table_only_grants(self):
        assert all(POLICY.values())


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/categories"),
            ("POST", "/api/products"),
            ("GET", "/api/sizes"),
            ("GET", "/api/addons"),
            ("GET", "/api/transactions"),
            ("GET", "/api/expenses"),
            ("GET", "/api/inventory/latest"),
            ("GET", "/api/reports/analytics"),
            ("GET", "/api/submitted-reports"),
            ("GET", "/api/submitted-inventory-reports/alerts"),
            ("GET", "/api/tenants/me"),
            ("GET", "/api/users"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/categories", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    def test_health_is_public(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["checks"]["database"]["status"] == "healthy"


# =============================================================================
# CASHIER DENIED PRIVILEGED OPERATIONS: 403
# =============================================================================


class TestCashierDenied:
    def test_cannot_create_category(self, client, cashier_headers):
        resp = client.post("/api/categories", json={"id": "tea", "name": "Tea"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_delete_product(self, client, cashier_headers, catalog_a):
        resp = client.delete(f"/api/products/{catalog_a['product']}", headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_list_users(self, client, cashier_headers):
        assert client.get("/api/users", headers=cashier_headers).status_code == 403

    def test_cannot_edit_tenant(self, client, cashier_headers):
        resp = client.patch("/api/tenants/me", json={"name": "Mine now"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_create_inventory_item(self, client, cashier_headers):
        resp = client.post(
            "/api/inventory/items",
            json={"name": "Cups", "category": "PACKAGING", "unit": "pcs"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_can_read_catalog(self, client, cashier_headers, catalog_a):
        resp = client.get("/api/products", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1


class TestAdminAllowed:
    def test_admin_creates_category(self, client, admin_headers):
        resp = client.post("/api/categories", json={"id": "tea", "name": "Tea"}, headers=admin_headers)
        assert resp.status_code == 201

    def test_admin_creates_cashier(self, client, admin_headers, tenant_a):
        resp = client.post(
            "/api/users",
            json={"username": "newbie", "password": "Password123"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["role"] == ROLE_CASHIER
        assert resp.json["tenant_id"] == tenant_a.id

    def test_duplicate_username_conflicts(self, client, admin_headers, admin_a):
        resp = client.post(
            "/api/users",
            json={"username": "admin_a", "password": "Password123"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_weak_password_rejected(self, client, admin_headers):
        resp = client.post(
            "/api/users",
            json={"username": "weak", "password": "short"},
            headers=admin_headers,
        )
        assert resp.status_code == 400


# =============================================================================
# MALFORMED BODIES: 400
# =============================================================================


class TestNonObjectBodies:
    """A JSON array or scalar where an object is expected is a client error."""

    @pytest.mark.parametrize(
        "path",
        [
            "/api/auth/login",
            "/api/users",
            "/api/categories",
            "/api/products",
            "/api/transactions",
            "/api/transactions/any-id/void-request",
            "/api/transactions/any-id/void-reject",
            "/api/expenses",
            "/api/expenses/any-id/void-request",
            "/api/expenses/any-id/void-reject",
            "/api/inventory/records",
            "/api/inventory/records/bulk",
            "/api/submitted-reports",
            "/api/submitted-inventory-reports",
        ],
    )
    def test_json_list_rejected(self, client, admin_headers, path):
        resp = client.post(path, json=[{"reason": "long enough reason"}], headers=admin_headers)
        assert resp.status_code == 400, f"{path} returned {resp.status_code}"
        assert resp.json["error"] == "Invalid JSON payload"

    def test_json_scalar_rejected(self, client, admin_headers):
        resp = client.post("/api/inventory/records/bulk", json="records", headers=admin_headers)
        assert resp.status_code == 400
