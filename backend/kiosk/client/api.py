"""
HTTP client for the kiosk backend.

Wraps httpx.Client with bearer authentication taken from an injectable
SessionStore. There are no automatic retries: every failure surfaces to
the caller as ApiError (or AuthenticationRequired for 401, after the
stored token has been cleared).
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from .session_store import ClientSession, MemorySessionStore, SessionStore

GENERIC_ERROR = "Request failed, please try again."


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class AuthenticationRequired(ApiError):
    """The server rejected the token; the client has already forgotten it."""


class KioskClient:
    def __init__(
        self,
        base_url: str,
        store: Optional[SessionStore] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.store = store or MemorySessionStore()
        self.client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    # -- plumbing ---------------------------------------------------------

    @property
    def session(self) -> ClientSession:
        return self.store.load()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return GENERIC_ERROR
        if isinstance(body, dict):
            message = body.get("error") or body.get("message")
            if isinstance(message, str) and message:
                return message
        return GENERIC_ERROR

    def request(self, method: str, path: str, *, params=None, json=None) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        response = self.client.request(method, path, params=params, json=json, headers=self._headers())

        if response.status_code == 401:
            session = self.session
            session.clear_auth()
            self.store.save(session)
            raise AuthenticationRequired(401, self._error_message(response))

        if response.is_error:
            raise ApiError(response.status_code, self._error_message(response))

        if not response.content:
            return None
        return response.json()

    def get(self, path: str, **params) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Optional[Dict] = None) -> Any:
        return self.request("POST", path, json=json or {})

    def patch(self, path: str, json: Dict) -> Any:
        return self.request("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "KioskClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -- auth / tenant ----------------------------------------------------

    def resolve_tenant(self, slug: str) -> Dict[str, Any]:
        """Look up a tenant by slug and remember it for login()."""
        tenant = self.get(f"/api/tenants/slug/{slug}")
        session = self.session
        session.tenant = tenant
        self.store.save(session)
        return tenant

    def login(self, username: str, password: str, tenant_id: Optional[str] = None) -> Dict[str, Any]:
        session = self.session
        tenant_id = tenant_id or session.tenant_id
        if not tenant_id:
            raise ValueError("tenant_id is required (call resolve_tenant first)")

        data = self.post("/api/auth/login", json={
            "username": username,
            "password": password,
            "tenant_id": tenant_id,
        })
        session.token = data["access_token"]
        session.user = data.get("user")
        session.tenant = data.get("tenant") or session.tenant
        self.store.save(session)
        return data

    def logout(self) -> None:
        session = self.session
        if session.token:
            try:
                self.post("/api/auth/logout")
            finally:
                session.clear_auth()
                self.store.save(session)

    def me(self) -> Dict[str, Any]:
        return self.get("/api/auth/me")

    # -- resources --------------------------------------------------------

    def list_categories(self) -> List[Dict]:
        return self.get("/api/categories")["items"]

    def list_products(self, category_id: Optional[str] = None) -> List[Dict]:
        return self.get("/api/products", category_id=category_id)["items"]

    def list_sizes(self) -> List[Dict]:
        return self.get("/api/sizes")["items"]

    def list_addons(self) -> List[Dict]:
        return self.get("/api/addons")["items"]

    def create_transaction(self, payload: Dict) -> Dict:
        return self.post("/api/transactions", json=payload)

    def request_transaction_void(self, transaction_id: str, reason: str) -> Dict:
        return self.post(f"/api/transactions/{transaction_id}/void-request", json={"reason": reason})

    def create_expense(self, payload: Dict) -> Dict:
        return self.post("/api/expenses", json=payload)

    def record_inventory(self, records: List[Dict]) -> List[Dict]:
        return self.post("/api/inventory/records/bulk", json={"records": records})["items"]

    def latest_inventory(self, date: Optional[str] = None) -> List[Dict]:
        return self.get("/api/inventory/latest", date=date)["items"]

    def analytics(self, period: str = "daily", start_date: Optional[str] = None, end_date: Optional[str] = None) -> Dict:
        return self.get("/api/reports/analytics", period=period, startDate=start_date, endDate=end_date)

    def daily_report(self, date: Optional[str] = None) -> Dict:
        return self.get("/api/reports/daily", date=date)

    def submit_daily_report(self, date: Optional[str] = None, notes: Optional[str] = None) -> Dict:
        """Fetch the day's figures and submit them unchanged as a report."""
        daily = self.daily_report(date)
        return self.post("/api/submitted-reports", json={
            "report_date": daily["date"],
            "period_start": daily["period"]["start"],
            "period_end": daily["period"]["end"],
            "sales_snapshot": daily["sales"],
            "expenses_snapshot": daily["expenses"],
            "summary_snapshot": daily["summary"],
            "transaction_ids": daily["transaction_ids"],
            "expense_ids": daily["expense_ids"],
            "notes": notes,
        })

    def get_submitted_report(self, report_id: str) -> Dict:
        return self.get(f"/api/submitted-reports/{report_id}")

    def submit_inventory_report(
        self, report_date: str, notes: Optional[str] = None, replace_existing: bool = False
    ) -> Dict:
        """Submit the latest count of every item that has one as the day's stock report."""
        rows = [r for r in self.latest_inventory(report_date) if r["latest_quantity"] is not None]
        return self.post("/api/submitted-inventory-reports", json={
            "report_date": report_date,
            "inventory_snapshot": {
                "items": [
                    {
                        "inventory_item_id": r["id"],
                        "item_name": r["name"],
                        "category": r["category"],
                        "unit": r["unit"],
                        "quantity": r["latest_quantity"],
                        "min_stock_level": r["min_stock_level"],
                    }
                    for r in rows
                ],
            },
            "notes": notes,
            "replace_existing": replace_existing,
        })

    def inventory_alerts(self) -> Dict:
        return self.get("/api/submitted-inventory-reports/alerts")
