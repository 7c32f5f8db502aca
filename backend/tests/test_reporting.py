"""
Sales/expense aggregation.

Only COMPLETED, non-voided transactions count toward sales; approved-void
expenses are left out of expense totals.
"""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from kiosk.services import reporting_service
from kiosk.services.reporting_service import (
    ReportError,
    growth_rate,
    resolve_period,
    summarize_profit,
    summarize_sales,
    top_products,
)
from conftest import make_expense, make_transaction

DAY = datetime(2024, 1, 10, 10, 0)


def fake_transaction(total, status="COMPLETED", void="NONE", method="CASH", items=()):
    return SimpleNamespace(
        total_cents=total,
        payment_status=status,
        void_status=void,
        payment_method=method,
        items=list(items),
    )


def fake_item(product_id, name, quantity, subtotal):
    return SimpleNamespace(
        product_id=product_id,
        product=SimpleNamespace(name=name),
        quantity=quantity,
        subtotal_cents=subtotal,
    )


class TestPureAggregation:
    def test_only_completed_unvoided_count(self):
        summary = summarize_sales([
            fake_transaction(100),
            fake_transaction(50, status="PENDING"),
            fake_transaction(70, void="APPROVED"),
            fake_transaction(30, void="PENDING"),
        ])
        assert summary["total_amount"] == 130
        assert summary["transaction_count"] == 2
        assert summary["average_transaction"] == 65

    def test_empty(self):
        summary = summarize_sales([])
        assert summary["total_amount"] == 0
        assert summary["average_transaction"] == 0
        assert summary["payment_method_breakdown"] == {}

    def test_payment_method_breakdown(self):
        summary = summarize_sales([
            fake_transaction(100, method="CASH"),
            fake_transaction(200, method="GCASH"),
            fake_transaction(300, method="GCASH"),
        ])
        assert summary["payment_method_breakdown"] == {
            "CASH": {"total": 100, "count": 1},
            "GCASH": {"total": 500, "count": 2},
        }

    def test_profit(self):
        assert summarize_profit(10000, 2500) == {
            "gross_profit": 7500,
            "profit_margin": 75.0,
            "net_revenue": 7500,
        }
        assert summarize_profit(0, 500)["profit_margin"] == 0

    def test_growth(self):
        assert growth_rate(2000, 1000) == 100.0
        assert growth_rate(500, 1000) == -50.0
        assert growth_rate(500, 0) == 0

    def test_top_products_ranked_by_revenue(self):
        transactions = [
            fake_transaction(0, items=[fake_item("cheap", "Cheap", 10, 1000)]),
            fake_transaction(0, items=[fake_item("pricey", "Pricey", 1, 5000)]),
            fake_transaction(0, items=[fake_item("cheap", "Cheap", 5, 500)]),
            fake_transaction(0, void="APPROVED", items=[fake_item("voided", "Voided", 1, 99999)]),
        ]
        ranked = top_products(transactions)
        assert [r["product_id"] for r in ranked] == ["pricey", "cheap"]
        assert ranked[1]["quantity"] == 15
        assert ranked[1]["revenue"] == 1500

    def test_top_products_limited(self):
        transactions = [
            fake_transaction(0, items=[fake_item(f"p{i}", f"P{i}", 1, 100 + i)]) for i in range(8)
        ]
        assert len(top_products(transactions)) == 5


class TestResolvePeriod:
    NOW = datetime(2024, 3, 15, 12, 30)

    def test_default_is_daily(self):
        period = resolve_period(None, now=self.NOW)
        assert period.type == "daily"
        assert period.start == datetime(2024, 3, 15)

    def test_dates_imply_custom(self):
        period = resolve_period(None, "2024-03-01", "2024-03-02", now=self.NOW)
        assert period.type == "custom"
        assert period.end.date() == date(2024, 3, 2)
        assert period.end.hour == 23

    def test_monthly(self):
        assert resolve_period("monthly", now=self.NOW).start == datetime(2024, 3, 1)

    def test_overall_has_no_start(self):
        assert resolve_period("overall", now=self.NOW).start is None

    def test_custom_requires_both_dates(self):
        with pytest.raises(ReportError):
            resolve_period("custom", "2024-03-01", None, now=self.NOW)

    def test_custom_start_after_end(self):
        with pytest.raises(ReportError):
            resolve_period("custom", "2024-03-05", "2024-03-01", now=self.NOW)

    def test_unknown_period(self):
        with pytest.raises(ReportError):
            resolve_period("fortnightly", now=self.NOW)


class TestAnalytics:
    def test_pending_payment_excluded(self, db_session, tenant_a, admin_a, catalog_a):
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 100, occurred_at=DAY)
        make_transaction(
            db_session, tenant_a, admin_a, catalog_a["product"], 50,
            occurred_at=DAY, payment_status="PENDING",
        )

        report = reporting_service.analytics(tenant_a.id, start_date="2024-01-10", end_date="2024-01-10")
        assert report["sales"]["total_amount"] == 100
        assert report["sales"]["transaction_count"] == 1
        assert report["sales"]["average_transaction"] == 100

    def test_voided_excluded(self, db_session, tenant_a, admin_a, catalog_a):
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 100, occurred_at=DAY)
        make_transaction(
            db_session, tenant_a, admin_a, catalog_a["product"], 900,
            occurred_at=DAY, void_status="APPROVED",
        )
        make_expense(db_session, tenant_a, admin_a, 40, date=DAY)
        make_expense(db_session, tenant_a, admin_a, 400, date=DAY, void_status="APPROVED")

        report = reporting_service.analytics(tenant_a.id, period="custom", start_date="2024-01-10", end_date="2024-01-10")
        assert report["sales"]["total_amount"] == 100
        assert report["expenses"]["total_amount"] == 40
        assert report["summary"]["gross_profit"] == 60

    def test_growth_with_empty_previous_week(self, db_session, tenant_a, admin_a, catalog_a):
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 500, occurred_at=datetime(2024, 1, 12))
        report = reporting_service.analytics(tenant_a.id, period="weekly", now=datetime(2024, 1, 15))
        assert report["sales"]["growth"] == 0

    def test_week_over_week_growth(self, db_session, tenant_a, admin_a, catalog_a):
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 1000, occurred_at=datetime(2024, 1, 5))
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 2000, occurred_at=datetime(2024, 1, 12))
        report = reporting_service.analytics(tenant_a.id, period="weekly", now=datetime(2024, 1, 15))
        assert report["sales"]["growth"] == 100.0
        assert report["sales"]["total_amount"] == 2000

    def test_sales_by_day(self, db_session, tenant_a, admin_a, catalog_a):
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 100, occurred_at=datetime(2024, 1, 1, 9))
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 200, occurred_at=datetime(2024, 1, 1, 17))
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 300, occurred_at=datetime(2024, 1, 3, 12))

        report = reporting_service.analytics(tenant_a.id, start_date="2024-01-01", end_date="2024-01-03")
        assert report["sales_by_day"] == [
            {"date": "2024-01-01", "total": 300, "count": 2},
            {"date": "2024-01-03", "total": 300, "count": 1},
        ]

    def test_other_tenant_not_counted(self, db_session, tenant_a, tenant_b, admin_a, admin_b, catalog_a, catalog_b):
        make_transaction(db_session, tenant_b, admin_b, catalog_b["product"], 777, occurred_at=DAY)
        report = reporting_service.analytics(tenant_a.id, start_date="2024-01-10", end_date="2024-01-10")
        assert report["sales"]["total_amount"] == 0


class TestReportRoutes:
    def test_custom_without_dates_is_400(self, client, cashier_headers):
        resp = client.get("/api/reports/analytics?period=custom", headers=cashier_headers)
        assert resp.status_code == 400

    def test_analytics_custom_range(self, client, db_session, tenant_a, admin_a, catalog_a, cashier_headers):
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 8900, occurred_at=DAY)
        resp = client.get(
            "/api/reports/analytics?startDate=2024-01-10&endDate=2024-01-10",
            headers=cashier_headers,
        )
        assert resp.status_code == 200
        assert resp.json["period"]["type"] == "custom"
        assert resp.json["sales"]["total_amount"] == 8900
        assert resp.json["top_products"][0]["product_name"] == "Classic Lemonade"

    def test_daily_report_lists_counted_ids(self, client, db_session, tenant_a, admin_a, catalog_a, admin_headers):
        kept = make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 100, occurred_at=DAY)
        make_transaction(
            db_session, tenant_a, admin_a, catalog_a["product"], 50,
            occurred_at=DAY, payment_status="PENDING",
        )
        make_transaction(db_session, tenant_a, admin_a, catalog_a["product"], 70, occurred_at=datetime(2024, 1, 11, 1))
        expense = make_expense(db_session, tenant_a, admin_a, 30, date=DAY)

        resp = client.get("/api/reports/daily?date=2024-01-10", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["date"] == "2024-01-10"
        assert resp.json["transaction_ids"] == [kept.id]
        assert resp.json["expense_ids"] == [expense.id]
        assert resp.json["summary"]["gross_profit"] == 70

    def test_daily_report_bad_date(self, client, admin_headers):
        resp = client.get("/api/reports/daily?date=yesterday", headers=admin_headers)
        assert resp.status_code == 400
