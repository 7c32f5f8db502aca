# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

"""
Tenant-scoped sales/expense aggregation.

The summarize_* helpers are pure: they take already-fetched rows and know
which of them count. A transaction counts toward sales only when its
payment is COMPLETED and it has no approved void; an expense counts unless
its void was approved. All amounts are integer cents.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from kiosk.extensions import db
from kiosk.models import (
    Expense,
    Transaction,
    TransactionItem,
    PAYMENT_COMPLETED,
    VOID_APPROVED,
)
from kiosk.validation import ValidationError
from kiosk.time_utils import (
    days_ago,
    end_of_day,
    parse_iso_datetime,
    parse_range_end,
    start_of_day,
    start_of_month,
    to_utc_z,
    utcnow,
)

PERIODS = ("daily", "weekly", "monthly", "yearly", "overall", "custom")
TOP_PRODUCTS_LIMIT = 5
WEEK = timedelta(days=7)


class ReportError(ValidationError):
    """Raised when report parameters are invalid."""


@dataclass(frozen=True)
class Period:
    type: str
    start: datetime | None
    end: datetime

    def to_dict(self) -> dict:
        return {"type": self.type, "start": to_utc_z(self.start), "end": to_utc_z(self.end)}


def resolve_period(
    period: str | None,
    start_date: str | None = None,
    end_date: str | None = None,
    now: datetime | None = None,
) -> Period:
    """
    Map a named period (or explicit dates) to a concrete [start, end] range.

    Explicit dates without a period name mean "custom". A date-only end
    covers that whole day.
    """
    now = now or utcnow()
    if not period:
        period = "custom" if (start_date or end_date) else "daily"
    period = period.lower()

    if period == "daily":
        return Period(period, start_of_day(now.date()), now)
    if period == "weekly":
        return Period(period, days_ago(now, 7), now)
    if period == "monthly":
        return Period(period, start_of_month(now), now)
    if period == "yearly":
        return Period(period, datetime(now.year, 1, 1), now)
    if period == "overall":
        return Period(period, None, now)
    if period == "custom":
        if not start_date or not end_date:
            raise ReportError("startDate and endDate are required for a custom period")
        try:
            start = parse_iso_datetime(start_date)
            end = parse_range_end(end_date)
        except ValueError:
            raise ReportError("startDate and endDate must be ISO-8601 dates")
        if start > end:
            raise ReportError("startDate must not be after endDate")
        return Period(period, start, end)

    raise ReportError(f"period must be one of: {', '.join(PERIODS)}")


# ---------------------------------------------------------------------------
# Pure aggregation
# ---------------------------------------------------------------------------

def counts_toward_sales(t) -> bool:
    return t.payment_status == PAYMENT_COMPLETED and t.void_status != VOID_APPROVED


def counts_toward_expenses(e) -> bool:
    return e.void_status != VOID_APPROVED


def _average(total: int, count: int) -> float:
    return round(total / count, 2) if count else 0


def summarize_sales(transactions: Iterable) -> dict:
    counted = [t for t in transactions if counts_toward_sales(t)]
    total = sum(t.total_cents for t in counted)

    breakdown: dict[str, dict] = {}
    for t in counted:
        bucket = breakdown.setdefault(t.payment_method, {"total": 0, "count": 0})
        bucket["total"] += t.total_cents
        bucket["count"] += 1

    return {
        "total_amount": total,
        "transaction_count": len(counted),
        "average_transaction": _average(total, len(counted)),
        "total_items_sold": sum(item.quantity for t in counted for item in t.items),
        "payment_method_breakdown": breakdown,
    }


def summarize_expenses(expenses: Iterable) -> dict:
    counted = [e for e in expenses if counts_toward_expenses(e)]
    total = sum(e.amount_cents for e in counted)

    breakdown: dict[str, dict] = {}
    for e in counted:
        bucket = breakdown.setdefault(e.category, {"total": 0, "count": 0})
        bucket["total"] += e.amount_cents
        bucket["count"] += 1

    return {
        "total_amount": total,
        "expense_count": len(counted),
        "average_expense": _average(total, len(counted)),
        "category_breakdown": breakdown,
    }


def summarize_profit(sales_total: int, expenses_total: int) -> dict:
    gross_profit = sales_total - expenses_total
    margin = round(gross_profit / sales_total * 100, 2) if sales_total else 0
    return {
        "gross_profit": gross_profit,
        "profit_margin": margin,
        "net_revenue": gross_profit,
    }


def growth_rate(current: int, previous: int) -> float:
    """Percent change; 0 when there is nothing to compare against."""
    if not previous:
        return 0
    return round((current - previous) / previous * 100, 2)


def top_products(transactions: Iterable, limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
    rows: dict[str, dict] = {}
    for t in transactions:
        if not counts_toward_sales(t):
            continue
        for item in t.items:
            row = rows.setdefault(item.product_id, {
                "product_id": item.product_id,
                "product_name": item.product.name if item.product else None,
                "quantity": 0,
                "revenue": 0,
            })
            row["quantity"] += item.quantity
            row["revenue"] += item.subtotal_cents

    ranked = sorted(rows.values(), key=lambda r: (-r["revenue"], r["product_id"]))
    return ranked[:limit]


def sales_by_day(transactions: Iterable) -> list[dict]:
    days: dict[date, dict] = defaultdict(lambda: {"total": 0, "count": 0})
    for t in transactions:
        if not counts_toward_sales(t):
            continue
        bucket = days[t.occurred_at.date()]
        bucket["total"] += t.total_cents
        bucket["count"] += 1
    return [{"date": d.isoformat(), **days[d]} for d in sorted(days)]


def build_report(
    transactions: list,
    expenses: list,
    period: Period,
    current_week_sales: int = 0,
    previous_week_sales: int = 0,
) -> dict:
    sales = summarize_sales(transactions)
    sales["growth"] = growth_rate(current_week_sales, previous_week_sales)
    expense_summary = summarize_expenses(expenses)

    return {
        "period": period.to_dict(),
        "sales": sales,
        "expenses": expense_summary,
        "summary": summarize_profit(sales["total_amount"], expense_summary["total_amount"]),
        "top_products": top_products(transactions),
        "sales_by_day": sales_by_day(transactions),
    }


# ---------------------------------------------------------------------------
# Database fetch
# ---------------------------------------------------------------------------

def fetch_transactions(tenant_id: str, start: datetime | None, end: datetime | None) -> list[Transaction]:
    query = (
        db.session.query(Transaction)
        .options(selectinload(Transaction.items).selectinload(TransactionItem.product))
        .filter(Transaction.tenant_id == tenant_id)
    )
    if start is not None:
        query = query.filter(Transaction.occurred_at >= start)
    if end is not None:
        query = query.filter(Transaction.occurred_at <= end)
    return query.order_by(Transaction.occurred_at.asc()).all()


def fetch_expenses(tenant_id: str, start: datetime | None, end: datetime | None) -> list[Expense]:
    query = db.session.query(Expense).filter(Expense.tenant_id == tenant_id)
    if start is not None:
        query = query.filter(Expense.date >= start)
    if end is not None:
        query = query.filter(Expense.date <= end)
    return query.order_by(Expense.date.asc()).all()


def sales_total(tenant_id: str, start: datetime, end: datetime, *, include_end: bool = True) -> int:
    """SUM(total_cents) over counted transactions in a range."""
    upper = Transaction.occurred_at <= end if include_end else Transaction.occurred_at < end
    total = db.session.query(func.coalesce(func.sum(Transaction.total_cents), 0)).filter(
        Transaction.tenant_id == tenant_id,
        Transaction.payment_status == PAYMENT_COMPLETED,
        Transaction.void_status != VOID_APPROVED,
        Transaction.occurred_at >= start,
        upper,
    ).scalar()
    return int(total or 0)


def analytics(
    tenant_id: str,
    *,
    period: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Full dashboard report for a period.

    Growth compares the 7 days ending at the period end with the 7 days
    before that.
    """
    resolved = resolve_period(period, start_date, end_date, now=now)

    transactions = fetch_transactions(tenant_id, resolved.start, resolved.end)
    expenses = fetch_expenses(tenant_id, resolved.start, resolved.end)

    week_start = resolved.end - WEEK
    current_week = sales_total(tenant_id, week_start, resolved.end)
    previous_week = sales_total(tenant_id, week_start - WEEK, week_start, include_end=False)

    return build_report(transactions, expenses, resolved, current_week, previous_week)


def daily_report(tenant_id: str, day: date | None = None) -> dict:
    """
    One calendar day of sales and expenses, plus the ids that were counted.

    This is the payload a cashier submits as a report snapshot.
    """
    day = day or utcnow().date()
    start, end = start_of_day(day), end_of_day(day)

    transactions = fetch_transactions(tenant_id, start, end)
    expenses = fetch_expenses(tenant_id, start, end)

    sales = summarize_sales(transactions)
    expense_summary = summarize_expenses(expenses)

    return {
        "date": day.isoformat(),
        "period": {"start": to_utc_z(start), "end": to_utc_z(end)},
        "sales": sales,
        "expenses": expense_summary,
        "summary": summarize_profit(sales["total_amount"], expense_summary["total_amount"]),
        "transaction_ids": [t.id for t in transactions if counts_toward_sales(t)],
        "expense_ids": [e.id for e in expenses if counts_toward_expenses(e)],
    }
