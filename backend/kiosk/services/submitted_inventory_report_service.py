# Overview: Service-layer operations for submitted inventory reports (end-of-day stock counts).

"""
Submitted inventory reports

A cashier closes the day by handing in the counted quantity of every
inventory item. Each tenant has at most one report per report_date; sending
another one for the same day is a conflict unless the caller asks to replace
the existing report.

Reports are read back three ways besides list/get:
- progression: per-item quantity series with day-to-day change and consumption
- alerts: low stock, usage spikes and projected stockouts over the last 14 days
- stats: totals for the dashboard

All windows and orderings use report_date (the business day counted), not
the moment the report was uploaded.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta

from ..extensions import db
from ..models import InventoryItem, SubmittedInventoryReport
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_inventory_snapshot,
    validate_payload,
)
from .catalog_service import get_scoped, require_ids_in_tenant
from kiosk.time_utils import start_of_month, to_utc_z, utcnow

logger = logging.getLogger(__name__)

REPORT_POLICY = ModelValidationPolicy(
    writable_fields={"report_date", "inventory_snapshot", "notes", "replace_existing"},
    required_on_create={"report_date", "inventory_snapshot"},
)

VIEW_DAY_OVER_DAY = "day_over_day"
VIEW_WEEKLY_TREND = "weekly_trend"
VIEW_MODES = (VIEW_DAY_OVER_DAY, VIEW_WEEKLY_TREND)

# Default progression window per view mode, in days
LOOKBACK_DAYS = {VIEW_DAY_OVER_DAY: 30, VIEW_WEEKLY_TREND: 84}

ALERT_WINDOW_DAYS = 14
SPIKE_FACTOR = 1.5
SPIKE_HIGH_FACTOR = 2.0
STOCKOUT_HORIZON_DAYS = 7

ALERT_LOW_STOCK = "LOW_STOCK"
ALERT_USAGE_SPIKE = "USAGE_SPIKE"
ALERT_PROJECTED_STOCKOUT = "PROJECTED_STOCKOUT"
ALERT_TYPES = (ALERT_LOW_STOCK, ALERT_USAGE_SPIKE, ALERT_PROJECTED_STOCKOUT)


def _round(value: float) -> float:
    return round(value, 2)


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------

def create_report(*, payload: dict, tenant_id: str, user_id: str) -> SubmittedInventoryReport:
    """
    Store a day's stock count.

    Raises ConflictError if the day already has a report and
    replace_existing is not true.
    """
    patch = validate_payload(
        model=SubmittedInventoryReport, payload=payload, policy=REPORT_POLICY, partial=False
    )
    replace_existing = patch.pop("replace_existing", False)
    if not isinstance(replace_existing, bool):
        raise ValidationError("replace_existing must be a boolean")

    snapshot = enforce_rules_inventory_snapshot(patch.pop("inventory_snapshot"))
    require_ids_in_tenant(
        InventoryItem, [i["inventory_item_id"] for i in snapshot["items"]], tenant_id
    )

    existing = (
        db.session.query(SubmittedInventoryReport)
        .filter(
            SubmittedInventoryReport.tenant_id == tenant_id,
            SubmittedInventoryReport.report_date == patch["report_date"],
        )
        .first()
    )
    if existing is not None:
        if not replace_existing:
            raise ConflictError(
                f"Inventory report for {patch['report_date'].isoformat()} already exists"
            )
        db.session.delete(existing)
        db.session.flush()
        logger.info("Replacing inventory report %s for %s", existing.id, existing.report_date)

    report = SubmittedInventoryReport(
        tenant_id=tenant_id,
        user_id=user_id,
        inventory_snapshot=snapshot,
        submitted_at=utcnow(),
        **patch,
    )
    db.session.add(report)
    db.session.commit()
    logger.info(
        "Inventory report %s submitted for %s by %s (%d items)",
        report.id, report.report_date, user_id, snapshot["total_items"],
    )
    return report


def list_reports(
    tenant_id: str,
    *,
    report_date: date | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    user_id: str | None = None,
) -> list[SubmittedInventoryReport]:
    """start/end bound submitted_at. Newest first."""
    query = db.session.query(SubmittedInventoryReport).filter(
        SubmittedInventoryReport.tenant_id == tenant_id
    )
    if report_date is not None:
        query = query.filter(SubmittedInventoryReport.report_date == report_date)
    if start is not None:
        query = query.filter(SubmittedInventoryReport.submitted_at >= start)
    if end is not None:
        query = query.filter(SubmittedInventoryReport.submitted_at <= end)
    if user_id:
        query = query.filter(SubmittedInventoryReport.user_id == user_id)
    return query.order_by(SubmittedInventoryReport.submitted_at.desc()).all()


def get_report(report_id: str, tenant_id: str) -> SubmittedInventoryReport:
    return get_scoped(SubmittedInventoryReport, report_id, tenant_id)


def _reports_between(tenant_id: str, start: date, end: date) -> list[SubmittedInventoryReport]:
    return (
        db.session.query(SubmittedInventoryReport)
        .filter(
            SubmittedInventoryReport.tenant_id == tenant_id,
            SubmittedInventoryReport.report_date >= start,
            SubmittedInventoryReport.report_date <= end,
        )
        .order_by(SubmittedInventoryReport.report_date.asc())
        .all()
    )


def _series_by_item(reports, category: str | None = None) -> dict[str, dict]:
    """
    {inventory_item_id: {item fields..., points: [{date, quantity, min_stock_level}]}}

    Points follow the order of `reports`. Item name/unit come from the newest
    report that lists the item.
    """
    series: dict[str, dict] = {}
    for report in reports:
        for item in report.items:
            if category and item.get("category") != category:
                continue
            entry = series.setdefault(item["inventory_item_id"], {"points": []})
            entry.update(
                inventory_item_id=item["inventory_item_id"],
                item_name=item.get("item_name"),
                category=item.get("category"),
                unit=item.get("unit"),
            )
            entry["points"].append({
                "date": report.report_date,
                "quantity": item["quantity"],
                "min_stock_level": item.get("min_stock_level"),
            })
    return series


# ---------------------------------------------------------------------------
# Progression
# ---------------------------------------------------------------------------

def _weekly(points: list[dict]) -> list[dict]:
    """Keep the last count of each ISO week."""
    by_week: dict[tuple[int, int], dict] = {}
    for point in points:
        iso = point["date"].isocalendar()
        by_week[(iso[0], iso[1])] = point
    return list(by_week.values())


def _with_changes(points: list[dict]) -> list[dict]:
    """Chronological points annotated with the change from the previous count."""
    out = []
    previous = None
    for point in points:
        change = 0.0
        percent = 0.0
        if previous is not None:
            change = point["quantity"] - previous["quantity"]
            if previous["quantity"]:
                percent = change / previous["quantity"] * 100
        out.append({
            "date": point["date"].isoformat(),
            "quantity": point["quantity"],
            "min_stock_level": point["min_stock_level"],
            "change": _round(change),
            "percent_change": _round(percent),
            "consumption": _round(-change) if change < 0 else 0.0,
        })
        previous = point
    return out


def get_progression(
    tenant_id: str,
    *,
    view_mode: str = VIEW_DAY_OVER_DAY,
    start: date | None = None,
    end: date | None = None,
    category: str | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Per-item quantity series between start and end (inclusive report dates).

    Missing bounds default to today and LOOKBACK_DAYS[view_mode] before it.
    weekly_trend keeps one count per week.
    """
    if view_mode not in VIEW_MODES:
        raise ValidationError(f"viewMode must be one of: {', '.join(VIEW_MODES)}")

    end = end or (now or utcnow()).date()
    start = start or end - timedelta(days=LOOKBACK_DAYS[view_mode])
    if start > end:
        raise ValidationError("startDate must be on or before endDate")

    series = _series_by_item(
        _reports_between(tenant_id, start, end), category.upper() if category else None
    )

    items = []
    for entry in sorted(series.values(), key=lambda e: (e["category"] or "", e["item_name"] or "")):
        points = entry.pop("points")
        if view_mode == VIEW_WEEKLY_TREND:
            points = _weekly(points)
        data = _with_changes(points)
        consumptions = [d["consumption"] for d in data if d["consumption"] > 0]
        total = sum(consumptions)
        items.append({
            **entry,
            "data_points": data,
            "total_consumption": _round(total),
            "avg_consumption": _round(total / len(consumptions)) if consumptions else 0.0,
        })

    return {
        "view_mode": view_mode,
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "items": items,
    }


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

def _low_stock_alert(latest: dict) -> dict | None:
    quantity = latest["quantity"]
    minimum = latest["min_stock_level"]
    if not minimum or quantity >= minimum:
        return None
    if quantity == 0:
        severity = "HIGH"
    elif quantity < minimum * 0.5:
        severity = "MEDIUM"
    else:
        severity = "LOW"
    return {
        "type": ALERT_LOW_STOCK,
        "severity": severity,
        "current_quantity": quantity,
        "min_stock_level": minimum,
        "shortfall": _round(minimum - quantity),
    }


def _usage_spike_alert(consumptions: list[float], average: float) -> dict | None:
    latest = consumptions[0]
    if latest <= average * SPIKE_FACTOR:
        return None
    return {
        "type": ALERT_USAGE_SPIKE,
        "severity": "HIGH" if latest > average * SPIKE_HIGH_FACTOR else "MEDIUM",
        "latest_consumption": _round(latest),
        "average_consumption": _round(average),
        "percentage_increase": _round((latest - average) / average * 100),
    }


def _stockout_alert(quantity: float, average: float, today: date) -> dict | None:
    days_left = quantity / average
    if not 0 < days_left < STOCKOUT_HORIZON_DAYS:
        return None
    if days_left < 3:
        severity = "HIGH"
    elif days_left < 5:
        severity = "MEDIUM"
    else:
        severity = "LOW"
    whole_days = math.floor(days_left)
    return {
        "type": ALERT_PROJECTED_STOCKOUT,
        "severity": severity,
        "current_quantity": quantity,
        "avg_daily_consumption": _round(average),
        "days_until_stockout": whole_days,
        "estimated_stockout_date": (today + timedelta(days=whole_days)).isoformat(),
    }


def get_alerts(tenant_id: str, now: datetime | None = None) -> dict:
    """
    Alerts from the reports of the last ALERT_WINDOW_DAYS days.

    Consumption is the drop between two consecutive counts; increases
    (restocks) are ignored. The latest consumption is the most recent drop.
    """
    now = now or utcnow()
    today = now.date()
    reports = _reports_between(tenant_id, today - timedelta(days=ALERT_WINDOW_DAYS), today)

    alerts = []
    series = _series_by_item(reports)
    for entry in sorted(series.values(), key=lambda e: (e["category"] or "", e["item_name"] or "")):
        points = list(reversed(entry["points"]))
        latest = points[0]
        found = [_low_stock_alert(latest)]

        consumptions = [
            older["quantity"] - newer["quantity"]
            for newer, older in zip(points, points[1:])
            if older["quantity"] > newer["quantity"]
        ]
        if consumptions:
            average = sum(consumptions) / len(consumptions)
            found.append(_usage_spike_alert(consumptions, average))
            found.append(_stockout_alert(latest["quantity"], average, today))

        for alert in found:
            if alert is None:
                continue
            alerts.append({
                "item_id": entry["inventory_item_id"],
                "item_name": entry["item_name"],
                "category": entry["category"],
                **alert,
            })

    return {
        "generated_at": to_utc_z(now),
        "total_alerts": len(alerts),
        "alerts_by_type": {t: sum(1 for a in alerts if a["type"] == t) for t in ALERT_TYPES},
        "alerts": alerts,
    }


def report_stats(tenant_id: str, now: datetime | None = None) -> dict:
    now = now or utcnow()
    base = db.session.query(SubmittedInventoryReport).filter(
        SubmittedInventoryReport.tenant_id == tenant_id
    )

    total = base.count()
    this_month = base.filter(SubmittedInventoryReport.submitted_at >= start_of_month(now)).count()
    last = base.order_by(SubmittedInventoryReport.submitted_at.desc()).first()

    return {
        "total_reports": total,
        "reports_this_month": this_month,
        "last_submission": {
            "date": last.report_date.isoformat(),
            "submitted_at": to_utc_z(last.submitted_at),
        } if last else None,
    }
