# backend/kiosk/routes/submitted_inventory_reports.py
"""
Submitted inventory report routes (end-of-day stock counts).

One report per business day. Besides list/get, reports feed the
progression chart, stock alerts and dashboard stats.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..permissions import Resource, READ, WRITE
from ..services import submitted_inventory_report_service as service
from ..validation import ConflictError, NotFoundError, ValidationError
from kiosk.time_utils import parse_date_range, parse_report_date

submitted_inventory_reports_bp = Blueprint(
    "submitted_inventory_reports", __name__, url_prefix="/api/submitted-inventory-reports"
)


@submitted_inventory_reports_bp.post("")
@require_auth
@require_permission(Resource.SUBMITTED_INVENTORY_REPORTS, WRITE)
def submit_inventory_report():
    """Body: {report_date, inventory_snapshot: {items: [...]}, notes?, replace_existing?}."""
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    try:
        report = service.create_report(
            payload=payload, tenant_id=g.tenant_id, user_id=g.current_user.id
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return report.to_dict(), 201


@submitted_inventory_reports_bp.get("")
@require_auth
@require_permission(Resource.SUBMITTED_INVENTORY_REPORTS, READ)
def list_inventory_reports():
    """Query params: reportDate, startDate/endDate (submitted_at), userId."""
    args = request.args
    try:
        report_date = parse_report_date(args.get("reportDate"))
        start, end = parse_date_range(args.get("startDate"), args.get("endDate"))
    except ValueError as e:
        return {"error": str(e)}, 400

    reports = service.list_reports(
        g.tenant_id,
        report_date=report_date,
        start=start,
        end=end,
        user_id=args.get("userId"),
    )
    return {"items": [r.to_dict() for r in reports], "count": len(reports)}, 200


@submitted_inventory_reports_bp.get("/progression")
@require_auth
@require_permission(Resource.SUBMITTED_INVENTORY_REPORTS, READ)
def inventory_progression():
    """Query params: viewMode (day_over_day|weekly_trend), startDate, endDate, category."""
    args = request.args
    try:
        start = parse_report_date(args.get("startDate"))
        end = parse_report_date(args.get("endDate"))
    except ValueError:
        return {"error": "startDate and endDate must be YYYY-MM-DD dates"}, 400

    try:
        result = service.get_progression(
            g.tenant_id,
            view_mode=args.get("viewMode") or service.VIEW_DAY_OVER_DAY,
            start=start,
            end=end,
            category=args.get("category"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    return result, 200


@submitted_inventory_reports_bp.get("/alerts")
@require_auth
@require_permission(Resource.SUBMITTED_INVENTORY_REPORTS, READ)
def inventory_alerts():
    return service.get_alerts(g.tenant_id), 200


@submitted_inventory_reports_bp.get("/stats")
@require_auth
@require_permission(Resource.SUBMITTED_INVENTORY_REPORTS, READ)
def inventory_report_stats():
    return service.report_stats(g.tenant_id), 200


@submitted_inventory_reports_bp.get("/<report_id>")
@require_auth
@require_permission(Resource.SUBMITTED_INVENTORY_REPORTS, READ)
def get_inventory_report(report_id: str):
    try:
        report = service.get_report(report_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return report.to_dict(), 200
