# backend/kiosk/routes/submitted_reports.py
"""
Submitted (end-of-day) report routes.

A report is created once and never edited. GET /<id> also reports whether
any referenced transaction has been voided since submission.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..permissions import Resource, READ, WRITE
from ..services import submitted_report_service
from ..validation import NotFoundError, ValidationError
from kiosk.time_utils import parse_date_range, parse_report_date

submitted_reports_bp = Blueprint("submitted_reports", __name__, url_prefix="/api/submitted-reports")


@submitted_reports_bp.post("")
@require_auth
@require_permission(Resource.SUBMITTED_REPORTS, WRITE)
def submit_report():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    try:
        report = submitted_report_service.create_report(
            payload=payload, tenant_id=g.tenant_id, user_id=g.current_user.id
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    return report.to_dict(), 201


@submitted_reports_bp.get("")
@require_auth
@require_permission(Resource.SUBMITTED_REPORTS, READ)
def list_reports():
    """
    Query params:
    - reportDate: YYYY-MM-DD
    - startDate, endDate: bounds on submitted_at
    - userId: submitter
    """
    args = request.args
    try:
        report_date = parse_report_date(args.get("reportDate"))
        start, end = parse_date_range(args.get("startDate"), args.get("endDate"))
    except ValueError as e:
        return {"error": str(e)}, 400

    reports = submitted_report_service.list_reports(
        g.tenant_id,
        report_date=report_date,
        start=start,
        end=end,
        user_id=args.get("userId"),
    )
    return {"items": [r.to_dict() for r in reports], "count": len(reports)}, 200


@submitted_reports_bp.get("/stats")
@require_auth
@require_permission(Resource.SUBMITTED_REPORTS, READ)
def report_stats():
    return submitted_report_service.report_stats(g.tenant_id), 200


@submitted_reports_bp.get("/<report_id>")
@require_auth
@require_permission(Resource.SUBMITTED_REPORTS, READ)
def get_report(report_id: str):
    try:
        report = submitted_report_service.get_report(report_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return report, 200
