from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_permission
from ..permissions import Resource, READ
from ..services import reporting_service
from kiosk.time_utils import parse_report_date


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/analytics")
@require_auth
@require_permission(Resource.REPORTS, READ)
def analytics_report():
    """?period=daily|weekly|monthly|yearly|overall|custom&startDate&endDate"""
    try:
        report = reporting_service.analytics(
            g.tenant_id,
            period=request.args.get("period"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/daily")
@require_auth
@require_permission(Resource.REPORTS, READ)
def daily_report():
    """?date=YYYY-MM-DD (default today)"""
    try:
        day = parse_report_date(request.args.get("date"))
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400

    return jsonify(reporting_service.daily_report(g.tenant_id, day)), 200
