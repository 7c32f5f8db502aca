# backend/kiosk/routes/expenses.py
"""
Expense routes, with the same void workflow as transactions.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..models import Expense
from ..permissions import Resource, READ, WRITE, REVIEW
from ..services import expense_service, void_service
from ..validation import NotFoundError, ValidationError, VoidStateError
from kiosk.time_utils import parse_date_range

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.post("")
@require_auth
@require_permission(Resource.EXPENSES, WRITE)
def create_expense():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        expense = expense_service.create_expense(
            payload=payload, tenant_id=g.tenant_id, user_id=g.current_user.id
        )
    except ValidationError as e:
        return {"error": str(e)}, 400

    return expense.to_dict(), 201


@expenses_bp.get("")
@require_auth
@require_permission(Resource.EXPENSES, READ)
def list_expenses():
    """
    Query params: startDate, endDate, category, minAmount, maxAmount (cents).
    """
    args = request.args
    try:
        start, end = parse_date_range(args.get("startDate"), args.get("endDate"))
        rows = expense_service.list_expenses(
            g.tenant_id,
            start=start,
            end=end,
            category=args.get("category"),
            min_amount=expense_service.parse_amount(args.get("minAmount"), "minAmount"),
            max_amount=expense_service.parse_amount(args.get("maxAmount"), "maxAmount"),
        )
    except ValueError as e:
        return {"error": str(e)}, 400

    return {"items": [e.to_dict() for e in rows], "count": len(rows)}, 200


@expenses_bp.get("/stats")
@require_auth
@require_permission(Resource.EXPENSES, READ)
def expense_stats():
    args = request.args
    try:
        stats = expense_service.expense_stats(
            g.tenant_id,
            period=args.get("period"),
            start_date=args.get("startDate"),
            end_date=args.get("endDate"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    return stats, 200


@expenses_bp.get("/void-requests")
@require_auth
@require_permission(Resource.EXPENSES, READ)
def list_void_requests():
    try:
        start, end = parse_date_range(request.args.get("startDate"), request.args.get("endDate"))
        rows = void_service.list_void_requests(
            Expense,
            tenant_id=g.tenant_id,
            status=request.args.get("status"),
            start=start,
            end=end,
        )
    except ValueError as e:
        return {"error": str(e)}, 400
    return {"items": [e.to_dict() for e in rows], "count": len(rows)}, 200


@expenses_bp.get("/<expense_id>")
@require_auth
@require_permission(Resource.EXPENSES, READ)
def get_expense(expense_id: str):
    try:
        expense = expense_service.get_expense(expense_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return expense.to_dict(), 200


@expenses_bp.patch("/<expense_id>")
@require_auth
@require_permission(Resource.EXPENSES, WRITE)
def update_expense(expense_id: str):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        expense = expense_service.update_expense(
            expense_id=expense_id, payload=payload, tenant_id=g.tenant_id
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return expense.to_dict(), 200


@expenses_bp.delete("/<expense_id>")
@require_auth
@require_permission(Resource.EXPENSES, WRITE)
def delete_expense(expense_id: str):
    try:
        expense_service.delete_expense(expense_id=expense_id, tenant_id=g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"ok": True}, 200


@expenses_bp.post("/<expense_id>/void-request")
@require_auth
@require_permission(Resource.EXPENSES, WRITE)
def request_void(expense_id: str):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        expense = void_service.request_void(
            Expense,
            row_id=expense_id,
            tenant_id=g.tenant_id,
            user_id=g.current_user.id,
            reason=payload.get("reason"),
        )
    except (ValidationError, VoidStateError) as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return expense.to_dict(), 200


@expenses_bp.post("/<expense_id>/void-approve")
@require_auth
@require_permission(Resource.EXPENSES, REVIEW)
def approve_void(expense_id: str):
    try:
        expense = void_service.approve_void(
            Expense, row_id=expense_id, tenant_id=g.tenant_id, reviewer_id=g.current_user.id
        )
    except VoidStateError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return expense.to_dict(), 200


@expenses_bp.post("/<expense_id>/void-reject")
@require_auth
@require_permission(Resource.EXPENSES, REVIEW)
def reject_void(expense_id: str):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        expense = void_service.reject_void(
            Expense,
            row_id=expense_id,
            tenant_id=g.tenant_id,
            reviewer_id=g.current_user.id,
            rejection_reason=payload.get("rejection_reason"),
        )
    except (ValidationError, VoidStateError) as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return expense.to_dict(), 200
