# backend/kiosk/routes/transactions.py
"""
Transaction routes: register sales plus the void request/review workflow.

Cashiers record sales and request voids; only ADMIN can approve or reject
(Resource.TRANSACTIONS, REVIEW).
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..models import Transaction
from ..permissions import Resource, READ, WRITE, REVIEW
from ..services import transaction_service, void_service
from ..validation import NotFoundError, ValidationError, VoidStateError
from kiosk.time_utils import parse_date_range

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.post("")
@require_auth
@require_permission(Resource.TRANSACTIONS, WRITE)
def create_transaction():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        t = transaction_service.create_transaction(
            payload=payload, tenant_id=g.tenant_id, user_id=g.current_user.id
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to record transaction")
        return {"error": "Internal server error"}, 500

    return t.to_dict(), 201


@transactions_bp.get("")
@require_auth
@require_permission(Resource.TRANSACTIONS, READ)
def list_transactions():
    """
    Query params:
    - startDate, endDate: ISO-8601 (a bare end date covers that whole day)
    - paymentMethod: CASH, CARD, GCASH, ...
    """
    try:
        start, end = parse_date_range(request.args.get("startDate"), request.args.get("endDate"))
    except ValueError as e:
        return {"error": str(e)}, 400

    rows = transaction_service.list_transactions(
        g.tenant_id, start=start, end=end, payment_method=request.args.get("paymentMethod")
    )
    return {"items": [t.to_dict() for t in rows], "count": len(rows)}, 200


@transactions_bp.get("/stats")
@require_auth
@require_permission(Resource.TRANSACTIONS, READ)
def transaction_stats():
    try:
        stats = transaction_service.transaction_stats(g.tenant_id, request.args.get("period", "daily"))
    except ValidationError as e:
        return {"error": str(e)}, 400
    return stats, 200


@transactions_bp.get("/void-requests")
@require_auth
@require_permission(Resource.TRANSACTIONS, READ)
def list_void_requests():
    """?status=PENDING|APPROVED|REJECTED|ALL (default PENDING), startDate, endDate."""
    try:
        start, end = parse_date_range(request.args.get("startDate"), request.args.get("endDate"))
        rows = void_service.list_void_requests(
            Transaction,
            tenant_id=g.tenant_id,
            status=request.args.get("status"),
            start=start,
            end=end,
        )
    except ValueError as e:
        return {"error": str(e)}, 400
    return {"items": [t.to_dict() for t in rows], "count": len(rows)}, 200


@transactions_bp.get("/<transaction_id>")
@require_auth
@require_permission(Resource.TRANSACTIONS, READ)
def get_transaction(transaction_id: str):
    try:
        t = transaction_service.get_transaction(transaction_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return t.to_dict(), 200


@transactions_bp.post("/<transaction_id>/void-request")
@require_auth
@require_permission(Resource.TRANSACTIONS, WRITE)
def request_void(transaction_id: str):
    """Body: {reason} (10-500 characters)."""
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        t = void_service.request_void(
            Transaction,
            row_id=transaction_id,
            tenant_id=g.tenant_id,
            user_id=g.current_user.id,
            reason=payload.get("reason"),
        )
    except (ValidationError, VoidStateError) as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return t.to_dict(), 200


@transactions_bp.post("/<transaction_id>/void-approve")
@require_auth
@require_permission(Resource.TRANSACTIONS, REVIEW)
def approve_void(transaction_id: str):
    try:
        t = void_service.approve_void(
            Transaction, row_id=transaction_id, tenant_id=g.tenant_id, reviewer_id=g.current_user.id
        )
    except VoidStateError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return t.to_dict(), 200


@transactions_bp.post("/<transaction_id>/void-reject")
@require_auth
@require_permission(Resource.TRANSACTIONS, REVIEW)
def reject_void(transaction_id: str):
    """Body: {rejection_reason?} (up to 500 characters)."""
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        t = void_service.reject_void(
            Transaction,
            row_id=transaction_id,
            tenant_id=g.tenant_id,
            reviewer_id=g.current_user.id,
            rejection_reason=payload.get("rejection_reason"),
        )
    except (ValidationError, VoidStateError) as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return t.to_dict(), 200
