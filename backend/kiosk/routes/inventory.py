# backend/kiosk/routes/inventory.py
"""
Inventory routes: items, append-only count records, latest view and stats.

Item writes are ADMIN only; any staff member may record counts.
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..permissions import Resource, READ, WRITE
from ..services import inventory_service
from ..validation import ConflictError, NotFoundError, ValidationError
from kiosk.time_utils import parse_date_range, parse_range_end

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/items")
@require_auth
@require_permission(Resource.INVENTORY_ITEMS, READ)
def list_items():
    items = inventory_service.list_items(g.tenant_id, category=request.args.get("category"))
    return {"items": [i.to_dict() for i in items], "count": len(items)}, 200


@inventory_bp.post("/items")
@require_auth
@require_permission(Resource.INVENTORY_ITEMS, WRITE)
def create_item():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    try:
        item = inventory_service.create_item(payload=payload, tenant_id=g.tenant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return item.to_dict(), 201


@inventory_bp.get("/items/<item_id>")
@require_auth
@require_permission(Resource.INVENTORY_ITEMS, READ)
def get_item(item_id: str):
    try:
        item = inventory_service.get_item(item_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return item.to_dict(), 200


@inventory_bp.patch("/items/<item_id>")
@require_auth
@require_permission(Resource.INVENTORY_ITEMS, WRITE)
def update_item(item_id: str):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    try:
        item = inventory_service.update_item(item_id=item_id, payload=payload, tenant_id=g.tenant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return item.to_dict(), 200


@inventory_bp.delete("/items/<item_id>")
@require_auth
@require_permission(Resource.INVENTORY_ITEMS, WRITE)
def delete_item(item_id: str):
    try:
        inventory_service.delete_item(item_id=item_id, tenant_id=g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"ok": True}, 200


@inventory_bp.post("/records")
@require_auth
@require_permission(Resource.INVENTORY_RECORDS, WRITE)
def create_record():
    """Body: {inventory_item_id, quantity >= 0, date?, notes?}."""
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    try:
        record = inventory_service.create_record(
            payload=payload, tenant_id=g.tenant_id, user_id=g.current_user.id
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    return record.to_dict(), 201


@inventory_bp.post("/records/bulk")
@require_auth
@require_permission(Resource.INVENTORY_RECORDS, WRITE)
def create_records_bulk():
    """
    Body: {records: [...]}. Either every record is stored or none is.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    try:
        records = inventory_service.create_records_bulk(
            entries=payload.get("records"), tenant_id=g.tenant_id, user_id=g.current_user.id
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to write inventory records")
        return {"error": "Internal server error"}, 500

    return {"items": [r.to_dict() for r in records], "count": len(records)}, 201


@inventory_bp.get("/records")
@require_auth
@require_permission(Resource.INVENTORY_RECORDS, READ)
def list_records():
    """Query params: startDate, endDate, inventoryItemId. Newest first."""
    try:
        start, end = parse_date_range(request.args.get("startDate"), request.args.get("endDate"))
    except ValueError as e:
        return {"error": str(e)}, 400

    records = inventory_service.list_records(
        g.tenant_id,
        start=start,
        end=end,
        inventory_item_id=request.args.get("inventoryItemId"),
    )
    return {"items": [r.to_dict() for r in records], "count": len(records)}, 200


@inventory_bp.get("/latest")
@require_auth
@require_permission(Resource.INVENTORY_RECORDS, READ)
def latest_inventory():
    """?date= (optional; a bare date means the end of that day)."""
    try:
        as_of = parse_range_end(request.args.get("date"))
    except ValueError:
        return {"error": "date must be an ISO-8601 date"}, 400

    rows = inventory_service.latest_inventory(g.tenant_id, as_of=as_of)
    return {"items": rows, "count": len(rows)}, 200


@inventory_bp.get("/stats")
@require_auth
@require_permission(Resource.INVENTORY_RECORDS, READ)
def inventory_stats():
    return inventory_service.inventory_stats(g.tenant_id), 200
