# backend/kiosk/routes/sizes.py
from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..models import Size
from ..permissions import Resource, READ, WRITE
from ..services import catalog_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_size,
    ValidationError,
    ConflictError,
    NotFoundError,
)

SIZE_POLICY = ModelValidationPolicy(
    writable_fields={"id", "name", "price_modifier_cents", "volume"},
    required_on_create={"id", "name"},
)

sizes_bp = Blueprint("sizes", __name__, url_prefix="/api/sizes")


@sizes_bp.get("")
@require_auth
@require_permission(Resource.SIZES, READ)
def list_sizes():
    rows = catalog_service.list_rows(Size, g.tenant_id)
    return {"items": [s.to_dict() for s in rows], "count": len(rows)}, 200


@sizes_bp.get("/<size_id>")
@require_auth
@require_permission(Resource.SIZES, READ)
def get_size(size_id: str):
    try:
        size = catalog_service.get_scoped(Size, size_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return size.to_dict(), 200


@sizes_bp.post("")
@require_auth
@require_permission(Resource.SIZES, WRITE)
def create_size():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        patch = validate_payload(model=Size, payload=payload, policy=SIZE_POLICY, partial=False)
        enforce_rules_size(patch)
        size = catalog_service.create_row(Size, patch=patch, tenant_id=g.tenant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return size.to_dict(), 201


@sizes_bp.patch("/<size_id>")
@require_auth
@require_permission(Resource.SIZES, WRITE)
def update_size(size_id: str):
    try:
        catalog_service.get_scoped(Size, size_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    if "id" in payload:
        return {"error": "Field not allowed: id"}, 400

    try:
        patch = validate_payload(model=Size, payload=payload, policy=SIZE_POLICY, partial=True)
        enforce_rules_size(patch)
        size = catalog_service.update_row(Size, row_id=size_id, patch=patch, tenant_id=g.tenant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return size.to_dict(), 200


@sizes_bp.delete("/<size_id>")
@require_auth
@require_permission(Resource.SIZES, WRITE)
def delete_size(size_id: str):
    """Also detaches the size from every product."""
    try:
        catalog_service.delete_row(Size, row_id=size_id, tenant_id=g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"ok": True}, 200
