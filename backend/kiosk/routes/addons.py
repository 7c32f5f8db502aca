# backend/kiosk/routes/addons.py
from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..models import Addon
from ..permissions import Resource, READ, WRITE
from ..services import catalog_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_addon,
    ValidationError,
    ConflictError,
    NotFoundError,
)

ADDON_POLICY = ModelValidationPolicy(
    writable_fields={"id", "name", "price_cents"},
    required_on_create={"id", "name"},
)

addons_bp = Blueprint("addons", __name__, url_prefix="/api/addons")


@addons_bp.get("")
@require_auth
@require_permission(Resource.ADDONS, READ)
def list_addons():
    rows = catalog_service.list_rows(Addon, g.tenant_id)
    return {"items": [a.to_dict() for a in rows], "count": len(rows)}, 200


@addons_bp.get("/<addon_id>")
@require_auth
@require_permission(Resource.ADDONS, READ)
def get_addon(addon_id: str):
    try:
        addon = catalog_service.get_scoped(Addon, addon_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return addon.to_dict(), 200


@addons_bp.post("")
@require_auth
@require_permission(Resource.ADDONS, WRITE)
def create_addon():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        patch = validate_payload(model=Addon, payload=payload, policy=ADDON_POLICY, partial=False)
        enforce_rules_addon(patch)
        addon = catalog_service.create_row(Addon, patch=patch, tenant_id=g.tenant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return addon.to_dict(), 201


@addons_bp.patch("/<addon_id>")
@require_auth
@require_permission(Resource.ADDONS, WRITE)
def update_addon(addon_id: str):
    try:
        catalog_service.get_scoped(Addon, addon_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    if "id" in payload:
        return {"error": "Field not allowed: id"}, 400

    try:
        patch = validate_payload(model=Addon, payload=payload, policy=ADDON_POLICY, partial=True)
        enforce_rules_addon(patch)
        addon = catalog_service.update_row(Addon, row_id=addon_id, patch=patch, tenant_id=g.tenant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return addon.to_dict(), 200


@addons_bp.delete("/<addon_id>")
@require_auth
@require_permission(Resource.ADDONS, WRITE)
def delete_addon(addon_id: str):
    """Also detaches the addon from every product."""
    try:
        catalog_service.delete_row(Addon, row_id=addon_id, tenant_id=g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"ok": True}, 200
