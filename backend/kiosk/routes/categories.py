# backend/kiosk/routes/categories.py
"""
Category routes.

MULTI-TENANT: every operation is scoped to g.tenant_id.
Reads: ADMIN and CASHIER. Writes: ADMIN.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..models import Category
from ..permissions import Resource, READ, WRITE
from ..services import catalog_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
    NotFoundError,
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"id", "name", "description", "sequence_no"},
    required_on_create={"id", "name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission(Resource.CATEGORIES, READ)
def list_categories():
    """Categories in display order (sequence_no)."""
    rows = catalog_service.list_rows(Category, g.tenant_id)
    return {"items": [c.to_dict() for c in rows], "count": len(rows)}, 200


@categories_bp.get("/<category_id>")
@require_auth
@require_permission(Resource.CATEGORIES, READ)
def get_category(category_id: str):
    try:
        category = catalog_service.get_scoped(Category, category_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return category.to_dict(), 200


@categories_bp.post("")
@require_auth
@require_permission(Resource.CATEGORIES, WRITE)
def create_category():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        category = catalog_service.create_row(Category, patch=patch, tenant_id=g.tenant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return category.to_dict(), 201


@categories_bp.patch("/<category_id>")
@require_auth
@require_permission(Resource.CATEGORIES, WRITE)
def update_category(category_id: str):
    # 404 before any payload error
    try:
        catalog_service.get_scoped(Category, category_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    if "id" in payload:
        return {"error": "Field not allowed: id"}, 400

    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        category = catalog_service.update_row(
            Category, row_id=category_id, patch=patch, tenant_id=g.tenant_id
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return category.to_dict(), 200


@categories_bp.delete("/<category_id>")
@require_auth
@require_permission(Resource.CATEGORIES, WRITE)
def delete_category(category_id: str):
    try:
        catalog_service.delete_row(Category, row_id=category_id, tenant_id=g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200
