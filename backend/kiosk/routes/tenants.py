# backend/kiosk/routes/tenants.py
"""
Tenant routes.

GET /slug/<slug> is public: clients resolve the tenant before login.
Everything else acts on the caller's own tenant (g.tenant_id).
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..models import Tenant
from ..permissions import Resource, READ, WRITE
from ..services import tenant_service
from ..validation import ModelValidationPolicy, NotFoundError, ValidationError, validate_payload

TENANT_POLICY = ModelValidationPolicy(writable_fields=tenant_service.TENANT_EDITABLE_FIELDS)

tenants_bp = Blueprint("tenants", __name__, url_prefix="/api/tenants")


@tenants_bp.get("/slug/<slug>")
def get_by_slug(slug: str):
    try:
        tenant = tenant_service.get_tenant_by_slug(slug)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return tenant.to_dict(), 200


@tenants_bp.get("/me")
@require_auth
@require_permission(Resource.TENANTS, READ)
def get_my_tenant():
    try:
        tenant = tenant_service.get_tenant(g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return tenant.to_dict(), 200


@tenants_bp.patch("/me")
@require_auth
@require_permission(Resource.TENANTS, WRITE)
def update_my_tenant():
    """Admin settings: name, description, contact fields, logo, theme colors."""
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        patch = validate_payload(model=Tenant, payload=payload, policy=TENANT_POLICY, partial=True)
        tenant = tenant_service.update_tenant(g.tenant_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to update tenant")
        return {"error": "Internal server error"}, 500

    return tenant.to_dict(), 200
