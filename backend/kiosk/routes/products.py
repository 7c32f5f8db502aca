# backend/kiosk/routes/products.py
"""
Product management routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to the caller's tenant
(g.tenant_id, set by @require_auth).

size_ids / addon_ids in a payload replace the product's associations as a
set; leaving them out keeps the current ones.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..models import Product
from ..permissions import Resource, READ, WRITE
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
    NotFoundError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"id", "category_id", "name", "price_cents", "image_url", "size_ids", "addon_ids"},
    required_on_create={"category_id", "name", "price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission(Resource.PRODUCTS, READ)
def list_products():
    """
    List the tenant's products by name.

    Query params:
    - category_id: str (optional)
    """
    products = products_service.list_products(g.tenant_id, category_id=request.args.get("category_id"))
    return {"items": [p.to_dict() for p in products], "count": len(products)}, 200


@products_bp.get("/<product_id>")
@require_auth
@require_permission(Resource.PRODUCTS, READ)
def get_product(product_id: str):
    try:
        product = products_service.get_product(product_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return product.to_dict(), 200


@products_bp.post("")
@require_auth
@require_permission(Resource.PRODUCTS, WRITE)
def create_product_route():
    """
    Create a new product. id is optional and defaults to a slug of the name.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch=patch, tenant_id=g.tenant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created.to_dict(), 201


@products_bp.patch("/<product_id>")
@require_auth
@require_permission(Resource.PRODUCTS, WRITE)
def update_product_route(product_id: str):
    try:
        products_service.get_product(product_id, g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    if "id" in payload:
        return {"error": "Field not allowed: id"}, 400

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(product_id=product_id, patch=patch, tenant_id=g.tenant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return updated.to_dict(), 200


@products_bp.delete("/<product_id>")
@require_auth
@require_permission(Resource.PRODUCTS, WRITE)
def delete_product_route(product_id: str):
    try:
        products_service.delete_product(product_id=product_id, tenant_id=g.tenant_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200
