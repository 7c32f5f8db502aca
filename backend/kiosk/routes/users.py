# backend/kiosk/routes/users.py
"""User provisioning within the caller's tenant (ADMIN)."""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..models import ROLE_CASHIER
from ..permissions import Resource, READ, WRITE
from ..services import auth_service
from ..validation import ConflictError, NotFoundError, ValidationError

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission(Resource.USERS, READ)
def list_users():
    users = auth_service.list_users(g.tenant_id)
    return {"items": [u.to_dict() for u in users], "count": len(users)}, 200


@users_bp.post("")
@require_auth
@require_permission(Resource.USERS, WRITE)
def create_user():
    """
    Body: {username, password, email?, role?}; role defaults to CASHIER.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        user = auth_service.create_user(
            tenant_id=g.tenant_id,
            username=payload.get("username"),
            password=payload.get("password"),
            email=payload.get("email"),
            role=(payload.get("role") or ROLE_CASHIER).upper(),
            bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"],
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return user.to_dict(), 201
