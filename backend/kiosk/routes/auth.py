# backend/kiosk/routes/auth.py
"""
Authentication API routes

Login names the tenant explicitly; the session captures tenant and role.
Self-registration does not exist: users come from the CLI or POST /api/users.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth, bearer_token

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Body: {username, password, tenant_id}
    Returns {access_token, user, tenant}. The token goes in the
    Authorization header (Bearer) of every protected route.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return {"error": "Invalid JSON payload"}, 400
    username = data.get("username") or data.get("email")
    password = data.get("password")
    tenant_id = data.get("tenant_id")

    if not all([username, password, tenant_id]):
        return jsonify({"error": "username, password and tenant_id required"}), 400

    try:
        user = auth_service.authenticate(username, password, tenant_id)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except ValueError:
        return jsonify({"error": "Invalid credentials"}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "access_token": token,
        "user": user.to_dict(),
        "tenant": user.tenant.to_dict(),
        "expires_at": session.to_dict()["expires_at"],
    }), 200


@auth_bp.post("/logout")
def logout_route():
    """Revoke the caller's session token."""
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authorization header required"}), 401

    try:
        revoked = session_service.revoke_session(token, reason="User logout")
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500

    if not revoked:
        return jsonify({"error": "Invalid or expired token"}), 401

    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user and tenant for the presented token."""
    return jsonify({
        "user": g.current_user.to_dict(),
        "tenant": g.current_user.tenant.to_dict(),
        "role": g.role,
    }), 200
