# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .permissions import is_allowed
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'tenant_id')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.tenant_id: The tenant ID (every query is scoped by it)
    - g.role: The role captured on the session
    - g.session_context: The full SessionContext object

    Returns 401 if the header is missing, the token is invalid/expired/revoked,
    or the user or tenant has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.tenant_id = context.tenant_id
        g.role = context.role
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_permission(resource: str, action: str):
    """Gate a route on the policy table; must run after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not is_allowed(g.role, resource, action):
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": f"{resource}:{action}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
