# Overview: Request and store-access decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service, access_service
from .services.access_service import StoreAccessError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    Returns 401 if:
    - No Authorization header
    - Invalid, expired or idle token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def _store_guard(admin: bool):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            store_id = kwargs.get("store_id")
            try:
                g.store_access = access_service.require_store_access(
                    store_id, g.current_user.id, admin=admin
                )
            except StoreAccessError as e:
                current_app.logger.warning(
                    "Store access denied: user=%s store=%s path=%s reason=%s",
                    g.current_user.id, store_id, request.path, e,
                )
                return jsonify({"error": str(e)}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_store_access(f):
    """Require any role in the store named by the store_id URL parameter."""
    return _store_guard(admin=False)(f)


def require_store_admin(f):
    """Require the admin role in the store named by the store_id URL parameter."""
    return _store_guard(admin=True)(f)
