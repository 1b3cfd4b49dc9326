# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Sign-up creates the user and either a new store or, with an invite, a
  membership of the inviting store, atomically.
- Sign-in issues an opaque bearer token (see session_service).
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.auth_service import PasswordValidationError, RegistrationError
from ..services.invite_service import InviteError
from ..services.store_service import StoreError
from ..decorators import require_auth
from ..tokens import is_token_hash
from .errors import invite_error_response


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, session, token) -> dict:
    return {
        "user": user.to_dict(),
        "profile": user.profile.to_dict() if user.profile else None,
        "token": token,
        "session": session.to_dict(),
    }


@auth_bp.post("/signup")
def signup_route():
    """
    Register a new user and sign them in.

    Request body:
    {
        "email": "...",              // required
        "password": "...",           // required, min 6 characters
        "username": "...",           // optional
        "store_name": "...",         // optional, new-store sign-up only
        "invite_token_hash": "..."   // optional, SHA-256 of the invite token
    }
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not all([email, password]):
        return jsonify({"error": "email and password required"}), 400

    invite_token_hash = data.get("invite_token_hash")
    if invite_token_hash is not None and not is_token_hash(invite_token_hash):
        return jsonify({"error": "Invite link is invalid", "code": "invalid"}), 400

    try:
        result = auth_service.register_user(
            email,
            password,
            username=data.get("username"),
            store_name=data.get("store_name"),
            invite_token_hash=invite_token_hash,
        )
        session, token = session_service.create_session(
            user_id=result.user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except (PasswordValidationError, RegistrationError, StoreError) as e:
        return jsonify({"error": str(e)}), 400
    except InviteError as e:
        return invite_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500

    payload = _session_payload(result.user, session, token)
    payload["store"] = result.store.to_dict()
    payload["role"] = result.role
    return jsonify(payload), 201


@auth_bp.post("/login")
def login_route():
    """Authenticate with email + password and create a session token."""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            current_app.logger.warning("Failed login for %s", auth_service.normalize_email(email))
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        payload = _session_payload(user, session, token)
        payload["message"] = "Login successful"
        return jsonify(payload), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]

        revoked = session_service.revoke_session(token, reason="User logout")

        if not revoked:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/session")
@require_auth
def session_route():
    """Return the current user, profile and session for a valid token."""
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "profile": user.profile.to_dict() if user.profile else None,
        "session": g.session_context.session.to_dict(),
    })
