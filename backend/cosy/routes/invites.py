# Overview: Flask API routes for store invitations; parses input and returns JSON responses.

"""
Invite Routes

- Admins create, list and revoke invites for their store.
- A signed-in user redeems an invite by sending the SHA-256 of its token.
- /api/invite/validate is the public pre-check for enrollment links and
  needs the server's service credential configured.
"""

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth, require_store_admin
from ..services import invite_service
from ..services.access_service import StoreAccessError
from ..services.invite_service import InviteError
from ..validation import ValidationError
from .errors import invite_error_response


invites_bp = Blueprint("invites", __name__, url_prefix="/api")


@invites_bp.post("/stores/<store_id>/invites")
@require_auth
@require_store_admin
def create_invite_route(store_id: str):
    """
    Create an invite link.

    Request body:
    {
        "role": "admin" | "user",  // default: user
        "email": "...",            // optional, informational
        "days": 2                  // validity, clamped to 1..30
    }

    The token is only returned here; it cannot be recovered later.
    """
    data = request.get_json(silent=True) or {}
    try:
        invite, token = invite_service.create_invite(
            store_id=store_id,
            created_by=g.current_user.id,
            role=data.get("role"),
            email=data.get("email"),
            days=data.get("days", current_app.config.get("INVITE_DEFAULT_DAYS")),
        )
    except StoreAccessError as e:
        return jsonify({"error": str(e)}), 403

    current_app.logger.info(
        "Invite %s created for store %s by %s", invite.id, store_id, g.current_user.id
    )
    return jsonify({
        "invite": invite.to_dict(),
        "token": token,
        "link": invite_service.build_invite_link(current_app.config["APP_URL"], token),
    }), 201


@invites_bp.get("/stores/<store_id>/invites")
@require_auth
@require_store_admin
def list_invites_route(store_id: str):
    include_used = request.args.get("include_used", "false").lower() == "true"
    invites = invite_service.list_invites(store_id, include_used=include_used)
    return jsonify({"items": [i.to_dict() for i in invites], "count": len(invites)})


@invites_bp.delete("/stores/<store_id>/invites/<int:invite_id>")
@require_auth
@require_store_admin
def revoke_invite_route(store_id: str, invite_id: int):
    if not invite_service.revoke_invite(store_id, invite_id):
        return jsonify({"error": "Invite not found"}), 404
    return jsonify({"message": "Invite revoked"})


@invites_bp.post("/rpc/accept_store_invite")
@require_auth
def accept_store_invite_route():
    """
    Redeem an invite for the signed-in user.

    Request body: {"token_hash": "<sha256 hex of the invite token>"}

    Errors carry "code": invalid (404), expired (410), already_used (409).
    """
    data = request.get_json(silent=True) or {}
    try:
        access = invite_service.redeem_invite(data.get("token_hash"), g.current_user.id)
    except InviteError as e:
        current_app.logger.warning(
            "Invite redemption failed for user %s: %s", g.current_user.id, e.code
        )
        return invite_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to accept invite")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "store_id": access.store_id,
        "role": access.role,
        "store_name": access.store.name,
    })


@invites_bp.post("/invite/validate")
def validate_invite_route():
    """
    Check that an enrollment link points at an existing store.

    Request body: {"inviteId": "<store uuid>"}
    Returns: {"valid": bool, "storeId": str | null}
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({"valid": False, "error": "Invalid request."}), 400

    identifier = data.get("inviteId") if isinstance(data, dict) else None
    try:
        invite_service.validate_store_identifier(identifier)
    except ValidationError as e:
        return jsonify({"valid": False, "error": str(e)}), 400

    if not current_app.config.get("SERVICE_ROLE_KEY"):
        return jsonify({"valid": False, "error": "Server invite validation is not configured."}), 500

    try:
        store_id = invite_service.lookup_store_id(identifier)
    except SQLAlchemyError:
        current_app.logger.exception("Invite validation failed")
        return jsonify({"valid": False, "error": "Validation failed."}), 500

    return jsonify({"valid": store_id is not None, "storeId": store_id})
