# Overview: Flask API routes for store operations; parses input and returns JSON responses.

"""
Store Routes

A user sees exactly the stores they hold a store_access row for. Creating
a store makes the caller its admin; renaming and membership changes are
admin-only.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_store_access, require_store_admin
from ..services import access_service, store_service
from ..services.access_service import AccessManagementError
from ..services.store_service import StoreError


stores_bp = Blueprint("stores", __name__, url_prefix="/api")


@stores_bp.get("/stores")
@require_auth
def list_stores_route():
    """List the caller's stores with their role in each."""
    stores = store_service.list_user_stores(g.current_user.id)
    return jsonify({
        "items": [dict(store.to_dict(), role=role) for store, role in stores],
        "count": len(stores),
    })


@stores_bp.post("/stores")
@require_auth
def create_store_route():
    """
    Open a new store owned by the caller.

    Request body: {"name": "..."}
    """
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.provision_store(data.get("name"), owner_id=g.current_user.id)
    except StoreError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(dict(store.to_dict(), role="admin")), 201


@stores_bp.get("/stores/<store_id>")
@require_auth
@require_store_access
def get_store_route(store_id: str):
    store = store_service.get_store(store_id)
    return jsonify(dict(store.to_dict(), role=g.store_access.role))


@stores_bp.patch("/stores/<store_id>")
@require_auth
@require_store_admin
def rename_store_route(store_id: str):
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.rename_store(store_id, data.get("name"))
    except StoreError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(store.to_dict())


@stores_bp.get("/stores/<store_id>/access")
@require_auth
def store_access_route(store_id: str):
    """
    The caller's role in a store.

    Never 403s: a caller without access gets role null. Lookup errors
    resolve to is_admin false.
    """
    role = access_service.get_store_role(store_id, g.current_user.id)
    return jsonify({
        "store_id": store_id,
        "role": role,
        "is_admin": access_service.is_store_admin(store_id, g.current_user.id),
    })


@stores_bp.get("/stores/<store_id>/members")
@require_auth
@require_store_access
def list_members_route(store_id: str):
    members = access_service.list_store_members(store_id)
    return jsonify({"items": members, "count": len(members)})


@stores_bp.put("/stores/<store_id>/members/<user_id>")
@require_auth
@require_store_admin
def change_member_role_route(store_id: str, user_id: str):
    """Request body: {"role": "admin" | "user"}"""
    data = request.get_json(silent=True) or {}
    role = data.get("role")
    if role not in ("admin", "user"):
        return jsonify({"error": "role must be admin or user"}), 400

    try:
        access = access_service.change_role(store_id=store_id, user_id=user_id, role=role)
    except AccessManagementError as e:
        status = 404 if "not found" in str(e).lower() else 409
        return jsonify({"error": str(e)}), status
    return jsonify(access.to_dict())


@stores_bp.delete("/stores/<store_id>/members/<user_id>")
@require_auth
@require_store_admin
def revoke_member_route(store_id: str, user_id: str):
    try:
        removed = access_service.revoke_access(store_id=store_id, user_id=user_id)
    except AccessManagementError as e:
        return jsonify({"error": str(e)}), 409
    if not removed:
        return jsonify({"error": "Member not found"}), 404
    return jsonify({"message": "Access revoked"})


@stores_bp.post("/rpc/get_user_stores_with_monthly_stats")
@require_auth
def user_stores_with_monthly_stats_route():
    """
    Store picker rows: one per accessible store with this month's totals.

    Request body: {"p_user_id": "<uuid>"}; must be the caller.
    """
    data = request.get_json(silent=True) or {}
    requested = data.get("p_user_id")
    if requested and requested != g.current_user.id:
        current_app.logger.warning(
            "User %s requested store stats for %s", g.current_user.id, requested
        )
        return jsonify({"error": "Cannot read another user's stores"}), 403

    try:
        rows = store_service.user_stores_with_monthly_stats(g.current_user.id)
    except Exception:
        current_app.logger.exception("Failed to load store stats")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(rows)
