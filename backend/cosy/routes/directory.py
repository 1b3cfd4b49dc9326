# Overview: Flask API routes for suppliers, employees and fixed assets.

"""
Directory Routes

The three lists share one set of handlers:

    /api/stores/<store_id>/suppliers
    /api/stores/<store_id>/employees
    /api/stores/<store_id>/fixed-assets

Any store member can list, create and edit entries; deleting is
admin-only and answers 409 while transactions (or, for employees, overtime
entries) still reference the entry.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_store_access, require_store_admin
from ..services import directory_service
from ..services.directory_service import EntityInUseError, EntityNotFoundError
from ..validation import ValidationError


directory_bp = Blueprint("directory", __name__, url_prefix="/api/stores/<store_id>")

# URL segment -> directory kind
KINDS = {
    "suppliers": "supplier",
    "employees": "employee",
    "fixed-assets": "fixed_asset",
}


def _list_view(kind):
    def view(store_id: str):
        active_only = request.args.get("active_only", "false").lower() == "true"
        items = directory_service.list_entries(kind, store_id, active_only=active_only)
        return jsonify({"items": [item.to_dict() for item in items], "count": len(items)})
    return view


def _create_view(kind):
    def view(store_id: str):
        try:
            entry = directory_service.create_entry(kind, store_id, request.get_json(silent=True))
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify(entry.to_dict()), 201
    return view


def _get_view(kind):
    def view(store_id: str, entry_id: int):
        try:
            entry = directory_service.get_entry(kind, store_id, entry_id)
        except EntityNotFoundError as e:
            return jsonify({"error": str(e)}), 404
        return jsonify(entry.to_dict())
    return view


def _update_view(kind):
    def view(store_id: str, entry_id: int):
        try:
            entry = directory_service.update_entry(kind, store_id, entry_id, request.get_json(silent=True))
        except EntityNotFoundError as e:
            return jsonify({"error": str(e)}), 404
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify(entry.to_dict())
    return view


def _delete_view(kind):
    def view(store_id: str, entry_id: int):
        try:
            directory_service.delete_entry(kind, store_id, entry_id)
        except EntityNotFoundError as e:
            return jsonify({"error": str(e)}), 404
        except EntityInUseError as e:
            return jsonify({"error": str(e), "code": "in_use"}), 409
        return jsonify({"message": "Deleted"})
    return view


for segment, kind in KINDS.items():
    directory_bp.add_url_rule(
        f"/{segment}", f"list_{kind}",
        require_auth(require_store_access(_list_view(kind))), methods=["GET"],
    )
    directory_bp.add_url_rule(
        f"/{segment}", f"create_{kind}",
        require_auth(require_store_access(_create_view(kind))), methods=["POST"],
    )
    directory_bp.add_url_rule(
        f"/{segment}/<int:entry_id>", f"get_{kind}",
        require_auth(require_store_access(_get_view(kind))), methods=["GET"],
    )
    directory_bp.add_url_rule(
        f"/{segment}/<int:entry_id>", f"update_{kind}",
        require_auth(require_store_access(_update_view(kind))), methods=["PATCH", "PUT"],
    )
    directory_bp.add_url_rule(
        f"/{segment}/<int:entry_id>", f"delete_{kind}",
        require_auth(require_store_admin(_delete_view(kind))), methods=["DELETE"],
    )


@directory_bp.get("/fixed-assets/<int:entry_id>/payments")
@require_auth
@require_store_access
def asset_payment_history_route(store_id: str, entry_id: int):
    """Payments and credits booked against one fixed asset, newest first."""
    try:
        items = directory_service.asset_payment_history(
            store_id, entry_id, limit=request.args.get("limit", type=int)
        )
    except EntityNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"items": [tx.to_dict() for tx in items], "count": len(items)})
