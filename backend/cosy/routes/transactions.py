# Overview: Flask API routes for transaction operations; parses input and returns JSON responses.

"""
Transaction Routes

All routes are scoped to a store the caller has access to. Transactions
are created and deleted, never edited. Deletion needs the store admin
role or the can_edit_transactions capability on the caller's profile.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_store_access
from ..services import transaction_service
from ..services.directory_service import EntityNotFoundError
from ..services.transaction_service import TransactionError
from ..time_utils import parse_date_input
from ..validation import ValidationError


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/stores/<store_id>")


def _date_arg(name: str):
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    parsed = parse_date_input(raw)
    if parsed is None:
        raise ValidationError(f"{name} must be an ISO-8601 date")
    return parsed


def _can_edit_transactions() -> bool:
    if g.store_access.role == "admin":
        return True
    profile = g.current_user.profile
    return bool(profile and profile.can_edit_transactions)


@transactions_bp.get("/transactions")
@require_auth
@require_store_access
def list_transactions_route(store_id: str):
    """
    List a store's transactions, newest business day first.

    Query parameters:
    - date: exact business day (YYYY-MM-DD)
    - from / to: inclusive day range
    - supplier_id / employee_id / fixed_asset_id: link filters
    - limit: maximum results (default: 500)
    """
    try:
        items = transaction_service.list_transactions(
            store_id,
            day=_date_arg("date"),
            start=_date_arg("from"),
            end=_date_arg("to"),
            supplier_id=request.args.get("supplier_id", type=int),
            employee_id=request.args.get("employee_id", type=int),
            fixed_asset_id=request.args.get("fixed_asset_id", type=int),
            limit=request.args.get("limit", 500, type=int),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"items": [tx.to_dict() for tx in items], "count": len(items)})


@transactions_bp.post("/transactions")
@require_auth
@require_store_access
def create_transaction_route(store_id: str):
    """
    Record a transaction.

    Request body:
    {
        "amount": "12.50",           // required, > 0, max 2 decimals
        "type": "income" | "expense",
        "category": "...", "method": "...", "notes": "...",
        "date": "YYYY-MM-DD",        // default: current business day
        "is_credit": false,          // purchase on credit from a supplier/asset
        "is_debt_payment": false,    // settles supplier/asset credit
        "supplier_id": 1, "employee_id": 1, "fixed_asset_id": 1
    }
    """
    data = request.get_json(silent=True)
    try:
        tx = transaction_service.create_transaction(store_id, data, created_by=g.current_user.id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(tx.to_dict()), 201


@transactions_bp.delete("/transactions/<int:transaction_id>")
@require_auth
@require_store_access
def delete_transaction_route(store_id: str, transaction_id: int):
    if not _can_edit_transactions():
        return jsonify({"error": "Not allowed to delete transactions"}), 403
    try:
        transaction_service.delete_transaction(store_id, transaction_id)
    except TransactionError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Transaction deleted"})


@transactions_bp.post("/daily-close")
@require_auth
@require_store_access
def daily_close_route(store_id: str):
    """
    Close a business day ("Z report").

    Request body:
    {
        "date": "YYYY-MM-DD",     // default: current business day
        "cash": "120.00",
        "card": "340.50",
        "no_receipt": "15.00",
        "withdrawal": "50.00"     // optional pocket expense
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        created = transaction_service.record_daily_close(
            store_id,
            created_by=g.current_user.id,
            day=data.get("date"),
            cash=data.get("cash"),
            card=data.get("card"),
            no_receipt=data.get("no_receipt"),
            withdrawal=data.get("withdrawal"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record daily close")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"items": [tx.to_dict() for tx in created], "count": len(created)}), 201


@transactions_bp.post("/employees/<int:employee_id>/payments")
@require_auth
@require_store_access
def pay_employee_route(store_id: str, employee_id: int):
    """
    Request body: {"amount": "...", "method": "...", "date": "...", "notes": "...",
                   "settle_overtime": true}

    Pending overtime is marked paid against this payment unless
    settle_overtime is false.
    """
    data = request.get_json(silent=True) or {}
    try:
        tx = transaction_service.pay_employee(
            store_id,
            employee_id,
            created_by=g.current_user.id,
            amount=data.get("amount"),
            method=data.get("method"),
            day=data.get("date"),
            notes=data.get("notes"),
            settle_overtime=data.get("settle_overtime", True) is not False,
        )
    except EntityNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(tx.to_dict()), 201
