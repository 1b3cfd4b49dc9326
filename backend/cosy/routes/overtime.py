# Overview: Flask API routes for employee overtime; parses input and returns JSON responses.

"""
Overtime Routes

Any store member can log overtime and remove entries that are still
pending. Pending hours are settled by an employee payment
(POST /api/stores/<store_id>/employees/<id>/payments).
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_store_access
from ..services import overtime_service
from ..services.directory_service import EntityNotFoundError
from ..services.overtime_service import OvertimeError, OvertimeNotFoundError
from ..validation import ValidationError


overtime_bp = Blueprint("overtime", __name__, url_prefix="/api/stores/<store_id>")


@overtime_bp.get("/overtime")
@require_auth
@require_store_access
def list_overtime_route(store_id: str):
    """
    Query parameters:
    - status: all (default), pending or paid
    - employee_id: only this employee
    """
    try:
        entries = overtime_service.list_overtime(
            store_id,
            employee_id=request.args.get("employee_id", type=int),
            status=request.args.get("status", "all"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": [e.to_dict() for e in entries], "count": len(entries)})


@overtime_bp.get("/overtime/pending")
@require_auth
@require_store_access
def pending_overtime_route(store_id: str):
    """Unpaid hours per employee, most first."""
    rows = overtime_service.pending_report(store_id)
    return jsonify({"items": rows, "count": len(rows)})


@overtime_bp.post("/employees/<int:employee_id>/overtime")
@require_auth
@require_store_access
def record_overtime_route(store_id: str, employee_id: int):
    """Request body: {"hours": "2.5", "date": "YYYY-MM-DD", "notes": "..."}"""
    data = request.get_json(silent=True) or {}
    try:
        entry = overtime_service.record_overtime(
            store_id,
            employee_id,
            hours=data.get("hours"),
            day=data.get("date"),
            notes=data.get("notes"),
            created_by=g.current_user.id,
        )
    except EntityNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record overtime")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(entry.to_dict()), 201


@overtime_bp.delete("/overtime/<int:overtime_id>")
@require_auth
@require_store_access
def delete_overtime_route(store_id: str, overtime_id: int):
    try:
        overtime_service.delete_overtime(store_id, overtime_id)
    except OvertimeNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except OvertimeError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify({"message": "Overtime entry deleted"})
