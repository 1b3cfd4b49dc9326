# Overview: Flask API routes for report operations; parses input and returns JSON responses.

"""
Report Routes

Read-only aggregates over a store's transactions. Amounts are returned
as decimal strings; *_cents fields carry the exact integers.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_store_access
from ..services import report_service
from ..time_utils import parse_date_input


reports_bp = Blueprint("reports", __name__, url_prefix="/api/stores/<store_id>/reports")


def _range():
    start_raw = request.args.get("from")
    end_raw = request.args.get("to")
    start = parse_date_input(start_raw)
    end = parse_date_input(end_raw)
    if (start_raw and start is None) or (end_raw and end is None):
        return None, None, (jsonify({"error": "from/to must be ISO-8601 dates"}), 400)
    if start and end and start > end:
        return None, None, (jsonify({"error": "from must be on or before to"}), 400)
    return start, end, None


@reports_bp.get("/daily")
@require_auth
@require_store_access
def daily_report_route(store_id: str):
    """Per-day income, expenses and profit, oldest day first."""
    start, end, error = _range()
    if error:
        return error
    days = report_service.daily_report(store_id, start=start, end=end)
    return jsonify({"items": [d.to_dict() for d in days], "count": len(days)})


@reports_bp.get("/summary")
@require_auth
@require_store_access
def summary_route(store_id: str):
    start, end, error = _range()
    if error:
        return error
    return jsonify(report_service.period_summary(store_id, start=start, end=end).to_dict())


@reports_bp.get("/monthly")
@require_auth
@require_store_access
def monthly_route(store_id: str):
    """Totals from the first of the current month through today."""
    return jsonify(report_service.month_to_date(store_id).to_dict())


@reports_bp.get("/balances")
@require_auth
@require_store_access
def balances_route(store_id: str):
    """Outstanding supplier and fixed-asset credit, largest first."""
    return jsonify(report_service.balances_report(store_id).to_dict())


@reports_bp.get("/categories")
@require_auth
@require_store_access
def categories_route(store_id: str):
    """Expense breakdown by group with each group's share of the total."""
    start, end, error = _range()
    if error:
        return error
    return jsonify(report_service.category_breakdown(store_id, start=start, end=end).to_dict())
