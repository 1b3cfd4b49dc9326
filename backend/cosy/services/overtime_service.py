# Overview: Service-layer operations for employee overtime; encapsulates business logic and database work.

"""
Overtime Service

Overtime is logged per employee in hours and kept as pending until a
staff payment settles it. Settlement marks every pending entry of the
employee as paid in the same database transaction as the payment, so
hours are never paid twice or silently dropped.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Employee, EmployeeOvertime
from ..money import to_decimal
from ..time_utils import business_date, minutes_to_hours, parse_date_input, utcnow
from ..validation import ValidationError
from . import directory_service


MAX_HOURS_PER_ENTRY = 24

OVERTIME_STATUSES = ("all", "pending", "paid")


class OvertimeError(Exception):
    """Raised for overtime entries that cannot be changed."""
    pass


class OvertimeNotFoundError(OvertimeError):
    pass


def parse_hours(value) -> int:
    """Hours as a number or decimal string -> whole minutes (half up)."""
    dec = to_decimal(value)
    if dec is None:
        raise ValidationError("hours must be a number")
    if dec <= 0:
        raise ValidationError("hours must be greater than zero")
    if dec > MAX_HOURS_PER_ENTRY:
        raise ValidationError(f"hours cannot exceed {MAX_HOURS_PER_ENTRY} per entry")
    minutes = int((dec * 60).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if minutes < 1:
        raise ValidationError("hours must be at least one minute")
    return minutes


def _entry_day(day) -> date:
    if day in (None, ""):
        cutoff = current_app.config.get("BUSINESS_DAY_CUTOFF_HOUR", 7)
        return business_date(utcnow(), cutoff)
    parsed = parse_date_input(day)
    if parsed is None:
        raise ValidationError("date must be an ISO-8601 date")
    return parsed


def record_overtime(
    store_id: str,
    employee_id: int,
    *,
    hours,
    day=None,
    notes: str | None = None,
    created_by: str | None = None,
) -> EmployeeOvertime:
    directory_service.get_entry("employee", store_id, employee_id)

    notes = (str(notes).strip() or None) if notes is not None else None
    if notes and len(notes) > 500:
        raise ValidationError("notes exceeds max length 500")

    entry = EmployeeOvertime(
        store_id=store_id,
        employee_id=employee_id,
        minutes=parse_hours(hours),
        date=_entry_day(day),
        notes=notes,
        created_by=created_by,
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def list_overtime(
    store_id: str,
    *,
    employee_id: int | None = None,
    status: str = "all",
) -> list[EmployeeOvertime]:
    status = (status or "all").strip().lower()
    if status not in OVERTIME_STATUSES:
        raise ValidationError("status must be one of: all, pending, paid")

    query = db.session.query(EmployeeOvertime).filter(EmployeeOvertime.store_id == store_id)
    if employee_id is not None:
        query = query.filter(EmployeeOvertime.employee_id == employee_id)
    if status == "pending":
        query = query.filter(EmployeeOvertime.is_paid.is_(False))
    elif status == "paid":
        query = query.filter(EmployeeOvertime.is_paid.is_(True))
    return query.order_by(EmployeeOvertime.date.desc(), EmployeeOvertime.id.desc()).all()


def pending_minutes(store_id: str, employee_id: int) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(EmployeeOvertime.minutes), 0))
        .filter(
            EmployeeOvertime.store_id == store_id,
            EmployeeOvertime.employee_id == employee_id,
            EmployeeOvertime.is_paid.is_(False),
        )
        .scalar()
    )
    return int(total or 0)


def pending_report(store_id: str) -> list[dict]:
    """Employees with unpaid overtime, most pending hours first."""
    rows = (
        db.session.query(
            Employee.id,
            Employee.full_name,
            func.sum(EmployeeOvertime.minutes),
            func.count(EmployeeOvertime.id),
        )
        .join(EmployeeOvertime, EmployeeOvertime.employee_id == Employee.id)
        .filter(EmployeeOvertime.store_id == store_id, EmployeeOvertime.is_paid.is_(False))
        .group_by(Employee.id, Employee.full_name)
        .all()
    )
    report = [
        {
            "employee_id": emp_id,
            "full_name": name,
            "pending_minutes": int(minutes),
            "pending_hours": minutes_to_hours(int(minutes)),
            "entries": int(count),
        }
        for emp_id, name, minutes, count in rows
    ]
    report.sort(key=lambda r: (-r["pending_minutes"], r["full_name"]))
    return report


def settle_pending(store_id: str, employee_id: int, *, paid_transaction_id: int | None) -> int:
    """
    Mark the employee's pending overtime as paid. Returns the count.

    Flushes only; the caller owns the commit.
    """
    pending = (
        db.session.query(EmployeeOvertime)
        .filter(
            EmployeeOvertime.store_id == store_id,
            EmployeeOvertime.employee_id == employee_id,
            EmployeeOvertime.is_paid.is_(False),
        )
        .all()
    )
    now = utcnow()
    for entry in pending:
        entry.is_paid = True
        entry.paid_at = now
        entry.paid_transaction_id = paid_transaction_id
    db.session.flush()
    return len(pending)


def delete_overtime(store_id: str, overtime_id: int) -> None:
    entry = db.session.query(EmployeeOvertime).filter_by(id=overtime_id, store_id=store_id).first()
    if not entry:
        raise OvertimeNotFoundError("Overtime entry not found")
    if entry.is_paid:
        raise OvertimeError("Paid overtime cannot be deleted")
    db.session.delete(entry)
    db.session.commit()


def reopen_for_transaction(transaction_id: int) -> int:
    """Return overtime settled by a deleted payment to pending. Flushes only."""
    settled = db.session.query(EmployeeOvertime).filter_by(paid_transaction_id=transaction_id).all()
    for entry in settled:
        entry.is_paid = False
        entry.paid_at = None
        entry.paid_transaction_id = None
    db.session.flush()
    return len(settled)
