# Overview: Service-layer operations for transactions; encapsulates business logic and database work.

"""
Transaction Service

Transactions are written and deleted, never edited. Every write is scoped
to a store: linked suppliers, employees and fixed assets must belong to
the same store as the transaction.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation

from flask import current_app

from ..extensions import db
from ..models import Transaction, Supplier, Employee, FixedAsset, TRANSACTION_TYPES
from ..money import require_amount_cents
from ..time_utils import business_date, parse_date_input, utcnow
from ..validation import ValidationError
from . import directory_service, overtime_service
from .concurrency import atomic


CATEGORY_DAILY_CLOSE = "Z Income"
CATEGORY_POCKET = "pocket"
CATEGORY_STAFF = "Staff"
CATEGORY_FIXED_ASSETS = "Fixed Assets"

MAX_LIST_LIMIT = 1000

_TEXT_LIMITS = {"category": 64, "method": 64, "notes": 2000}

_LINKS = (
    ("supplier_id", Supplier),
    ("employee_id", Employee),
    ("fixed_asset_id", FixedAsset),
)


class TransactionError(Exception):
    """Raised when a transaction cannot be found or removed."""
    pass


def current_business_date() -> date:
    cutoff = current_app.config.get("BUSINESS_DAY_CUTOFF_HOUR", 7)
    return business_date(utcnow(), cutoff)


def _parse_flag(payload: dict, key: str) -> bool:
    value = payload.get(key, False)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{key} must be a boolean")


def _parse_text(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    value = str(value).strip()
    if len(value) > _TEXT_LIMITS[key]:
        raise ValidationError(f"{key} exceeds max length {_TEXT_LIMITS[key]}")
    return value or None


def _parse_link(store_id: str, payload: dict, key: str, model) -> int | None:
    value = payload.get(key)
    if value in (None, ""):
        return None
    try:
        entity_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer")

    entity = db.session.query(model).filter_by(id=entity_id, store_id=store_id).first()
    if not entity:
        raise ValidationError(f"{key} does not reference an entry of this store")
    return entity_id


def build_transaction(store_id: str, payload: dict, *, created_by: str | None = None) -> Transaction:
    """Validate a payload into an unsaved Transaction."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    amount_cents = require_amount_cents(payload.get("amount"))

    tx_type = str(payload.get("type") or "").strip().lower()
    is_credit = _parse_flag(payload, "is_credit")
    is_debt_payment = _parse_flag(payload, "is_debt_payment")

    # Legacy clients send payments as their own type
    if tx_type == "debt_payment":
        tx_type = "expense"
        is_debt_payment = True

    if tx_type not in TRANSACTION_TYPES:
        raise ValidationError("type must be income or expense")
    if is_credit and is_debt_payment:
        raise ValidationError("A transaction cannot be both a credit and a debt payment")
    if tx_type == "income" and (is_credit or is_debt_payment):
        raise ValidationError("Credit and debt payment flags apply to expenses only")

    links = {key: _parse_link(store_id, payload, key, model) for key, model in _LINKS}
    if (is_credit or is_debt_payment) and not (links["supplier_id"] or links["fixed_asset_id"]):
        raise ValidationError("Credit and debt payments need a supplier_id or fixed_asset_id")

    if payload.get("date") in (None, ""):
        day = current_business_date()
    else:
        day = parse_date_input(payload.get("date"))
        if day is None:
            raise ValidationError("date must be an ISO-8601 date")

    return Transaction(
        store_id=store_id,
        amount_cents=amount_cents,
        type=tx_type,
        category=_parse_text(payload, "category"),
        method=_parse_text(payload, "method"),
        notes=_parse_text(payload, "notes"),
        date=day,
        is_credit=is_credit,
        is_debt_payment=is_debt_payment,
        created_by=created_by,
        **links,
    )


def create_transaction(store_id: str, payload: dict, *, created_by: str | None = None) -> Transaction:
    tx = build_transaction(store_id, payload, created_by=created_by)
    db.session.add(tx)
    db.session.commit()
    return tx


def create_transactions(store_id: str, payloads: list[dict], *, created_by: str | None = None) -> list[Transaction]:
    """All-or-nothing insert of several transactions."""
    if not payloads:
        raise ValidationError("At least one transaction is required")
    with atomic():
        created = [build_transaction(store_id, p, created_by=created_by) for p in payloads]
        db.session.add_all(created)
        db.session.flush()
    return created


def get_transaction(store_id: str, transaction_id: int) -> Transaction | None:
    return db.session.query(Transaction).filter_by(id=transaction_id, store_id=store_id).first()


def delete_transaction(store_id: str, transaction_id: int) -> None:
    tx = get_transaction(store_id, transaction_id)
    if not tx:
        raise TransactionError("Transaction not found")
    with atomic():
        # overtime settled by this payment goes back to pending
        overtime_service.reopen_for_transaction(tx.id)
        db.session.delete(tx)


def list_transactions(
    store_id: str,
    *,
    day: date | None = None,
    start: date | None = None,
    end: date | None = None,
    supplier_id: int | None = None,
    employee_id: int | None = None,
    fixed_asset_id: int | None = None,
    limit: int | None = None,
) -> list[Transaction]:
    query = db.session.query(Transaction).filter(Transaction.store_id == store_id)

    if day is not None:
        query = query.filter(Transaction.date == day)
    if start is not None:
        query = query.filter(Transaction.date >= start)
    if end is not None:
        query = query.filter(Transaction.date <= end)
    if supplier_id is not None:
        query = query.filter(Transaction.supplier_id == supplier_id)
    if employee_id is not None:
        query = query.filter(Transaction.employee_id == employee_id)
    if fixed_asset_id is not None:
        query = query.filter(Transaction.fixed_asset_id == fixed_asset_id)

    query = query.order_by(Transaction.date.desc(), Transaction.created_at.desc(), Transaction.id.desc())
    if limit:
        query = query.limit(min(limit, MAX_LIST_LIMIT))
    return query.all()


def _is_zero_amount(value) -> bool:
    if value is None or (isinstance(value, str) and not value.strip()):
        return True
    if isinstance(value, bool):
        return False
    try:
        return Decimal(str(value).strip()) == 0
    except InvalidOperation:
        return False


def record_daily_close(
    store_id: str,
    *,
    created_by: str | None,
    day=None,
    cash=None,
    card=None,
    no_receipt=None,
    withdrawal=None,
) -> list[Transaction]:
    """
    Close the register for a business day ("Z report").

    Books cash, card and unreceipted takings as income and an optional
    cash withdrawal as a "pocket" expense. Zero or empty amounts are skipped;
    at least one takings amount must be positive.
    """
    day_value = day.isoformat() if isinstance(day, date) else day

    def _line(amount, **fields):
        if _is_zero_amount(amount):
            return None
        return {"amount": amount, "date": day_value, **fields}

    income_lines = [
        _line(cash, type="income", method="Cash (Z)", notes="Z REGISTER", category=CATEGORY_DAILY_CLOSE),
        _line(card, type="income", method="Card", notes="Z REGISTER (POS)", category=CATEGORY_DAILY_CLOSE),
        _line(no_receipt, type="income", method="Cash", notes="NO RECEIPT", category=CATEGORY_DAILY_CLOSE),
    ]
    income_lines = [line for line in income_lines if line]
    if not income_lines:
        raise ValidationError("Enter at least one takings amount for the day")

    pocket = _line(withdrawal, type="expense", method="Cash", notes="CASH WITHDRAWAL", category=CATEGORY_POCKET)
    payloads = income_lines + ([pocket] if pocket else [])
    return create_transactions(store_id, payloads, created_by=created_by)


def pay_employee(
    store_id: str,
    employee_id: int,
    *,
    created_by: str | None,
    amount,
    method: str | None = None,
    day=None,
    notes: str | None = None,
    settle_overtime: bool = True,
) -> Transaction:
    """
    Book a staff payment for an employee.

    With settle_overtime, the employee's pending overtime is marked paid
    against this payment in the same database transaction.
    """
    directory_service.get_entry("employee", store_id, employee_id)
    payload = {
        "amount": amount,
        "type": "expense",
        "category": CATEGORY_STAFF,
        "method": method or "Cash",
        "employee_id": employee_id,
        "date": day.isoformat() if isinstance(day, date) else day,
        "notes": notes,
    }
    with atomic():
        tx = build_transaction(store_id, payload, created_by=created_by)
        db.session.add(tx)
        db.session.flush()
        if settle_overtime:
            overtime_service.settle_pending(store_id, employee_id, paid_transaction_id=tx.id)
    return tx
