# Overview: Service-layer operations for suppliers, employees and fixed assets.

"""
Directory Service

Suppliers, employees and fixed assets are store-scoped lookup lists that
transactions point at. They can be created, edited and deleted; deletion
is refused while any transaction (or overtime entry) still references
it, so balances and payment history never lose their counterparty.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Supplier, Employee, FixedAsset, Transaction, EmployeeOvertime
from ..money import require_amount_cents
from ..validation import ModelValidationPolicy, validate_payload


class EntityNotFoundError(Exception):
    """Raised when a directory entry does not exist in the store."""
    pass


class EntityInUseError(Exception):
    """Raised when deleting an entry that transactions still reference."""
    pass


SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "vat_number", "bank_account", "notes"},
    required_on_create={"name"},
)

EMPLOYEE_POLICY = ModelValidationPolicy(
    writable_fields={"full_name", "position", "monthly_salary_cents", "is_active"},
    required_on_create={"full_name"},
)

FIXED_ASSET_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sub_category", "notes"},
    required_on_create={"name"},
)

# kind -> (model, policy, transaction foreign key, ordering column)
_KINDS = {
    "supplier": (Supplier, SUPPLIER_POLICY, "supplier_id", "name"),
    "employee": (Employee, EMPLOYEE_POLICY, "employee_id", "full_name"),
    "fixed_asset": (FixedAsset, FIXED_ASSET_POLICY, "fixed_asset_id", "name"),
}


def _kind(kind: str):
    try:
        return _KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown directory kind: {kind}")


def _normalize(kind: str, payload: dict | None) -> dict | None:
    if not isinstance(payload, dict):
        return payload
    payload = dict(payload)

    # Employees are edited with a decimal salary
    if kind == "employee" and "monthly_salary" in payload:
        salary = payload.pop("monthly_salary")
        payload["monthly_salary_cents"] = (
            None if salary in (None, "") else require_amount_cents(salary, "monthly_salary")
        )

    if kind == "fixed_asset" and isinstance(payload.get("sub_category"), str):
        payload["sub_category"] = payload["sub_category"].strip().lower() or None

    return payload


def list_entries(kind: str, store_id: str, *, active_only: bool = False) -> list:
    model, _, _, order_by = _kind(kind)
    query = db.session.query(model).filter(model.store_id == store_id)
    if active_only and kind == "employee":
        query = query.filter(Employee.is_active.is_(True))
    return query.order_by(getattr(model, order_by).asc(), model.id.asc()).all()


def get_entry(kind: str, store_id: str, entry_id: int):
    model, _, _, _ = _kind(kind)
    entry = db.session.query(model).filter_by(id=entry_id, store_id=store_id).first()
    if not entry:
        raise EntityNotFoundError(f"{kind.replace('_', ' ').capitalize()} not found")
    return entry


def create_entry(kind: str, store_id: str, payload: dict):
    model, policy, _, _ = _kind(kind)
    patch = validate_payload(model=model, payload=_normalize(kind, payload), policy=policy, partial=False)

    entry = model(store_id=store_id, **patch)
    db.session.add(entry)
    db.session.commit()
    return entry


def update_entry(kind: str, store_id: str, entry_id: int, payload: dict):
    model, policy, _, _ = _kind(kind)
    entry = get_entry(kind, store_id, entry_id)
    patch = validate_payload(model=model, payload=_normalize(kind, payload), policy=policy, partial=True)

    for key, value in patch.items():
        setattr(entry, key, value)
    db.session.commit()
    return entry


def count_references(kind: str, store_id: str, entry_id: int) -> int:
    """Transactions (and, for employees, overtime entries) pointing at the entry."""
    _, _, fk, _ = _kind(kind)
    refs = (
        db.session.query(Transaction)
        .filter(Transaction.store_id == store_id, getattr(Transaction, fk) == entry_id)
        .count()
    )
    if kind == "employee":
        refs += (
            db.session.query(EmployeeOvertime)
            .filter(EmployeeOvertime.store_id == store_id, EmployeeOvertime.employee_id == entry_id)
            .count()
        )
    return refs


def delete_entry(kind: str, store_id: str, entry_id: int) -> None:
    entry = get_entry(kind, store_id, entry_id)

    refs = count_references(kind, store_id, entry_id)
    if refs:
        raise EntityInUseError(
            f"Cannot delete: {refs} record(s) still reference this {kind.replace('_', ' ')}"
        )

    db.session.delete(entry)
    db.session.commit()


def asset_payment_history(store_id: str, asset_id: int, *, limit: int | None = None) -> list[Transaction]:
    """Transactions linked to a fixed asset, newest first."""
    get_entry("fixed_asset", store_id, asset_id)
    query = (
        db.session.query(Transaction)
        .filter(Transaction.store_id == store_id, Transaction.fixed_asset_id == asset_id)
        .order_by(Transaction.date.desc(), Transaction.created_at.desc(), Transaction.id.desc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()
