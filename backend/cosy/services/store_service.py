from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Store, StoreAccess, Transaction, FixedAsset
from ..money import format_cents
from ..time_utils import month_start, to_utc_z, utcnow
from . import access_service, aggregation_service
from .concurrency import run_with_retry


# Seeded for every new store so the operating-cost screen is never empty
DEFAULT_FIXED_ASSETS = (
    ("RENT", "other"),
    ("ELECTRICITY", "utility"),
    ("ACCOUNTANT", "other"),
    ("WATER", "utility"),
    ("TELEPHONE / INTERNET", "utility"),
)


class StoreError(Exception):
    """Raised when store operations fail."""
    pass


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip().upper()
    if not cleaned:
        raise StoreError("Store name is required")
    if len(cleaned) > 120:
        raise StoreError("Store name exceeds max length 120")
    return cleaned


def provision_store(name: str, *, owner_id: str, commit: bool = True) -> Store:
    """
    Create a store, make owner_id its admin and seed default fixed assets.

    With commit=False the caller owns the transaction (see
    concurrency.atomic); otherwise all rows commit together or not at all.
    """
    store = Store(name=_clean_name(name), owner_id=owner_id)
    try:
        db.session.add(store)
        db.session.flush()

        access_service.grant_access(
            store_id=store.id,
            user_id=owner_id,
            role="admin",
            granted_by=owner_id,
            commit=False,
        )

        for asset_name, sub_category in DEFAULT_FIXED_ASSETS:
            db.session.add(FixedAsset(store_id=store.id, name=asset_name, sub_category=sub_category))
        db.session.flush()
    except Exception:
        if commit:
            db.session.rollback()
        raise

    if commit:
        db.session.commit()
    return store


def rename_store(store_id: str, name: str) -> Store:
    def _op():
        store = db.session.get(Store, store_id)
        if not store:
            raise StoreError("Store not found")
        store.name = _clean_name(name)
        db.session.commit()
        return store

    return run_with_retry(_op)


def get_store(store_id: str) -> Store | None:
    return db.session.get(Store, store_id)


def store_exists(store_id: str) -> bool:
    return db.session.query(Store.id).filter_by(id=store_id).first() is not None


def list_user_stores(user_id: str) -> list[tuple[Store, str]]:
    rows = (
        db.session.query(Store, StoreAccess.role)
        .join(StoreAccess, StoreAccess.store_id == Store.id)
        .filter(StoreAccess.user_id == user_id)
        .order_by(Store.name.asc())
        .all()
    )
    return [(store, role) for store, role in rows]


def user_stores_with_monthly_stats(user_id: str, now: datetime | None = None) -> list[dict]:
    """
    One row per store the user can access, with this month's totals.

    Backs the store picker (RPC get_user_stores_with_monthly_stats). The
    window runs from the first of the current month up to now.
    """
    now = now or utcnow()
    stores = list_user_stores(user_id)
    if not stores:
        return []

    store_ids = [store.id for store, _role in stores]
    transactions = (
        db.session.query(Transaction)
        .filter(
            Transaction.store_id.in_(store_ids),
            Transaction.date >= month_start(now).date(),
            Transaction.date <= now.date(),
        )
        .all()
    )
    totals = aggregation_service.monthly_store_totals(transactions, now, store_ids=store_ids)

    last_updated: dict[str, datetime] = {}
    for tx in transactions:
        current = last_updated.get(tx.store_id)
        if tx.created_at and (current is None or tx.created_at > current):
            last_updated[tx.store_id] = tx.created_at

    rows = []
    for store, role in stores:
        store_totals = totals[store.id]
        rows.append({
            "store_id": store.id,
            "store_name": store.name,
            "role": role,
            "income": format_cents(store_totals.income_cents),
            "expenses": format_cents(store_totals.expense_cents),
            "profit": format_cents(store_totals.profit_cents),
            "last_updated": to_utc_z(last_updated.get(store.id)),
        })
    return rows
