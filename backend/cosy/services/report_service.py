# Overview: Loads store transactions and hands them to the aggregation functions.

from __future__ import annotations

from datetime import date, datetime

from ..extensions import db
from ..models import Transaction, Supplier, FixedAsset
from ..time_utils import month_start, utcnow
from . import aggregation_service


def _transactions(store_id: str, start: date | None = None, end: date | None = None) -> list[Transaction]:
    query = db.session.query(Transaction).filter(Transaction.store_id == store_id)
    if start is not None:
        query = query.filter(Transaction.date >= start)
    if end is not None:
        query = query.filter(Transaction.date <= end)
    return query.all()


def daily_report(store_id: str, *, start: date | None = None, end: date | None = None):
    return aggregation_service.daily_totals(_transactions(store_id, start, end))


def period_summary(store_id: str, *, start: date | None = None, end: date | None = None):
    return aggregation_service.summarize(_transactions(store_id, start, end))


def month_to_date(store_id: str, now: datetime | None = None):
    now = now or utcnow()
    records = _transactions(store_id, month_start(now).date(), now.date())
    return aggregation_service.monthly_store_totals(records, now, store_ids=[store_id])[store_id]


def balances_report(store_id: str):
    """Outstanding credit for suppliers and eligible fixed assets."""
    records = (
        db.session.query(Transaction)
        .filter(
            Transaction.store_id == store_id,
            db.or_(Transaction.is_credit.is_(True), Transaction.is_debt_payment.is_(True)),
        )
        .all()
    )
    suppliers = db.session.query(Supplier).filter_by(store_id=store_id).all()
    assets = db.session.query(FixedAsset).filter_by(store_id=store_id).all()
    return aggregation_service.outstanding_balances(records, suppliers, assets)


def category_breakdown(store_id: str, *, start: date | None = None, end: date | None = None):
    """Paid expenses per group (goods, staff, utilities, maintenance, other)."""
    records = [tx for tx in _transactions(store_id, start, end) if tx.type == "expense"]
    assets = db.session.query(FixedAsset).filter_by(store_id=store_id).all()
    return aggregation_service.expense_breakdown(records, assets)
