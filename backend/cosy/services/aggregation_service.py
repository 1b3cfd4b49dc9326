"""
Transaction aggregation.

Pure functions over raw transaction records: mappings (API rows,
Transaction.to_dict()) or objects exposing the same attributes. Nothing
here touches the database, so the same code serves the HTTP reports and
the client-side store picker.

Record fields used: amount, type, date (or created_at), store_id,
is_credit, is_debt_payment, supplier_id, employee_id, fixed_asset_id.

Money is summed in integer cents. An amount that is missing or not a
finite number counts as zero instead of failing the whole report.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from datetime import date, datetime
from typing import Any, Iterable, Mapping

from ..money import format_cents, parse_amount_cents
from ..time_utils import month_start, parse_iso_date


# Fixed-asset sub-categories that can carry a credit balance
BALANCE_ASSET_CATEGORIES = frozenset({"maintenance", "utility", "other"})

# Expense groups of the category breakdown, in display order
EXPENSE_GROUPS = ("goods", "staff", "utilities", "maintenance", "other")


def _get(record: Any, key: str, default=None):
    if isinstance(record, Mapping):
        return record.get(key, default)
    return getattr(record, key, default)


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def amount_cents(record: Any) -> int:
    cents = _get(record, "amount_cents")
    if isinstance(cents, int) and not isinstance(cents, bool):
        return cents
    return parse_amount_cents(_get(record, "amount"))


def is_income(record: Any) -> bool:
    return str(_get(record, "type") or "").strip().lower() == "income"


def is_credit(record: Any) -> bool:
    return _flag(_get(record, "is_credit"))


def is_debt_payment(record: Any) -> bool:
    # Older rows mark payments with type "debt_payment" instead of the flag
    if str(_get(record, "type") or "").strip().lower() == "debt_payment":
        return True
    return _flag(_get(record, "is_debt_payment"))


def record_day(record: Any) -> date | None:
    day = parse_iso_date(_get(record, "date"))
    if day is None:
        day = parse_iso_date(_get(record, "created_at"))
    return day


@dataclass(frozen=True)
class Totals:
    income_cents: int = 0
    expense_cents: int = 0

    @property
    def profit_cents(self) -> int:
        return self.income_cents - self.expense_cents

    def add(self, record: Any) -> "Totals":
        cents = amount_cents(record)
        if is_income(record):
            return Totals(self.income_cents + cents, self.expense_cents)
        return Totals(self.income_cents, self.expense_cents + cents)

    def to_dict(self) -> dict:
        return {
            "income": format_cents(self.income_cents),
            "expenses": format_cents(self.expense_cents),
            "profit": format_cents(self.profit_cents),
            "income_cents": self.income_cents,
            "expense_cents": self.expense_cents,
            "profit_cents": self.profit_cents,
        }


@dataclass(frozen=True)
class DayTotals:
    day: date
    totals: Totals

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), **self.totals.to_dict()}


@dataclass(frozen=True)
class EntityBalance:
    entity_type: str
    entity_id: Any
    name: str | None
    credit_cents: int
    paid_cents: int
    sub_category: str | None = None

    @property
    def balance_cents(self) -> int:
        return self.credit_cents - self.paid_cents

    def to_dict(self) -> dict:
        return {
            "entity_type": self.entity_type,
            "id": self.entity_id,
            "name": self.name,
            "sub_category": self.sub_category,
            "credit": format_cents(self.credit_cents),
            "paid": format_cents(self.paid_cents),
            "balance": format_cents(self.balance_cents),
            "balance_cents": self.balance_cents,
        }


@dataclass(frozen=True)
class BalanceReport:
    rows: list[EntityBalance] = field(default_factory=list)

    @property
    def total_outstanding_cents(self) -> int:
        return sum(row.balance_cents for row in self.rows)

    def to_dict(self) -> dict:
        return {
            "rows": [row.to_dict() for row in self.rows],
            "total_outstanding": format_cents(self.total_outstanding_cents),
            "total_outstanding_cents": self.total_outstanding_cents,
        }


def summarize(records: Iterable[Any]) -> Totals:
    """Income, expense and profit over any list of records."""
    totals = Totals()
    for record in records:
        totals = totals.add(record)
    return totals


def daily_totals(records: Iterable[Any]) -> list[DayTotals]:
    """
    Per calendar day: income vs everything else.

    Records without a parseable date are left out.
    """
    by_day: dict[date, Totals] = defaultdict(Totals)
    for record in records:
        day = record_day(record)
        if day is None:
            continue
        by_day[day] = by_day[day].add(record)
    return [DayTotals(day=day, totals=by_day[day]) for day in sorted(by_day)]


def monthly_store_totals(
    records: Iterable[Any],
    now: datetime,
    store_ids: Iterable[str] | None = None,
) -> dict[str, Totals]:
    """
    Per store totals from the first day of now's month through today.

    store_ids seeds the result so stores without activity report zeros.
    """
    start = month_start(now).date()
    end = now.date()

    result: dict[str, Totals] = {sid: Totals() for sid in (store_ids or ())}
    for record in records:
        day = record_day(record)
        if day is None or day < start or day > end:
            continue
        store_id = _get(record, "store_id")
        result[store_id] = result.get(store_id, Totals()).add(record)
    return result


def _entity_balances(
    records: list[Any],
    entities: Iterable[Any],
    *,
    link_field: str,
    entity_type: str,
) -> list[EntityBalance]:
    credit: dict[Any, int] = defaultdict(int)
    paid: dict[Any, int] = defaultdict(int)
    for record in records:
        entity_id = _get(record, link_field)
        if entity_id is None:
            continue
        if is_credit(record):
            credit[entity_id] += amount_cents(record)
        if is_debt_payment(record):
            paid[entity_id] += amount_cents(record)

    rows = []
    for entity in entities:
        entity_id = _get(entity, "id")
        row = EntityBalance(
            entity_type=entity_type,
            entity_id=entity_id,
            name=_get(entity, "name"),
            credit_cents=credit.get(entity_id, 0),
            paid_cents=paid.get(entity_id, 0),
            sub_category=_get(entity, "sub_category"),
        )
        if row.balance_cents != 0:
            rows.append(row)
    return rows


def _sorted_report(rows: list[EntityBalance]) -> BalanceReport:
    rows = sorted(rows, key=lambda r: (-r.balance_cents, str(r.name or "")))
    return BalanceReport(rows=rows)


def supplier_balances(records: Iterable[Any], suppliers: Iterable[Any] | None = None) -> BalanceReport:
    """
    Outstanding credit per supplier.

    balance = sum(credit amounts) - sum(debt payment amounts). Suppliers
    whose balance is exactly zero are dropped. Without a supplier list the
    suppliers referenced by the records are used, unnamed.
    """
    records = list(records)
    if suppliers is None:
        seen = {_get(r, "supplier_id") for r in records} - {None}
        suppliers = [{"id": sid, "name": None} for sid in seen]
    rows = _entity_balances(records, suppliers, link_field="supplier_id", entity_type="supplier")
    return _sorted_report(rows)


def asset_balances(records: Iterable[Any], assets: Iterable[Any]) -> BalanceReport:
    """Same netting for fixed assets in the maintenance/utility/other groups."""
    eligible = [
        a for a in assets
        if str(_get(a, "sub_category") or "").strip().lower() in BALANCE_ASSET_CATEGORIES
    ]
    rows = _entity_balances(list(records), eligible, link_field="fixed_asset_id", entity_type="asset")
    return _sorted_report(rows)


def outstanding_balances(
    records: Iterable[Any],
    suppliers: Iterable[Any],
    assets: Iterable[Any],
) -> BalanceReport:
    """Suppliers and eligible assets in one list, largest balance first."""
    records = list(records)
    rows = supplier_balances(records, suppliers).rows + asset_balances(records, assets).rows
    return _sorted_report(rows)


def expense_group(record: Any, asset_categories: Mapping[Any, str | None]) -> str:
    """
    Group an expense for the category breakdown.

    Supplier purchases are goods and employee payments are staff; asset
    expenses follow the asset's sub-category; everything else is other.
    """
    if _get(record, "supplier_id") is not None:
        return "goods"
    if _get(record, "employee_id") is not None:
        return "staff"
    sub = str(asset_categories.get(_get(record, "fixed_asset_id")) or "").strip().lower()
    if sub == "staff":
        return "staff"
    if sub.startswith("utilit"):
        return "utilities"
    if sub in ("maintenance", "worker"):
        return "maintenance"
    return "other"


@dataclass(frozen=True)
class CategoryBreakdown:
    groups: dict[str, int]

    @property
    def total_cents(self) -> int:
        return sum(self.groups.values())

    def share(self, key: str) -> str:
        """Percentage of the total, one decimal ("37.5")."""
        total = self.total_cents
        if total <= 0:
            return "0.0"
        pct = Decimal(self.groups.get(key, 0) * 100) / Decimal(total)
        return str(pct.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))

    def to_dict(self) -> dict:
        return {
            "groups": [
                {
                    "key": key,
                    "amount": format_cents(cents),
                    "amount_cents": cents,
                    "share": self.share(key),
                }
                for key, cents in self.groups.items()
            ],
            "total": format_cents(self.total_cents),
            "total_cents": self.total_cents,
        }


def expense_breakdown(records: Iterable[Any], assets: Iterable[Any] = ()) -> CategoryBreakdown:
    """
    Paid expenses per group, largest first; every group is present.

    Income and credit purchases (owed, not yet paid) are left out; debt
    payments count, since that is when the money leaves.
    """
    asset_categories = {_get(a, "id"): _get(a, "sub_category") for a in assets}
    groups = {key: 0 for key in EXPENSE_GROUPS}
    for record in records:
        if is_income(record) or is_credit(record):
            continue
        groups[expense_group(record, asset_categories)] += amount_cents(record)

    ordered = sorted(groups.items(), key=lambda item: (-item[1], EXPENSE_GROUPS.index(item[0])))
    return CategoryBreakdown(groups=dict(ordered))
