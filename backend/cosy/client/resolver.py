"""
Store Resolver: which store is the user acting in?

Sources, in order:
1. an explicit store id from navigation (URL parameter), used as given;
2. the device's cached active store;
3. otherwise the store picker, fed by get_user_stores_with_monthly_stats.

Access to an explicit or cached id is not checked here; every data call
is authorized server-side.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..money import format_cents, parse_amount_cents, parse_cents_or_none
from .api import CosyClient
from .device import DeviceSession
from .errors import CosyApiError

logger = logging.getLogger(__name__)

WARNING_USER_MISSING = "User ID missing"
WARNING_OFFLINE = "Could not reach the server; showing no stores"
WARNING_CACHED = "Could not reach the server; showing saved stores"


@dataclass
class StoreList:
    stores: List[Dict[str, Any]] = field(default_factory=list)
    # "remote", "cache" or "none"
    source: str = "none"
    warning: Optional[str] = None


@dataclass
class Resolution:
    store_id: Optional[str]
    # "explicit", "cached" or "picker"
    source: str
    stores: List[Dict[str, Any]] = field(default_factory=list)
    warning: Optional[str] = None


def _clean_row(row: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(row, dict) or not row.get("store_id"):
        return None
    income = parse_amount_cents(row.get("income"))
    expenses = parse_amount_cents(row.get("expenses"))
    profit = parse_cents_or_none(row.get("profit"))
    if profit is None:
        profit = income - expenses
    return {
        "store_id": str(row["store_id"]),
        "store_name": row.get("store_name") or "",
        "role": row.get("role") or "user",
        "income": format_cents(income),
        "expenses": format_cents(expenses),
        "profit": format_cents(profit),
        "last_updated": row.get("last_updated"),
    }


class StoreResolver:

    def __init__(self, client: CosyClient, device: DeviceSession):
        self.client = client
        self.device = device

    def fetch_stores_with_stats(self, user_id: Optional[str]) -> StoreList:
        """
        The user's stores with month-to-date totals. Never raises.

        Falls back to the device snapshot when the call fails or comes back
        empty; a successful non-empty result replaces the snapshot.
        """
        if not user_id:
            logger.warning(WARNING_USER_MISSING)
            return StoreList(warning=WARNING_USER_MISSING)

        cached = self.device.load_snapshot(user_id)
        try:
            raw = self.client.stores_with_monthly_stats(user_id)
        except CosyApiError as e:
            logger.warning("Store stats fetch failed for %s: %r", user_id, e)
            if cached:
                return StoreList(stores=cached, source="cache", warning=WARNING_CACHED)
            return StoreList(warning=WARNING_OFFLINE)

        rows = [clean for clean in (_clean_row(r) for r in (raw or [])) if clean]
        if not rows:
            if cached:
                return StoreList(stores=cached, source="cache")
            return StoreList(source="remote")

        self.device.save_snapshot(user_id, rows)
        return StoreList(stores=rows, source="remote")

    def resolve(self, user_id: Optional[str], explicit_store_id: Optional[str] = None) -> Resolution:
        if explicit_store_id:
            return Resolution(store_id=explicit_store_id, source="explicit")

        cached_id = self.device.active_store_id
        if cached_id:
            return Resolution(store_id=cached_id, source="cached")

        listing = self.fetch_stores_with_stats(user_id)
        return Resolution(store_id=None, source="picker", stores=listing.stores, warning=listing.warning)

    def select(self, store_id: str) -> None:
        """Remember the store picked by the user on this device."""
        self.device.set_active_store(store_id)

    def clear_cache(self, user_id: str) -> None:
        self.device.clear_snapshot(user_id)
