"""Access Guard: advisory admin check for hiding admin-only controls."""

from __future__ import annotations

import logging
from typing import Optional

from .api import CosyClient
from .errors import CosyApiError

logger = logging.getLogger(__name__)


class AccessGuard:

    def __init__(self, client: CosyClient):
        self.client = client

    def role(self, store_id: Optional[str]) -> Optional[str]:
        if not store_id or not self.client.token:
            return None
        try:
            data = self.client.store_access(store_id)
        except CosyApiError as e:
            logger.warning("Role lookup failed for store %s: %r", store_id, e)
            return None
        role = (data or {}).get("role")
        return role if role in ("admin", "user") else None

    def is_admin(self, store_id: Optional[str]) -> bool:
        """True only when the caller holds the admin role; any failure is False."""
        return self.role(store_id) == "admin"
