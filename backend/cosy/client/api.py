"""
HTTP client for the Cosy Books API.

A thin wrapper over httpx: every call sends the public API key and, once
signed in, the bearer token. Non-2xx responses and non-JSON bodies become
CosyApiError (or CosyAuthError for 401); transport failures become
CosyApiError with status None. No call is retried.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

import httpx

from .errors import ConfigurationError, CosyApiError, CosyAuthError

logger = logging.getLogger(__name__)

ENV_API_URL = "COSY_API_URL"
ENV_API_KEY = "COSY_API_KEY"


class CosyClient:

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        token: Optional[str] = None,
    ):
        if not base_url:
            raise ConfigurationError("Backend URL is not configured")
        if not api_key:
            raise ConfigurationError("Public API key is not configured")

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        self.token: Optional[str] = token
        self.current_user: Optional[Dict] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> "CosyClient":
        """Build a client from COSY_API_URL / COSY_API_KEY."""
        env = os.environ if environ is None else environ
        base_url = (env.get(ENV_API_URL) or "").strip()
        api_key = (env.get(ENV_API_KEY) or "").strip()
        missing = [name for name, value in ((ENV_API_URL, base_url), (ENV_API_KEY, api_key)) if not value]
        if missing:
            raise ConfigurationError(f"Missing environment configuration: {', '.join(missing)}")
        return cls(base_url, api_key, **kwargs)

    # ------------------------------------------------------------------
    # transport

    def _headers(self) -> Dict[str, str]:
        headers = {"apikey": self.api_key}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(self, method: str, path: str, *, json: Any = None, params: Optional[Dict] = None) -> Any:
        try:
            response = self.client.request(method, path, headers=self._headers(), json=json, params=params)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise CosyApiError(f"Connection failed: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = body.get("error") or response.reason_phrase or "Request failed"
            error_cls = CosyAuthError if response.status_code == 401 else CosyApiError
            raise error_cls(message, status=response.status_code, code=body.get("code"))

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning("%s %s returned a non-JSON body", method, path)
            raise CosyApiError("Invalid response from server", status=response.status_code) from e

    def get(self, path: str, params: Optional[Dict] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json if json is not None else {})

    def patch(self, path: str, json: Any = None) -> Any:
        return self.request("PATCH", path, json=json if json is not None else {})

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json if json is not None else {})

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def rpc(self, name: str, params: Optional[Dict] = None) -> Any:
        return self.post(f"/api/rpc/{name}", json=params or {})

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "CosyClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # auth

    def _adopt_session(self, data: Dict) -> Dict:
        self.token = data.get("token")
        self.current_user = data.get("user")
        return data

    @property
    def user_id(self) -> Optional[str]:
        return (self.current_user or {}).get("id")

    def sign_up(
        self,
        email: str,
        password: str,
        *,
        username: Optional[str] = None,
        store_name: Optional[str] = None,
        invite_token_hash: Optional[str] = None,
    ) -> Dict:
        payload = {"email": email, "password": password}
        if username:
            payload["username"] = username
        if store_name:
            payload["store_name"] = store_name
        if invite_token_hash:
            payload["invite_token_hash"] = invite_token_hash
        return self._adopt_session(self.post("/api/auth/signup", json=payload))

    def sign_in(self, email: str, password: str) -> Dict:
        return self._adopt_session(self.post("/api/auth/login", json={"email": email, "password": password}))

    def sign_out(self) -> None:
        if not self.token:
            return
        try:
            self.post("/api/auth/logout")
        finally:
            self.token = None
            self.current_user = None

    def get_session(self) -> Optional[Dict]:
        """Current session, or None when signed out or expired."""
        if not self.token:
            return None
        try:
            data = self.get("/api/auth/session")
        except CosyAuthError:
            self.token = None
            self.current_user = None
            return None
        self.current_user = data.get("user")
        return data

    # ------------------------------------------------------------------
    # stores and access

    def list_stores(self) -> list:
        return self.get("/api/stores")["items"]

    def create_store(self, name: str) -> Dict:
        return self.post("/api/stores", json={"name": name})

    def stores_with_monthly_stats(self, user_id: str) -> list:
        return self.rpc("get_user_stores_with_monthly_stats", {"p_user_id": user_id})

    def store_access(self, store_id: str) -> Dict:
        return self.get(f"/api/stores/{store_id}/access")

    def accept_store_invite(self, token_hash: str) -> Dict:
        return self.rpc("accept_store_invite", {"token_hash": token_hash})

    def create_invite(self, store_id: str, *, role: str = "user", email: Optional[str] = None, days: Optional[int] = None) -> Dict:
        payload: Dict[str, Any] = {"role": role}
        if email:
            payload["email"] = email
        if days is not None:
            payload["days"] = days
        return self.post(f"/api/stores/{store_id}/invites", json=payload)

    def validate_invite(self, invite_id: str) -> Dict:
        return self.post("/api/invite/validate", json={"inviteId": invite_id})

    # ------------------------------------------------------------------
    # ledger

    def list_transactions(self, store_id: str, **filters) -> list:
        params = {k: v for k, v in filters.items() if v is not None}
        return self.get(f"/api/stores/{store_id}/transactions", params=params)["items"]

    def create_transaction(self, store_id: str, payload: Dict) -> Dict:
        return self.post(f"/api/stores/{store_id}/transactions", json=payload)

    def delete_transaction(self, store_id: str, transaction_id: int) -> None:
        self.delete(f"/api/stores/{store_id}/transactions/{transaction_id}")

    def daily_close(self, store_id: str, **amounts) -> list:
        return self.post(f"/api/stores/{store_id}/daily-close", json=amounts)["items"]

    def daily_totals(self, store_id: str, *, start: Optional[str] = None, end: Optional[str] = None) -> list:
        params = {k: v for k, v in (("from", start), ("to", end)) if v}
        return self.get(f"/api/stores/{store_id}/reports/daily", params=params)["items"]

    def balances(self, store_id: str) -> Dict:
        return self.get(f"/api/stores/{store_id}/reports/balances")

    def category_breakdown(self, store_id: str, *, start: Optional[str] = None, end: Optional[str] = None) -> Dict:
        params = {k: v for k, v in (("from", start), ("to", end)) if v}
        return self.get(f"/api/stores/{store_id}/reports/categories", params=params)

    # ------------------------------------------------------------------
    # staff

    def pay_employee(self, store_id: str, employee_id: int, amount: str, **fields) -> Dict:
        payload = {"amount": amount, **fields}
        return self.post(f"/api/stores/{store_id}/employees/{employee_id}/payments", json=payload)

    def record_overtime(self, store_id: str, employee_id: int, hours: str, **fields) -> Dict:
        payload = {"hours": hours, **fields}
        return self.post(f"/api/stores/{store_id}/employees/{employee_id}/overtime", json=payload)

    def pending_overtime(self, store_id: str) -> list:
        return self.get(f"/api/stores/{store_id}/overtime/pending")["items"]
