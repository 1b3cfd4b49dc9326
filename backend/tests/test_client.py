# Overview: Pytest coverage for the client SDK (resolver, guard, invite redemption).

"""
Client SDK Tests

The SDK talks to the real Flask app through httpx.WSGITransport; failure
paths use httpx.MockTransport.
"""

import httpx
import pytest

from cosy.client import (
    AccessGuard,
    ConfigurationError,
    CosyApiError,
    CosyAuthError,
    CosyClient,
    DeviceSession,
    InviteAlreadyUsed,
    InviteInvalid,
    StoreResolver,
    hash_invite_token,
    redeem_invite,
)
from cosy.client.invites import token_from_link
from cosy.client.resolver import WARNING_CACHED, WARNING_OFFLINE, WARNING_USER_MISSING
from cosy.services import directory_service, invite_service, transaction_service
from cosy.time_utils import utcnow
from cosy.tokens import hash_token


def mock_client(handler, token="t"):
    return CosyClient("http://cosy.test", "key", transport=httpx.MockTransport(handler), token=token)


def unreachable(request):
    raise httpx.ConnectError("connection refused", request=request)


SNAPSHOT = [{
    "store_id": "s-1", "store_name": "SAVED", "role": "admin",
    "income": "1.00", "expenses": "0.00", "profit": "1.00", "last_updated": None,
}]


class TestConfiguration:

    def test_from_env_requires_url_and_key(self):
        with pytest.raises(ConfigurationError):
            CosyClient.from_env({"COSY_API_URL": "http://x"})
        with pytest.raises(ConfigurationError):
            CosyClient.from_env({"COSY_API_KEY": "k"})

    def test_from_env(self):
        client = CosyClient.from_env({"COSY_API_URL": "http://x/", "COSY_API_KEY": "k"})
        assert client.base_url == "http://x"
        client.close()

    def test_wrong_api_key_is_an_auth_error(self, app, db_session):
        client = CosyClient("http://cosy.test", "wrong", transport=httpx.WSGITransport(app=app))
        with pytest.raises(CosyAuthError) as excinfo:
            client.sign_in("alice@example.com", "secret123")
        assert excinfo.value.status == 401


class TestSession:

    def test_sign_in_and_out(self, sdk, owner_a):
        sdk.sign_in("alice@example.com", "secret123")
        assert sdk.user_id == owner_a.user.id
        assert sdk.get_session()["user"]["email"] == "alice@example.com"

        sdk.sign_out()
        assert sdk.token is None
        assert sdk.get_session() is None

    def test_sign_up_with_invite(self, sdk, owner_a):
        _, token = invite_service.create_invite(store_id=owner_a.store.id, created_by=owner_a.user.id)
        data = sdk.sign_up("erin@example.com", "secret123", invite_token_hash=hash_invite_token(token))
        assert data["store"]["id"] == owner_a.store.id
        assert data["role"] == "user"


class TestStoreResolver:

    def test_explicit_id_wins_over_cache(self, sdk, device, owner_a):
        device.set_active_store("cached-store")
        resolution = StoreResolver(sdk, device).resolve(owner_a.user.id, explicit_store_id="from-url")
        assert resolution.store_id == "from-url"
        assert resolution.source == "explicit"
        assert device.active_store_id == "cached-store"

    def test_cached_active_store(self, sdk, device, owner_a):
        device.set_active_store("cached-store")
        resolution = StoreResolver(sdk, device).resolve(owner_a.user.id, explicit_store_id="")
        assert (resolution.store_id, resolution.source) == ("cached-store", "cached")

    def test_picker_lists_stores_with_stats(self, sdk, device, owner_a):
        transaction_service.create_transaction(
            owner_a.store.id, {"amount": "25", "type": "income", "date": utcnow().date().isoformat()}
        )
        sdk.sign_in("alice@example.com", "secret123")

        resolution = StoreResolver(sdk, device).resolve(sdk.user_id)

        assert resolution.store_id is None
        assert resolution.source == "picker"
        (row,) = resolution.stores
        assert row["store_id"] == owner_a.store.id
        assert row["role"] == "admin"
        assert row["income"] == "25.00"
        assert device.load_snapshot(sdk.user_id) == resolution.stores

    def test_select_remembers_store(self, sdk, device):
        resolver = StoreResolver(sdk, device)
        resolver.select("store-9")
        assert resolver.resolve("user-1").store_id == "store-9"

    def test_missing_user_id(self, device):
        result = StoreResolver(mock_client(unreachable), device).fetch_stores_with_stats(None)
        assert result.stores == []
        assert result.warning == WARNING_USER_MISSING

    def test_failure_falls_back_to_snapshot(self, device):
        device.save_snapshot("u1", SNAPSHOT)
        result = StoreResolver(mock_client(unreachable), device).fetch_stores_with_stats("u1")
        assert result.stores == SNAPSHOT
        assert result.source == "cache"
        assert result.warning == WARNING_CACHED

    def test_failure_without_snapshot_is_empty(self, device):
        result = StoreResolver(mock_client(unreachable), device).fetch_stores_with_stats("u1")
        assert result.stores == []
        assert result.warning == WARNING_OFFLINE

    def test_server_error_falls_back(self, device):
        device.save_snapshot("u1", SNAPSHOT)
        client = mock_client(lambda request: httpx.Response(500, json={"error": "Internal server error"}))
        assert StoreResolver(client, device).fetch_stores_with_stats("u1").stores == SNAPSHOT

    def test_non_json_body_falls_back(self, device):
        device.save_snapshot("u1", SNAPSHOT)
        client = mock_client(lambda request: httpx.Response(200, text="<html>sign in to the wifi</html>"))
        result = StoreResolver(client, device).fetch_stores_with_stats("u1")
        assert result.stores == SNAPSHOT
        assert result.source == "cache"

    def test_empty_result_keeps_snapshot(self, device):
        device.save_snapshot("u1", SNAPSHOT)
        client = mock_client(lambda request: httpx.Response(200, json=[]))
        result = StoreResolver(client, device).fetch_stores_with_stats("u1")
        assert result.stores == SNAPSHOT
        assert device.load_snapshot("u1") == SNAPSHOT

    def test_rows_are_cleaned(self, device):
        rows = [
            {"store_id": None, "store_name": "ghost"},
            {"store_id": "s-2", "store_name": "NEW", "income": "abc", "expenses": "4.5"},
        ]
        client = mock_client(lambda request: httpx.Response(200, json=rows))
        result = StoreResolver(client, device).fetch_stores_with_stats("u1")

        (row,) = result.stores
        assert row["store_id"] == "s-2"
        assert (row["income"], row["expenses"], row["profit"]) == ("0.00", "4.50", "-4.50")
        assert device.load_snapshot("u1") == result.stores

    def test_malformed_profit_falls_back_to_income_minus_expenses(self, device):
        rows = [{"store_id": "s-3", "income": "10", "expenses": "2.5", "profit": "abc"}]
        client = mock_client(lambda request: httpx.Response(200, json=rows))
        (row,) = StoreResolver(client, device).fetch_stores_with_stats("u1").stores
        assert row["profit"] == "7.50"

    def test_clear_cache(self, device):
        device.save_snapshot("u1", SNAPSHOT)
        StoreResolver(mock_client(unreachable), device).clear_cache("u1")
        assert device.load_snapshot("u1") == []


class TestAccessGuard:

    def test_admin_and_non_member(self, sdk, owner_a, owner_b):
        guard = AccessGuard(sdk)
        sdk.sign_in("alice@example.com", "secret123")
        assert guard.is_admin(owner_a.store.id) is True
        assert guard.is_admin(owner_b.store.id) is False
        assert guard.is_admin(None) is False

    def test_no_session_is_false(self, sdk, owner_a):
        assert AccessGuard(sdk).is_admin(owner_a.store.id) is False

    def test_errors_are_false(self):
        assert AccessGuard(mock_client(unreachable)).is_admin("s-1") is False
        broken = mock_client(lambda request: httpx.Response(500, text="boom"))
        assert AccessGuard(broken).is_admin("s-1") is False


class TestInviteRedeem:

    def test_redeem_twice(self, sdk, owner_a, owner_b):
        _, token = invite_service.create_invite(store_id=owner_a.store.id, created_by=owner_a.user.id)
        sdk.sign_in("bob@example.com", "secret123")

        result = redeem_invite(sdk, token)
        assert result["store_id"] == owner_a.store.id

        with pytest.raises(InviteAlreadyUsed):
            redeem_invite(sdk, token)

    def test_unknown_token(self, sdk, owner_b):
        sdk.sign_in("bob@example.com", "secret123")
        with pytest.raises(InviteInvalid):
            redeem_invite(sdk, "nope")
        with pytest.raises(InviteInvalid):
            redeem_invite(sdk, "   ")

    def test_signed_out_is_not_an_invite_error(self, sdk, owner_a):
        _, token = invite_service.create_invite(store_id=owner_a.store.id, created_by=owner_a.user.id)
        with pytest.raises(CosyAuthError):
            redeem_invite(sdk, token)

    def test_token_is_hashed_before_sending(self):
        seen = {}

        def handler(request):
            seen["body"] = request.content.decode()
            return httpx.Response(200, json={"store_id": "s", "role": "user", "store_name": "S"})

        redeem_invite(mock_client(handler), "raw-token")
        assert "raw-token" not in seen["body"]
        assert hash_token("raw-token") in seen["body"]

    def test_token_from_link(self):
        assert token_from_link("https://a.example/accept-invite?token=abc123") == "abc123"
        assert token_from_link("https://a.example/accept-invite") is None


def test_non_json_success_body_is_an_api_error():
    client = mock_client(lambda request: httpx.Response(200, text="<html></html>"))
    with pytest.raises(CosyApiError) as excinfo:
        client.get("/api/stores")
    assert excinfo.value.status == 200


def test_api_error_carries_status_and_code(sdk, owner_a):
    sdk.sign_in("alice@example.com", "secret123")
    with pytest.raises(CosyApiError) as excinfo:
        sdk.create_transaction(owner_a.store.id, {"amount": "-1", "type": "income"})
    assert excinfo.value.status == 400


def test_overtime_is_settled_by_payment(sdk, owner_a):
    store_id = owner_a.store.id
    employee = directory_service.create_entry("employee", store_id, {"full_name": "Maria K"})
    sdk.sign_in("alice@example.com", "secret123")

    sdk.record_overtime(store_id, employee.id, "3", date="2026-03-01")
    assert [row["pending_hours"] for row in sdk.pending_overtime(store_id)] == ["3.00"]

    sdk.pay_employee(store_id, employee.id, "45.00", date="2026-03-02")
    assert sdk.pending_overtime(store_id) == []

    breakdown = sdk.category_breakdown(store_id, start="2026-03-01", end="2026-03-31")
    assert breakdown["groups"][0] == {"key": "staff", "amount": "45.00", "amount_cents": 4500, "share": "100.0"}
