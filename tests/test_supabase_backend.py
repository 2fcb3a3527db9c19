"""Tests for the Supabase backup backend.

The aiohttp session is replaced by FakeHttpSession, which records each
request and answers from a queue of (status, body) pairs.
"""

import json
from typing import Any

import aiohttp
import pytest

from minivault.backend.supabase import SupabaseBackend
from minivault.config import BackendConfig
from minivault.exceptions import BackendError

USER = {
    "id": "user-1",
    "email": "me@example.com",
    "email_confirmed_at": "2024-01-01T00:00:00Z",
}


class FakeResponse:
    """Async context manager standing in for aiohttp's response."""

    def __init__(self, status: int, body: Any) -> None:
        self.status = status
        self._text = body if isinstance(body, str) else json.dumps(body)

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *args: Any) -> None:
        return None

    async def text(self) -> str:
        return self._text


class FakeHttpSession:
    """Records requests and replays queued responses."""

    def __init__(self) -> None:
        self.responses: list[tuple[int, Any] | Exception] = []
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    def queue(self, status: int, body: Any = "") -> None:
        self.responses.append((status, body))

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        answer = self.responses.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return FakeResponse(*answer)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def config() -> BackendConfig:
    return BackendConfig(url="https://project.supabase.co/", anon_key="anon-key")


@pytest.fixture
def http() -> FakeHttpSession:
    return FakeHttpSession()


@pytest.fixture
def backend(config: BackendConfig, http: FakeHttpSession) -> SupabaseBackend:
    backend = SupabaseBackend(config)
    backend._http = http  # type: ignore[assignment]
    return backend


async def _sign_in(backend: SupabaseBackend, http: FakeHttpSession) -> None:
    http.queue(200, {"access_token": "user-token", "expires_in": 3600, "user": USER})
    http.queue(200, [{"username": "alice"}])
    await backend.sign_in("me@example.com", "hunter22")


class TestSupabaseBackendInit:
    """Tests for construction."""

    def test_requires_configuration(self) -> None:
        """Test an unconfigured backend cannot be built."""
        with pytest.raises(BackendError, match="must be configured"):
            SupabaseBackend(BackendConfig(url="", anon_key=""))

    def test_enabled_needs_both_values(self) -> None:
        assert not BackendConfig(url="https://x.supabase.co", anon_key="").enabled
        assert not BackendConfig(url="", anon_key="k").enabled
        assert BackendConfig(url="https://x.supabase.co", anon_key="k").enabled

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self, config: BackendConfig) -> None:
        async with SupabaseBackend(config) as backend:
            assert backend._http is not None
        assert backend._http is None


class TestHelpers:
    """Tests for response parsing helpers."""

    def test_decode_tolerates_empty_and_garbage(self) -> None:
        assert SupabaseBackend._decode("") is None
        assert SupabaseBackend._decode("<html>") is None
        assert SupabaseBackend._decode('{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize(
        ("body", "expected"),
        [
            ({"msg": "Email not confirmed"}, "Email not confirmed"),
            ({"message": "duplicate key"}, "duplicate key"),
            ({"error_description": "Invalid login credentials"}, "Invalid login credentials"),
            ({"error": "invalid_grant"}, "invalid_grant"),
        ],
    )
    def test_error_message_keys(self, body: dict[str, str], expected: str) -> None:
        assert SupabaseBackend._error_message(body, json.dumps(body), 400) == expected

    def test_error_message_falls_back_to_status(self) -> None:
        assert SupabaseBackend._error_message(None, "", 502) == "HTTP 502"

    def test_parse_account_verified(self) -> None:
        account = SupabaseBackend._parse_account(USER, username="alice")
        assert account.id == "user-1"
        assert account.email_verified is True
        assert account.username == "alice"
        assert account.can_backup is True

    def test_parse_account_unverified(self) -> None:
        account = SupabaseBackend._parse_account({"id": 5, "email": "x@y.z"})
        assert account.id == "5"
        assert account.email_verified is False
        assert account.can_backup is False


class TestAuth:
    """Tests for sign-up, sign-in and sign-out."""

    @pytest.mark.asyncio
    async def test_sign_up_pending_verification(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        """Test sign-up returns an unverified account."""
        http.queue(200, {"id": "user-2", "email": "new@example.com"})

        account = await backend.sign_up("new@example.com", "hunter22")

        assert account.id == "user-2"
        assert account.email_verified is False
        request = http.requests[0]
        assert request["url"] == "https://project.supabase.co/auth/v1/signup"
        assert request["json"] == {"email": "new@example.com", "password": "hunter22"}
        assert request["headers"]["Authorization"] == "Bearer anon-key"

    @pytest.mark.asyncio
    async def test_sign_up_nested_user(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        http.queue(200, {"user": USER, "session": None})
        account = await backend.sign_up("me@example.com", "hunter22")
        assert account.id == "user-1"

    @pytest.mark.asyncio
    async def test_sign_up_error(self, backend: SupabaseBackend, http: FakeHttpSession) -> None:
        http.queue(422, {"msg": "User already registered"})

        with pytest.raises(BackendError, match="User already registered") as exc_info:
            await backend.sign_up("me@example.com", "hunter22")

        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_sign_in_stores_session_with_username(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        await _sign_in(backend, http)

        session = backend.auth_session
        assert session is not None
        assert session.access_token.get_secret_value() == "user-token"
        assert session.expires_at is not None
        assert session.account.username == "alice"
        assert http.requests[0]["params"] == {"grant_type": "password"}
        # Profile lookup uses the user's token
        assert http.requests[1]["headers"]["Authorization"] == "Bearer user-token"
        assert http.requests[1]["params"]["id"] == "eq.user-1"

    @pytest.mark.asyncio
    async def test_sign_in_rejected(self, backend: SupabaseBackend, http: FakeHttpSession) -> None:
        http.queue(400, {"error_description": "Invalid login credentials"})

        with pytest.raises(BackendError, match="Invalid login credentials"):
            await backend.sign_in("me@example.com", "bad")

        assert backend.auth_session is None

    @pytest.mark.asyncio
    async def test_sign_in_without_user(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        http.queue(200, {"access_token": "t"})

        with pytest.raises(BackendError, match="Unexpected sign-in response"):
            await backend.sign_in("me@example.com", "hunter22")

    @pytest.mark.asyncio
    async def test_sign_out_forgets_session(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        await _sign_in(backend, http)
        http.queue(204)

        await backend.sign_out()

        assert backend.auth_session is None
        assert http.requests[-1]["url"].endswith("/auth/v1/logout")

    @pytest.mark.asyncio
    async def test_sign_out_forgets_session_on_error(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        await _sign_in(backend, http)
        http.queue(500, "")

        with pytest.raises(BackendError):
            await backend.sign_out()

        assert backend.auth_session is None

    @pytest.mark.asyncio
    async def test_refresh_account_picks_up_verification(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        http.queue(200, {"access_token": "t", "user": {"id": "user-1", "email": "a@b.c"}})
        http.queue(200, [])
        session = await backend.sign_in("a@b.c", "hunter22")
        assert session.account.email_verified is False

        http.queue(200, USER)
        http.queue(200, [{"username": "alice"}])
        account = await backend.refresh_account()

        assert account.email_verified is True
        assert account.username == "alice"
        assert backend.auth_session is not None
        assert backend.auth_session.account == account

    @pytest.mark.asyncio
    async def test_refresh_account_requires_sign_in(self, backend: SupabaseBackend) -> None:
        with pytest.raises(BackendError, match="Not signed in"):
            await backend.refresh_account()


class TestProfileAndBackup:
    """Tests for the REST tables."""

    @pytest.mark.asyncio
    async def test_save_username_upserts(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        await _sign_in(backend, http)
        http.queue(201)

        await backend.save_username("user-1", "bob")

        request = http.requests[-1]
        assert request["url"].endswith("/rest/v1/profiles")
        assert request["json"] == {"id": "user-1", "username": "bob"}
        assert "merge-duplicates" in request["headers"]["Prefer"]
        assert backend.auth_session is not None
        assert backend.auth_session.account.username == "bob"

    @pytest.mark.asyncio
    async def test_save_backup_upserts_by_user(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        http.queue(201)

        await backend.save_backup("user-1", '{"version": 3}')

        request = http.requests[0]
        assert request["url"].endswith("/rest/v1/wallet_backups")
        assert request["params"] == {"on_conflict": "user_id"}
        assert request["json"] == {"user_id": "user-1", "encrypted_json": '{"version": 3}'}

    @pytest.mark.asyncio
    async def test_load_backup(self, backend: SupabaseBackend, http: FakeHttpSession) -> None:
        http.queue(200, [{"encrypted_json": '{"version": 3}'}])

        assert await backend.load_backup("user-1") == '{"version": 3}'
        assert http.requests[0]["params"]["user_id"] == "eq.user-1"

    @pytest.mark.asyncio
    async def test_load_backup_absent(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        http.queue(200, [])
        assert await backend.load_backup("user-1") is None

    @pytest.mark.asyncio
    async def test_get_username_absent(
        self, backend: SupabaseBackend, http: FakeHttpSession
    ) -> None:
        http.queue(200, [{"username": None}])
        assert await backend.get_username("user-1") is None

    @pytest.mark.asyncio
    async def test_transport_error(self, backend: SupabaseBackend, http: FakeHttpSession) -> None:
        """Test connection failures surface as BackendError."""
        http.responses.append(aiohttp.ClientConnectionError("refused"))

        with pytest.raises(BackendError, match="unreachable"):
            await backend.load_backup("user-1")

    @pytest.mark.asyncio
    async def test_close(self, backend: SupabaseBackend, http: FakeHttpSession) -> None:
        await backend.close()
        assert http.closed is True
        assert backend._http is None
