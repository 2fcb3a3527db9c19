"""Supabase client for accounts, profiles and encrypted wallet backups."""

import json
from time import time
from typing import Any

import aiohttp
from loguru import logger
from pydantic import SecretStr

from minivault.config import BackendConfig
from minivault.exceptions import BackendError
from minivault.interfaces.backend import BackupBackend
from minivault.models import Account, AuthSession


class SupabaseBackend(BackupBackend):
    """Async HTTP client for the Supabase auth (GoTrue) and REST (PostgREST) APIs.

    Handles:
    - E-mail/password sign-up (pending verification) and sign-in
    - Username profile record keyed by account id
    - One encrypted keystore blob per account (upsert, last write wins)

    Requests are not retried; errors surface to the caller as BackendError.

    Usage:
        async with SupabaseBackend(config) as backend:
            session = await backend.sign_in("me@example.com", "hunter22")
            await backend.save_backup(session.account.id, blob)
    """

    AUTH_PATH = "/auth/v1"
    REST_PATH = "/rest/v1"

    def __init__(self, config: BackendConfig) -> None:
        """Initialize the backend client.

        Args:
            config: Project URL, anon key, table names and timeout.

        Raises:
            BackendError: If url or anon key is missing.
        """
        if not config.enabled:
            raise BackendError("Supabase URL and anon key must be configured")

        self._config = config
        self._base_url = config.url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        self._http: aiohttp.ClientSession | None = None
        self._auth: AuthSession | None = None

    async def __aenter__(self) -> "SupabaseBackend":
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    @property
    def auth_session(self) -> AuthSession | None:
        """The signed-in session, if any."""
        return self._auth

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure the HTTP session exists, creating if needed."""
        if self._http is None:
            self._http = aiohttp.ClientSession(timeout=self._timeout)
        return self._http

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._http is not None:
            await self._http.close()
            self._http = None

    def _headers(self, authenticated: bool = True) -> dict[str, str]:
        """Build request headers.

        The anon key doubles as bearer token until a user signs in.
        """
        anon_key = self._config.anon_key.get_secret_value()
        token = anon_key
        if authenticated and self._auth is not None:
            token = self._auth.access_token.get_secret_value()
        return {
            "apikey": anon_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Any = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> Any:
        """Send a request and decode the JSON response.

        Returns:
            Parsed JSON body, or None for empty responses.

        Raises:
            BackendError: On transport failure or a non-2xx status.
        """
        session = await self._ensure_session()
        request_headers = self._headers(authenticated)
        if headers:
            request_headers.update(headers)

        url = f"{self._base_url}{path}"
        try:
            async with session.request(
                method, url, json=payload, params=params, headers=request_headers
            ) as response:
                text = await response.text()
                body = self._decode(text)

                if response.status >= 400:
                    message = self._error_message(body, text, response.status)
                    logger.warning(
                        "Supabase {} {} failed ({}): {}",
                        method,
                        path,
                        response.status,
                        message,
                    )
                    raise BackendError(message, status_code=response.status)

                return body

        except aiohttp.ClientError as e:
            raise BackendError(f"Backend unreachable: {e}") from e
        except TimeoutError as e:
            raise BackendError("Backend request timed out") from e

    @staticmethod
    def _decode(text: str) -> Any:
        """Parse a JSON body, tolerating empty responses."""
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None

    @staticmethod
    def _error_message(body: Any, text: str, status: int) -> str:
        """Extract the service's error message from an error response."""
        if isinstance(body, dict):
            for key in ("msg", "message", "error_description", "error"):
                value = body.get(key)
                if value:
                    return str(value)
        return text[:200] or f"HTTP {status}"

    @staticmethod
    def _parse_account(user: dict[str, Any], username: str | None = None) -> Account:
        """Build an Account from a GoTrue user object."""
        return Account(
            id=str(user["id"]),
            email=str(user.get("email") or ""),
            email_verified=bool(
                user.get("email_confirmed_at") or user.get("confirmed_at")
            ),
            username=username,
        )

    def _require_auth(self) -> AuthSession:
        """Return the current session or fail."""
        if self._auth is None:
            raise BackendError("Not signed in")
        return self._auth

    # =========================================================================
    # Auth
    # =========================================================================

    async def sign_up(self, email: str, password: str) -> Account:
        """Register an account; Supabase e-mails a verification link."""
        body = await self._request(
            "POST",
            f"{self.AUTH_PATH}/signup",
            payload={"email": email, "password": password},
            authenticated=False,
        )
        if not isinstance(body, dict):
            raise BackendError("Unexpected sign-up response")

        # With e-mail confirmation on, the user object is the body itself
        user = body.get("user") if isinstance(body.get("user"), dict) else body
        if "id" not in user:
            raise BackendError("Unexpected sign-up response")

        account = self._parse_account(user)
        logger.info("Signed up account {} (verified={})", account.id, account.email_verified)
        return account

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with e-mail and password."""
        body = await self._request(
            "POST",
            f"{self.AUTH_PATH}/token",
            params={"grant_type": "password"},
            payload={"email": email, "password": password},
            authenticated=False,
        )
        if not isinstance(body, dict) or "access_token" not in body:
            raise BackendError("Unexpected sign-in response")
        user = body.get("user")
        if not isinstance(user, dict) or "id" not in user:
            raise BackendError("Unexpected sign-in response")

        expires_in = body.get("expires_in")
        self._auth = AuthSession(
            access_token=SecretStr(str(body["access_token"])),
            refresh_token=SecretStr(str(body.get("refresh_token") or "")),
            expires_at=time() + float(expires_in) if expires_in else None,
            account=self._parse_account(user),
        )

        username = await self.get_username(self._auth.account.id)
        account = self._auth.account.model_copy(update={"username": username})
        self._auth = self._auth.model_copy(update={"account": account})

        logger.info("Signed in account {}", account.id)
        return self._auth

    async def sign_out(self) -> None:
        """Revoke the session on the server and forget it locally."""
        if self._auth is None:
            return
        try:
            await self._request("POST", f"{self.AUTH_PATH}/logout")
        finally:
            self._auth = None

    async def refresh_account(self) -> Account:
        """Re-read the signed-in user and profile."""
        auth = self._require_auth()
        user = await self._request("GET", f"{self.AUTH_PATH}/user")
        if not isinstance(user, dict) or "id" not in user:
            raise BackendError("Unexpected user response")

        username = await self.get_username(str(user["id"]))
        account = self._parse_account(user, username=username)
        self._auth = auth.model_copy(update={"account": account})
        return account

    # =========================================================================
    # Profile
    # =========================================================================

    async def get_username(self, account_id: str) -> str | None:
        """Read the account's username from the profiles table."""
        rows = await self._request(
            "GET",
            f"{self.REST_PATH}/{self._config.profiles_table}",
            params={"id": f"eq.{account_id}", "select": "username"},
        )
        if not rows:
            return None
        username = rows[0].get("username")
        return str(username) if username else None

    async def save_username(self, account_id: str, username: str) -> None:
        """Upsert the account's username."""
        await self._request(
            "POST",
            f"{self.REST_PATH}/{self._config.profiles_table}",
            payload={"id": account_id, "username": username},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )
        if self._auth is not None and self._auth.account.id == account_id:
            account = self._auth.account.model_copy(update={"username": username})
            self._auth = self._auth.model_copy(update={"account": account})

    # =========================================================================
    # Wallet backup
    # =========================================================================

    async def save_backup(self, account_id: str, blob: str) -> None:
        """Upsert the account's encrypted keystore blob."""
        await self._request(
            "POST",
            f"{self.REST_PATH}/{self._config.backups_table}",
            params={"on_conflict": "user_id"},
            payload={"user_id": account_id, "encrypted_json": blob},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )
        logger.info("Saved wallet backup for account {}", account_id)

    async def load_backup(self, account_id: str) -> str | None:
        """Read the account's encrypted keystore blob."""
        rows = await self._request(
            "GET",
            f"{self.REST_PATH}/{self._config.backups_table}",
            params={"user_id": f"eq.{account_id}", "select": "encrypted_json"},
        )
        if not rows:
            return None
        blob = rows[0].get("encrypted_json")
        return str(blob) if blob else None
