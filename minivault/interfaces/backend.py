"""Abstract base class defining the hosted backup backend interface."""

from abc import ABC, abstractmethod

from minivault.exceptions import BackendError
from minivault.models import Account, AuthSession

__all__ = ["BackupBackend", "BackendError"]


class BackupBackend(ABC):
    """Account, profile and encrypted-backup storage offered by a hosted service.

    The backup slot holds exactly one keystore blob per account with upsert
    semantics (last write wins). It is never linked to the local store; the
    session copies between them explicitly.

    All methods raise BackendError with the service's message on failure.
    """

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Account:
        """Register an account. The account starts unverified."""
        raise NotImplementedError

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in and keep the session for subsequent calls."""
        raise NotImplementedError

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session."""
        raise NotImplementedError

    @abstractmethod
    async def refresh_account(self) -> Account:
        """Re-read the signed-in account (e.g. after e-mail verification)."""
        raise NotImplementedError

    @abstractmethod
    async def get_username(self, account_id: str) -> str | None:
        """Get the chosen username, or None if not set yet."""
        raise NotImplementedError

    @abstractmethod
    async def save_username(self, account_id: str, username: str) -> None:
        """Create or overwrite the account's username."""
        raise NotImplementedError

    @abstractmethod
    async def save_backup(self, account_id: str, blob: str) -> None:
        """Upsert the account's encrypted keystore blob."""
        raise NotImplementedError

    @abstractmethod
    async def load_backup(self, account_id: str) -> str | None:
        """Get the account's encrypted keystore blob, or None if absent."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release network resources."""
        return None
