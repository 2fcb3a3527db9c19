"""Custom exceptions for the minivault wallet core."""


class WalletError(Exception):
    """Base exception for all wallet errors."""

    pass


# =============================================================================
# Validation Exceptions
# =============================================================================


class ValidationError(WalletError):
    """Raised when user input is rejected before any I/O happens."""

    pass


class PasswordTooShortError(ValidationError):
    """Raised when a password is shorter than the configured minimum."""

    def __init__(self, min_length: int) -> None:
        super().__init__(f"Password must be at least {min_length} characters.")
        self.min_length = min_length


class InvalidAddressError(ValidationError):
    """Raised when a destination is not a well-formed EVM address."""

    pass


class InvalidAmountError(ValidationError):
    """Raised when an amount is not a positive decimal the chain can represent."""

    pass


# =============================================================================
# Key Custody Exceptions
# =============================================================================


class GenerationError(WalletError):
    """Raised when fresh key material cannot be generated."""

    pass


class DecryptError(WalletError):
    """Raised when a keystore blob cannot be decrypted.

    Wrong password, corrupted blob and unsupported format all raise this
    same error with the same message.
    """

    def __init__(self, message: str = "Unable to decrypt keystore") -> None:
        super().__init__(message)


# =============================================================================
# Chain Exceptions
# =============================================================================


class NetworkError(WalletError):
    """Raised when the chain RPC endpoint is unreachable or misbehaves."""

    pass


class TransactionRejectedError(NetworkError):
    """Raised when the node refuses a signed transaction at broadcast."""

    pass


class ConfirmationError(WalletError):
    """Raised when a broadcast transaction cannot be confirmed.

    Attributes:
        tx_hash: Hash of the transaction being awaited.
    """

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


# =============================================================================
# Backend Exceptions
# =============================================================================


class BackendError(WalletError):
    """Raised when the hosted backend rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
