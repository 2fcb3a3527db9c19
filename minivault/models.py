"""Domain models for the minivault wallet core."""

from dataclasses import dataclass, field
from enum import Enum
from time import time

from pydantic import BaseModel, Field, SecretStr


class WalletState(str, Enum):
    """Lifecycle state of a wallet session."""

    NO_WALLET = "NO_WALLET"
    CREATING = "CREATING"
    UNLOCKING = "UNLOCKING"
    ACTIVE = "ACTIVE"
    SENDING = "SENDING"


class TransferStatus(str, Enum):
    """Status of a broadcast transfer."""

    BROADCAST = "BROADCAST"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class StatusLevel(str, Enum):
    """Severity of a user-facing status message."""

    INFO = "INFO"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class NetworkProfile(BaseModel):
    """Connection parameters for one EVM network.

    Immutable, loaded from the static network table.
    """

    model_config = {"frozen": True}

    key: str = Field(..., min_length=1, description="Symbolic network key")
    name: str = Field(..., description="Display name")
    symbol: str = Field(..., description="Native asset symbol")
    chain_id: int = Field(..., gt=0, description="EIP-155 chain identifier")
    rpc_url: str = Field(..., description="JSON-RPC endpoint")
    explorer_tx_url: str = Field(..., description="Template with {hash} placeholder")
    explorer_address_url: str = Field(
        ..., description="Template with {address} placeholder"
    )
    decimals: int = Field(default=18, ge=0, le=36)


@dataclass(frozen=True)
class WalletKeyMaterial:
    """Decrypted key material held in memory only."""

    address: str
    private_key: str = field(repr=False)  # Hex string with 0x prefix
    mnemonic: str | None = field(default=None, repr=False)

    @property
    def short_address(self) -> str:
        """Return shortened address for display (0x1234...5678)."""
        return f"{self.address[:6]}...{self.address[-4:]}"


class Account(BaseModel):
    """Hosted backend account with its profile."""

    model_config = {"frozen": True}

    id: str = Field(..., min_length=1)
    email: str
    email_verified: bool = False
    username: str | None = None

    @property
    def can_backup(self) -> bool:
        """Wallet creation and cloud backup need a verified email and a username."""
        return self.email_verified and bool(self.username)


class AuthSession(BaseModel):
    """Signed-in backend session."""

    model_config = {"frozen": True}

    access_token: SecretStr
    refresh_token: SecretStr = SecretStr("")
    expires_at: float | None = None
    account: Account


class HostIdentity(BaseModel):
    """User identity supplied by a chat-platform mini-app shell."""

    model_config = {"frozen": True}

    user_id: str
    display_name: str
    username: str | None = None


class TransferIntent(BaseModel):
    """Destination and amount as typed by the user."""

    destination: str = ""
    amount: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.destination.strip()) and bool(self.amount.strip())


class TransferRecord(BaseModel):
    """Outcome of a native-asset transfer.

    Immutable; status changes produce a new record via model_copy.
    """

    model_config = {"frozen": True}

    tx_hash: str = Field(..., description="0x-prefixed transaction hash")
    network_key: str
    destination: str
    amount: str
    status: TransferStatus = TransferStatus.BROADCAST
    explorer_url: str
    block_number: int | None = None
    error: str | None = None
    created_at: float = Field(default_factory=time)
    updated_at: float = Field(default_factory=time)


class Status(BaseModel):
    """User-facing status line."""

    model_config = {"frozen": True}

    message: str = ""
    level: StatusLevel = StatusLevel.INFO
