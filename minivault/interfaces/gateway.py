"""Abstract base class defining the chain gateway interface."""

from abc import ABC, abstractmethod
from decimal import Decimal

from minivault.exceptions import (
    ConfirmationError,
    InvalidAddressError,
    InvalidAmountError,
    NetworkError,
    TransactionRejectedError,
)
from minivault.models import NetworkProfile

# Re-export exceptions for convenience
__all__ = [
    "ChainGateway",
    "ConfirmationError",
    "InvalidAddressError",
    "InvalidAmountError",
    "NetworkError",
    "TransactionRejectedError",
]


class ChainGateway(ABC):
    """Abstract base class for balance reads and native-asset transfers.

    Every call takes the NetworkProfile to act on, so one gateway instance
    serves all networks.
    """

    @abstractmethod
    async def get_balance(self, address: str, profile: NetworkProfile) -> Decimal:
        """Get the native-asset balance of an address.

        Args:
            address: Account address.
            profile: Network to query.

        Returns:
            Balance in display units (e.g. ETH, not wei).

        Raises:
            NetworkError: On connectivity, timeout or malformed responses.
        """
        raise NotImplementedError

    @abstractmethod
    async def submit(
        self,
        private_key: str,
        profile: NetworkProfile,
        destination: str,
        amount: str,
    ) -> str:
        """Sign and broadcast a native-asset transfer.

        Validation happens before any network call. Returns as soon as the
        node accepts the transaction; it does not wait for inclusion.

        Args:
            private_key: 0x-prefixed hex key of the sender.
            profile: Network to send on (its chain id is signed in).
            destination: Recipient address.
            amount: Decimal amount in display units.

        Returns:
            The 0x-prefixed transaction hash.

        Raises:
            InvalidAddressError: If destination is malformed.
            InvalidAmountError: If amount is not a positive representable decimal.
            TransactionRejectedError: If the node refuses the transaction.
            NetworkError: On connectivity problems.
        """
        raise NotImplementedError

    @abstractmethod
    async def await_confirmation(
        self,
        tx_hash: str,
        profile: NetworkProfile,
        timeout: float | None = None,
    ) -> int:
        """Wait until a transaction is included in a block.

        Args:
            tx_hash: Hash returned by submit().
            profile: Network the transaction was sent on.
            timeout: Seconds to wait before giving up; None waits indefinitely.

        Returns:
            The block number containing the transaction.

        Raises:
            ConfirmationError: If the transaction reverted, was dropped or
                replaced, the connection was lost, or the timeout expired.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release network resources."""
        return None
