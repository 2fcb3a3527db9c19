"""Callback protocols for wallet session event notifications."""

from decimal import Decimal
from typing import Protocol, runtime_checkable

from minivault.models import NetworkProfile, Status, TransferRecord, WalletState


@runtime_checkable
class SessionCallback(Protocol):
    """Protocol defining the callback interface for WalletSession events.

    The UI registers one of these to re-render on state changes. All methods
    are async and MUST NOT block.

    Callbacks are wrapped in try/except by the session - a failing callback
    never breaks a wallet operation.
    """

    async def on_state_changed(self, state: WalletState) -> None:
        """Called when the lifecycle state changes.

        Args:
            state: The new state.
        """
        ...

    async def on_status(self, status: Status) -> None:
        """Called when the user-facing status message changes.

        Args:
            status: The new status.
        """
        ...

    async def on_balance_updated(
        self, balance: Decimal | None, profile: NetworkProfile
    ) -> None:
        """Called when a balance refresh completes or the balance is cleared.

        Args:
            balance: Balance in display units, or None when cleared.
            profile: Network the balance belongs to.
        """
        ...

    async def on_transfer_updated(self, record: TransferRecord) -> None:
        """Called when a transfer is broadcast, confirmed or fails.

        Args:
            record: The updated transfer record.
        """
        ...
