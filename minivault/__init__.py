"""minivault - non-custodial EVM wallet core.

Key custody, network selection, native-asset transfers and optional
encrypted cloud backup, driven by a single WalletSession.
"""

from minivault.models import NetworkProfile, TransferRecord, WalletState
from minivault.session import WalletSession

__version__ = "0.3.0"

__all__ = ["NetworkProfile", "TransferRecord", "WalletSession", "WalletState"]
