"""Network table and explorer links for supported EVM chains.

Every profile shares the same address space; balances differ per network.
"""

from collections.abc import Mapping

from loguru import logger

from minivault.models import NetworkProfile

# Public RPCs. Override per network with MINIVAULT_RPC_OVERRIDES for production keys.
NETWORKS: dict[str, NetworkProfile] = {
    "eth": NetworkProfile(
        key="eth",
        name="Ethereum",
        symbol="ETH",
        chain_id=1,
        rpc_url="https://eth.llamarpc.com",
        explorer_tx_url="https://etherscan.io/tx/{hash}",
        explorer_address_url="https://etherscan.io/address/{address}",
    ),
    "bsc": NetworkProfile(
        key="bsc",
        name="BNB Chain",
        symbol="BNB",
        chain_id=56,
        rpc_url="https://bsc-dataseed.binance.org",
        explorer_tx_url="https://bscscan.com/tx/{hash}",
        explorer_address_url="https://bscscan.com/address/{address}",
    ),
    "polygon": NetworkProfile(
        key="polygon",
        name="Polygon",
        symbol="MATIC",
        chain_id=137,
        rpc_url="https://polygon-rpc.com",
        explorer_tx_url="https://polygonscan.com/tx/{hash}",
        explorer_address_url="https://polygonscan.com/address/{address}",
    ),
    "arbitrum": NetworkProfile(
        key="arbitrum",
        name="Arbitrum One",
        symbol="ETH",
        chain_id=42161,
        rpc_url="https://arb1.arbitrum.io/rpc",
        explorer_tx_url="https://arbiscan.io/tx/{hash}",
        explorer_address_url="https://arbiscan.io/address/{address}",
    ),
}

DEFAULT_NETWORK = "eth"


def list_networks() -> list[NetworkProfile]:
    """Return all profiles in display order."""
    return list(NETWORKS.values())


def resolve(
    key: str | None,
    rpc_overrides: Mapping[str, str] | None = None,
) -> NetworkProfile:
    """Look up a network profile by key.

    Unknown keys fall back to the default network; the UI only offers keys
    from the table, so this is not treated as an error.

    Args:
        key: Symbolic network key (e.g. "eth", "polygon").
        rpc_overrides: Optional key -> RPC URL replacements.

    Returns:
        The matching (or default) NetworkProfile.
    """
    profile = NETWORKS.get(key or "")
    if profile is None:
        logger.debug("Unknown network key {!r}, using {}", key, DEFAULT_NETWORK)
        profile = NETWORKS[DEFAULT_NETWORK]

    if rpc_overrides and profile.key in rpc_overrides:
        profile = profile.model_copy(update={"rpc_url": rpc_overrides[profile.key]})

    return profile


def address_url(address: str, profile: NetworkProfile) -> str:
    """Explorer URL for an address on the given network."""
    return profile.explorer_address_url.format(address=address)


def tx_url(tx_hash: str, profile: NetworkProfile) -> str:
    """Explorer URL for a transaction on the given network."""
    return profile.explorer_tx_url.format(hash=tx_hash)
