"""Tests for the network table and explorer links."""

import pytest
from pydantic import ValidationError

from minivault import networks
from minivault.models import NetworkProfile


class TestResolve:
    """Tests for networks.resolve."""

    @pytest.mark.parametrize(
        ("key", "chain_id", "symbol"),
        [
            ("eth", 1, "ETH"),
            ("bsc", 56, "BNB"),
            ("polygon", 137, "MATIC"),
            ("arbitrum", 42161, "ETH"),
        ],
    )
    def test_known_networks(self, key: str, chain_id: int, symbol: str) -> None:
        """Test each supported key resolves to its chain."""
        profile = networks.resolve(key)
        assert profile.key == key
        assert profile.chain_id == chain_id
        assert profile.symbol == symbol

    def test_unknown_key_falls_back_to_default(self) -> None:
        """Test an unknown key resolves to the default network, not an error."""
        profile = networks.resolve("dogechain")
        assert profile.key == networks.DEFAULT_NETWORK

    def test_none_falls_back_to_default(self) -> None:
        assert networks.resolve(None).key == networks.DEFAULT_NETWORK

    def test_rpc_override(self) -> None:
        """Test an override replaces only the RPC URL."""
        profile = networks.resolve("polygon", {"polygon": "https://rpc.example/polygon"})
        assert profile.rpc_url == "https://rpc.example/polygon"
        assert profile.chain_id == 137
        # Table entry is untouched
        assert networks.NETWORKS["polygon"].rpc_url == "https://polygon-rpc.com"

    def test_override_for_other_network_ignored(self) -> None:
        profile = networks.resolve("eth", {"bsc": "https://rpc.example/bsc"})
        assert profile.rpc_url == "https://eth.llamarpc.com"

    def test_list_networks_order(self) -> None:
        """Test display order matches the table."""
        keys = [p.key for p in networks.list_networks()]
        assert keys == ["eth", "bsc", "polygon", "arbitrum"]


class TestExplorerUrls:
    """Tests for explorer URL expansion."""

    def test_address_url(self) -> None:
        profile = networks.resolve("bsc")
        url = networks.address_url("0xabc", profile)
        assert url == "https://bscscan.com/address/0xabc"

    def test_tx_url(self) -> None:
        profile = networks.resolve("arbitrum")
        url = networks.tx_url("0xdead", profile)
        assert url == "https://arbiscan.io/tx/0xdead"


class TestNetworkProfileModel:
    """Tests for NetworkProfile validation."""

    def test_is_frozen(self) -> None:
        profile = networks.resolve("eth")
        with pytest.raises(ValidationError):
            profile.chain_id = 5  # type: ignore[misc]

    def test_chain_id_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            NetworkProfile(
                key="bad",
                name="Bad",
                symbol="BAD",
                chain_id=0,
                rpc_url="http://localhost:8545",
                explorer_tx_url="{hash}",
                explorer_address_url="{address}",
            )
