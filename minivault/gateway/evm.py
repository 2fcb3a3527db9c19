"""EVM chain gateway built on web3.py's async client."""

import asyncio
from collections.abc import Callable
from decimal import Decimal
from typing import Any

import aiohttp
from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound, Web3Exception

from minivault.config import RpcConfig
from minivault.exceptions import (
    ConfirmationError,
    NetworkError,
    TransactionRejectedError,
)
from minivault.interfaces.gateway import ChainGateway
from minivault.models import NetworkProfile
from minivault.units import from_smallest_unit, to_smallest_unit, validate_address

Web3Factory = Callable[[NetworkProfile], AsyncWeb3]

# Failures of the transport itself, as opposed to errors reported by the node
_TRANSPORT_ERRORS = (aiohttp.ClientError, OSError)
_RPC_ERRORS = (Web3Exception, ValueError, KeyError)


class EvmGateway(ChainGateway):
    """Gateway for balance queries and native transfers on EVM networks.

    Keeps one AsyncWeb3 client per network key. Transactions are legacy
    (type 0) transfers with an EIP-155 chain id, which every supported
    network accepts.

    Usage:
        gateway = EvmGateway()
        balance = await gateway.get_balance(address, profile)
        tx_hash = await gateway.submit(key, profile, "0xabc...", "0.1")
        block = await gateway.await_confirmation(tx_hash, profile)
        await gateway.close()
    """

    def __init__(
        self,
        config: RpcConfig | None = None,
        web3_factory: Web3Factory | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            config: RPC timeouts and polling cadence. Defaults to RpcConfig().
            web3_factory: Builds the client for a profile. Defaults to an
                          AsyncHTTPProvider against profile.rpc_url.
        """
        self._config = config or RpcConfig()
        self._web3_factory = web3_factory or self._build_client
        self._clients: dict[str, AsyncWeb3] = {}
        # tx hash -> (sender, nonce), used to detect dropped transactions
        self._pending: dict[str, tuple[str, int]] = {}

    def _build_client(self, profile: NetworkProfile) -> AsyncWeb3:
        """Create an AsyncWeb3 client for a network."""
        provider = AsyncWeb3.AsyncHTTPProvider(
            profile.rpc_url,
            request_kwargs={
                "timeout": aiohttp.ClientTimeout(total=self._config.request_timeout)
            },
        )
        return AsyncWeb3(provider)

    def _client(self, profile: NetworkProfile) -> AsyncWeb3:
        """Get or create the client for a network."""
        client = self._clients.get(profile.key)
        if client is None:
            client = self._web3_factory(profile)
            self._clients[profile.key] = client
            logger.debug("Created RPC client for {} ({})", profile.name, profile.rpc_url)
        return client

    async def get_balance(self, address: str, profile: NetworkProfile) -> Decimal:
        """Get the native-asset balance of an address.

        Raises:
            NetworkError: If the RPC endpoint fails or answers nonsense.
        """
        checksum_address = AsyncWeb3.to_checksum_address(address)
        w3 = self._client(profile)

        try:
            wei: int = await w3.eth.get_balance(checksum_address)
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(f"{profile.name} RPC unreachable: {e}") from e
        except _RPC_ERRORS as e:
            raise NetworkError(f"{profile.name} RPC error: {e}") from e

        balance = from_smallest_unit(int(wei), profile.decimals)
        logger.debug("Balance on {}: {} {}", profile.key, balance, profile.symbol)
        return balance

    async def submit(
        self,
        private_key: str,
        profile: NetworkProfile,
        destination: str,
        amount: str,
    ) -> str:
        """Sign and broadcast a native-asset transfer.

        Raises:
            InvalidAddressError: If destination is malformed (no RPC call made).
            InvalidAmountError: If amount is invalid (no RPC call made).
            TransactionRejectedError: If the node refuses the transaction.
            NetworkError: If the RPC endpoint is unreachable.
        """
        to_address = validate_address(destination)
        value = to_smallest_unit(amount, profile.decimals)

        sender = Account.from_key(private_key).address
        w3 = self._client(profile)

        logger.info(
            "Submitting transfer | network={} to={} amount={} {}",
            profile.key,
            to_address,
            amount,
            profile.symbol,
        )

        try:
            nonce: int = await w3.eth.get_transaction_count(sender, "pending")
            gas_price: int = await w3.eth.gas_price
            gas: int = await w3.eth.estimate_gas(
                {"from": sender, "to": to_address, "value": value}
            )

            tx: dict[str, Any] = {
                "to": to_address,
                "value": value,
                "nonce": nonce,
                "gas": gas,
                "gasPrice": gas_price,
                "chainId": profile.chain_id,
            }
            signed = Account.sign_transaction(tx, private_key)

            raw_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(f"{profile.name} RPC unreachable: {e}") from e
        except _RPC_ERRORS as e:
            raise TransactionRejectedError(f"Transaction rejected: {e}") from e

        tx_hash = AsyncWeb3.to_hex(raw_hash)
        self._pending[tx_hash] = (sender, nonce)

        logger.info("Broadcast {} on {} (nonce {})", tx_hash, profile.key, nonce)
        return tx_hash

    async def await_confirmation(
        self,
        tx_hash: str,
        profile: NetworkProfile,
        timeout: float | None = None,
    ) -> int:
        """Poll for the transaction receipt until it is mined.

        Raises:
            ConfirmationError: If reverted, dropped, replaced, disconnected or
                timed out.
        """
        w3 = self._client(profile)

        try:
            return await asyncio.wait_for(self._poll_receipt(w3, tx_hash), timeout)
        except asyncio.TimeoutError as e:
            raise ConfirmationError(
                f"Transaction not confirmed within {timeout:g}s", tx_hash
            ) from e
        finally:
            self._pending.pop(tx_hash, None)

    async def _poll_receipt(self, w3: AsyncWeb3, tx_hash: str) -> int:
        """Poll until a receipt appears or the transaction is gone."""
        while True:
            try:
                receipt = await self._get_receipt(w3, tx_hash)
                if receipt is None and await self._was_dropped(w3, tx_hash):
                    raise ConfirmationError(
                        "Transaction was dropped or replaced", tx_hash
                    )
            except (*_TRANSPORT_ERRORS, *_RPC_ERRORS) as e:
                raise ConfirmationError(
                    f"Lost connection while awaiting confirmation: {e}", tx_hash
                ) from e

            if receipt is not None:
                if receipt["status"] == 0:
                    raise ConfirmationError("Transaction reverted", tx_hash)

                block_number = int(receipt["blockNumber"])
                logger.info("Confirmed {} in block {}", tx_hash, block_number)
                return block_number

            await asyncio.sleep(self._config.confirmation_poll_interval)

    @staticmethod
    async def _get_receipt(w3: AsyncWeb3, tx_hash: str) -> Any:
        """Fetch a receipt, or None while the transaction is unmined."""
        try:
            return await w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    async def _was_dropped(self, w3: AsyncWeb3, tx_hash: str) -> bool:
        """Check whether an unmined transaction has left the node for good.

        A transaction is gone when the node no longer knows it and the
        sender's mined nonce has already moved past it.
        """
        pending = self._pending.get(tx_hash)
        if pending is None:
            return False

        try:
            await w3.eth.get_transaction(tx_hash)
            return False
        except TransactionNotFound:
            pass

        sender, nonce = pending
        mined_nonce: int = await w3.eth.get_transaction_count(sender, "latest")
        return mined_nonce > nonce

    async def close(self) -> None:
        """Close all RPC client sessions."""
        for key, client in self._clients.items():
            try:
                await client.provider.disconnect()
            except _TRANSPORT_ERRORS as e:
                logger.debug("Error closing RPC client for {}: {}", key, e)
        self._clients.clear()
