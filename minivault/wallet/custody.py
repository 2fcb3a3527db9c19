"""Key generation and password-based keystore encryption.

Uses Ethereum's Web3 Secret Storage (keystore v3) format for the encrypted
blob. This is the same format used by MetaMask, Geth, and ethers.js, so a
backup can be imported into any of them.
"""

import asyncio
import json
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from loguru import logger

from minivault.exceptions import DecryptError, GenerationError
from minivault.models import WalletKeyMaterial

# Mnemonic generation is gated behind this flag in eth-account
Account.enable_unaudited_hdwallet_features()


def _hex_key(key: bytes) -> str:
    """Render a private key as 0x-prefixed hex."""
    key_hex = key.hex()
    if not key_hex.startswith("0x"):
        key_hex = f"0x{key_hex}"
    return key_hex


def keystore_address(blob: str) -> str | None:
    """Read the public address from a keystore blob without decrypting it.

    Returns:
        The 0x-prefixed lowercase address, or None if the blob is unreadable.
    """
    try:
        keystore = json.loads(blob)
    except (TypeError, ValueError):
        return None

    if not isinstance(keystore, dict):
        return None
    address = str(keystore.get("address", "")).lower()
    if not address:
        return None
    if not address.startswith("0x"):
        address = f"0x{address}"
    return address


class KeyCustody:
    """Generates key material and converts it to and from keystore blobs.

    Encryption and decryption run the KDF in a worker thread so a slow
    scrypt never stalls the event loop.

    Usage:
        custody = KeyCustody()

        material = custody.generate()
        blob = await custody.encrypt(material.private_key, "secret1")

        restored = await custody.decrypt(blob, "secret1")
        assert restored.address == material.address
    """

    def __init__(self, kdf: str = "scrypt", iterations: int | None = None) -> None:
        """Initialize key custody.

        Args:
            kdf: Key derivation function for new blobs ("scrypt" or "pbkdf2").
            iterations: KDF cost override (scrypt n must be a power of two).
                        Defaults to the eth-account cost.
        """
        if kdf not in ("scrypt", "pbkdf2"):
            raise ValueError(f"Unsupported KDF: {kdf}")
        self._kdf = kdf
        self._iterations = iterations

    def generate(self) -> WalletKeyMaterial:
        """Create fresh key material with its recovery phrase.

        Returns:
            WalletKeyMaterial holding address, private key and mnemonic.

        Raises:
            GenerationError: If the entropy source or derivation fails.
        """
        try:
            account: LocalAccount
            account, mnemonic = Account.create_with_mnemonic()
        except (OSError, ValueError) as e:
            raise GenerationError(f"Failed to generate key material: {e}") from e

        material = WalletKeyMaterial(
            address=account.address,
            private_key=_hex_key(account.key),
            mnemonic=mnemonic,
        )
        logger.info("Generated new key material for {}", material.short_address)
        return material

    async def encrypt(self, private_key: str, password: str) -> str:
        """Encrypt a private key into a keystore blob.

        Args:
            private_key: 0x-prefixed hex private key.
            password: Password the KDF derives the encryption key from.

        Returns:
            Keystore v3 JSON text (embeds address, KDF params, IV and MAC).
        """
        keystore: dict[str, Any] = await asyncio.to_thread(
            Account.encrypt,
            private_key,
            password,
            kdf=self._kdf,
            iterations=self._iterations,
        )
        return json.dumps(keystore)

    async def decrypt(self, blob: str, password: str) -> WalletKeyMaterial:
        """Decrypt a keystore blob.

        eth-keyfile checks the MAC with hmac.compare_digest before any
        plaintext is produced.

        Args:
            blob: Keystore v3 JSON text.
            password: Password used at encryption time.

        Returns:
            WalletKeyMaterial without a mnemonic.

        Raises:
            DecryptError: For a wrong password or an unusable blob alike.
        """
        try:
            key_bytes: bytes = await asyncio.to_thread(Account.decrypt, blob, password)
            account: LocalAccount = Account.from_key(key_bytes)
        except (
            ValueError,
            KeyError,
            TypeError,
            AttributeError,
            NotImplementedError,
        ) as e:
            logger.debug("Keystore decryption failed: {}", type(e).__name__)
            raise DecryptError() from None

        return WalletKeyMaterial(
            address=account.address,
            private_key=_hex_key(account.key),
        )
