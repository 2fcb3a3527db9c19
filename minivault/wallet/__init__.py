"""Wallet key custody module.

Provides key generation and keystore encryption/decryption.
"""

from minivault.wallet.custody import KeyCustody, keystore_address

__all__ = ["KeyCustody", "keystore_address"]
