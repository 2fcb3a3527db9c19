"""Local persistence for encrypted key material."""

from minivault.storage.local import LocalKeystoreStore

__all__ = ["LocalKeystoreStore"]
