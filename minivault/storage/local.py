"""Device-local single-slot storage for the encrypted keystore blob."""

import asyncio
from pathlib import Path

import aiofiles
import aiofiles.os
from loguru import logger


class LocalKeystoreStore:
    """Holds exactly one keystore blob on disk under a fixed key.

    Each save overwrites the previous blob. Writes go through a temporary
    file and an atomic rename, and are serialized by a lock so two in-flight
    operations never interleave on the slot.

    Example:
        store = LocalKeystoreStore(Path("data"), "wallet_encrypted_v1")
        await store.persist(blob)
        blob = await store.load()
        await store.clear()
    """

    def __init__(self, data_dir: Path, storage_key: str = "wallet_encrypted_v1") -> None:
        """Initialize the store.

        Args:
            data_dir: Directory holding the keystore file. Created if missing.
            storage_key: Fixed slot identifier, used as the file name.
        """
        self._data_dir = data_dir
        self._path = data_dir / f"{storage_key}.json"
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        """Location of the keystore file."""
        return self._path

    async def exists(self) -> bool:
        """Check whether a blob is stored."""
        return await aiofiles.os.path.exists(self._path)

    async def load(self) -> str | None:
        """Read the stored blob.

        Bytes that are not valid UTF-8 are replaced, so a damaged slot reads
        as a blob that fails to decrypt.

        Returns:
            The blob text, or None if the slot is empty.
        """
        try:
            async with aiofiles.open(
                self._path, "r", encoding="utf-8", errors="replace"
            ) as f:
                blob = await f.read()
        except FileNotFoundError:
            return None

        return blob or None

    async def persist(self, blob: str) -> None:
        """Store a blob, replacing any previous one."""
        async with self._lock:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(blob)
            await aiofiles.os.replace(tmp_path, self._path)

        logger.debug("Saved keystore to {}", self._path)

    async def clear(self) -> bool:
        """Irreversibly discard the stored blob.

        Returns:
            True if a blob was removed, False if the slot was already empty.
        """
        async with self._lock:
            try:
                await aiofiles.os.remove(self._path)
            except FileNotFoundError:
                return False

        logger.info("Deleted keystore {}", self._path)
        return True
