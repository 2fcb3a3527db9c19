"""Transfer logging to JSONL files."""

import json
from datetime import date
from pathlib import Path
from time import time

import aiofiles
from loguru import logger

from minivault.models import TransferRecord


class TransferLogger:
    """Append-only JSONL log of broadcast transfers and their outcomes.

    Each status change of a transfer appends one line, so a transfer shows
    up once as BROADCAST and once more as CONFIRMED or FAILED. Uses daily
    file rotation. Never records key material.

    Example output (transfers_2026-10-19.jsonl):
        {"logged_at": 1792368000.0, "transfer": {"tx_hash": "0x...", "status": "BROADCAST", ...}}
        {"logged_at": 1792368012.0, "transfer": {"tx_hash": "0x...", "status": "CONFIRMED", ...}}
    """

    def __init__(self, data_dir: Path = Path("data")) -> None:
        """Initialize the transfer logger.

        Args:
            data_dir: Directory for storing transfer logs. Created if not exists.
        """
        self._data_dir = data_dir
        self._ensure_data_dir()

    def _ensure_data_dir(self) -> None:
        """Create data directory if it doesn't exist."""
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create data directory {}: {}", self._data_dir, e)

    def _get_daily_filepath(self) -> Path:
        """Get the filepath for today's transfer log."""
        return self._data_dir / f"transfers_{date.today().isoformat()}.jsonl"

    async def log_transfer(self, record: TransferRecord) -> None:
        """Append a transfer record.

        Note:
            IO errors are logged but do not raise exceptions.
            Wallet operations should not be interrupted by logging failures.
        """
        filepath = self._get_daily_filepath()

        entry = {
            "logged_at": time(),
            "transfer": record.model_dump(mode="json"),
        }

        try:
            async with aiofiles.open(filepath, "a") as f:
                await f.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.error("Failed to persist transfer to {}: {}", filepath, e)

    async def read_transfers(self, log_date: date | None = None) -> list[dict]:
        """Read all entries for a given date (default: today).

        Returns:
            List of logged entries, oldest first. Malformed lines are skipped.
        """
        if log_date is None:
            filepath = self._get_daily_filepath()
        else:
            filepath = self._data_dir / f"transfers_{log_date.isoformat()}.jsonl"

        if not filepath.exists():
            return []

        entries = []
        try:
            async with aiofiles.open(filepath, "r") as f:
                async for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(json.loads(line))
                    except json.JSONDecodeError:
                        logger.warning("Skipping malformed line in {}", filepath)
        except OSError as e:
            logger.error("Failed to read transfers from {}: {}", filepath, e)

        return entries
