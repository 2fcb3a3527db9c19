"""Tests for the transfer log (TransferLogger)."""

import json
from datetime import date
from pathlib import Path

import pytest

from minivault.models import TransferRecord, TransferStatus
from minivault.persistence import TransferLogger


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory for tests."""
    return tmp_path / "data"


@pytest.fixture
def transfer_logger(temp_data_dir: Path) -> TransferLogger:
    """Create a TransferLogger instance with temporary directory."""
    return TransferLogger(data_dir=temp_data_dir)


@pytest.fixture
def sample_record() -> TransferRecord:
    """Create a sample broadcast transfer."""
    return TransferRecord(
        tx_hash="0x" + "ab" * 32,
        network_key="eth",
        destination="0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
        amount="0.1",
        explorer_url="https://etherscan.io/tx/0x" + "ab" * 32,
        created_at=1234567890.0,
        updated_at=1234567890.0,
    )


class TestTransferLoggerInit:
    """Tests for TransferLogger initialization."""

    def test_creates_data_directory(self, temp_data_dir: Path) -> None:
        """TransferLogger should create the data directory if it doesn't exist."""
        assert not temp_data_dir.exists()
        TransferLogger(data_dir=temp_data_dir)
        assert temp_data_dir.is_dir()


class TestTransferLoggerLogTransfer:
    """Tests for TransferLogger.log_transfer."""

    @pytest.mark.asyncio
    async def test_writes_daily_jsonl_file(
        self,
        transfer_logger: TransferLogger,
        temp_data_dir: Path,
        sample_record: TransferRecord,
    ) -> None:
        """A transfer should be appended to today's file."""
        await transfer_logger.log_transfer(sample_record)

        filepath = temp_data_dir / f"transfers_{date.today().isoformat()}.jsonl"
        assert filepath.exists()

        lines = filepath.read_text().strip().split("\n")
        assert len(lines) == 1

        entry = json.loads(lines[0])
        assert "logged_at" in entry
        assert entry["transfer"]["tx_hash"] == sample_record.tx_hash
        assert entry["transfer"]["status"] == "BROADCAST"
        assert entry["transfer"]["amount"] == "0.1"

    @pytest.mark.asyncio
    async def test_status_changes_append(
        self, transfer_logger: TransferLogger, sample_record: TransferRecord
    ) -> None:
        """Each status change should add a line rather than rewrite one."""
        await transfer_logger.log_transfer(sample_record)
        confirmed = sample_record.model_copy(
            update={"status": TransferStatus.CONFIRMED, "block_number": 42}
        )
        await transfer_logger.log_transfer(confirmed)

        entries = await transfer_logger.read_transfers()

        assert [e["transfer"]["status"] for e in entries] == ["BROADCAST", "CONFIRMED"]
        assert entries[1]["transfer"]["block_number"] == 42

    @pytest.mark.asyncio
    async def test_io_error_does_not_raise(
        self, tmp_path: Path, sample_record: TransferRecord
    ) -> None:
        """Logging failures should never interrupt a transfer."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file")
        transfer_logger = TransferLogger(data_dir=blocker)

        await transfer_logger.log_transfer(sample_record)


class TestTransferLoggerReadTransfers:
    """Tests for TransferLogger.read_transfers."""

    @pytest.mark.asyncio
    async def test_missing_file_returns_empty(self, transfer_logger: TransferLogger) -> None:
        assert await transfer_logger.read_transfers(date(2020, 1, 1)) == []

    @pytest.mark.asyncio
    async def test_skips_malformed_lines(
        self,
        transfer_logger: TransferLogger,
        temp_data_dir: Path,
        sample_record: TransferRecord,
    ) -> None:
        """Malformed lines should be skipped, valid ones kept."""
        await transfer_logger.log_transfer(sample_record)
        filepath = temp_data_dir / f"transfers_{date.today().isoformat()}.jsonl"
        with filepath.open("a") as f:
            f.write("{not json\n\n")

        entries = await transfer_logger.read_transfers()

        assert len(entries) == 1

    @pytest.mark.asyncio
    async def test_reads_specific_date(
        self, transfer_logger: TransferLogger, temp_data_dir: Path
    ) -> None:
        filepath = temp_data_dir / "transfers_2024-05-01.jsonl"
        filepath.write_text(json.dumps({"logged_at": 1.0, "transfer": {}}) + "\n")

        entries = await transfer_logger.read_transfers(date(2024, 5, 1))

        assert entries == [{"logged_at": 1.0, "transfer": {}}]
