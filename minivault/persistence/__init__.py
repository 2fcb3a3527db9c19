"""Persistence layer for transfer history.

Provides:
- TransferLogger: Append-only JSONL audit trail of transfers
"""

from minivault.persistence.transfer_log import TransferLogger

__all__ = ["TransferLogger"]
