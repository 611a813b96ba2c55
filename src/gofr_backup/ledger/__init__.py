"""Ledger persistence for backup records, restore logs and schedules."""

from .base import Ledger
from .factory import LedgerBackend, create_ledger
from .file import FileLedger
from .memory import MemoryLedger, check_record_consistency

__all__ = [
    "Ledger",
    "LedgerBackend",
    "MemoryLedger",
    "FileLedger",
    "create_ledger",
    "check_record_consistency",
]
