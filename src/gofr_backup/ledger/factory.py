"""Factory for ledger backends."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional, Union

from gofr_backup.exceptions import ConfigurationError
from gofr_backup.logger import Logger

from .base import Ledger
from .file import FileLedger
from .memory import MemoryLedger

LedgerBackend = Literal["memory", "file"]


def create_ledger(
    backend: LedgerBackend,
    *,
    path: Optional[Union[str, Path]] = None,
    logger: Optional[Logger] = None,
) -> Ledger:
    """Create a ledger based on backend type.

    Args:
        backend: "memory" or "file"
        path: JSON file path (required for "file")
        logger: Optional logger instance

    Returns:
        Ledger implementation

    Raises:
        ConfigurationError: If required options are missing or the backend is unknown

    Example:
        ledger = create_ledger("memory")
        ledger = create_ledger("file", path="/backups/ledger.json")
    """
    if backend == "memory":
        return MemoryLedger()

    elif backend == "file":
        if path is None:
            raise ConfigurationError("'path' is required for file ledger backend")
        return FileLedger(path=path, logger=logger)

    else:
        raise ConfigurationError(f"Unknown ledger backend: {backend}")
