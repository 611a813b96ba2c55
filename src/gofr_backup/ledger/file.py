"""File-based ledger backend.

Stores the three ledger tables as sections of a single JSON document,
written with fsync and an atomic rename so a crash mid-write never leaves
a truncated ledger behind.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional, Union

from gofr_backup.exceptions import LedgerError
from gofr_backup.ledger.memory import MemoryLedger
from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import BackupRecord, BackupSchedule, RestoreLog

SECTIONS = ("backup_records", "backup_restore_logs", "backup_schedules")


class FileLedger(MemoryLedger):
    """JSON file ledger.

    Example:
        ledger = FileLedger("/backups/ledger.json")
        ledger.insert_record(record)
    """

    def __init__(
        self,
        path: Union[str, Path],
        logger: Optional[Logger] = None,
    ) -> None:
        """Initialize the file ledger, loading any existing document.

        Args:
            path: Path to the JSON file (str or Path)
            logger: Optional logger instance

        Raises:
            LedgerError: If an existing ledger file cannot be parsed
        """
        super().__init__()
        self.path = Path(path) if isinstance(path, str) else path
        self.logger = logger or create_logger(name="gofr-backup-ledger")
        self._load()

    def _load(self) -> None:
        with self._lock:
            if not self.path.exists():
                self._records, self._restore_logs, self._schedules = {}, {}, {}
                self.logger.debug("Ledger initialized as empty", path=str(self.path))
                return

            try:
                with open(self.path, "r") as f:
                    data = json.load(f)
                self._records = {
                    rid: BackupRecord.from_dict(row)
                    for rid, row in data.get("backup_records", {}).items()
                }
                self._restore_logs = {
                    lid: RestoreLog.from_dict(row)
                    for lid, row in data.get("backup_restore_logs", {}).items()
                }
                self._schedules = {
                    sid: BackupSchedule.from_dict(row)
                    for sid, row in data.get("backup_schedules", {}).items()
                }
            except (OSError, ValueError, KeyError) as e:
                # Refuse to start over an unreadable ledger: an empty one
                # would silently orphan every existing artifact
                self.logger.error("Failed to load ledger", path=str(self.path), error=str(e))
                raise LedgerError(
                    f"Failed to load ledger: {e}", details={"path": str(self.path)}
                ) from e

            self.logger.debug(
                "Ledger loaded from disk",
                path=str(self.path),
                records=len(self._records),
                restore_logs=len(self._restore_logs),
                schedules=len(self._schedules),
            )

    def _changed(self) -> None:
        data = {
            "backup_records": {rid: r.to_dict() for rid, r in self._records.items()},
            "backup_restore_logs": {lid: log.to_dict() for lid, log in self._restore_logs.items()},
            "backup_schedules": {sid: s.to_dict() for sid, s in self._schedules.items()},
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            self.logger.error("Failed to save ledger", path=str(self.path), error=str(e))
            raise LedgerError(
                f"Failed to save ledger: {e}", details={"path": str(self.path)}
            ) from e

    def reload(self) -> None:
        """Reload data from disk."""
        self._load()
