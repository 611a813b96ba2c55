"""Base protocol for ledger backends.

The ledger is the durable record set describing backup and restore
history plus the schedule definitions. The engine treats it as a
transactional key-value store addressed by id and filter predicates only.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol, runtime_checkable

from gofr_backup.models import (
    BackupFilter,
    BackupRecord,
    BackupSchedule,
    BackupType,
    RestoreLog,
)


@runtime_checkable
class Ledger(Protocol):
    """Protocol for ledger storage backends.

    Implementations return copies: mutating a returned object never changes
    the stored row until it is written back through an update method.
    """

    # -- backup_records ----------------------------------------------------

    def insert_record(self, record: BackupRecord) -> None:
        """Append a new backup record.

        Raises:
            LedgerError: If a record with the same id exists
        """
        ...

    def update_record(self, record: BackupRecord) -> None:
        """Replace a non-terminal backup record.

        Raises:
            LedgerError: If the record is unknown, already terminal, or the
                new state breaks the checksum/size/error invariants
        """
        ...

    def get_record(self, record_id: str) -> Optional[BackupRecord]:
        """Retrieve a backup record by id."""
        ...

    def query_records(self, record_filter: Optional[BackupFilter] = None) -> List[BackupRecord]:
        """Records matching the filter, newest first, honouring its limit."""
        ...

    def latest_completed(
        self, types: Optional[Iterable[BackupType]] = None
    ) -> Optional[BackupRecord]:
        """Newest completed record, optionally restricted to some types."""
        ...

    def delete_record(self, record_id: str) -> bool:
        """Delete a backup record and its restore logs.

        Returns:
            True if a row was removed
        """
        ...

    # -- backup_restore_logs ----------------------------------------------

    def insert_restore_log(self, log: RestoreLog) -> None:
        """Append a new restore log."""
        ...

    def update_restore_log(self, log: RestoreLog) -> None:
        """Replace a non-terminal restore log."""
        ...

    def get_restore_log(self, log_id: str) -> Optional[RestoreLog]:
        """Retrieve a restore log by id."""
        ...

    def list_restore_logs(self, backup_record_id: Optional[str] = None) -> List[RestoreLog]:
        """Restore logs, newest first, optionally for one backup record."""
        ...

    # -- backup_schedules -------------------------------------------------

    def upsert_schedule(self, schedule: BackupSchedule) -> None:
        """Insert or replace a schedule keyed by id.

        Raises:
            LedgerError: If another schedule already uses the same name
        """
        ...

    def get_schedule(self, schedule_id: str) -> Optional[BackupSchedule]:
        """Retrieve a schedule by id."""
        ...

    def list_schedules(self, active_only: bool = False) -> List[BackupSchedule]:
        """All schedules, newest first."""
        ...

    def delete_schedule(self, schedule_id: str) -> bool:
        """Delete a schedule row."""
        ...

    def reload(self) -> None:
        """Re-read the underlying storage (no-op for memory)."""
        ...
