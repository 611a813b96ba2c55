"""In-memory ledger backend.

Dict-based storage that doesn't persist to disk. Ideal for unit tests and
as the base of the file backend.
"""

from __future__ import annotations

import contextlib
import copy
import threading
from typing import Dict, Iterable, Iterator, List, Optional

from gofr_backup.exceptions import LedgerError
from gofr_backup.models import (
    BackupFilter,
    BackupRecord,
    BackupSchedule,
    BackupStatus,
    BackupType,
    RestoreLog,
)


def check_record_consistency(record: BackupRecord) -> None:
    """Enforce the checksum/size/error invariants of a backup record.

    Raises:
        LedgerError: If the record state is inconsistent
    """
    has_payload = record.checksum is not None or record.size_bytes is not None
    if record.status == BackupStatus.COMPLETED:
        if record.checksum is None or record.size_bytes is None:
            raise LedgerError(
                "Completed backup record requires checksum and size",
                details={"id": record.id},
            )
    elif has_payload:
        raise LedgerError(
            "Checksum and size may only be recorded on completed backups",
            details={"id": record.id, "status": record.status.value},
        )
    if record.status == BackupStatus.FAILED and not record.error_message:
        raise LedgerError(
            "Failed backup record requires an error message",
            details={"id": record.id},
        )


class MemoryLedger:
    """In-memory ledger.

    All access goes through a single re-entrant lock so concurrent
    orchestrations can share one instance.

    Example:
        ledger = MemoryLedger()
        ledger.insert_record(record)
        ledger.get_record(record.id)
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: Dict[str, BackupRecord] = {}
        self._restore_logs: Dict[str, RestoreLog] = {}
        self._schedules: Dict[str, BackupSchedule] = {}

    def _changed(self) -> None:
        """Hook called after every mutation (persisting backends override)."""

    @contextlib.contextmanager
    def _mutation(self) -> Iterator[None]:
        """Apply the enclosed change, then persist it.

        If ``_changed`` raises, every table is put back the way it was
        before the change and the error propagates. Must be entered with
        the lock held.
        """
        snapshot = (dict(self._records), dict(self._restore_logs), dict(self._schedules))
        yield
        try:
            self._changed()
        except Exception:
            self._records, self._restore_logs, self._schedules = snapshot
            raise

    # -- backup_records ----------------------------------------------------

    def insert_record(self, record: BackupRecord) -> None:
        with self._lock:
            if record.id in self._records:
                raise LedgerError("Backup record already exists", details={"id": record.id})
            check_record_consistency(record)
            with self._mutation():
                self._records[record.id] = copy.deepcopy(record)

    def update_record(self, record: BackupRecord) -> None:
        with self._lock:
            current = self._records.get(record.id)
            if current is None:
                raise LedgerError("Backup record not found", details={"id": record.id})
            if current.status.is_terminal:
                raise LedgerError(
                    "Backup record is immutable once completed or failed",
                    details={"id": record.id, "status": current.status.value},
                )
            check_record_consistency(record)
            with self._mutation():
                self._records[record.id] = copy.deepcopy(record)

    def get_record(self, record_id: str) -> Optional[BackupRecord]:
        with self._lock:
            record = self._records.get(record_id)
            return copy.deepcopy(record) if record else None

    def query_records(self, record_filter: Optional[BackupFilter] = None) -> List[BackupRecord]:
        with self._lock:
            records = [
                copy.deepcopy(r)
                for r in self._records.values()
                if record_filter is None or record_filter.matches(r)
            ]
        records.sort(key=lambda r: r.created_at, reverse=True)
        if record_filter is not None and record_filter.limit:
            records = records[: record_filter.limit]
        return records

    def latest_completed(
        self, types: Optional[Iterable[BackupType]] = None
    ) -> Optional[BackupRecord]:
        wanted = set(types) if types is not None else None
        with self._lock:
            candidates = [
                r
                for r in self._records.values()
                if r.status == BackupStatus.COMPLETED and (wanted is None or r.type in wanted)
            ]
            if not candidates:
                return None
            return copy.deepcopy(max(candidates, key=lambda r: r.created_at))

    def delete_record(self, record_id: str) -> bool:
        with self._lock:
            if record_id not in self._records:
                return False
            with self._mutation():
                del self._records[record_id]
                for log_id in [
                    lid for lid, log in self._restore_logs.items() if log.backup_record_id == record_id
                ]:
                    del self._restore_logs[log_id]
            return True

    # -- backup_restore_logs ----------------------------------------------

    def insert_restore_log(self, log: RestoreLog) -> None:
        with self._lock:
            if log.id in self._restore_logs:
                raise LedgerError("Restore log already exists", details={"id": log.id})
            if log.backup_record_id not in self._records:
                raise LedgerError(
                    "Restore log must reference an existing backup record",
                    details={"backup_record_id": log.backup_record_id},
                )
            with self._mutation():
                self._restore_logs[log.id] = copy.deepcopy(log)

    def update_restore_log(self, log: RestoreLog) -> None:
        with self._lock:
            current = self._restore_logs.get(log.id)
            if current is None:
                raise LedgerError("Restore log not found", details={"id": log.id})
            if current.status.is_terminal:
                raise LedgerError(
                    "Restore log is immutable once finished",
                    details={"id": log.id, "status": current.status.value},
                )
            with self._mutation():
                self._restore_logs[log.id] = copy.deepcopy(log)

    def get_restore_log(self, log_id: str) -> Optional[RestoreLog]:
        with self._lock:
            log = self._restore_logs.get(log_id)
            return copy.deepcopy(log) if log else None

    def list_restore_logs(self, backup_record_id: Optional[str] = None) -> List[RestoreLog]:
        with self._lock:
            logs = [
                copy.deepcopy(log)
                for log in self._restore_logs.values()
                if backup_record_id is None or log.backup_record_id == backup_record_id
            ]
        logs.sort(key=lambda log: log.created_at, reverse=True)
        return logs

    # -- backup_schedules -------------------------------------------------

    def upsert_schedule(self, schedule: BackupSchedule) -> None:
        with self._lock:
            for other in self._schedules.values():
                if other.id != schedule.id and other.name == schedule.name:
                    raise LedgerError(
                        f"Schedule name '{schedule.name}' is already in use",
                        details={"name": schedule.name, "existing_id": other.id},
                    )
            with self._mutation():
                self._schedules[schedule.id] = copy.deepcopy(schedule)

    def get_schedule(self, schedule_id: str) -> Optional[BackupSchedule]:
        with self._lock:
            schedule = self._schedules.get(schedule_id)
            return copy.deepcopy(schedule) if schedule else None

    def list_schedules(self, active_only: bool = False) -> List[BackupSchedule]:
        with self._lock:
            schedules = [
                copy.deepcopy(s)
                for s in self._schedules.values()
                if s.is_active or not active_only
            ]
        schedules.sort(key=lambda s: s.created_at, reverse=True)
        return schedules

    def delete_schedule(self, schedule_id: str) -> bool:
        with self._lock:
            if schedule_id not in self._schedules:
                return False
            with self._mutation():
                del self._schedules[schedule_id]
            return True

    def reload(self) -> None:
        """No-op for in-memory ledger."""
        pass

    def clear(self) -> None:
        """Drop every row. Useful for test cleanup."""
        with self._lock:
            with self._mutation():
                self._records.clear()
                self._restore_logs.clear()
                self._schedules.clear()

    def __len__(self) -> int:
        """Number of backup records."""
        return len(self._records)
