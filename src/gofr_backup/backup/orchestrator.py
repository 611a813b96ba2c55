"""Backup orchestrator

Coordinates the end-to-end backup lifecycle: ledger record creation, dump
driver invocation, artifact verification and the terminal status update.
"""

import time
from pathlib import Path
from typing import List, Optional, Union

from gofr_backup.backup.checksum import ChecksumVerifier
from gofr_backup.drivers import DEFAULT_LOOKBACK_DAYS, DumpDriver, reference_timestamp
from gofr_backup.exceptions import (
    BackupFailedError,
    ConfigurationError,
    DriverExecutionError,
    GofrBackupError,
    LedgerError,
    PreconditionError,
    ResourceNotFoundError,
)
from gofr_backup.ledger import Ledger
from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import (
    BackupFilter,
    BackupInfo,
    BackupRecord,
    BackupResult,
    BackupStatus,
    BackupType,
    ValidationResult,
    utcnow,
)
from gofr_backup.storage import ArtifactStore


def _error_message(error: BaseException) -> str:
    if isinstance(error, GofrBackupError):
        return error.message
    return str(error) or error.__class__.__name__


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class BackupOrchestrator:
    """Creates, validates, lists and deletes backups.

    The orchestrator is the only writer of backup records. Every failure
    path updates the ledger before the error propagates.
    """

    def __init__(
        self,
        ledger: Ledger,
        artifacts: ArtifactStore,
        verifier: ChecksumVerifier,
        dump_driver: Optional[DumpDriver] = None,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        write_checksum_files: bool = True,
        logger: Optional[Logger] = None,
    ):
        self.ledger = ledger
        self.artifacts = artifacts
        self.verifier = verifier
        self.dump_driver = dump_driver
        self.lookback_days = lookback_days
        self.write_checksum_files = write_checksum_files
        self.logger = logger or create_logger(name="gofr-backup-orchestrator")

    def create_backup(
        self,
        backup_type: Union[str, BackupType],
        schedule_id: Optional[str] = None,
    ) -> BackupResult:
        """Create a backup of the given type

        Args:
            backup_type: full, incremental or differential
            schedule_id: Schedule that triggered the backup, None for ad-hoc

        Returns:
            BackupResult for the completed backup

        Raises:
            ValidationError: If the type is unknown
            ConfigurationError: If no dump driver or artifact directory is usable
            BackupFailedError: If the dump or verification failed (the
                ledger record is already marked failed)
        """
        btype = BackupType.coerce(backup_type)
        if self.dump_driver is None:
            raise ConfigurationError("No dump driver configured")
        self.artifacts.ensure_root()

        started = time.monotonic()
        now = utcnow()
        artifact_path = self.artifacts.allocate_path(btype, now)
        since = reference_timestamp(btype, self.ledger, now, self.lookback_days)

        record = BackupRecord.create(btype, str(artifact_path), schedule_id=schedule_id, created_at=now)
        record.metadata["since"] = since.isoformat() if since else None

        try:
            self.ledger.insert_record(record)
        except LedgerError as e:
            self.artifacts.release(artifact_path)
            self.logger.error("Failed to create backup record", backup_type=btype.value, error=e.message)
            raise BackupFailedError(
                f"Backup failed: {e.message}", details={"type": btype.value}
            ) from e

        self.logger.info(
            "Backup started",
            backup_id=record.id,
            backup_type=btype.value,
            artifact=artifact_path.name,
            since=record.metadata["since"],
        )

        try:
            self.dump_driver.dump(btype, artifact_path, since)

            size = self.artifacts.size(artifact_path)
            if size is None:
                raise DriverExecutionError(
                    "Dump finished without producing an artifact",
                    details={"artifact": str(artifact_path)},
                )
            checksum = self.verifier.calculate_checksum(artifact_path)
            if self.write_checksum_files:
                self.verifier.save_checksum(artifact_path, checksum)

            duration_ms = _elapsed_ms(started)
            record.status = BackupStatus.COMPLETED
            record.size_bytes = size
            record.checksum = checksum
            record.duration_ms = duration_ms
            record.completed_at = utcnow()
            self.ledger.update_record(record)

        except Exception as e:
            duration_ms = _elapsed_ms(started)
            message = _error_message(e)
            self._mark_failed(record, message, duration_ms)
            self.artifacts.discard(artifact_path)
            self.logger.error(
                "Backup failed",
                backup_id=record.id,
                backup_type=btype.value,
                duration_ms=duration_ms,
                error=message,
            )
            raise BackupFailedError(
                f"Backup failed: {message}",
                details={"backup_id": record.id, "type": btype.value},
            ) from e

        self.artifacts.release(artifact_path)
        self.logger.info(
            "Backup completed",
            backup_id=record.id,
            backup_type=btype.value,
            size_bytes=size,
            duration_ms=duration_ms,
        )

        return BackupResult(
            id=record.id,
            type=btype,
            size=size,
            duration_ms=duration_ms,
            checksum=checksum,
            created_at=record.created_at,
            file_path=str(artifact_path),
        )

    def _mark_failed(self, record: BackupRecord, message: str, duration_ms: int) -> None:
        failed = BackupRecord(
            id=record.id,
            type=record.type,
            artifact_path=record.artifact_path,
            status=BackupStatus.FAILED,
            duration_ms=duration_ms,
            created_at=record.created_at,
            completed_at=utcnow(),
            error_message=message,
            schedule_id=record.schedule_id,
            metadata=dict(record.metadata),
        )
        try:
            self.ledger.update_record(failed)
        except LedgerError as e:
            self.logger.critical(
                "Failed to record backup failure in ledger",
                backup_id=record.id,
                error=e.message,
            )

    def validate_backup(self, backup_id: str) -> ValidationResult:
        """Check a backup's artifact against its recorded size and checksum

        Validation is a query: it never raises and never mutates the ledger.
        """
        try:
            record = self.ledger.get_record(backup_id)
        except GofrBackupError as e:
            self.logger.error("Backup lookup failed during validation", backup_id=backup_id, error=e.message)
            return ValidationResult(is_valid=False, error_message=e.message)
        return self.verifier.validate(record)

    def get_record(self, backup_id: str) -> BackupRecord:
        """Raises ResourceNotFoundError if the record does not exist"""
        record = self.ledger.get_record(backup_id)
        if record is None:
            raise ResourceNotFoundError("Backup not found", details={"id": backup_id})
        return record

    def get_backup(self, backup_id: str) -> BackupInfo:
        return BackupInfo.from_record(self.get_record(backup_id))

    def list_backups(self, backup_filter: Optional[BackupFilter] = None) -> List[BackupInfo]:
        """Backups matching the filter, newest first"""
        return [BackupInfo.from_record(r) for r in self.ledger.query_records(backup_filter)]

    def delete_backup(self, backup_id: str) -> bool:
        """Delete a backup's ledger row, restore logs and artifact

        Returns:
            False if the backup does not exist

        Raises:
            PreconditionError: If the backup is still running
        """
        record = self.ledger.get_record(backup_id)
        if record is None:
            return False
        if not record.status.is_terminal:
            raise PreconditionError(
                "Cannot delete a backup that is still in progress",
                details={"id": backup_id, "status": record.status.value},
            )

        try:
            self.artifacts.delete(Path(record.artifact_path))
        except OSError as e:
            self.logger.warning(
                "Failed to delete backup artifact",
                backup_id=backup_id,
                path=record.artifact_path,
                error=str(e),
            )

        deleted = self.ledger.delete_record(backup_id)
        if deleted:
            self.logger.info("Backup deleted", backup_id=backup_id)
        return deleted
