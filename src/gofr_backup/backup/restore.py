"""Restore orchestrator

Validate-then-restore workflow. A restore driver is never invoked
against a backup that is missing, incomplete or fails integrity checks.
"""

import time
from pathlib import Path
from typing import List, Optional

from gofr_backup.backup.orchestrator import BackupOrchestrator
from gofr_backup.drivers import RestoreDriver
from gofr_backup.exceptions import (
    ConfigurationError,
    GofrBackupError,
    LedgerError,
    PreconditionError,
    ResourceNotFoundError,
    RestoreFailedError,
    RestoreRejectedError,
)
from gofr_backup.ledger import Ledger
from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import (
    BackupStatus,
    RestoreLog,
    RestoreResult,
    RestoreStatus,
    utcnow,
)

PRECONDITION_MESSAGE = "Restore failed: backup not found or not completed"


class RestoreOrchestrator:
    """Restores backups and records one restore log per attempt."""

    def __init__(
        self,
        ledger: Ledger,
        backups: BackupOrchestrator,
        restore_driver: Optional[RestoreDriver] = None,
        logger: Optional[Logger] = None,
    ):
        self.ledger = ledger
        self.backups = backups
        self.restore_driver = restore_driver
        self.logger = logger or create_logger(name="gofr-backup-restore")

    def restore_from_backup(self, backup_id: str) -> RestoreResult:
        """Restore the datastore from a completed backup

        Args:
            backup_id: Id of the backup record to restore

        Returns:
            RestoreResult with the ordered list of restored objects

        Raises:
            RestoreRejectedError: If the backup is missing or not completed
                (no restore log is written)
            RestoreFailedError: If validation or the restore driver fails
                (the restore log is marked failed)
            ConfigurationError: If no restore driver is configured
        """
        record = self.ledger.get_record(backup_id)
        if record is None or record.status != BackupStatus.COMPLETED:
            self.logger.warning(
                "Restore rejected",
                backup_id=backup_id,
                status=record.status.value if record else None,
            )
            raise RestoreRejectedError(
                PRECONDITION_MESSAGE,
                details={"backup_id": backup_id, "status": record.status.value if record else None},
            )

        if self.restore_driver is None:
            raise ConfigurationError("No restore driver configured")

        started = time.monotonic()
        log = RestoreLog.create(backup_id)
        self.ledger.insert_restore_log(log)
        self.logger.info("Restore started", restore_id=log.id, backup_id=backup_id)

        try:
            validation = self.backups.validate_backup(backup_id)
            if not validation.is_valid:
                raise PreconditionError(
                    f"Backup validation failed: {validation.error_message}",
                    code="BACKUP_INVALID",
                    details=validation.to_dict(),
                )

            output = self.restore_driver.restore(Path(record.artifact_path))

            duration_ms = int((time.monotonic() - started) * 1000)
            completed = RestoreLog(
                id=log.id,
                backup_record_id=backup_id,
                status=RestoreStatus.COMPLETED,
                restore_point=log.restore_point,
                duration_ms=duration_ms,
                restored_objects=list(output.restored_objects),
                created_at=log.created_at,
                completed_at=utcnow(),
            )
            self.ledger.update_restore_log(completed)

        except Exception as e:
            duration_ms = int((time.monotonic() - started) * 1000)
            message = e.message if isinstance(e, GofrBackupError) else (str(e) or e.__class__.__name__)
            self._mark_failed(log, message, duration_ms)
            self.logger.error(
                "Restore failed",
                restore_id=log.id,
                backup_id=backup_id,
                duration_ms=duration_ms,
                error=message,
            )
            raise RestoreFailedError(
                f"Restore failed: {message}",
                details={"restore_id": log.id, "backup_id": backup_id},
            ) from e

        self.logger.info(
            "Restore completed",
            restore_id=log.id,
            backup_id=backup_id,
            duration_ms=duration_ms,
            restored_objects=len(completed.restored_objects),
        )
        return RestoreResult(
            id=log.id,
            backup_record_id=backup_id,
            duration_ms=duration_ms,
            restored_objects=completed.restored_objects,
        )

    def _mark_failed(self, log: RestoreLog, message: str, duration_ms: int) -> None:
        failed = RestoreLog(
            id=log.id,
            backup_record_id=log.backup_record_id,
            status=RestoreStatus.FAILED,
            restore_point=log.restore_point,
            duration_ms=duration_ms,
            error_message=message,
            created_at=log.created_at,
            completed_at=utcnow(),
        )
        try:
            self.ledger.update_restore_log(failed)
        except LedgerError as e:
            self.logger.critical(
                "Failed to record restore failure in ledger",
                restore_id=log.id,
                error=e.message,
            )

    def get_restore_log(self, restore_id: str) -> RestoreLog:
        log = self.ledger.get_restore_log(restore_id)
        if log is None:
            raise ResourceNotFoundError("Restore log not found", details={"id": restore_id})
        return log

    def list_restore_logs(self, backup_id: Optional[str] = None) -> List[RestoreLog]:
        return self.ledger.list_restore_logs(backup_id)
