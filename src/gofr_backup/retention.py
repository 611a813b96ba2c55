"""Backup housekeeping and retention management

Removes completed backups whose age exceeds the retention horizon of the
schedule that produced them.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from gofr_backup.ledger import Ledger
from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import BackupFilter, BackupRecord, BackupSchedule, BackupStatus, utcnow
from gofr_backup.storage import ArtifactStore

DEFAULT_RETENTION_DAYS = 30


class RetentionSweeper:
    """Deletes expired backups from the ledger and the artifact directory"""

    def __init__(
        self,
        ledger: Ledger,
        artifacts: ArtifactStore,
        default_retention_days: int = DEFAULT_RETENTION_DAYS,
        logger: Optional[Logger] = None,
    ):
        self.ledger = ledger
        self.artifacts = artifacts
        self.default_retention_days = default_retention_days
        self.logger = logger or create_logger(name="gofr-backup-retention")

    def retention_days_for(self, record: BackupRecord, schedules: Dict[str, BackupSchedule]) -> int:
        """Retention horizon for a record: its schedule's, else the default"""
        if record.schedule_id is not None:
            schedule = schedules.get(record.schedule_id)
            if schedule is not None:
                return schedule.retention_days
        return self.default_retention_days

    def cleanup_old_backups(self, now: Optional[datetime] = None) -> int:
        """Remove completed backups older than their retention horizon

        Artifact deletion failures are logged as warnings and do not stop the
        sweep; the ledger row is removed either way.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            Number of ledger rows removed
        """
        now = now or utcnow()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        schedules = {s.id: s for s in self.ledger.list_schedules()}
        completed = self.ledger.query_records(BackupFilter(status=BackupStatus.COMPLETED))

        removed_count = 0
        for record in completed:
            retention_days = self.retention_days_for(record, schedules)
            if record.created_at >= now - timedelta(days=retention_days):
                continue

            try:
                self.artifacts.delete(record.artifact_path)
            except OSError as e:
                self.logger.warning(
                    "Failed to delete expired backup artifact",
                    backup_id=record.id,
                    path=record.artifact_path,
                    error=str(e),
                )

            if self.ledger.delete_record(record.id):
                removed_count += 1
                self.logger.info(
                    "Removed expired backup",
                    backup_id=record.id,
                    backup_type=record.type.value,
                    age_days=(now - record.created_at).days,
                    retention_days=retention_days,
                )

        self.logger.info("Retention cleanup finished", removed=removed_count, examined=len(completed))
        return removed_count
