"""Backup engine facade

Wires settings, ledger, artifact store, drivers, orchestrators, scheduler,
retention and statistics into a single object whose methods are the
operations exposed to callers (CLI, HTTP adapters, tests).

Example:
    engine = BackupEngine.from_settings(BackupSettings.from_env())
    engine.start()
    result = engine.create_backup("full")
    engine.restore_from_backup(result.id)
    engine.shutdown()
"""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from gofr_backup.backup import BackupOrchestrator, ChecksumVerifier, RestoreOrchestrator
from gofr_backup.config import BackupSettings
from gofr_backup.drivers import (
    DumpDriver,
    RestoreDriver,
    SubprocessDumpDriver,
    SubprocessRestoreDriver,
)
from gofr_backup.ledger import Ledger, create_ledger
from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import (
    BackupFilter,
    BackupInfo,
    BackupResult,
    BackupSchedule,
    BackupType,
    RestoreLog,
    RestoreResult,
    TypeStatistics,
    ValidationResult,
)
from gofr_backup.retention import RetentionSweeper
from gofr_backup.scheduling import ApschedulerCronBackend, BackupScheduler, CronBackend
from gofr_backup.statistics import StatisticsAggregator
from gofr_backup.storage import ArtifactStore


class BackupEngine:
    """Single entry point for every backup and restore operation"""

    def __init__(
        self,
        settings: BackupSettings,
        ledger: Ledger,
        artifacts: ArtifactStore,
        dump_driver: Optional[DumpDriver] = None,
        restore_driver: Optional[RestoreDriver] = None,
        cron_backend: Optional[CronBackend] = None,
        logger: Optional[Logger] = None,
    ):
        self.settings = settings
        self.ledger = ledger
        self.artifacts = artifacts
        self.logger = logger or create_logger(name="gofr-backup")

        self.verifier = ChecksumVerifier(settings.checksum_algorithm, logger=self.logger)
        self.backups = BackupOrchestrator(
            ledger,
            artifacts,
            self.verifier,
            dump_driver=dump_driver,
            lookback_days=settings.reference_lookback_days,
            write_checksum_files=settings.write_checksum_files,
            logger=self.logger,
        )
        self.restores = RestoreOrchestrator(ledger, self.backups, restore_driver, logger=self.logger)
        self.sweeper = RetentionSweeper(
            ledger,
            artifacts,
            default_retention_days=settings.default_retention_days,
            logger=self.logger,
        )
        self.statistics = StatisticsAggregator(ledger, logger=self.logger)
        self.scheduler = BackupScheduler(
            ledger,
            self.backups,
            cron_backend
            or ApschedulerCronBackend(
                timezone=settings.timezone,
                max_workers=settings.max_workers,
                logger=self.logger,
            ),
            sweeper=self.sweeper,
            cleanup_schedule=settings.cleanup_schedule,
            logger=self.logger,
        )

    @classmethod
    def from_settings(
        cls,
        settings: BackupSettings,
        dump_driver: Optional[DumpDriver] = None,
        restore_driver: Optional[RestoreDriver] = None,
        cron_backend: Optional[CronBackend] = None,
        logger: Optional[Logger] = None,
    ) -> BackupEngine:
        """Build an engine from settings

        Subprocess drivers are created when a database URL is configured and
        no driver is passed in. Without either, backup and restore calls
        raise ConfigurationError while the read-only operations keep working.

        Raises:
            ConfigurationError: If the ledger backend cannot be created
        """
        logger = logger or create_logger(name="gofr-backup")

        ledger = create_ledger(
            settings.ledger_backend,
            path=settings.resolved_ledger_path,
            logger=logger,
        )
        artifacts = ArtifactStore(
            settings.artifact_dir,
            extension=settings.artifact_extension,
            logger=logger,
        )

        if settings.database_url:
            if dump_driver is None:
                dump_driver = SubprocessDumpDriver.from_settings(settings, logger=logger)
            if restore_driver is None:
                restore_driver = SubprocessRestoreDriver.from_settings(settings, logger=logger)

        return cls(
            settings,
            ledger,
            artifacts,
            dump_driver=dump_driver,
            restore_driver=restore_driver,
            cron_backend=cron_backend,
            logger=logger,
        )

    # Lifecycle

    def start(self) -> int:
        """Start the scheduler. Returns the number of schedules registered."""
        return self.scheduler.start()

    def shutdown(self) -> None:
        self.scheduler.destroy()

    def __enter__(self) -> BackupEngine:
        return self

    def __exit__(self, *exc_info) -> None:
        if self.scheduler.started:
            self.shutdown()

    # Backups

    def create_backup(
        self, backup_type: Union[str, BackupType], schedule_id: Optional[str] = None
    ) -> BackupResult:
        return self.backups.create_backup(backup_type, schedule_id=schedule_id)

    def list_backups(self, backup_filter: Optional[BackupFilter] = None) -> List[BackupInfo]:
        return self.backups.list_backups(backup_filter)

    def get_backup(self, backup_id: str) -> BackupInfo:
        return self.backups.get_backup(backup_id)

    def validate_backup(self, backup_id: str) -> ValidationResult:
        return self.backups.validate_backup(backup_id)

    def delete_backup(self, backup_id: str) -> bool:
        return self.backups.delete_backup(backup_id)

    # Restores

    def restore_from_backup(self, backup_id: str) -> RestoreResult:
        return self.restores.restore_from_backup(backup_id)

    def get_restore_log(self, restore_id: str) -> RestoreLog:
        return self.restores.get_restore_log(restore_id)

    def list_restore_logs(self, backup_id: Optional[str] = None) -> List[RestoreLog]:
        return self.restores.list_restore_logs(backup_id)

    # Schedules

    def schedule_backup(self, schedule: BackupSchedule) -> BackupSchedule:
        return self.scheduler.schedule_backup(schedule)

    def create_schedule(
        self,
        name: str,
        backup_type: Union[str, BackupType],
        cron_expression: str,
        retention_days: Optional[int] = None,
        is_active: bool = True,
    ) -> BackupSchedule:
        schedule = BackupSchedule.create(
            name,
            backup_type,
            cron_expression,
            is_active=is_active,
            retention_days=retention_days or self.settings.default_retention_days,
        )
        return self.scheduler.schedule_backup(schedule)

    def update_schedule(self, schedule_id: str, **changes) -> BackupSchedule:
        return self.scheduler.update_schedule(schedule_id, **changes)

    def activate_schedule(self, schedule_id: str) -> BackupSchedule:
        return self.scheduler.activate_schedule(schedule_id)

    def deactivate_schedule(self, schedule_id: str) -> BackupSchedule:
        return self.scheduler.deactivate_schedule(schedule_id)

    def delete_schedule(self, schedule_id: str) -> bool:
        return self.scheduler.delete_schedule(schedule_id)

    def get_schedule(self, schedule_id: str) -> BackupSchedule:
        return self.scheduler.get_schedule(schedule_id)

    def list_schedules(self, active_only: bool = False) -> List[BackupSchedule]:
        return self.scheduler.list_schedules(active_only=active_only)

    def run_schedule_now(self, schedule_id: str) -> BackupResult:
        return self.scheduler.run_schedule_now(schedule_id)

    # Housekeeping and reporting

    def cleanup_old_backups(self) -> int:
        return self.sweeper.cleanup_old_backups()

    def get_backup_statistics(self) -> Dict[BackupType, TypeStatistics]:
        return self.statistics.get_backup_statistics()
