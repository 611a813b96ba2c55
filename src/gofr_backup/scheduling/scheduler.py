"""Backup scheduler

Registers persisted BackupSchedules with a cron backend and runs the
scheduled backups. Each schedule moves through
``unregistered -> scheduled -> (fired -> scheduled)* -> unregistered``.
"""

from __future__ import annotations

from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING, List, Optional, Union

from gofr_backup.exceptions import (
    GofrBackupError,
    LedgerError,
    ResourceNotFoundError,
    ScheduleError,
)
from gofr_backup.ledger import Ledger
from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import BackupResult, BackupSchedule, BackupType, utcnow

from .cron import CronBackend, validate_cron_expression
from .registry import JobRegistry

if TYPE_CHECKING:
    from gofr_backup.backup import BackupOrchestrator
    from gofr_backup.retention import RetentionSweeper

CLEANUP_JOB_ID = "retention-cleanup"


class BackupScheduler:
    """Drives cron-scheduled backups and the periodic retention sweep."""

    def __init__(
        self,
        ledger: Ledger,
        backups: BackupOrchestrator,
        backend: CronBackend,
        sweeper: Optional[RetentionSweeper] = None,
        cleanup_schedule: Optional[str] = None,
        logger: Optional[Logger] = None,
    ):
        self.ledger = ledger
        self.backups = backups
        self.backend = backend
        self.sweeper = sweeper
        self.cleanup_schedule = cleanup_schedule
        self.registry = JobRegistry()
        self.logger = logger or create_logger(name="gofr-backup-scheduler")
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> int:
        """Start the cron backend and register every active schedule

        Schedules whose persisted cron expression no longer parses are
        logged and skipped.

        Returns:
            Number of schedules registered
        """
        self.backend.start()

        registered = 0
        for schedule in self.ledger.list_schedules(active_only=True):
            try:
                self.schedule_backup(schedule)
                registered += 1
            except GofrBackupError as e:
                self.logger.error(
                    "Failed to register schedule",
                    schedule_id=schedule.id,
                    name=schedule.name,
                    error=e.message,
                )

        if self.cleanup_schedule and self.sweeper is not None:
            with self.registry.lock:
                # Old and new handles share the job id
                self.registry.unregister(CLEANUP_JOB_ID)
                handle = self.backend.register(CLEANUP_JOB_ID, self.cleanup_schedule, self._run_cleanup)
                self.registry.register(CLEANUP_JOB_ID, handle)
            self.logger.info(
                "Retention cleanup scheduled",
                cron_expression=self.cleanup_schedule,
                next_run_at=handle.next_run_time,
            )

        self._started = True
        self.logger.info("Backup scheduler started", schedules=registered)
        return registered

    def destroy(self) -> None:
        """Stop every job and shut the cron backend down"""
        stopped = self.registry.destroy_all()
        self.backend.shutdown(wait=False)
        self._started = False
        self.logger.info("Backup scheduler stopped", jobs_stopped=stopped)

    # ------------------------------------------------------------------
    # Schedule management
    # ------------------------------------------------------------------

    def _validate(self, schedule: BackupSchedule) -> None:
        if not schedule.name or not schedule.name.strip():
            raise ScheduleError("Schedule name must not be empty")
        if schedule.retention_days < 1:
            raise ScheduleError(
                "retention_days must be at least 1",
                details={"retention_days": schedule.retention_days},
            )
        validate_cron_expression(schedule.cron_expression)

    def schedule_backup(self, schedule: BackupSchedule) -> BackupSchedule:
        """Persist a schedule and (re)register its cron job

        Calling this twice with the same schedule id leaves exactly one
        registered job.

        Raises:
            ScheduleError: If the cron expression, name or retention is
                invalid (nothing is persisted)
            LedgerError: If the row cannot be stored, e.g. a duplicate name
        """
        self._validate(schedule)

        with self.registry.lock:
            self.registry.unregister(schedule.id)

            existing = self.ledger.get_schedule(schedule.id)
            if existing is not None:
                schedule.created_at = existing.created_at
            schedule.updated_at = utcnow()

            if schedule.is_active:
                handle = self.backend.register(
                    schedule.id,
                    schedule.cron_expression,
                    partial(self._fire, schedule.id),
                )
                self.registry.register(schedule.id, handle)
                schedule.next_run_at = handle.next_run_time
            else:
                schedule.next_run_at = None

            try:
                self.ledger.upsert_schedule(schedule)
            except LedgerError:
                self.registry.unregister(schedule.id)
                raise

        self.logger.info(
            "Schedule saved",
            schedule_id=schedule.id,
            name=schedule.name,
            backup_type=schedule.type.value,
            cron_expression=schedule.cron_expression,
            active=schedule.is_active,
            next_run_at=schedule.next_run_at,
        )
        return schedule

    def get_schedule(self, schedule_id: str) -> BackupSchedule:
        schedule = self.ledger.get_schedule(schedule_id)
        if schedule is None:
            raise ResourceNotFoundError("Schedule not found", details={"id": schedule_id})
        return schedule

    def list_schedules(self, active_only: bool = False) -> List[BackupSchedule]:
        return self.ledger.list_schedules(active_only=active_only)

    def update_schedule(
        self,
        schedule_id: str,
        name: Optional[str] = None,
        backup_type: Optional[Union[str, BackupType]] = None,
        cron_expression: Optional[str] = None,
        retention_days: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> BackupSchedule:
        """Apply partial changes to a stored schedule and re-register it"""
        with self.registry.lock:
            schedule = self.get_schedule(schedule_id)
            if name is not None:
                schedule.name = name
            if backup_type is not None:
                schedule.type = BackupType.coerce(backup_type)
            if cron_expression is not None:
                schedule.cron_expression = cron_expression
            if retention_days is not None:
                schedule.retention_days = retention_days
            if is_active is not None:
                schedule.is_active = is_active
            return self.schedule_backup(schedule)

    def activate_schedule(self, schedule_id: str) -> BackupSchedule:
        return self.update_schedule(schedule_id, is_active=True)

    def deactivate_schedule(self, schedule_id: str) -> BackupSchedule:
        return self.update_schedule(schedule_id, is_active=False)

    def delete_schedule(self, schedule_id: str) -> bool:
        """Unregister the job and delete the row. Backups it produced are kept."""
        with self.registry.lock:
            self.registry.unregister(schedule_id)
            deleted = self.ledger.delete_schedule(schedule_id)
        if deleted:
            self.logger.info("Schedule deleted", schedule_id=schedule_id)
        return deleted

    def registered_ids(self) -> List[str]:
        """Ids with a live cron job, including the retention job"""
        return self.registry.ids()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run_schedule_now(self, schedule_id: str) -> BackupResult:
        """Run a schedule's backup synchronously, outside its cron timing

        Unlike a timer fire, errors propagate to the caller.
        """
        schedule = self.get_schedule(schedule_id)
        result = self.backups.create_backup(schedule.type, schedule_id=schedule.id)
        self._record_run(schedule.id, utcnow())
        return result

    def _fire(self, schedule_id: str) -> None:
        # Runs on a backend worker thread; nothing may escape
        try:
            schedule = self.ledger.get_schedule(schedule_id)
            if schedule is None or not schedule.is_active:
                self.logger.warning("Skipping fire for missing or inactive schedule", schedule_id=schedule_id)
                return

            self.logger.info(
                "Scheduled backup starting",
                schedule_id=schedule.id,
                name=schedule.name,
                backup_type=schedule.type.value,
            )
            ran_at: Optional[datetime] = None
            try:
                result = self.backups.create_backup(schedule.type, schedule_id=schedule.id)
                ran_at = utcnow()
                self.logger.info("Scheduled backup completed", schedule_id=schedule.id, backup_id=result.id)
            except Exception as e:
                self.logger.error(
                    "Scheduled backup failed",
                    schedule_id=schedule.id,
                    name=schedule.name,
                    error=str(e),
                )
            self._record_run(schedule.id, ran_at)
        except Exception as e:
            self.logger.error("Unexpected error in scheduled job", schedule_id=schedule_id, error=str(e), exc_info=True)

    def _record_run(self, schedule_id: str, ran_at: Optional[datetime]) -> None:
        with self.registry.lock:
            schedule = self.ledger.get_schedule(schedule_id)
            if schedule is None:
                return
            if ran_at is not None:
                schedule.last_run_at = ran_at
            handle = self.registry.get(schedule_id)
            schedule.next_run_at = handle.next_run_time if handle is not None else None
            try:
                self.ledger.upsert_schedule(schedule)
            except LedgerError as e:
                self.logger.error("Failed to record schedule run", schedule_id=schedule_id, error=e.message)

    def _run_cleanup(self) -> None:
        try:
            removed = self.sweeper.cleanup_old_backups()
            self.logger.info("Scheduled retention cleanup finished", removed=removed)
        except Exception as e:
            self.logger.error("Scheduled retention cleanup failed", error=str(e), exc_info=True)
