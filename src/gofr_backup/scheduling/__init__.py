"""Cron scheduling of backups.

Usage:
    from gofr_backup.scheduling import ApschedulerCronBackend, BackupScheduler

    scheduler = BackupScheduler(ledger, backups, ApschedulerCronBackend())
    scheduler.start()
    scheduler.schedule_backup(BackupSchedule.create("nightly", "full", "0 2 * * *"))
"""

from .cron import (
    ApschedulerCronBackend,
    CronBackend,
    parse_cron,
    translate_day_of_week,
    validate_cron_expression,
)
from .registry import JobHandle, JobRegistry
from .scheduler import CLEANUP_JOB_ID, BackupScheduler

__all__ = [
    "BackupScheduler",
    "CronBackend",
    "ApschedulerCronBackend",
    "JobHandle",
    "JobRegistry",
    "CLEANUP_JOB_ID",
    "parse_cron",
    "translate_day_of_week",
    "validate_cron_expression",
]
