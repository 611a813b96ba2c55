"""Exceptions for the GOFR backup engine.

Usage:
    from gofr_backup.exceptions import (
        GofrBackupError,
        BackupFailedError,
        RestoreFailedError,
        ConfigurationError,
    )
"""

from gofr_backup.exceptions.base import (
    BackupFailedError,
    ConfigurationError,
    DriverExecutionError,
    GofrBackupError,
    LedgerError,
    PreconditionError,
    ResourceNotFoundError,
    RestoreFailedError,
    RestoreRejectedError,
    ScheduleError,
    ValidationError,
)

__all__ = [
    "GofrBackupError",
    "ConfigurationError",
    "ValidationError",
    "ScheduleError",
    "ResourceNotFoundError",
    "PreconditionError",
    "DriverExecutionError",
    "BackupFailedError",
    "RestoreFailedError",
    "RestoreRejectedError",
    "LedgerError",
]
