"""GOFR Backup - Backup and restore engine for GOFR datastores.

This package produces, validates, schedules and restores point-in-time
snapshots of a relational datastore:
- backup: Backup/restore orchestration and checksum verification
- scheduling: Cron-driven backup schedules (APScheduler)
- ledger: Persistence of backup records, restore logs and schedules
- drivers: Pluggable dump/restore drivers (pg_dump/psql by default)
- config: Typed settings with environment variable overrides
- logger: Structured logging with session tracking and JSON support
- exceptions: Exception classes with structured error info
"""

__version__ = "1.0.0"

# Re-export commonly used items for convenience
from gofr_backup.backup import BackupOrchestrator, ChecksumVerifier, RestoreOrchestrator
from gofr_backup.config import BackupSettings
from gofr_backup.engine import BackupEngine
from gofr_backup.exceptions import (
    BackupFailedError,
    ConfigurationError,
    GofrBackupError,
    PreconditionError,
    ResourceNotFoundError,
    RestoreFailedError,
    RestoreRejectedError,
    ScheduleError,
    ValidationError,
)
from gofr_backup.logger import Logger, StructuredLogger, create_logger, get_logger
from gofr_backup.models import (
    BackupFilter,
    BackupInfo,
    BackupRecord,
    BackupResult,
    BackupSchedule,
    BackupStatus,
    BackupType,
    RestoreLog,
    RestoreResult,
    RestoreStatus,
    TypeStatistics,
    ValidationResult,
)
from gofr_backup.retention import RetentionSweeper
from gofr_backup.scheduling import BackupScheduler
from gofr_backup.statistics import StatisticsAggregator

__all__ = [
    "__version__",
    # Engine
    "BackupEngine",
    "BackupSettings",
    "BackupOrchestrator",
    "RestoreOrchestrator",
    "ChecksumVerifier",
    "BackupScheduler",
    "RetentionSweeper",
    "StatisticsAggregator",
    # Models
    "BackupType",
    "BackupStatus",
    "RestoreStatus",
    "BackupRecord",
    "RestoreLog",
    "BackupSchedule",
    "BackupResult",
    "RestoreResult",
    "ValidationResult",
    "BackupInfo",
    "BackupFilter",
    "TypeStatistics",
    # Logger
    "Logger",
    "StructuredLogger",
    "create_logger",
    "get_logger",
    # Exceptions
    "GofrBackupError",
    "ConfigurationError",
    "ValidationError",
    "ScheduleError",
    "ResourceNotFoundError",
    "PreconditionError",
    "BackupFailedError",
    "RestoreFailedError",
    "RestoreRejectedError",
]
