"""Exception classes for the GOFR backup engine.

Every error carries structured information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

Validation of a backup artifact is NOT an error: it is reported through
``ValidationResult``. Retention cleanup problems are logged, never raised.
"""

from typing import Any, Dict, Optional


class GofrBackupError(Exception):
    """Base exception for all backup engine errors.

    Attributes:
        code: Machine-readable error code (e.g., "BACKUP_FAILED")
        message: Human-readable error message
        details: Optional additional context for debugging/recovery
    """

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with structured information.

        Args:
            code: Machine-readable error code
            message: Human-readable error message
            details: Optional additional context
        """
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(GofrBackupError):
    """Required connection or storage configuration is missing or invalid.

    Raised before any ledger row is written.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="CONFIGURATION_ERROR", message=message, details=details)


class ValidationError(GofrBackupError):
    """Input data failed validation rules (bad backup type, bad filter...)."""

    def __init__(
        self, message: str, code: str = "VALIDATION_ERROR", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(code=code, message=message, details=details)


class ScheduleError(ValidationError):
    """A schedule definition is invalid (cron expression, retention, name)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_SCHEDULE", details=details)


class ResourceNotFoundError(GofrBackupError):
    """A backup record, restore log or schedule does not exist."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="NOT_FOUND", message=message, details=details)


class PreconditionError(GofrBackupError):
    """An operation was requested against a record in the wrong state.

    Raised immediately, without invoking any driver.
    """

    def __init__(
        self, message: str, code: str = "PRECONDITION_FAILED", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(code=code, message=message, details=details)


class DriverExecutionError(GofrBackupError):
    """The external dump/restore command exited non-zero, timed out or threw."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="DRIVER_EXECUTION_FAILED", message=message, details=details)


class BackupFailedError(GofrBackupError):
    """A backup attempt failed; the ledger record has already been marked failed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="BACKUP_FAILED", message=message, details=details)


class RestoreFailedError(GofrBackupError):
    """A restore attempt failed after its restore log was written.

    The underlying driver or validation error is chained as ``__cause__``.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="RESTORE_FAILED", message=message, details=details)


class RestoreRejectedError(RestoreFailedError, PreconditionError):
    """A restore was refused because the backup is missing or not completed.

    No restore log is written and no driver is invoked.
    """


class LedgerError(GofrBackupError):
    """The persistence layer rejected or failed an operation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="LEDGER_ERROR", message=message, details=details)
