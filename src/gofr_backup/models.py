"""Ledger and result models for the backup engine.

Provides the persistent records (backup records, restore logs, schedules)
and the value objects returned to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from gofr_backup.exceptions import ValidationError


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class BackupType(str, Enum):
    """Kind of snapshot a backup produces."""

    FULL = "full"
    INCREMENTAL = "incremental"
    DIFFERENTIAL = "differential"

    @classmethod
    def coerce(cls, value: Union[str, "BackupType"]) -> "BackupType":
        """Accept an enum member or its string value.

        Raises:
            ValidationError: If the value is not a known backup type
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValidationError(
                f"Invalid backup type '{value}'. Must be one of: {valid}",
                code="INVALID_BACKUP_TYPE",
                details={"type": str(value)},
            ) from None


class BackupStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (BackupStatus.COMPLETED, BackupStatus.FAILED)


class RestoreStatus(str, Enum):
    """Restore log status. ``PARTIAL`` exists in the ledger model but is never produced."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIAL = "partial"

    @property
    def is_terminal(self) -> bool:
        return self in (RestoreStatus.COMPLETED, RestoreStatus.FAILED, RestoreStatus.PARTIAL)


@dataclass
class BackupRecord:
    """One ledger row per backup attempt.

    ``checksum`` and ``size_bytes`` are set if and only if the record is
    completed; ``error_message`` is set whenever it failed.

    Attributes:
        id: Unique identifier (UUID string)
        type: Backup type
        status: Current lifecycle status
        artifact_path: Location of the produced file
        size_bytes: Artifact size (completed only)
        checksum: Artifact hex digest (completed only)
        duration_ms: Wall-clock time of the dump
        created_at: When the attempt started
        completed_at: When the attempt reached a terminal status
        error_message: Failure reason (failed only)
        schedule_id: Schedule that triggered the backup (None for ad-hoc)
        metadata: Free-form details (e.g. the reference timestamp used)
    """

    id: str
    type: BackupType
    artifact_path: str
    status: BackupStatus = BackupStatus.PENDING
    size_bytes: Optional[int] = None
    checksum: Optional[str] = None
    duration_ms: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    schedule_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        backup_type: BackupType,
        artifact_path: str,
        schedule_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> BackupRecord:
        """Factory for a new ``in_progress`` record with a generated id."""
        return cls(
            id=str(uuid4()),
            type=backup_type,
            artifact_path=artifact_path,
            status=BackupStatus.IN_PROGRESS,
            created_at=created_at or utcnow(),
            schedule_id=schedule_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "status": self.status.value,
            "artifact_path": self.artifact_path,
            "size_bytes": self.size_bytes,
            "checksum": self.checksum,
            "duration_ms": self.duration_ms,
            "created_at": _iso(self.created_at),
            "completed_at": _iso(self.completed_at),
            "error_message": self.error_message,
            "schedule_id": self.schedule_id,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BackupRecord:
        return cls(
            id=data["id"],
            type=BackupType(data["type"]),
            status=BackupStatus(data.get("status", "pending")),
            artifact_path=data["artifact_path"],
            size_bytes=data.get("size_bytes"),
            checksum=data.get("checksum"),
            duration_ms=data.get("duration_ms"),
            created_at=_parse_dt(data.get("created_at")) or utcnow(),
            completed_at=_parse_dt(data.get("completed_at")),
            error_message=data.get("error_message"),
            schedule_id=data.get("schedule_id"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class RestoreLog:
    """One ledger row per restore attempt, referencing a single backup record."""

    id: str
    backup_record_id: str
    status: RestoreStatus = RestoreStatus.PENDING
    restore_point: Optional[datetime] = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None
    restored_objects: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @classmethod
    def create(cls, backup_record_id: str) -> RestoreLog:
        now = utcnow()
        return cls(
            id=str(uuid4()),
            backup_record_id=backup_record_id,
            status=RestoreStatus.IN_PROGRESS,
            restore_point=now,
            created_at=now,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "backup_record_id": self.backup_record_id,
            "status": self.status.value,
            "restore_point": _iso(self.restore_point),
            "duration_ms": self.duration_ms,
            "error_message": self.error_message,
            "restored_objects": list(self.restored_objects),
            "created_at": _iso(self.created_at),
            "completed_at": _iso(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RestoreLog:
        return cls(
            id=data["id"],
            backup_record_id=data["backup_record_id"],
            status=RestoreStatus(data.get("status", "pending")),
            restore_point=_parse_dt(data.get("restore_point")),
            duration_ms=data.get("duration_ms"),
            error_message=data.get("error_message"),
            restored_objects=list(data.get("restored_objects") or []),
            created_at=_parse_dt(data.get("created_at")) or utcnow(),
            completed_at=_parse_dt(data.get("completed_at")),
        )


@dataclass
class BackupSchedule:
    """A named, cron-driven recurring backup definition.

    Attributes:
        id: Schedule identifier (upsert key)
        name: Unique, human-friendly name
        type: Backup type produced on every fire
        cron_expression: 5-field cron, or 6-field with leading seconds
        is_active: Inactive schedules are persisted but never fire
        retention_days: How long backups from this schedule are kept
        last_run_at: Last successful fire (written by the scheduler only)
        next_run_at: Next planned fire (written by the scheduler only)
    """

    id: str
    name: str
    type: BackupType
    cron_expression: str
    is_active: bool = True
    retention_days: int = 30
    last_run_at: Optional[datetime] = None
    next_run_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        name: str,
        backup_type: Union[str, BackupType],
        cron_expression: str,
        is_active: bool = True,
        retention_days: int = 30,
    ) -> BackupSchedule:
        return cls(
            id=str(uuid4()),
            name=name,
            type=BackupType.coerce(backup_type),
            cron_expression=cron_expression,
            is_active=is_active,
            retention_days=retention_days,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "cron_expression": self.cron_expression,
            "is_active": self.is_active,
            "retention_days": self.retention_days,
            "last_run_at": _iso(self.last_run_at),
            "next_run_at": _iso(self.next_run_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BackupSchedule:
        return cls(
            id=data["id"],
            name=data["name"],
            type=BackupType(data["type"]),
            cron_expression=data["cron_expression"],
            is_active=bool(data.get("is_active", True)),
            retention_days=int(data.get("retention_days", 30)),
            last_run_at=_parse_dt(data.get("last_run_at")),
            next_run_at=_parse_dt(data.get("next_run_at")),
            created_at=_parse_dt(data.get("created_at")) or utcnow(),
            updated_at=_parse_dt(data.get("updated_at")) or utcnow(),
        )


# ---------------------------------------------------------------------------
# Results returned to callers
# ---------------------------------------------------------------------------


@dataclass
class BackupResult:
    id: str
    type: BackupType
    size: int
    duration_ms: int
    checksum: str
    created_at: datetime
    file_path: str
    status: str = "success"
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "size": self.size,
            "duration_ms": self.duration_ms,
            "checksum": self.checksum,
            "created_at": _iso(self.created_at),
            "status": self.status,
            "file_path": self.file_path,
            "error_message": self.error_message,
        }


@dataclass
class RestoreResult:
    id: str
    backup_record_id: str
    duration_ms: int
    restored_objects: List[str] = field(default_factory=list)
    status: str = "success"
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "backup_record_id": self.backup_record_id,
            "status": self.status,
            "duration_ms": self.duration_ms,
            "restored_objects": list(self.restored_objects),
            "error_message": self.error_message,
        }


@dataclass
class ValidationResult:
    """Outcome of an integrity check. Failures are data, not exceptions."""

    is_valid: bool
    checksum: str = ""
    file_size: int = 0
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "checksum": self.checksum,
            "file_size": self.file_size,
            "error_message": self.error_message,
        }


@dataclass
class BackupInfo:
    """Listing view of a backup record."""

    id: str
    type: BackupType
    status: BackupStatus
    file_path: str
    created_at: datetime
    file_size: Optional[int] = None
    checksum: Optional[str] = None
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None

    @classmethod
    def from_record(cls, record: BackupRecord) -> BackupInfo:
        return cls(
            id=record.id,
            type=record.type,
            status=record.status,
            file_path=record.artifact_path,
            created_at=record.created_at,
            file_size=record.size_bytes,
            checksum=record.checksum,
            completed_at=record.completed_at,
            duration_ms=record.duration_ms,
            error_message=record.error_message,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "status": self.status.value,
            "file_path": self.file_path,
            "file_size": self.file_size,
            "checksum": self.checksum,
            "created_at": _iso(self.created_at),
            "completed_at": _iso(self.completed_at),
            "duration_ms": self.duration_ms,
            "error_message": self.error_message,
        }


@dataclass
class BackupFilter:
    """Predicates for listing backup records. Unset fields match everything."""

    type: Optional[BackupType] = None
    status: Optional[BackupStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: Optional[int] = None
    schedule_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type is not None:
            self.type = BackupType.coerce(self.type)
        if self.status is not None and not isinstance(self.status, BackupStatus):
            try:
                self.status = BackupStatus(str(self.status).lower())
            except ValueError:
                raise ValidationError(
                    f"Invalid backup status '{self.status}'",
                    code="INVALID_BACKUP_STATUS",
                ) from None
        # Naive bounds are taken as UTC so they compare with ledger timestamps
        if self.start_date is not None and self.start_date.tzinfo is None:
            self.start_date = self.start_date.replace(tzinfo=timezone.utc)
        if self.end_date is not None and self.end_date.tzinfo is None:
            self.end_date = self.end_date.replace(tzinfo=timezone.utc)
        if self.limit is not None and self.limit < 1:
            raise ValidationError("limit must be a positive integer", code="INVALID_LIMIT")

    def matches(self, record: BackupRecord) -> bool:
        if self.type is not None and record.type != self.type:
            return False
        if self.status is not None and record.status != self.status:
            return False
        if self.start_date is not None and record.created_at < self.start_date:
            return False
        if self.end_date is not None and record.created_at > self.end_date:
            return False
        if self.schedule_id is not None and record.schedule_id != self.schedule_id:
            return False
        return True


@dataclass
class TypeStatistics:
    """Per-type rollup derived from the ledger."""

    type: BackupType
    total_backups: int = 0
    successful_backups: int = 0
    failed_backups: int = 0
    avg_duration_ms: Optional[float] = None
    total_size_bytes: int = 0
    last_successful_backup: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "total_backups": self.total_backups,
            "successful_backups": self.successful_backups,
            "failed_backups": self.failed_backups,
            "avg_duration_ms": self.avg_duration_ms,
            "total_size_bytes": self.total_size_bytes,
            "last_successful_backup": _iso(self.last_successful_backup),
        }
