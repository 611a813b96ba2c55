"""Backup engine settings

Typed configuration for the artifact store, ledger, drivers and scheduler,
with environment variable overrides under a configurable prefix
(default ``GOFR_BACKUP``).
"""

import hashlib
import shlex
from pathlib import Path
from typing import List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from gofr_backup.config.env_loader import EnvLoader
from gofr_backup.exceptions import ConfigurationError

DEFAULT_DUMP_COMMAND = (
    "pg_dump {database_url} --no-password --clean --no-acl --no-owner -f {artifact}"
)
DEFAULT_RESTORE_COMMAND = (
    "psql {database_url} --no-password --echo-all -v ON_ERROR_STOP=1 -f {artifact}"
)


class BackupSettings(BaseModel):
    """Backup engine configuration with environment variable overrides"""

    env_prefix: str = Field(
        default="GOFR_BACKUP",
        description="Environment variable prefix the settings were loaded with"
    )

    # Artifact storage
    artifact_dir: Path = Field(
        default=Path("/backups"),
        description="Root directory for backup artifacts"
    )
    artifact_extension: str = Field(
        default="sql",
        description="Extension of produced artifacts (without leading dot)"
    )
    checksum_algorithm: str = Field(
        default="sha256",
        description="hashlib algorithm used for artifact checksums"
    )
    write_checksum_files: bool = Field(
        default=True,
        description="Write a <artifact>.<algorithm> sidecar next to each artifact"
    )

    # Target datastore
    database_url: Optional[str] = Field(
        default=None,
        description="Connection URL handed to the dump/restore driver"
    )
    dump_command: str = Field(
        default=DEFAULT_DUMP_COMMAND,
        description="Dump argv template ({database_url}, {artifact}, {since}, {type})"
    )
    restore_command: str = Field(
        default=DEFAULT_RESTORE_COMMAND,
        description="Restore argv template ({database_url}, {artifact})"
    )
    driver_timeout_seconds: float = Field(
        default=3600,
        description="Hard timeout for a single dump/restore subprocess",
        gt=0
    )

    # Retention and reference timestamps
    default_retention_days: int = Field(
        default=30,
        description="Retention horizon for ad-hoc backups",
        ge=1
    )
    reference_lookback_days: int = Field(
        default=7,
        description="Fallback window when no reference backup exists",
        ge=1
    )

    # Ledger
    ledger_backend: Literal["memory", "file"] = Field(
        default="file",
        description="Ledger persistence backend"
    )
    ledger_path: Optional[Path] = Field(
        default=None,
        description="JSON ledger file (default: <artifact_dir>/ledger.json)"
    )

    # Scheduler
    timezone: str = Field(
        default="UTC",
        description="Timezone cron expressions are evaluated in"
    )
    max_workers: int = Field(
        default=4,
        description="Worker threads available to scheduled backups",
        ge=1
    )
    cleanup_schedule: Optional[str] = Field(
        default="0 3 * * *",
        description="Cron expression for the retention sweep (empty disables)"
    )

    @field_validator("artifact_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Strip a leading dot and reject path separators"""
        v = v.strip().lstrip(".")
        if not v or "/" in v or "\\" in v:
            raise ValueError("artifact_extension must be a bare file extension")
        return v

    @field_validator("checksum_algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Only algorithms hashlib can construct are accepted"""
        v = v.lower()
        if v not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported checksum algorithm: {v}")
        return v

    @field_validator("cleanup_schedule")
    @classmethod
    def validate_cleanup_schedule(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank as disabled; otherwise require 5 or 6 cron fields"""
        if v is None or not v.strip():
            return None
        if len(v.split()) not in (5, 6):
            raise ValueError("cleanup_schedule must be a 5 or 6 field cron expression")
        return v.strip()

    @field_validator("dump_command", "restore_command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        """Commands must reference the artifact they operate on"""
        if "{artifact}" not in v:
            raise ValueError("command template must contain {artifact}")
        return v

    @property
    def resolved_ledger_path(self) -> Path:
        """Ledger file location, defaulting into the artifact directory"""
        return self.ledger_path or self.artifact_dir / "ledger.json"

    def dump_argv(self) -> List[str]:
        """Dump command template split into argv"""
        return shlex.split(self.dump_command)

    def restore_argv(self) -> List[str]:
        """Restore command template split into argv"""
        return shlex.split(self.restore_command)

    def require_database_url(self) -> str:
        """Return the datastore URL or fail before any work starts

        Raises:
            ConfigurationError: If no database URL is configured
        """
        if not self.database_url:
            raise ConfigurationError(
                "Database URL not configured",
                details={"env_var": f"{self.env_prefix}_DATABASE_URL"},
            )
        return self.database_url

    @classmethod
    def from_env(
        cls,
        prefix: str = "GOFR_BACKUP",
        env_file: Optional[Path | str] = None,
        overrides: Optional[Mapping[str, object]] = None,
    ) -> "BackupSettings":
        """Create settings from a .env file, the OS environment and overrides

        Args:
            prefix: Environment variable prefix (e.g., GOFR_BACKUP)
            env_file: Optional .env file (defaults to ./.env when present)
            overrides: Highest-precedence key/value pairs (full env var names)

        Returns:
            BackupSettings instance

        Raises:
            ConfigurationError: If a value fails validation
        """
        prefix = prefix.rstrip("_")
        env = EnvLoader(env_file).load(overrides)

        def get(suffix: str, default: Optional[str] = None) -> Optional[str]:
            return env.get(f"{prefix}_{suffix}", default)

        def flag(suffix: str, default: str) -> bool:
            return (get(suffix, default) or default).lower() == "true"

        ledger_path = get("LEDGER_PATH")
        values = {
            "env_prefix": prefix,
            "artifact_dir": Path(get("ARTIFACT_DIR", "/backups") or "/backups"),
            "artifact_extension": get("ARTIFACT_EXT", "sql"),
            "checksum_algorithm": get("CHECKSUM_ALGORITHM", "sha256"),
            "write_checksum_files": flag("WRITE_CHECKSUM_FILES", "true"),
            "database_url": get("DATABASE_URL") or env.get("DATABASE_URL"),
            "dump_command": get("DUMP_COMMAND", DEFAULT_DUMP_COMMAND),
            "restore_command": get("RESTORE_COMMAND", DEFAULT_RESTORE_COMMAND),
            "driver_timeout_seconds": get("DRIVER_TIMEOUT", "3600"),
            "default_retention_days": get("RETENTION_DAYS", "30"),
            "reference_lookback_days": get("LOOKBACK_DAYS", "7"),
            "ledger_backend": (get("LEDGER_BACKEND", "file") or "file").lower(),
            "ledger_path": Path(ledger_path) if ledger_path else None,
            "timezone": get("TIMEZONE", "UTC"),
            "max_workers": get("MAX_WORKERS", "4"),
            "cleanup_schedule": get("CLEANUP_SCHEDULE", "0 3 * * *"),
        }

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid backup configuration: {e}", details={"prefix": prefix}
            ) from e
