"""Subprocess-backed dump and restore drivers.

Runs argv templates (by default ``pg_dump`` / ``psql``) as blocking child
processes. Templates may reference ``{database_url}``, ``{artifact}``,
``{since}`` and ``{type}``; the same values are also exported to the child
as ``BACKUP_SINCE`` and ``BACKUP_TYPE`` so wrapper scripts can implement
incremental dumps without a placeholder.
"""

from __future__ import annotations

import os
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from gofr_backup.config import BackupSettings
from gofr_backup.exceptions import DriverExecutionError
from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import BackupType

from .base import RestoreOutput

# Tail of stderr kept in error details
STDERR_TAIL_CHARS = 2000


def _redact(argv: Sequence[str], secret: Optional[str]) -> List[str]:
    if not secret:
        return list(argv)
    return [arg.replace(secret, "***") for arg in argv]


class _CommandRunner:
    """Shared template rendering and process execution."""

    def __init__(
        self,
        argv_template: Sequence[str],
        database_url: str,
        timeout: Optional[float] = None,
        extra_env: Optional[Mapping[str, str]] = None,
        logger: Optional[Logger] = None,
    ):
        if not argv_template:
            raise ValueError("argv_template must not be empty")
        self.argv_template = list(argv_template)
        self.database_url = database_url
        self.timeout = timeout
        self.extra_env = dict(extra_env or {})
        self.logger = logger or create_logger(name="gofr-backup-driver")

    def render(self, values: Mapping[str, str]) -> List[str]:
        return [part.format(**values) for part in self.argv_template]

    def run(self, values: Mapping[str, str], env_values: Mapping[str, str]) -> subprocess.CompletedProcess:
        argv = self.render(values)
        shown = _redact(argv, self.database_url)
        env: Dict[str, str] = os.environ.copy()
        env.update(self.extra_env)
        env.update(env_values)

        self.logger.debug("Running driver command", command=" ".join(shown))
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                env=env,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise DriverExecutionError(
                f"Driver executable not found: {argv[0]}",
                details={"command": shown},
            ) from e
        except subprocess.TimeoutExpired as e:
            raise DriverExecutionError(
                f"Driver command timed out after {self.timeout}s",
                details={"command": shown, "timeout": self.timeout},
            ) from e
        except OSError as e:
            raise DriverExecutionError(
                f"Driver command could not be started: {e}",
                details={"command": shown},
            ) from e

        if result.returncode != 0:
            stderr = result.stderr or ""
            if self.database_url:
                stderr = stderr.replace(self.database_url, "***")
            raise DriverExecutionError(
                f"Driver command exited with status {result.returncode}",
                details={
                    "command": shown,
                    "returncode": result.returncode,
                    "stderr": stderr[-STDERR_TAIL_CHARS:],
                },
            )
        return result


class SubprocessDumpDriver:
    """DumpDriver that runs an external dump command.

    Example:
        driver = SubprocessDumpDriver.from_settings(settings)
        driver.dump(BackupType.FULL, Path("/backups/backup_full_x.sql"), None)
    """

    def __init__(
        self,
        argv_template: Sequence[str],
        database_url: str,
        timeout: Optional[float] = None,
        extra_env: Optional[Mapping[str, str]] = None,
        logger: Optional[Logger] = None,
    ):
        self._runner = _CommandRunner(argv_template, database_url, timeout, extra_env, logger)
        self.logger = self._runner.logger

    @classmethod
    def from_settings(cls, settings: BackupSettings, logger: Optional[Logger] = None) -> SubprocessDumpDriver:
        """Build from settings.

        Raises:
            ConfigurationError: If no database URL is configured
        """
        return cls(
            argv_template=settings.dump_argv(),
            database_url=settings.require_database_url(),
            timeout=settings.driver_timeout_seconds,
            logger=logger,
        )

    def dump(self, backup_type: BackupType, artifact_path: Path, since: Optional[datetime]) -> None:
        since_str = since.isoformat() if since else ""
        values = {
            "database_url": self._runner.database_url,
            "artifact": str(artifact_path),
            "since": since_str,
            "type": backup_type.value,
        }
        result = self._runner.run(values, {"BACKUP_SINCE": since_str, "BACKUP_TYPE": backup_type.value})

        if result.stderr and "NOTICE" not in result.stderr:
            self.logger.warning("Dump command emitted warnings", stderr=result.stderr[-STDERR_TAIL_CHARS:])

        if not artifact_path.exists():
            raise DriverExecutionError(
                "Dump command succeeded but produced no artifact",
                details={"artifact": str(artifact_path)},
            )


class SubprocessRestoreDriver:
    """RestoreDriver that runs an external restore command.

    The object inventory is parsed from the command's standard output, so
    the default ``psql`` template echoes every statement (``--echo-all``).
    """

    def __init__(
        self,
        argv_template: Sequence[str],
        database_url: str,
        timeout: Optional[float] = None,
        extra_env: Optional[Mapping[str, str]] = None,
        logger: Optional[Logger] = None,
    ):
        self._runner = _CommandRunner(argv_template, database_url, timeout, extra_env, logger)
        self.logger = self._runner.logger

    @classmethod
    def from_settings(cls, settings: BackupSettings, logger: Optional[Logger] = None) -> SubprocessRestoreDriver:
        return cls(
            argv_template=settings.restore_argv(),
            database_url=settings.require_database_url(),
            timeout=settings.driver_timeout_seconds,
            logger=logger,
        )

    def restore(self, artifact_path: Path) -> RestoreOutput:
        if not artifact_path.exists():
            raise DriverExecutionError(
                f"Backup file not found: {artifact_path}",
                details={"artifact": str(artifact_path)},
            )

        values = {
            "database_url": self._runner.database_url,
            "artifact": str(artifact_path),
            "since": "",
            "type": "",
        }
        result = self._runner.run(values, {})
        output = RestoreOutput.from_output(result.stdout or "", result.stderr or "")

        if output.warnings:
            self.logger.warning("Restore command emitted warnings", count=len(output.warnings))
        return output
