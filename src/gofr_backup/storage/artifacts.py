"""Artifact store for backup files

Owns the on-disk location, naming and lifecycle of backup artifacts.
Artifacts are named ``backup_{type}_{timestamp}.{ext}`` where the
timestamp is ISO-8601 with ``:`` and ``.`` replaced by ``-`` so the name
stays portable and sorts chronologically.
"""

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Set, Union

from gofr_backup.exceptions import ConfigurationError
from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import BackupType, utcnow


class ArtifactStore:
    """File-based artifact storage rooted at a single directory"""

    def __init__(
        self,
        root_dir: Union[str, Path],
        extension: str = "sql",
        logger: Optional[Logger] = None,
    ):
        """
        Initialize the artifact store

        Args:
            root_dir: Directory artifacts are written to
            extension: Artifact file extension (without dot)
            logger: Optional logger instance
        """
        self.root_dir = Path(root_dir)
        self.extension = extension.lstrip(".")
        self.logger = logger or create_logger(name="gofr-backup-artifacts")
        self._lock = threading.Lock()
        self._issued: Set[Path] = set()

    def ensure_root(self) -> Path:
        """Create the artifact directory if needed

        Raises:
            ConfigurationError: If the directory cannot be created
        """
        try:
            self.root_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error("Failed to create artifact directory", path=str(self.root_dir), error=str(e))
            raise ConfigurationError(
                f"Artifact directory is not usable: {e}",
                details={"path": str(self.root_dir)},
            ) from e
        return self.root_dir

    @staticmethod
    def format_timestamp(moment: datetime) -> str:
        """UTC ISO-8601 timestamp (millisecond precision) with ':' and '.' as '-'

        Example: 2024-01-15T10:20:30.123Z -> 2024-01-15T10-20-30-123Z
        """
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
        return iso.replace(":", "-").replace(".", "-")

    def allocate_path(self, backup_type: BackupType, moment: Optional[datetime] = None) -> Path:
        """Reserve a unique artifact path for one backup invocation

        Two allocations within the same timestamp resolution get numeric
        suffixes (``..._1.sql``) instead of sharing a file.
        """
        stamp = self.format_timestamp(moment or utcnow())
        base = f"backup_{BackupType.coerce(backup_type).value}_{stamp}"

        with self._lock:
            candidate = self.root_dir / f"{base}.{self.extension}"
            counter = 1
            while candidate in self._issued or candidate.exists():
                candidate = self.root_dir / f"{base}_{counter}.{self.extension}"
                counter += 1
            self._issued.add(candidate)

        return candidate

    def release(self, path: Union[str, Path]) -> None:
        """Forget a reservation once the backup reached a terminal state"""
        with self._lock:
            self._issued.discard(Path(path))

    def size(self, path: Union[str, Path]) -> Optional[int]:
        """Current artifact size, or None if it is not accessible"""
        try:
            return Path(path).stat().st_size
        except OSError:
            return None

    def exists(self, path: Union[str, Path]) -> bool:
        return Path(path).is_file()

    def sidecar_paths(self, path: Union[str, Path]) -> List[Path]:
        """Checksum files written next to an artifact"""
        path = Path(path)
        return sorted(path.parent.glob(f"{path.name}.*"))

    def delete(self, path: Union[str, Path]) -> bool:
        """Delete an artifact and its sidecars

        Returns:
            True if the artifact existed and was removed, False if absent

        Raises:
            OSError: If the artifact exists but cannot be removed
        """
        path = Path(path)
        for sidecar in self.sidecar_paths(path):
            sidecar.unlink(missing_ok=True)

        if not path.exists():
            return False

        path.unlink()
        self.logger.info("Artifact deleted", path=str(path))
        return True

    def discard(self, path: Union[str, Path]) -> None:
        """Best-effort removal of a partially written artifact"""
        try:
            self.delete(path)
        except OSError as e:
            self.logger.error("Failed to cleanup partial artifact", path=str(path), error=str(e))
        finally:
            self.release(path)

    def list_artifacts(self) -> List[Path]:
        """Artifacts currently present under the root, oldest first"""
        if not self.root_dir.exists():
            return []
        return sorted(self.root_dir.glob(f"backup_*.{self.extension}"))
