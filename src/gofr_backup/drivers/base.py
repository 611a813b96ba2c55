"""Dump and restore driver protocols.

Drivers are the only components that talk to the target datastore.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from gofr_backup.models import BackupType

_CREATED_OBJECT = re.compile(
    r"^[ \t]*CREATE[ \t]+(?:OR[ \t]+REPLACE[ \t]+)?(?:UNLOGGED[ \t]+)?"
    r"(?:TABLE|VIEW|MATERIALIZED[ \t]+VIEW|SEQUENCE|FUNCTION|TYPE|(?:UNIQUE[ \t]+)?INDEX)[ \t]+"
    r"(?:IF[ \t]+NOT[ \t]+EXISTS[ \t]+)?"
    r"(?P<name>(?:\"[^\"]+\"|[\w$]+)(?:\.(?:\"[^\"]+\"|[\w$]+))?)",
    re.IGNORECASE | re.MULTILINE,
)


def parse_restored_objects(output: str) -> List[str]:
    """Extract created object names from restore output, in order of appearance.

    Duplicates (a table created twice by a ``--clean`` dump) are reported once.

    Example:
        >>> parse_restored_objects("CREATE TABLE public.users (\\nCREATE INDEX idx_a ON ...")
        ['public.users', 'idx_a']
    """
    seen: List[str] = []
    for match in _CREATED_OBJECT.finditer(output or ""):
        name = match.group("name").replace('"', "")
        if name not in seen:
            seen.append(name)
    return seen


@dataclass
class RestoreOutput:
    """What a restore driver reports back.

    Attributes:
        restored_objects: Ordered names of objects the restore created
        stdout: Raw command output, kept for troubleshooting
        warnings: Non-fatal diagnostics emitted by the command
    """

    restored_objects: List[str] = field(default_factory=list)
    stdout: str = ""
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def from_output(cls, stdout: str, stderr: str = "") -> RestoreOutput:
        warnings = [
            line for line in (stderr or "").splitlines()
            if line.strip() and "NOTICE" not in line
        ]
        return cls(
            restored_objects=parse_restored_objects(stdout),
            stdout=stdout,
            warnings=warnings,
        )


@runtime_checkable
class DumpDriver(Protocol):
    """Produces a snapshot artifact of the target datastore."""

    def dump(self, backup_type: BackupType, artifact_path: Path, since: Optional[datetime]) -> None:
        """Write a snapshot to ``artifact_path``.

        Args:
            backup_type: Snapshot kind
            artifact_path: Destination file (the driver creates it)
            since: Lower bound for incremental/differential dumps, None for full

        Raises:
            DriverExecutionError: If the dump command fails or times out
        """
        ...


@runtime_checkable
class RestoreDriver(Protocol):
    """Replays a snapshot artifact into the target datastore."""

    def restore(self, artifact_path: Path) -> RestoreOutput:
        """Restore from ``artifact_path``.

        Raises:
            DriverExecutionError: If the restore command fails or times out
        """
        ...
