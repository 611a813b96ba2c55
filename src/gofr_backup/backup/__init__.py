"""Backup and restore orchestration

Usage:
    from gofr_backup.backup import BackupOrchestrator, RestoreOrchestrator

    result = backups.create_backup("full")
    backups.validate_backup(result.id)
    restores.restore_from_backup(result.id)
"""

from gofr_backup.backup.checksum import ChecksumVerifier
from gofr_backup.backup.orchestrator import BackupOrchestrator
from gofr_backup.backup.restore import RestoreOrchestrator

__all__ = [
    "ChecksumVerifier",
    "BackupOrchestrator",
    "RestoreOrchestrator",
]
