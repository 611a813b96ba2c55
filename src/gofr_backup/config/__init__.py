"""Configuration Module for the GOFR backup engine

Example:
    from gofr_backup.config import BackupSettings

    settings = BackupSettings.from_env(prefix="GOFR_BACKUP")
    print(settings.artifact_dir)
"""

from gofr_backup.config.env_loader import EnvLoader
from gofr_backup.config.settings import (
    DEFAULT_DUMP_COMMAND,
    DEFAULT_RESTORE_COMMAND,
    BackupSettings,
)

__all__ = [
    "BackupSettings",
    "EnvLoader",
    "DEFAULT_DUMP_COMMAND",
    "DEFAULT_RESTORE_COMMAND",
]
