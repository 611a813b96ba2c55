"""
GOFR Backup Logger Module

Usage:
    from gofr_backup.logger import get_logger, create_logger

    logger = get_logger("gofr-backup")
    logger.info("Backup started", backup_type="full")

Environment Variables:
    {PREFIX}_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    {PREFIX}_LOG_FILE: Optional file path for log output
    {PREFIX}_LOG_JSON: Set to "true" for JSON output format

    Where {PREFIX} is GOFR_BACKUP by default. Component loggers
    ("gofr-backup-scheduler", ...) read the shared GOFR_BACKUP prefix unless
    an explicit env_prefix is given.
"""

import logging
import os
from typing import Optional

from .interface import Logger
from .structured_logger import JsonFormatter, StructuredLogger, TextFormatter

DEFAULT_ENV_PREFIX = "GOFR_BACKUP"


def _get_env_prefix(name: str) -> str:
    """Map a logger name onto its environment prefix.

    Examples:
        "gofr-backup" -> "GOFR_BACKUP"
        "gofr-backup-scheduler" -> "GOFR_BACKUP"
        "custom-tool" -> "CUSTOM_TOOL"
    """
    if name == "gofr-backup" or name.startswith("gofr-backup-"):
        return DEFAULT_ENV_PREFIX
    return name.upper().replace("-", "_")


def create_logger(
    name: str = "gofr-backup",
    level: Optional[int] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
    env_prefix: Optional[str] = None,
) -> Logger:
    """Create a logger, filling unspecified options from the environment.

    Args:
        name: Logger name
        level: Logging level (defaults to {PREFIX}_LOG_LEVEL or INFO)
        log_file: Optional file path (defaults to {PREFIX}_LOG_FILE)
        json_format: JSON output (defaults to {PREFIX}_LOG_JSON == "true")
        env_prefix: Override the environment prefix derived from the name

    Returns:
        A configured Logger instance
    """
    prefix = env_prefix or _get_env_prefix(name)

    if level is None:
        level_str = os.environ.get(f"{prefix}_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_str, logging.INFO)

    if log_file is None:
        log_file = os.environ.get(f"{prefix}_LOG_FILE")

    if json_format is None:
        json_format = os.environ.get(f"{prefix}_LOG_JSON", "false").lower() == "true"

    return StructuredLogger(
        name=name,
        level=level,
        log_file=log_file,
        json_format=json_format,
    )


def get_logger(name: str = "gofr-backup") -> Logger:
    """Get a logger configured purely from environment variables."""
    return create_logger(name=name)


__all__ = [
    "Logger",
    "StructuredLogger",
    "JsonFormatter",
    "TextFormatter",
    "create_logger",
    "get_logger",
]
