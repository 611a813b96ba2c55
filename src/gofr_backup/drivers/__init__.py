"""Dump/restore drivers and reference timestamp selection."""

from .base import DumpDriver, RestoreDriver, RestoreOutput, parse_restored_objects
from .reference import DEFAULT_LOOKBACK_DAYS, reference_timestamp
from .subprocess_driver import SubprocessDumpDriver, SubprocessRestoreDriver

__all__ = [
    "DumpDriver",
    "RestoreDriver",
    "RestoreOutput",
    "parse_restored_objects",
    "reference_timestamp",
    "DEFAULT_LOOKBACK_DAYS",
    "SubprocessDumpDriver",
    "SubprocessRestoreDriver",
]
