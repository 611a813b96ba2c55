"""
Logger interface for the backup engine.

Every engine component logs through this contract so tests can substitute
a capturing logger and deployments can swap the output format.
"""

from abc import ABC, abstractmethod
from typing import Any


class Logger(ABC):
    """Abstract logging interface.

    Keyword arguments passed to any level method are emitted as structured
    fields (``backup_id=...``, ``duration_ms=...``).
    """

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error message.

        Args:
            message: The message to log
            **kwargs: Structured fields; ``exc_info=True`` attaches the
                active exception traceback
        """

    @abstractmethod
    def critical(self, message: str, **kwargs: Any) -> None:
        """Log a critical message."""

    @abstractmethod
    def get_session_id(self) -> str:
        """Return the identifier shared by every entry of this logger instance."""
