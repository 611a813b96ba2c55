"""Storage module for backup artifacts"""

from .artifacts import ArtifactStore

__all__ = ["ArtifactStore"]
