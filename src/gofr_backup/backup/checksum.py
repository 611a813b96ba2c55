"""Backup verification module

Computes content hashes of backup artifacts and checks an artifact
against the size and checksum recorded in its ledger row.
"""

import hashlib
from pathlib import Path
from typing import Optional, Union

from gofr_backup.logger import Logger, create_logger
from gofr_backup.models import BackupRecord, BackupStatus, ValidationResult

CHUNK_SIZE = 1024 * 1024

# Messages surfaced verbatim in ValidationResult.error_message
NOT_FOUND = "Backup record not found"
NOT_COMPLETED = "Backup not completed"
NOT_ACCESSIBLE = "Backup file not accessible"
SIZE_MISMATCH = "File size mismatch"
CHECKSUM_MISMATCH = "Checksum mismatch"


class ChecksumVerifier:
    """Verifies backup file integrity"""

    def __init__(self, algorithm: str = "sha256", logger: Optional[Logger] = None):
        hashlib.new(algorithm)  # fail fast on unknown algorithms
        self.algorithm = algorithm
        self.logger = logger or create_logger(name="gofr-backup-verifier")

    def calculate_checksum(self, filepath: Union[str, Path]) -> str:
        """Calculate the hex digest of a file

        Args:
            filepath: Path to file

        Returns:
            Hexadecimal checksum string

        Raises:
            OSError: If the file cannot be read
        """
        filepath = Path(filepath)
        hash_func = hashlib.new(self.algorithm)

        with open(filepath, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                hash_func.update(chunk)

        checksum = hash_func.hexdigest()
        self.logger.debug("Checksum calculated", file=filepath.name, algorithm=self.algorithm, checksum=checksum)
        return checksum

    def save_checksum(self, filepath: Union[str, Path], checksum: str) -> Path:
        """Write a ``<artifact>.<algorithm>`` sidecar in ``sha256sum`` format

        Returns:
            Path to checksum file
        """
        filepath = Path(filepath)
        checksum_file = filepath.with_name(f"{filepath.name}.{self.algorithm}")

        with open(checksum_file, "w") as f:
            f.write(f"{checksum}  {filepath.name}\n")

        self.logger.debug("Checksum file written", path=str(checksum_file))
        return checksum_file

    def validate(self, record: Optional[BackupRecord]) -> ValidationResult:
        """Check an artifact against its ledger record

        Never raises: every failure is reported through the result. Size
        is compared before the checksum is computed.

        Args:
            record: Ledger record to verify (None when the lookup failed)

        Returns:
            ValidationResult describing the outcome
        """
        if record is None:
            return ValidationResult(is_valid=False, error_message=NOT_FOUND)

        if record.status != BackupStatus.COMPLETED or record.checksum is None or record.size_bytes is None:
            return ValidationResult(is_valid=False, error_message=NOT_COMPLETED)

        artifact = Path(record.artifact_path)
        try:
            current_size = artifact.stat().st_size
        except OSError:
            self.logger.warning("Backup file not accessible", backup_id=record.id, path=str(artifact))
            return ValidationResult(is_valid=False, error_message=NOT_ACCESSIBLE)

        if current_size != record.size_bytes:
            self.logger.warning(
                "Backup size mismatch",
                backup_id=record.id,
                expected=record.size_bytes,
                actual=current_size,
            )
            return ValidationResult(is_valid=False, file_size=current_size, error_message=SIZE_MISMATCH)

        try:
            current_checksum = self.calculate_checksum(artifact)
        except OSError as e:
            self.logger.warning("Backup file not readable", backup_id=record.id, error=str(e))
            return ValidationResult(is_valid=False, file_size=current_size, error_message=NOT_ACCESSIBLE)

        if current_checksum != record.checksum:
            self.logger.error(
                "Checksum verification failed",
                backup_id=record.id,
                expected=record.checksum,
                actual=current_checksum,
            )
            return ValidationResult(
                is_valid=False,
                checksum=current_checksum,
                file_size=current_size,
                error_message=CHECKSUM_MISMATCH,
            )

        self.logger.info("Backup verification passed", backup_id=record.id)
        return ValidationResult(is_valid=True, checksum=current_checksum, file_size=current_size)
