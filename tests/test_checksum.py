"""Tests for checksum calculation and backup validation."""

import hashlib

import pytest

from gofr_backup.backup.checksum import (
    CHECKSUM_MISMATCH,
    NOT_ACCESSIBLE,
    NOT_COMPLETED,
    NOT_FOUND,
    SIZE_MISMATCH,
    ChecksumVerifier,
)
from gofr_backup.models import BackupRecord, BackupStatus, BackupType, utcnow


@pytest.fixture
def artifact(tmp_path):
    path = tmp_path / "backup_full_x.sql"
    path.write_bytes(b"CREATE TABLE t (id int);\n" * 100)
    return path


def _completed_record(path, verifier) -> BackupRecord:
    record = BackupRecord.create(BackupType.FULL, str(path))
    record.status = BackupStatus.COMPLETED
    record.size_bytes = path.stat().st_size
    record.checksum = verifier.calculate_checksum(path)
    record.completed_at = utcnow()
    return record


class TestCalculateChecksum:
    """Tests for calculate_checksum."""

    def test_matches_hashlib(self, artifact):
        """Test that the digest matches hashlib's."""
        expected = hashlib.sha256(artifact.read_bytes()).hexdigest()
        assert ChecksumVerifier().calculate_checksum(artifact) == expected

    def test_other_algorithm(self, artifact):
        """Test a non-default algorithm."""
        expected = hashlib.md5(artifact.read_bytes()).hexdigest()
        assert ChecksumVerifier("md5").calculate_checksum(str(artifact)) == expected

    def test_unknown_algorithm_fails_fast(self):
        """Test that construction rejects unknown algorithms."""
        with pytest.raises(ValueError):
            ChecksumVerifier("nope")

    def test_missing_file_raises(self, tmp_path):
        """Test that missing files raise OSError."""
        with pytest.raises(OSError):
            ChecksumVerifier().calculate_checksum(tmp_path / "missing")

    def test_save_checksum(self, artifact):
        """Test the sha256sum-compatible sidecar."""
        verifier = ChecksumVerifier()
        checksum = verifier.calculate_checksum(artifact)
        sidecar = verifier.save_checksum(artifact, checksum)

        assert sidecar.name == "backup_full_x.sql.sha256"
        assert sidecar.read_text() == f"{checksum}  backup_full_x.sql\n"


class TestValidate:
    """Tests for validate(record)."""

    def test_valid(self, artifact):
        """Test that an untouched artifact validates."""
        verifier = ChecksumVerifier()
        record = _completed_record(artifact, verifier)

        result = verifier.validate(record)

        assert result.is_valid is True
        assert result.checksum == record.checksum
        assert result.file_size == record.size_bytes
        assert result.error_message is None

    def test_missing_record(self):
        """Test the not-found message."""
        result = ChecksumVerifier().validate(None)
        assert not result.is_valid
        assert result.error_message == NOT_FOUND == "Backup record not found"

    def test_not_completed(self, artifact):
        """Test that in-progress records are not validated."""
        record = BackupRecord.create(BackupType.FULL, str(artifact))
        assert ChecksumVerifier().validate(record).error_message == NOT_COMPLETED

    def test_file_missing(self, artifact):
        """Test the not-accessible message."""
        verifier = ChecksumVerifier()
        record = _completed_record(artifact, verifier)
        artifact.unlink()
        assert verifier.validate(record).error_message == NOT_ACCESSIBLE

    def test_size_mismatch(self, artifact):
        """Test that a truncated file fails on size before hashing."""
        verifier = ChecksumVerifier()
        record = _completed_record(artifact, verifier)
        artifact.write_bytes(artifact.read_bytes()[:-1])

        result = verifier.validate(record)

        assert result.error_message == SIZE_MISMATCH
        assert result.file_size == record.size_bytes - 1

    def test_single_byte_corruption(self, artifact):
        """Test that flipping one byte is detected as a checksum mismatch."""
        verifier = ChecksumVerifier()
        record = _completed_record(artifact, verifier)
        data = bytearray(artifact.read_bytes())
        data[10] ^= 0x01
        artifact.write_bytes(bytes(data))

        result = verifier.validate(record)

        assert result.is_valid is False
        assert result.error_message == CHECKSUM_MISMATCH == "Checksum mismatch"
        assert result.checksum != record.checksum
