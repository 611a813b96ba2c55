"""Tests for the backup orchestrator."""

import hashlib
from datetime import timedelta
from pathlib import Path
from unittest import mock

import pytest

from gofr_backup.backup import BackupOrchestrator
from gofr_backup.exceptions import (
    BackupFailedError,
    ConfigurationError,
    DriverExecutionError,
    LedgerError,
    PreconditionError,
    ResourceNotFoundError,
    ValidationError,
)
from gofr_backup.ledger import FileLedger
from gofr_backup.models import BackupFilter, BackupRecord, BackupStatus, BackupType


class FailingSaveLedger(FileLedger):
    """FileLedger whose n-th save raises."""

    def __init__(self, path, fail_on_save):
        self.saves = 0
        self.fail_on_save = fail_on_save
        super().__init__(path)

    def _changed(self):
        self.saves += 1
        if self.saves == self.fail_on_save:
            raise LedgerError("disk full")
        super()._changed()


class TestCreateBackup:
    """Tests for create_backup."""

    def test_full_backup_completes(self, backups, ledger, dump_driver):
        """Test the happy path: record, artifact, checksum and result agree."""
        payload = dump_driver.payload
        result = backups.create_backup("full")

        record = ledger.get_record(result.id)
        artifact = Path(result.file_path)
        assert record.status == BackupStatus.COMPLETED
        assert result.type is BackupType.FULL
        assert result.status == "success"
        assert artifact.read_bytes() == payload
        assert result.size == record.size_bytes == len(payload)
        assert result.checksum == record.checksum == hashlib.sha256(payload).hexdigest()
        assert record.completed_at is not None
        assert record.duration_ms >= 0
        assert dump_driver.call_count == 1

    def test_artifact_naming(self, backups, artifact_dir):
        """Test that artifacts land under the root with the type in the name."""
        result = backups.create_backup(BackupType.DIFFERENTIAL)
        path = Path(result.file_path)
        assert path.parent == artifact_dir
        assert path.name.startswith("backup_differential_")
        assert path.suffix == ".sql"

    def test_checksum_sidecar_written(self, backups):
        """Test that a sha256sum-style sidecar is written by default."""
        result = backups.create_backup("full")
        sidecar = Path(result.file_path + ".sha256")
        assert sidecar.read_text().startswith(result.checksum)

    def test_sidecar_can_be_disabled(self, ledger, artifacts, verifier, dump_driver):
        """Test write_checksum_files=False."""
        orchestrator = BackupOrchestrator(ledger, artifacts, verifier, dump_driver, write_checksum_files=False)
        result = orchestrator.create_backup("full")
        assert not Path(result.file_path + ".sha256").exists()

    def test_full_has_no_since(self, backups, dump_driver, ledger):
        """Test that full dumps are unbounded."""
        result = backups.create_backup("full")
        assert dump_driver.calls[0][2] is None
        assert ledger.get_record(result.id).metadata["since"] is None

    def test_incremental_chains_off_previous(self, backups, dump_driver):
        """Test that an incremental starts at the previous backup's creation time."""
        first = backups.create_backup("full")
        backups.create_backup("incremental")
        assert dump_driver.calls[1][2] == first.created_at

    def test_incremental_without_reference_uses_lookback(self, backups, dump_driver):
        """Test the seven day fallback window."""
        result = backups.create_backup("incremental")
        since = dump_driver.calls[0][2]
        assert result.created_at - since == timedelta(days=7)

    def test_schedule_id_recorded(self, backups, ledger):
        """Test that scheduled backups keep their schedule id."""
        result = backups.create_backup("full", schedule_id="sched-1")
        assert ledger.get_record(result.id).schedule_id == "sched-1"

    def test_invalid_type(self, backups, ledger):
        """Test that an unknown type fails before any record is written."""
        with pytest.raises(ValidationError):
            backups.create_backup("hourly")
        assert len(ledger) == 0

    def test_no_driver(self, ledger, artifacts, verifier):
        """Test that a missing driver is a configuration error."""
        with pytest.raises(ConfigurationError):
            BackupOrchestrator(ledger, artifacts, verifier).create_backup("full")

    def test_distinct_paths_for_back_to_back_backups(self, backups):
        """Test that two backups never share an artifact."""
        first = backups.create_backup("full")
        second = backups.create_backup("full")
        assert first.file_path != second.file_path
        assert first.id != second.id


class TestCreateBackupFailures:
    """Tests for the failure path of create_backup."""

    def test_driver_failure_marks_record_failed(self, backups, ledger, dump_driver):
        """Test that a driver error leaves a failed record and no artifact."""
        dump_driver.fail_with = DriverExecutionError("pg_dump exited with status 1")

        with pytest.raises(BackupFailedError) as exc_info:
            backups.create_backup("full")

        records = ledger.query_records()
        assert len(records) == 1
        record = records[0]
        assert record.status == BackupStatus.FAILED
        assert record.error_message == "pg_dump exited with status 1"
        assert record.checksum is None
        assert record.size_bytes is None
        assert record.completed_at is not None
        assert not Path(record.artifact_path).exists()
        assert exc_info.value.message == "Backup failed: pg_dump exited with status 1"
        assert isinstance(exc_info.value.__cause__, DriverExecutionError)

    def test_missing_artifact_is_failure(self, backups, ledger, dump_driver):
        """Test that a driver that writes nothing fails the backup."""
        dump_driver.write = False

        with pytest.raises(BackupFailedError):
            backups.create_backup("full")

        assert ledger.query_records()[0].status == BackupStatus.FAILED

    def test_unexpected_exception_is_wrapped(self, backups, ledger, dump_driver):
        """Test that non-engine exceptions are also recorded and wrapped."""
        dump_driver.fail_with = RuntimeError("disk full")

        with pytest.raises(BackupFailedError, match="disk full"):
            backups.create_backup("full")

        assert ledger.query_records()[0].error_message == "disk full"

    def test_ledger_insert_failure(self, backups, ledger, dump_driver):
        """Test that the driver is not called when the record cannot be written."""
        with mock.patch.object(ledger, "insert_record", side_effect=LedgerError("ledger down")):
            with pytest.raises(BackupFailedError, match="ledger down"):
                backups.create_backup("full")
        assert dump_driver.call_count == 0

    def test_completion_save_failure_marks_failed(self, tmp_path, artifacts, verifier, dump_driver):
        """Test that a ledger save error on completion leaves a failed row everywhere."""
        path = tmp_path / "ledger.json"
        ledger = FailingSaveLedger(path, fail_on_save=2)
        backups = BackupOrchestrator(ledger, artifacts, verifier, dump_driver=dump_driver)

        with pytest.raises(BackupFailedError, match="disk full"):
            backups.create_backup("full")

        [record] = ledger.query_records()
        assert record.status == BackupStatus.FAILED
        assert record.checksum is None
        assert not Path(record.artifact_path).exists()
        assert FileLedger(path).get_record(record.id).status == BackupStatus.FAILED

    def test_failure_update_error_keeps_original(self, backups, ledger, dump_driver):
        """Test that a ledger error while recording the failure does not mask it."""
        dump_driver.fail_with = DriverExecutionError("original problem")
        with mock.patch.object(ledger, "update_record", side_effect=LedgerError("also broken")):
            with pytest.raises(BackupFailedError, match="original problem"):
                backups.create_backup("full")


class TestValidateBackup:
    """Tests for validate_backup."""

    def test_valid(self, backups):
        """Test a freshly created backup validates."""
        result = backups.create_backup("full")
        validation = backups.validate_backup(result.id)
        assert validation.is_valid
        assert validation.checksum == result.checksum
        assert validation.file_size == result.size

    def test_unknown_id(self, backups):
        """Test that unknown ids are reported, not raised."""
        validation = backups.validate_backup("does-not-exist")
        assert not validation.is_valid
        assert validation.error_message == "Backup record not found"

    def test_corrupted_artifact(self, backups):
        """Test that same-size corruption is caught by the checksum."""
        result = backups.create_backup("full")
        path = Path(result.file_path)
        data = bytearray(path.read_bytes())
        data[0] ^= 0xFF
        path.write_bytes(bytes(data))

        validation = backups.validate_backup(result.id)

        assert not validation.is_valid
        assert validation.error_message == "Checksum mismatch"

    def test_validation_does_not_mutate_ledger(self, backups, ledger):
        """Test that validation is a pure query."""
        result = backups.create_backup("full")
        Path(result.file_path).unlink()
        before = ledger.get_record(result.id)

        assert not backups.validate_backup(result.id).is_valid
        assert ledger.get_record(result.id) == before


class TestQueries:
    """Tests for get/list."""

    def test_get_backup(self, backups):
        """Test that get_backup returns the listing view."""
        result = backups.create_backup("full")
        info = backups.get_backup(result.id)
        assert info.id == result.id
        assert info.file_size == result.size

    def test_get_missing(self, backups):
        """Test that a missing backup raises ResourceNotFoundError."""
        with pytest.raises(ResourceNotFoundError):
            backups.get_record("nope")

    def test_list_with_filter(self, backups):
        """Test listing newest first with type filter."""
        full = backups.create_backup("full")
        incr = backups.create_backup("incremental")

        assert [b.id for b in backups.list_backups()] == [incr.id, full.id]
        assert [b.id for b in backups.list_backups(BackupFilter(type="full"))] == [full.id]


class TestDeleteBackup:
    """Tests for delete_backup."""

    def test_delete_removes_row_and_artifact(self, backups, ledger):
        """Test that delete removes the artifact, sidecar and row."""
        result = backups.create_backup("full")

        assert backups.delete_backup(result.id) is True

        assert ledger.get_record(result.id) is None
        assert not Path(result.file_path).exists()
        assert not Path(result.file_path + ".sha256").exists()

    def test_delete_missing(self, backups):
        """Test that deleting an unknown id returns False."""
        assert backups.delete_backup("nope") is False

    def test_delete_in_progress_refused(self, backups, ledger):
        """Test that a running backup cannot be deleted."""
        record = BackupRecord.create(BackupType.FULL, "/tmp/running.sql")
        ledger.insert_record(record)
        with pytest.raises(PreconditionError):
            backups.delete_backup(record.id)

    def test_artifact_error_still_deletes_row(self, backups, artifacts, ledger):
        """Test that an undeletable artifact does not block the ledger delete."""
        result = backups.create_backup("full")
        with mock.patch.object(artifacts, "delete", side_effect=OSError("read-only")):
            assert backups.delete_backup(result.id) is True
        assert ledger.get_record(result.id) is None
