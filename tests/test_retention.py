"""Tests for retention cleanup."""

from datetime import timedelta
from pathlib import Path
from unittest import mock

import pytest

from gofr_backup.models import BackupRecord, BackupSchedule, BackupStatus, BackupType, utcnow
from gofr_backup.retention import DEFAULT_RETENTION_DAYS, RetentionSweeper


@pytest.fixture
def sweeper(ledger, artifacts) -> RetentionSweeper:
    return RetentionSweeper(ledger, artifacts)


def _add_backup(ledger, artifact_dir, age_days, status=BackupStatus.COMPLETED, schedule_id=None) -> BackupRecord:
    artifact_dir.mkdir(parents=True, exist_ok=True)
    created_at = utcnow() - timedelta(days=age_days)
    path = artifact_dir / f"backup_full_{age_days}_{status.value}_{schedule_id}.sql"
    path.write_text("dump")
    record = BackupRecord.create(BackupType.FULL, str(path), schedule_id=schedule_id, created_at=created_at)
    record.status = status
    if status == BackupStatus.COMPLETED:
        record.size_bytes = 4
        record.checksum = "abc"
    elif status == BackupStatus.FAILED:
        record.error_message = "boom"
    ledger.insert_record(record)
    return record


class TestCleanupOldBackups:
    """Tests for cleanup_old_backups."""

    def test_removes_only_expired(self, sweeper, ledger, artifact_dir):
        """Test that N expired backups go and M recent ones stay."""
        expired = [_add_backup(ledger, artifact_dir, age) for age in (31, 45, 90)]
        recent = [_add_backup(ledger, artifact_dir, age) for age in (0, 29)]

        assert sweeper.cleanup_old_backups() == 3

        for record in expired:
            assert ledger.get_record(record.id) is None
        for record in recent:
            assert ledger.get_record(record.id) is not None
        assert len(ledger.query_records()) == 2

    def test_artifacts_removed(self, sweeper, ledger, artifact_dir):
        """Test that expired artifacts are deleted from disk."""
        old = _add_backup(ledger, artifact_dir, 40)
        new = _add_backup(ledger, artifact_dir, 1)

        sweeper.cleanup_old_backups()

        assert not Path(old.artifact_path).exists()
        assert Path(new.artifact_path).exists()

    def test_non_completed_are_kept(self, sweeper, ledger, artifact_dir):
        """Test that failed and running backups are never swept."""
        failed = _add_backup(ledger, artifact_dir, 100, status=BackupStatus.FAILED)
        running = _add_backup(ledger, artifact_dir, 100, status=BackupStatus.IN_PROGRESS)

        assert sweeper.cleanup_old_backups() == 0
        assert ledger.get_record(failed.id) is not None
        assert ledger.get_record(running.id) is not None

    def test_schedule_retention_applies(self, sweeper, ledger, artifact_dir):
        """Test that a schedule's retention overrides the default."""
        schedule = BackupSchedule.create("short", "full", "0 2 * * *", retention_days=7)
        ledger.upsert_schedule(schedule)
        scheduled = _add_backup(ledger, artifact_dir, 10, schedule_id=schedule.id)
        adhoc = _add_backup(ledger, artifact_dir, 10)

        assert sweeper.cleanup_old_backups() == 1
        assert ledger.get_record(scheduled.id) is None
        assert ledger.get_record(adhoc.id) is not None

    def test_deleted_schedule_falls_back_to_default(self, sweeper, ledger, artifact_dir):
        """Test the default horizon for orphaned scheduled backups."""
        record = _add_backup(ledger, artifact_dir, 10, schedule_id="gone")
        assert sweeper.retention_days_for(record, {}) == DEFAULT_RETENTION_DAYS
        assert sweeper.cleanup_old_backups() == 0

    def test_artifact_error_still_removes_row(self, sweeper, ledger, artifacts, artifact_dir):
        """Test that an undeletable artifact is logged and the row removed."""
        record = _add_backup(ledger, artifact_dir, 60)
        with mock.patch.object(artifacts, "delete", side_effect=OSError("permission denied")):
            assert sweeper.cleanup_old_backups() == 1
        assert ledger.get_record(record.id) is None

    def test_naive_now_is_utc(self, sweeper, ledger, artifact_dir):
        """Test that a naive reference time is accepted."""
        _add_backup(ledger, artifact_dir, 5)
        future = (utcnow() + timedelta(days=60)).replace(tzinfo=None)
        assert sweeper.cleanup_old_backups(now=future) == 1

    def test_empty_ledger(self, sweeper):
        """Test that an empty ledger is a no-op."""
        assert sweeper.cleanup_old_backups() == 0
