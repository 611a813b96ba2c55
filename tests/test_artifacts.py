"""Tests for the artifact store."""

from datetime import datetime, timezone
from unittest import mock

import pytest

from gofr_backup.exceptions import ConfigurationError
from gofr_backup.models import BackupType
from gofr_backup.storage import ArtifactStore

MOMENT = datetime(2024, 1, 15, 10, 20, 30, 123456, tzinfo=timezone.utc)


class TestNaming:
    """Tests for artifact naming."""

    def test_format_timestamp(self):
        """Test millisecond UTC stamps with ':' and '.' replaced."""
        assert ArtifactStore.format_timestamp(MOMENT) == "2024-01-15T10-20-30-123Z"

    def test_format_timestamp_converts_to_utc(self):
        """Test that aware non-UTC times are converted first."""
        from datetime import timedelta

        local = MOMENT.astimezone(timezone(timedelta(hours=2)))
        assert ArtifactStore.format_timestamp(local) == "2024-01-15T10-20-30-123Z"

    def test_allocate_path(self, tmp_path):
        """Test the backup_{type}_{timestamp}.{ext} pattern."""
        store = ArtifactStore(tmp_path, extension=".dump")
        path = store.allocate_path(BackupType.INCREMENTAL, MOMENT)
        assert path == tmp_path / "backup_incremental_2024-01-15T10-20-30-123Z.dump"

    def test_same_timestamp_gets_suffix(self, tmp_path):
        """Test that concurrent allocations never share a file."""
        store = ArtifactStore(tmp_path)
        first = store.allocate_path(BackupType.FULL, MOMENT)
        second = store.allocate_path(BackupType.FULL, MOMENT)
        assert first != second
        assert second.name == "backup_full_2024-01-15T10-20-30-123Z_1.sql"

    def test_existing_file_gets_suffix(self, tmp_path):
        """Test that a file left on disk is not overwritten."""
        store = ArtifactStore(tmp_path)
        (tmp_path / "backup_full_2024-01-15T10-20-30-123Z.sql").write_text("old")
        assert store.allocate_path("full", MOMENT).name.endswith("_1.sql")

    def test_release_frees_name(self, tmp_path):
        """Test that a released reservation can be reused."""
        store = ArtifactStore(tmp_path)
        first = store.allocate_path(BackupType.FULL, MOMENT)
        store.release(first)
        assert store.allocate_path(BackupType.FULL, MOMENT) == first


class TestLifecycle:
    """Tests for root creation, size and deletion."""

    def test_ensure_root_creates_directory(self, tmp_path):
        """Test that the root directory is created."""
        root = tmp_path / "a" / "b"
        ArtifactStore(root).ensure_root()
        assert root.is_dir()

    def test_ensure_root_failure(self, tmp_path):
        """Test that an unusable root raises ConfigurationError."""
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ConfigurationError):
            ArtifactStore(blocker / "sub").ensure_root()

    def test_size(self, tmp_path):
        """Test size of present and missing files."""
        store = ArtifactStore(tmp_path)
        path = tmp_path / "a.sql"
        path.write_bytes(b"12345")
        assert store.size(path) == 5
        assert store.size(tmp_path / "missing.sql") is None

    def test_delete_removes_sidecars(self, tmp_path):
        """Test that checksum sidecars go with the artifact."""
        store = ArtifactStore(tmp_path)
        path = tmp_path / "backup_full_x.sql"
        path.write_text("data")
        sidecar = tmp_path / "backup_full_x.sql.sha256"
        sidecar.write_text("abc  backup_full_x.sql\n")

        assert store.sidecar_paths(path) == [sidecar]
        assert store.delete(path) is True
        assert not path.exists()
        assert not sidecar.exists()

    def test_delete_missing(self, tmp_path):
        """Test that deleting an absent artifact returns False."""
        assert ArtifactStore(tmp_path).delete(tmp_path / "nope.sql") is False

    def test_discard_swallows_errors(self, tmp_path):
        """Test that discard logs instead of raising."""
        store = ArtifactStore(tmp_path)
        path = store.allocate_path(BackupType.FULL, MOMENT)

        with mock.patch.object(store, "delete", side_effect=OSError("busy")):
            store.discard(path)

        # Reservation is released even when deletion failed
        assert store.allocate_path(BackupType.FULL, MOMENT) == path

    def test_list_artifacts(self, tmp_path):
        """Test that only artifacts (not sidecars) are listed."""
        store = ArtifactStore(tmp_path)
        (tmp_path / "backup_full_a.sql").write_text("a")
        (tmp_path / "backup_full_a.sql.sha256").write_text("x")
        (tmp_path / "ledger.json").write_text("{}")
        assert [p.name for p in store.list_artifacts()] == ["backup_full_a.sql"]
