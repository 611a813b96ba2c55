"""Shared fixtures and fake drivers for the backup engine tests."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from gofr_backup.backup import BackupOrchestrator, ChecksumVerifier, RestoreOrchestrator
from gofr_backup.config import BackupSettings
from gofr_backup.drivers import RestoreOutput
from gofr_backup.engine import BackupEngine
from gofr_backup.ledger import MemoryLedger
from gofr_backup.models import BackupType
from gofr_backup.scheduling import parse_cron
from gofr_backup.storage import ArtifactStore

DUMP_PAYLOAD = b"-- PostgreSQL database dump\nCREATE TABLE public.users (id integer);\n"

RESTORE_OUTPUT = "\n".join(
    [
        "SET statement_timeout = 0;",
        "CREATE TABLE public.users (",
        "    id integer",
        ");",
        "CREATE INDEX idx_users_id ON public.users USING btree (id);",
        "CREATE TABLE public.users (",
        "CREATE VIEW public.active_users AS",
    ]
)


class FakeDumpDriver:
    """DumpDriver that writes a fixed payload and records every call."""

    def __init__(self, payload: bytes = DUMP_PAYLOAD, fail_with: Optional[Exception] = None, write: bool = True):
        self.payload = payload
        self.fail_with = fail_with
        self.write = write
        self.calls: List[Tuple[BackupType, Path, Optional[datetime]]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def dump(self, backup_type: BackupType, artifact_path: Path, since: Optional[datetime]) -> None:
        self.calls.append((backup_type, artifact_path, since))
        if self.write:
            artifact_path.write_bytes(self.payload)
        if self.fail_with is not None:
            raise self.fail_with


class FakeRestoreDriver:
    """RestoreDriver that returns canned output and records every call."""

    def __init__(self, output: str = RESTORE_OUTPUT, fail_with: Optional[Exception] = None):
        self.output = output
        self.fail_with = fail_with
        self.calls: List[Path] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def restore(self, artifact_path: Path) -> RestoreOutput:
        self.calls.append(artifact_path)
        if self.fail_with is not None:
            raise self.fail_with
        return RestoreOutput.from_output(self.output)


class FakeJobHandle:
    def __init__(self, next_run_time: Optional[datetime] = None):
        self._next_run_time = next_run_time
        self.stopped = False

    @property
    def next_run_time(self) -> Optional[datetime]:
        return None if self.stopped else self._next_run_time

    def stop(self) -> None:
        self.stopped = True


NEXT_RUN = datetime(2030, 1, 1, 2, 0, tzinfo=timezone.utc)


class FakeCronBackend:
    """CronBackend that never fires on its own; tests call fire()."""

    def __init__(self) -> None:
        self.started = False
        self.jobs: Dict[str, Tuple[str, Callable[[], None], FakeJobHandle]] = {}
        self.registrations = 0

    def start(self) -> None:
        self.started = True

    def shutdown(self, wait: bool = False) -> None:
        self.started = False

    def register(self, job_id: str, cron_expression: str, callback: Callable[[], None]) -> FakeJobHandle:
        parse_cron(cron_expression)
        handle = FakeJobHandle(NEXT_RUN)
        self.jobs[job_id] = (cron_expression, callback, handle)
        self.registrations += 1
        return handle

    def fire(self, job_id: str) -> None:
        self.jobs[job_id][1]()

    def live_job_ids(self) -> List[str]:
        return sorted(job_id for job_id, (_, _, handle) in self.jobs.items() if not handle.stopped)


@pytest.fixture
def artifact_dir(tmp_path: Path) -> Path:
    return tmp_path / "backups"


@pytest.fixture
def settings(artifact_dir: Path) -> BackupSettings:
    return BackupSettings(
        artifact_dir=artifact_dir,
        ledger_backend="memory",
        cleanup_schedule=None,
    )


@pytest.fixture
def ledger() -> MemoryLedger:
    return MemoryLedger()


@pytest.fixture
def artifacts(artifact_dir: Path) -> ArtifactStore:
    return ArtifactStore(artifact_dir)


@pytest.fixture
def verifier() -> ChecksumVerifier:
    return ChecksumVerifier("sha256")


@pytest.fixture
def dump_driver() -> FakeDumpDriver:
    return FakeDumpDriver()


@pytest.fixture
def restore_driver() -> FakeRestoreDriver:
    return FakeRestoreDriver()


@pytest.fixture
def cron_backend() -> FakeCronBackend:
    return FakeCronBackend()


@pytest.fixture
def backups(ledger, artifacts, verifier, dump_driver) -> BackupOrchestrator:
    return BackupOrchestrator(ledger, artifacts, verifier, dump_driver=dump_driver)


@pytest.fixture
def restores(ledger, backups, restore_driver) -> RestoreOrchestrator:
    return RestoreOrchestrator(ledger, backups, restore_driver)


@pytest.fixture
def engine(settings, dump_driver, restore_driver, cron_backend) -> BackupEngine:
    return BackupEngine.from_settings(
        settings,
        dump_driver=dump_driver,
        restore_driver=restore_driver,
        cron_backend=cron_backend,
    )
