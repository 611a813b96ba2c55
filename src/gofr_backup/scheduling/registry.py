"""Job table for registered cron jobs."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class JobHandle(Protocol):
    """Handle to one registered cron job."""

    @property
    def next_run_time(self) -> Optional[datetime]:
        """Next planned fire time, None if unknown or stopped."""
        ...

    def stop(self) -> None:
        """Stop the job. Safe to call more than once."""
        ...


class JobRegistry:
    """Maps schedule ids to live job handles.

    All mutations happen under a single re-entrant lock, which callers may
    also hold (``with registry.lock:``) to make a stop-then-register sequence
    atomic with respect to other threads.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._jobs: Dict[str, JobHandle] = {}

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def register(self, job_id: str, handle: JobHandle) -> None:
        """Store a handle, stopping any handle already held for the id."""
        with self._lock:
            previous = self._jobs.pop(job_id, None)
            if previous is not None:
                previous.stop()
            self._jobs[job_id] = handle

    def unregister(self, job_id: str) -> bool:
        """Stop and forget a job. Returns False if it was not registered."""
        with self._lock:
            handle = self._jobs.pop(job_id, None)
            if handle is None:
                return False
            handle.stop()
            return True

    def get(self, job_id: str) -> Optional[JobHandle]:
        with self._lock:
            return self._jobs.get(job_id)

    def ids(self) -> List[str]:
        with self._lock:
            return sorted(self._jobs)

    def destroy_all(self) -> int:
        """Stop every job and empty the table. Returns the number stopped."""
        with self._lock:
            handles = list(self._jobs.values())
            self._jobs.clear()
            for handle in handles:
                handle.stop()
            return len(handles)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
