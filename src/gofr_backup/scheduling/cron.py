"""Cron expression parsing and the APScheduler-backed cron backend.

Expressions use standard cron syntax: five fields
(``minute hour day month day_of_week``) or six with a leading seconds field.
Day-of-week numbers follow cron (0 or 7 = Sunday) and are translated to
names before they reach APScheduler, whose own numbering starts at Monday.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Callable, Optional, Protocol, runtime_checkable

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from gofr_backup.exceptions import ScheduleError
from gofr_backup.logger import Logger, create_logger

from .registry import JobHandle

_DAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")
# Numbers that are day values, not step sizes ("*/2") or parts of other numbers
_DAY_NUMBER = re.compile(r"(?<![/\d])\d+")
_SUNDAY_RANGE = re.compile(r"(?<![/\d])0-([1-7])(?![\d/])")


def translate_day_of_week(field: str) -> str:
    """Convert cron day-of-week numbers to APScheduler day names

    Example: "1-5" -> "mon-fri", "0,6" -> "sun,sat"

    Raises:
        ValueError: If a day number is outside 0-7
    """

    def _name(match: re.Match) -> str:
        day = int(match.group(0))
        if day > 7:
            raise ValueError(f"day-of-week value out of range: {day}")
        return _DAY_NAMES[day]

    # APScheduler weeks start on Monday, so "sun-fri" would be a reversed range
    field = _SUNDAY_RANGE.sub(r"0,1-\1", field)
    return _DAY_NUMBER.sub(_name, field)


def parse_cron(expression: str, timezone: str = "UTC") -> CronTrigger:
    """Build a CronTrigger from a 5- or 6-field cron expression

    Raises:
        ScheduleError: If the expression is malformed
    """
    fields = (expression or "").split()
    if len(fields) == 5:
        second = "0"
        minute, hour, day, month, day_of_week = fields
    elif len(fields) == 6:
        second, minute, hour, day, month, day_of_week = fields
    else:
        raise ScheduleError(
            f"Invalid cron expression '{expression}': expected 5 or 6 fields, got {len(fields)}",
            details={"cron_expression": expression},
        )

    try:
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=translate_day_of_week(day_of_week),
            timezone=timezone,
        )
    except ValueError as e:
        raise ScheduleError(
            f"Invalid cron expression '{expression}': {e}",
            details={"cron_expression": expression},
        ) from e


def validate_cron_expression(expression: str) -> None:
    """Raises ScheduleError if the expression cannot be scheduled."""
    parse_cron(expression)


@runtime_checkable
class CronBackend(Protocol):
    """Timer service that fires callbacks on cron schedules."""

    def start(self) -> None:
        ...

    def shutdown(self, wait: bool = False) -> None:
        ...

    def register(self, job_id: str, cron_expression: str, callback: Callable[[], None]) -> JobHandle:
        """Register (or replace) a job and return its handle.

        Raises:
            ScheduleError: If the cron expression is invalid
        """
        ...


class _ApschedulerJobHandle:
    def __init__(self, scheduler: BackgroundScheduler, job_id: str, trigger: CronTrigger):
        self._scheduler = scheduler
        self._job_id = job_id
        self._trigger = trigger
        self._stopped = False

    @property
    def next_run_time(self) -> Optional[datetime]:
        if self._stopped:
            return None
        job = self._scheduler.get_job(self._job_id)
        if job is None:
            return None
        # Jobs added before the scheduler starts have no next_run_time yet
        next_run = getattr(job, "next_run_time", None)
        if next_run is None and not self._scheduler.running:
            next_run = self._trigger.get_next_fire_time(None, datetime.now(self._trigger.timezone))
        return next_run

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        try:
            self._scheduler.remove_job(self._job_id)
        except JobLookupError:
            pass


class ApschedulerCronBackend:
    """CronBackend on top of APScheduler's BackgroundScheduler.

    Callbacks run on a thread pool, never on the scheduler's timer thread.
    A job whose previous run is still going is skipped rather than stacked.
    """

    def __init__(
        self,
        timezone: str = "UTC",
        max_workers: int = 4,
        misfire_grace_time: int = 3600,
        logger: Optional[Logger] = None,
    ):
        self.timezone = timezone
        self.logger = logger or create_logger(name="gofr-backup-cron")
        self._scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers)},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": misfire_grace_time,
            },
            timezone=timezone,
        )

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            self.logger.info("Cron backend started", timezone=self.timezone)

    def shutdown(self, wait: bool = False) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            self.logger.info("Cron backend stopped")

    def register(self, job_id: str, cron_expression: str, callback: Callable[[], None]) -> JobHandle:
        trigger = parse_cron(cron_expression, self.timezone)
        self._scheduler.add_job(
            callback,
            trigger=trigger,
            id=job_id,
            name=job_id,
            replace_existing=True,
        )
        handle = _ApschedulerJobHandle(self._scheduler, job_id, trigger)
        self.logger.debug(
            "Cron job registered",
            job_id=job_id,
            cron_expression=cron_expression,
            next_run_time=handle.next_run_time,
        )
        return handle
