"""
Fire the roster check once a week and expose a manual trigger.

Usage:
  - Cron (recommended): python setup_cron.py installs
      0 2 * * 0 cd /path/to/project && .venv/bin/python run_check.py
  - Or keep a process running: python run_check.py --schedule
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Callable
from zoneinfo import ZoneInfo

from jobcheck.config import WEEKDAYS, ScheduleSettings
from jobcheck.coordinator import RunCoordinator
from jobcheck.log import get_logger
from jobcheck.models import RunSkipped, RunSummary

log = get_logger(__name__)

MAX_SLEEP_SECONDS = 3600.0


def resolve_tz(name: str) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


@dataclass(frozen=True)
class WeeklySchedule:
    weekday: int = 6  # Monday == 0, as datetime.weekday()
    hour: int = 2
    minute: int = 0
    tz: tzinfo = timezone.utc

    @classmethod
    def from_settings(cls, settings: ScheduleSettings) -> "WeeklySchedule":
        return cls(
            weekday=WEEKDAYS.index(settings.day),
            hour=settings.hour,
            minute=settings.minute,
            tz=resolve_tz(settings.timezone),
        )

    def next_run(self, now: datetime) -> datetime:
        """First scheduled instant strictly after *now*."""
        now = now.astimezone(self.tz) if now.tzinfo else now.replace(tzinfo=self.tz)
        target = now.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        target += timedelta(days=(self.weekday - now.weekday()) % 7)
        if target <= now:
            target += timedelta(days=7)
        return target

    def describe(self) -> str:
        return f"every {WEEKDAYS[self.weekday].capitalize()} at {self.hour}:{self.minute:02d} ({self.tz})"


def cron_entry(schedule: WeeklySchedule, root: Path, python: Path, script: Path) -> str:
    cron_dow = (schedule.weekday + 1) % 7  # cron counts Sunday as 0
    return f"{schedule.minute} {schedule.hour} * * {cron_dow} cd {root} && {python} {script}"


class Scheduler:
    def __init__(
        self,
        coordinator: RunCoordinator,
        schedule: WeeklySchedule,
        *,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.coordinator = coordinator
        self.schedule = schedule
        self._clock = clock or (lambda: datetime.now(schedule.tz))
        self._sleep = sleep

    def trigger_now(self) -> RunSummary | RunSkipped:
        log.info("Manual check requested")
        return self.coordinator.run_check()

    def _wait_until(self, target: datetime) -> None:
        while True:
            remaining = (target - self._clock()).total_seconds()
            if remaining <= 0:
                return
            self._sleep(min(remaining, MAX_SLEEP_SECONDS))

    def run_forever(self, max_runs: int | None = None) -> None:
        log.info("Scheduler started - will run %s", self.schedule.describe())
        runs = 0
        while max_runs is None or runs < max_runs:
            target = self.schedule.next_run(self._clock())
            wait_secs = (target - self._clock()).total_seconds()
            log.info("Next run at %s (in %.1f hours)", target, wait_secs / 3600)
            self._wait_until(target)
            log.info("Running scheduled weekly check...")
            result = self.coordinator.run_check()
            if isinstance(result, RunSkipped):
                log.info("Scheduled check skipped: %s", result.message)
            runs += 1
