"""
Unit tests for jobcheck/scheduler.py
"""
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from conftest import FakeNotifier, FakeSearch
from jobcheck.checker import PersonChecker
from jobcheck.config import ScheduleSettings
from jobcheck.coordinator import RunCoordinator, RunState
from jobcheck.models import RunSkipped, RunSummary
from jobcheck.scheduler import Scheduler, WeeklySchedule, cron_entry

SUNDAY_2AM = WeeklySchedule(weekday=6, hour=2, minute=0, tz=timezone.utc)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now):
        self.now = now
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += timedelta(seconds=seconds)


class FakeCoordinator:
    def __init__(self, result=None):
        self.result = result or RunSummary(started_at="2024-03-17T02:00:00+00:00")
        self.calls = 0

    def run_check(self):
        self.calls += 1
        return self.result


class TestNextRun:
    @pytest.mark.unit
    def test_later_in_the_week(self):
        assert SUNDAY_2AM.next_run(utc(2024, 3, 13, 10, 0)) == utc(2024, 3, 17, 2, 0)

    @pytest.mark.unit
    def test_same_day_before_the_hour(self):
        assert SUNDAY_2AM.next_run(utc(2024, 3, 17, 1, 59)) == utc(2024, 3, 17, 2, 0)

    @pytest.mark.unit
    def test_exactly_at_the_hour_moves_to_next_week(self):
        assert SUNDAY_2AM.next_run(utc(2024, 3, 17, 2, 0)) == utc(2024, 3, 24, 2, 0)

    @pytest.mark.unit
    def test_same_day_after_the_hour(self):
        assert SUNDAY_2AM.next_run(utc(2024, 3, 17, 3, 0)) == utc(2024, 3, 24, 2, 0)

    @pytest.mark.unit
    def test_naive_now_is_read_in_schedule_tz(self):
        assert SUNDAY_2AM.next_run(datetime(2024, 3, 16, 23, 0)) == utc(2024, 3, 17, 2, 0)

    @pytest.mark.unit
    def test_from_settings(self):
        schedule = WeeklySchedule.from_settings(ScheduleSettings(day="mon", hour=9, minute=30, timezone="UTC"))
        assert (schedule.weekday, schedule.hour, schedule.minute) == (0, 9, 30)
        assert schedule.tz is timezone.utc
        assert schedule.describe() == "every Mon at 9:30 (UTC)"


class TestCronEntry:
    @pytest.mark.unit
    def test_sunday_is_cron_day_zero(self):
        root = Path("/srv/jobcheck")
        entry = cron_entry(SUNDAY_2AM, root, root / ".venv/bin/python", root / "run_check.py")
        assert entry == "0 2 * * 0 cd /srv/jobcheck && /srv/jobcheck/.venv/bin/python /srv/jobcheck/run_check.py"

    @pytest.mark.unit
    def test_monday_is_cron_day_one(self):
        schedule = WeeklySchedule(weekday=0, hour=7, minute=15)
        assert cron_entry(schedule, Path("/r"), Path("/p"), Path("/s")).startswith("15 7 * * 1 ")


class TestScheduler:
    @pytest.mark.unit
    def test_manual_trigger_uses_same_entry_point(self):
        coordinator = FakeCoordinator()
        scheduler = Scheduler(coordinator, SUNDAY_2AM, clock=lambda: utc(2024, 3, 13), sleep=lambda s: None)
        assert scheduler.trigger_now() is coordinator.result
        assert coordinator.calls == 1

    @pytest.mark.unit
    def test_run_forever_waits_for_the_slot(self):
        clock = FakeClock(utc(2024, 3, 16, 23, 0))
        coordinator = FakeCoordinator()
        scheduler = Scheduler(coordinator, SUNDAY_2AM, clock=clock, sleep=clock.sleep)

        scheduler.run_forever(max_runs=1)

        assert coordinator.calls == 1
        assert clock.now == utc(2024, 3, 17, 2, 0)
        assert clock.sleeps == [3600.0, 3600.0, 3600.0]

    @pytest.mark.unit
    def test_skipped_run_still_counts(self):
        clock = FakeClock(utc(2024, 3, 17, 1, 0))
        coordinator = FakeCoordinator(result=RunSkipped())
        scheduler = Scheduler(coordinator, SUNDAY_2AM, clock=clock, sleep=clock.sleep)

        scheduler.run_forever(max_runs=2)

        assert coordinator.calls == 2
        assert clock.now == utc(2024, 3, 24, 2, 0)

    @pytest.mark.unit
    def test_unusable_lock_does_not_stop_the_loop(self, store, tmp_path):
        blocker = tmp_path / "data"
        blocker.write_text("")
        checker = PersonChecker(FakeSearch(), store, FakeNotifier())
        coordinator = RunCoordinator(store, checker, state=RunState(blocker / "run.lock"), sleep=lambda s: None)
        clock = FakeClock(utc(2024, 3, 17, 1, 0))
        scheduler = Scheduler(coordinator, SUNDAY_2AM, clock=clock, sleep=clock.sleep)

        scheduler.run_forever(max_runs=2)

        assert clock.now == utc(2024, 3, 24, 2, 0)
        assert not coordinator.status().last_run.success
