"""Wire the collaborators together and expose "run now" / "get status"."""
from __future__ import annotations

from pathlib import Path
from typing import Callable

from jobcheck.analyzer import ScoringPolicy
from jobcheck.checker import PersonChecker
from jobcheck.config import (
    LAST_RUN_PATH,
    PEOPLE_PATH,
    RUN_LOCK_PATH,
    Settings,
    ensure_dirs,
    get_env,
    load_settings,
)
from jobcheck.coordinator import RunCoordinator, RunState, run_lock_held
from jobcheck.log import get_logger
from jobcheck.models import RunSkipped, RunStatus, RunSummary, TrackedPerson
from jobcheck.notifier import send_change_alert
from jobcheck.report import load_last_run, record_run
from jobcheck.scheduler import Scheduler, WeeklySchedule
from jobcheck.search import get_search
from jobcheck.store import PeopleStore

log = get_logger(__name__)


def build_coordinator(
    settings: Settings | None = None,
    *,
    env_getter: Callable[[str], str] = get_env,
    people_path: Path = PEOPLE_PATH,
    lock_path: Path | None = RUN_LOCK_PATH,
) -> RunCoordinator:
    settings = settings or load_settings()
    ensure_dirs()
    store = PeopleStore(people_path)
    checker = PersonChecker(
        get_search(env_getter),
        store,
        lambda alert: send_change_alert(alert, env_getter=env_getter),
        policy=ScoringPolicy.from_mapping(settings.scoring),
        evidence_limit=settings.evidence_limit,
    )
    return RunCoordinator(
        store,
        checker,
        state=RunState(lock_path),
        delay_seconds=settings.check_delay_seconds,
        on_complete=record_run,
    )


def build_scheduler(settings: Settings | None = None) -> Scheduler:
    settings = settings or load_settings()
    return Scheduler(build_coordinator(settings), WeeklySchedule.from_settings(settings.schedule))


def run_now(coordinator: RunCoordinator | None = None) -> RunSummary | RunSkipped:
    return (coordinator or build_coordinator()).run_check()


def add_person(
    name: str,
    company: str,
    role: str | None = None,
    *,
    email_recipients: list[str] | None = None,
    people_path: Path = PEOPLE_PATH,
) -> TrackedPerson:
    return PeopleStore(people_path).add(name, company, role, email_recipients)


def get_status(
    coordinator: RunCoordinator | None = None,
    *,
    last_run_path: Path = LAST_RUN_PATH,
    lock_path: Path = RUN_LOCK_PATH,
) -> RunStatus:
    """In-process status when available, else what the last run left on disk."""
    if coordinator is not None:
        status = coordinator.status()
        if status.running or status.last_run is not None:
            return status
    return RunStatus(running=run_lock_held(lock_path), last_run=load_last_run(last_run_path))
