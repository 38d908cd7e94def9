"""Drive the person checker over the whole roster, one run at a time."""
from __future__ import annotations

import fcntl
import os
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from jobcheck.checker import PersonChecker
from jobcheck.errors import RunAlreadyInProgress, RunLockUnavailable
from jobcheck.log import get_logger
from jobcheck.models import CheckOutcome, RunSkipped, RunStatus, RunSummary
from jobcheck.store import PeopleStore

log = get_logger(__name__)


class RunState:
    """Running flag and last summary, changed only under ``_guard``.

    With a *lock_path* the flag is also backed by a non-blocking ``fcntl``
    lock, so a manual-trigger process and the scheduler process collapse
    into one run as well.
    """

    def __init__(self, lock_path: Path | None = None) -> None:
        self._guard = threading.Lock()
        self._running = False
        self._last_run: RunSummary | None = None
        self._lock_path = Path(lock_path) if lock_path else None
        self._lock_file = None

    def _acquire_file_lock(self) -> None:
        if self._lock_path is None:
            return
        try:
            self._lock_path.parent.mkdir(parents=True, exist_ok=True)
            f = open(self._lock_path, "a")
        except OSError as exc:
            raise RunLockUnavailable(f"Cannot open run lock {self._lock_path}: {exc}") from exc
        try:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            f.close()
            raise RunAlreadyInProgress("Another process is running a check")
        # holder pid, read by run_lock_held
        try:
            f.truncate(0)
            f.write(str(os.getpid()))
            f.flush()
        except OSError as exc:
            f.close()
            raise RunLockUnavailable(f"Cannot write run lock {self._lock_path}: {exc}") from exc
        self._lock_file = f

    def _release_file_lock(self) -> None:
        if self._lock_file is None:
            return
        try:
            self._lock_file.truncate(0)
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
        finally:
            self._lock_file.close()
            self._lock_file = None

    def try_begin(self) -> None:
        """Test-and-set the running flag; raises RunAlreadyInProgress when taken."""
        with self._guard:
            if self._running:
                raise RunAlreadyInProgress("Check already in progress")
            self._acquire_file_lock()
            self._running = True

    def finish(self, summary: RunSummary | None) -> None:
        with self._guard:
            if summary is not None:
                self._last_run = summary
            self._running = False
            self._release_file_lock()

    def record(self, summary: RunSummary) -> None:
        """Store a summary for a run that never took the running flag."""
        with self._guard:
            self._last_run = summary

    def snapshot(self) -> RunStatus:
        with self._guard:
            return RunStatus(running=self._running, last_run=self._last_run)


class RunCoordinator:
    def __init__(
        self,
        store: PeopleStore,
        checker: PersonChecker,
        *,
        state: RunState | None = None,
        delay_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
        on_complete: Callable[[RunSummary], None] | None = None,
    ) -> None:
        self.store = store
        self.checker = checker
        self.state = state or RunState()
        self.delay_seconds = delay_seconds
        self._sleep = sleep
        self._on_complete = on_complete

    def status(self) -> RunStatus:
        return self.state.snapshot()

    def run_check(self) -> RunSummary | RunSkipped:
        try:
            self.state.try_begin()
        except RunAlreadyInProgress as exc:
            log.info("%s, skipping", exc)
            return RunSkipped(message=str(exc))
        except RunLockUnavailable as exc:
            log.error("Run failed, %s", exc)
            failed = RunSummary(
                started_at=datetime.now(timezone.utc).isoformat(),
                duration_seconds=0.0,
                success=False,
                error=str(exc),
            )
            self.state.record(failed)
            self._notify_complete(failed)
            return failed

        started_at = datetime.now(timezone.utc).isoformat()
        t0 = time.monotonic()
        summary: RunSummary | None = None
        log.info("Starting job check for all people...")
        try:
            summary = self._run(started_at, t0)
            return summary
        finally:
            self.state.finish(summary)
            if summary is not None:
                self._notify_complete(summary)

    def _run(self, started_at: str, t0: float) -> RunSummary:
        try:
            people = self.store.get_all()
        except Exception as exc:
            log.error("Run failed, cannot load roster: %s", exc)
            return RunSummary(
                started_at=started_at,
                duration_seconds=round(time.monotonic() - t0, 1),
                success=False,
                error=str(exc),
            )

        if not people:
            log.info("No people to check")

        outcomes: list[CheckOutcome] = []
        for i, person in enumerate(people):
            outcomes.append(self.checker.check(person))
            if i < len(people) - 1 and self.delay_seconds > 0:
                self._sleep(self.delay_seconds)

        summary = RunSummary.from_outcomes(started_at, time.monotonic() - t0, outcomes)
        log.info(
            "Completed in %.1fs. Checked: %d, Changes: %d, Errors: %d",
            summary.duration_seconds, summary.total_checked,
            summary.changes_detected, summary.error_count,
        )
        return summary

    def _notify_complete(self, summary: RunSummary) -> None:
        if self._on_complete is None:
            return
        try:
            self._on_complete(summary)
        except Exception as exc:
            log.error("Post-run hook failed: %s", exc)


def run_lock_held(lock_path: Path) -> bool:
    """True while the process whose pid sits in *lock_path* is alive.

    Reads the pid written by the lock holder and never contends for the
    lock, so asking for status cannot make a starting run skip.
    """
    try:
        pid = int(lock_path.read_text(encoding="utf-8").strip() or 0)
    except (OSError, ValueError):
        return False
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True
