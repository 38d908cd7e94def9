"""Command-line surface: run now, show status, or keep the weekly schedule."""
from __future__ import annotations

import json
import sys
from dataclasses import asdict

from jobcheck.errors import PersistenceError
from jobcheck.log import get_logger
from jobcheck.models import RunSkipped, RunStatus, RunSummary

log = get_logger(__name__)

USAGE = """usage: run_check.py [--status | --schedule | --json]
       run_check.py --add NAME COMPANY [ROLE] [--email ADDR[,ADDR...]]

  (no flag)   run one check over the whole roster now
  --add       start tracking a person (role defaults to "Unknown")
  --email     alert recipients for the person being added
  --status    show whether a run is in progress and the last run summary
  --schedule  stay running and check weekly at the configured time
  --json      print the run result as JSON
"""


def _log_summary(result: RunSummary | RunSkipped) -> None:
    if isinstance(result, RunSkipped):
        log.info("Skipped: %s", result.message)
        return
    if not result.success:
        log.error("Run failed: %s", result.error)
        return
    log.info("Run complete.")
    log.info("  Checked: %d", result.total_checked)
    log.info("  Changes detected: %d", result.changes_detected)
    log.info("  Errors: %d", result.error_count)
    log.info("  Duration: %.1fs", result.duration_seconds)


def _log_status(status: RunStatus) -> None:
    log.info("Running: %s", "yes" if status.running else "no")
    if status.last_run is None:
        log.info("No completed run yet")
        return
    last = status.last_run
    log.info(
        "Last run %s: checked=%d changes=%d errors=%d",
        last.started_at, last.total_checked, last.changes_detected, last.error_count,
    )
    for o in last.outcomes:
        if o.error:
            log.info("  %s: error (%s)", o.name, o.error)
        elif o.changed:
            log.info("  %s: %s at %s (%d%%)", o.name, o.new_role, o.new_company, o.confidence)


def _add_args(args: list[str]) -> tuple[list[str], list[str]]:
    """Positional values after --add, and the --email list if given."""
    rest = args[args.index("--add") + 1 :]
    emails: list[str] = []
    if "--email" in rest:
        i = rest.index("--email")
        if i + 1 < len(rest):
            emails = [e.strip() for e in rest[i + 1].split(",") if e.strip()]
        rest = rest[:i] + rest[i + 2 :]
    return [a for a in rest if not a.startswith("--")], emails


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if "-h" in args or "--help" in args:
        print(USAGE)
        return 0

    from jobcheck import service

    if "--add" in args:
        values, emails = _add_args(args)
        if len(values) not in (2, 3):
            print(USAGE)
            return 2
        try:
            person = service.add_person(*values, email_recipients=emails)
        except PersistenceError as exc:
            log.error("Could not add %s: %s", values[0], exc)
            return 1
        print(f"Tracking {person.name} (id {person.id})")
        return 0

    if "--status" in args:
        _log_status(service.get_status())
        return 0

    if "--schedule" in args:
        service.build_scheduler().run_forever()
        return 0

    result = service.run_now()
    if "--json" in args:
        print(json.dumps(asdict(result), indent=2))
    _log_summary(result)
    if isinstance(result, RunSummary) and not result.success:
        return 1
    return 0
