#!/usr/bin/env python3
"""
Install the weekly job-change check into the user's crontab.

    python setup_cron.py            # add the entry (no-op when already present)
    python setup_cron.py --print    # show the entry without touching crontab
    python setup_cron.py --remove   # drop every jobcheck entry

Day, hour and minute come from config/settings.yaml or WEEKLY_RUN_DAY /
WEEKLY_RUN_HOUR in .env. Cron reads them in the daemon's local time.
"""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from jobcheck.config import load_settings
from jobcheck.scheduler import WeeklySchedule, cron_entry

PYTHON = ROOT / ".venv" / "bin" / "python"
RUN_SCRIPT = ROOT / "run_check.py"
FALLBACK_FILE = ROOT / "crontab.txt"


def _read_crontab() -> list[str]:
    out = subprocess.run(["crontab", "-l"], capture_output=True, text=True, timeout=5)
    if out.returncode != 0:
        return []
    return [line for line in out.stdout.splitlines() if line.strip()]


def _write_crontab(lines: list[str]) -> bool:
    content = "\n".join(lines) + "\n" if lines else ""
    proc = subprocess.run(["crontab", "-"], input=content, capture_output=True, text=True, timeout=5)
    if proc.returncode == 0:
        return True
    FALLBACK_FILE.write_text(content, encoding="utf-8")
    print(f"crontab rejected the update; install it by hand: crontab {FALLBACK_FILE}")
    return False


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    schedule = WeeklySchedule.from_settings(load_settings().schedule)
    entry = cron_entry(schedule, ROOT, PYTHON, RUN_SCRIPT)

    if "--print" in args:
        print(entry)
        return 0
    try:
        lines = _read_crontab()
        if "--remove" in args:
            kept = [line for line in lines if str(RUN_SCRIPT) not in line]
            if len(kept) == len(lines):
                print("No jobcheck entry installed.")
                return 0
            return 0 if _write_crontab(kept) else 1

        if not PYTHON.exists():
            print("No .venv found. Create it first: python -m venv .venv && .venv/bin/pip install -e .")
            return 1
        if entry in lines:
            print(f"Already scheduled: {schedule.describe()}")
            return 0
        lines = [line for line in lines if str(RUN_SCRIPT) not in line] + [entry]
        if not _write_crontab(lines):
            return 1
    except FileNotFoundError:
        FALLBACK_FILE.write_text(entry + "\n", encoding="utf-8")
        print(f"crontab is not available here. Entry written to {FALLBACK_FILE}")
        return 1
    except subprocess.TimeoutExpired:
        FALLBACK_FILE.write_text(entry + "\n", encoding="utf-8")
        print(f"crontab timed out. Entry written to {FALLBACK_FILE}")
        return 1

    print(f"Scheduled {schedule.describe()} (cron daemon local time)")
    print(f"  {entry}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
