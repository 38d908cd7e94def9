"""Load settings from .env, environment and config/settings.yaml."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

from jobcheck.log import get_logger

log = get_logger(__name__)

load_dotenv()

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = PROJECT_ROOT / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
REPORTS_DIR: Path = PROJECT_ROOT / "reports"
DATA_DIR: Path = Path(os.environ.get("JOBCHECK_DATA_DIR", "").strip() or PROJECT_ROOT / "data")
PEOPLE_PATH: Path = DATA_DIR / "people.json"
LAST_RUN_PATH: Path = DATA_DIR / "last_run.json"
RUN_LOCK_PATH: Path = DATA_DIR / "run.lock"

WEEKDAYS: list[str] = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


@dataclass
class ScheduleSettings:
    day: str = "sun"
    hour: int = 2
    minute: int = 0
    timezone: str = "UTC"


@dataclass
class Settings:
    check_delay_seconds: float = 2.0
    evidence_limit: int = 3
    scoring: dict[str, Any] = field(default_factory=dict)
    schedule: ScheduleSettings = field(default_factory=ScheduleSettings)


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def get_email_recipients(env_getter: Callable[[str], str] | None = None) -> list[str]:
    """Global fallback recipients from EMAIL_RECIPIENTS (comma-separated)."""
    raw = (env_getter or get_env)("EMAIL_RECIPIENTS")
    return [e.strip() for e in raw.split(",") if e.strip() and "@" in e]


def ensure_dirs() -> None:
    for d in (REPORTS_DIR, DATA_DIR):
        d.mkdir(parents=True, exist_ok=True)


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        log.warning("Ignoring %s: expected a mapping at top level", path.name)
        return {}
    return data


def _parse_day(value: Any) -> str:
    day = str(value).strip().lower()[:3]
    if day not in WEEKDAYS:
        raise ValueError(f"Unknown weekday {value!r}; use one of {', '.join(WEEKDAYS)}")
    return day


def load_settings(path: Path | None = None) -> Settings:
    data = _read_settings_file(path or SETTINGS_PATH)
    sched = data.get("schedule") or {}

    schedule = ScheduleSettings(
        day=_parse_day(get_env("WEEKLY_RUN_DAY") or sched.get("day", "sun")),
        hour=int(get_env("WEEKLY_RUN_HOUR") or sched.get("hour", 2)),
        minute=int(sched.get("minute", 0)),
        timezone=get_env("JOBCHECK_TZ") or sched.get("timezone", "UTC"),
    )
    if not 0 <= schedule.hour <= 23 or not 0 <= schedule.minute <= 59:
        raise ValueError(f"Invalid schedule time {schedule.hour}:{schedule.minute:02d}")

    delay = get_env("CHECK_DELAY_SECONDS") or data.get("check_delay_seconds", 2.0)

    settings = Settings(
        check_delay_seconds=max(float(delay), 0.0),
        evidence_limit=int(data.get("evidence_limit", 3)),
        scoring=dict(data.get("scoring") or {}),
        schedule=schedule,
    )
    log.debug("Loaded settings: %s", settings)
    return settings
