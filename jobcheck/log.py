"""Logging setup shared by the check pipeline: stdout plus a dated log file."""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_QUIET_LOGGERS = ("urllib3", "requests")
_ready = False


def get_logger(name: str) -> logging.Logger:
    """Named logger; the first call installs the root handlers."""
    global _ready
    if not _ready:
        setup_logging()
        _ready = True
    return logging.getLogger(name)


def setup_logging() -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    if root.handlers:
        return
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    for handler in _build_handlers(level):
        handler.setFormatter(formatter)
        root.addHandler(handler)


def _build_handlers(level: int) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers: list[logging.Handler] = [console]

    if os.environ.get("JOBCHECK_LOG_FILE", "true").strip().lower() in ("0", "false", "no"):
        return handlers
    log_dir = Path(os.environ.get("JOBCHECK_LOG_DIR", "").strip() or LOG_DIR)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        daily = logging.FileHandler(log_dir / f"jobcheck_{date.today():%Y-%m-%d}.log", encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"jobcheck: file logging disabled ({exc})\n")
        return handlers
    daily.setLevel(logging.DEBUG)
    handlers.append(daily)
    return handlers
