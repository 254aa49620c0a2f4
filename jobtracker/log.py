"""Logging for the tracker: one ``jobtracker`` logger tree, console plus daily file."""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

NAMESPACE = "jobtracker"

_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger under ``jobtracker``; scripts get ``jobtracker.<name>``."""
    global _configured
    if not _configured:
        _configure()
        _configured = True
    if name != NAMESPACE and not name.startswith(NAMESPACE + "."):
        name = f"{NAMESPACE}.{name}"
    return logging.getLogger(name)


def file_logging_enabled() -> bool:
    return os.environ.get("LOG_TO_FILE", "true").strip().lower() in ("1", "true", "yes")


def _configure() -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    tracker_log = logging.getLogger(NAMESPACE)
    tracker_log.setLevel(level)
    if tracker_log.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    tracker_log.addHandler(console)

    if not file_logging_enabled():
        return
    try:
        _LOG_DIR.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(_LOG_DIR / f"tracker_{datetime.now():%Y-%m-%d}.log", encoding="utf-8")
    except OSError:
        # Read-only checkout: console only.
        return
    fh.setFormatter(formatter)
    tracker_log.addHandler(fh)
