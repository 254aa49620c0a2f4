#!/usr/bin/env python3
"""Command-line entry: pipeline stats or the weekly report.

Usage:
  python run_tracker.py            # write weekly report to reports/
  python run_tracker.py stats      # log pipeline counts
"""
from __future__ import annotations

import sys

from jobtracker.config import ensure_dirs
from jobtracker.log import get_logger
from jobtracker.report import write_weekly_report
from jobtracker.service import JobTracker
from jobtracker.store import open_store

log = get_logger(__name__)


def main(argv: list[str]) -> int:
    ensure_dirs()
    tracker = JobTracker(open_store())

    if "stats" in argv:
        stats = tracker.stats()
        log.info("Total jobs tracked: %d", stats["total"])
        for key, value in stats.items():
            if key != "total":
                log.info("  %s: %d", key, value)
        return 0

    content = tracker.weekly_report()
    path = write_weekly_report(content)
    log.info("Weekly report: %s", path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
