"""Pipeline statistics and the weekly progress report."""
from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

from jobtracker.config import REPORTS_DIR
from jobtracker.log import get_logger
from jobtracker.models import Job
from jobtracker.pipeline import STATUSES
from jobtracker.utils import now_utc, parse_timestamp

log = get_logger(__name__)

WEEK = timedelta(days=7)
RECENT_LIMIT = 5


def applied_since(jobs: list[Job], since: datetime) -> list[Job]:
    """Jobs whose applied_date falls at or after *since*, newest first."""
    recent: list[tuple[datetime, Job]] = []
    for j in jobs:
        applied = parse_timestamp(j.applied_date)
        if applied and applied >= since:
            recent.append((applied, j))
    recent.sort(key=lambda pair: pair[0], reverse=True)
    return [j for _, j in recent]


def pipeline_stats(jobs: list[Job], now: datetime | None = None) -> dict[str, int]:
    now = now or now_utc()
    stats: dict[str, int] = {"total": len(jobs)}
    for status in STATUSES:
        stats[status] = sum(1 for j in jobs if j.status == status)
    stats["applied_this_week"] = len(applied_since(jobs, now - WEEK))
    return stats


def build_weekly_report(jobs: list[Job], now: datetime | None = None) -> str:
    now = now or now_utc()
    stats = pipeline_stats(jobs, now)
    recent = applied_since(jobs, now - WEEK)

    lines: list[str] = [f"# Weekly Job Search Report — {now.strftime('%Y-%m-%d')}", ""]
    lines.append(f"**{stats['total']}** jobs tracked")
    lines.append("")
    lines.append("## Pipeline Status")
    lines.append("")
    lines.append("| Status | Jobs |")
    lines.append("|--------|-----:|")
    for status in STATUSES:
        lines.append(f"| {status.capitalize()} | {stats[status]} |")
    lines.append("")

    lines.append("## This Week")
    lines.append("")
    lines.append(f"- **Applications submitted:** {stats['applied_this_week']}")
    lines.append("")

    if recent:
        lines.append("## Recent Applications")
        lines.append("")
        for j in recent[:RECENT_LIMIT]:
            day = (j.applied_date or "")[:10]
            link = f" [Posting]({j.url})" if j.url else ""
            lines.append(f"- **{j.title}** @ {j.company} ({day}){link}")
        lines.append("")

    follow_ups = [j for j in jobs if j.next_action and j.status not in ("rejected", "offer")]
    if follow_ups:
        lines.append("## Next Actions")
        lines.append("")
        for j in follow_ups[:10]:
            due = f" — due {j.next_action_date}" if j.next_action_date else ""
            lines.append(f"- {j.title} @ {j.company}: {j.next_action}{due}")
        lines.append("")

    log.info("Built weekly report: %d jobs, %d applied this week", stats["total"], stats["applied_this_week"])
    return "\n".join(lines)


def write_weekly_report(content: str, now: datetime | None = None, reports_dir: Path | None = None) -> Path:
    reports_dir = reports_dir or REPORTS_DIR
    reports_dir.mkdir(parents=True, exist_ok=True)
    date = (now or now_utc()).strftime("%Y-%m-%d")
    path = reports_dir / f"weekly_{date}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
