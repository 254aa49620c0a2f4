"""Status pipeline for tracked jobs.

Transitions are permissive: any status may move to any other. The only side
effect is that entering ``applied`` stamps ``applied_date`` the first time.
"""
from __future__ import annotations

from datetime import datetime

from jobtracker.errors import ValidationError
from jobtracker.log import get_logger
from jobtracker.models import Job
from jobtracker.utils import now_utc, to_iso

log = get_logger(__name__)

STATUSES: tuple[str, ...] = (
    "new", "reviewed", "tailoring", "applied", "interviewing", "rejected", "offer",
)
APPLIED = "applied"


def validate_status(value: str) -> str:
    if value not in STATUSES:
        raise ValidationError(
            f"Invalid status {value!r}; expected one of: {', '.join(STATUSES)}"
        )
    return value


def apply_transition(job: Job, status: str, now: datetime | None = None) -> Job:
    """Set ``job.status`` in place and return the job."""
    validate_status(status)
    previous = job.status
    job.status = status
    if status == APPLIED and not job.applied_date:
        job.applied_date = to_iso(now or now_utc())
        log.debug("Stamped applied_date for %s", job.id)
    if previous != status:
        log.info("Job %s: %s → %s", job.id, previous, status)
    return job
