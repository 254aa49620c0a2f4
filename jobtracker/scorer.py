"""Score and rank jobs against a user skill profile."""
from __future__ import annotations

import math
from datetime import datetime

from jobtracker.errors import InvalidProfile
from jobtracker.log import get_logger
from jobtracker.models import (
    DEFAULT_LEVEL,
    EXPERIENCE_LEVELS,
    Job,
    MatchDetails,
    ScoredJob,
    UserProfile,
)
from jobtracker.utils import now_utc, parse_timestamp

log = get_logger(__name__)

SKILL_CAP = 40
RECENCY_CAP = 25
EXPERIENCE_CAP = 20
SIGNAL_CAP = 15

# (max days since posting, points, reason)
RECENCY_BUCKETS: list[tuple[int, int, str]] = [
    (1, 25, "Posted in the last day"),
    (3, 20, "Posted in the last 3 days"),
    (7, 15, "Posted this week"),
    (14, 10, "Posted in the last 2 weeks"),
]
RECENCY_FLOOR = (5, "Posted over 2 weeks ago")

# (family, points, terms, reason)
HIRING_SIGNALS: list[tuple[str, int, list[str], str]] = [
    ("urgent", 5,
     ["urgent", "urgently", "immediate start", "start immediately", "asap", "hiring now"],
     "Urgent hiring"),
    ("junior_friendly", 3,
     ["junior", "entry level", "entry-level", "graduate", "no experience required",
      "training provided", "mentorship"],
     "Junior-friendly posting"),
    ("remote", 3,
     ["remote", "worldwide", "anywhere", "work from home"],
     "Remote / worldwide"),
    ("startup", 2,
     ["startup", "start-up", "seed stage", "series a", "early stage", "early-stage"],
     "Startup stage"),
    ("small_team", 2,
     ["small team", "close-knit", "tight-knit", "founding team"],
     "Small team"),
]

MAX_REASONS = 3


def _normalize(s: str) -> str:
    return (s or "").lower().strip()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _searchable_text(job: Job) -> str:
    # Newline-separated so a multi-word skill never spans two fields.
    return "\n".join(_normalize(part) for part in (job.title, job.description, job.company))


def _skill_points(text: str, skills: list[str]) -> tuple[float, list[str]]:
    matched = [s for s in skills if _normalize(s) and _normalize(s) in text]
    return len(matched) / len(skills) * SKILL_CAP, matched


def _recency_points(posted_date: str | None, now: datetime) -> tuple[int, str | None]:
    posted = parse_timestamp(posted_date)
    if posted is None:
        return 0, None
    days = math.floor((now - posted).total_seconds() / 86400)
    for max_days, points, reason in RECENCY_BUCKETS:
        if days <= max_days:
            return points, reason
    return RECENCY_FLOOR


def _experience_points(user_level: str, job_level: str) -> tuple[int, str]:
    if user_level == job_level:
        return 20, f"Experience level match ({job_level})"
    if user_level in EXPERIENCE_LEVELS and job_level in EXPERIENCE_LEVELS:
        gap = EXPERIENCE_LEVELS.index(user_level) - EXPERIENCE_LEVELS.index(job_level)
        if gap == 1:
            return 15, f"Overqualified for {job_level} role, room to grow"
        if gap == -1:
            return 10, f"Stretch role ({job_level})"
    return 5, f"Experience mismatch ({user_level} vs {job_level})"


def _signal_points(text: str) -> tuple[int, list[str]]:
    points = 0
    reasons: list[str] = []
    for _family, value, terms, reason in HIRING_SIGNALS:
        if any(term in text for term in terms):
            points += value
            reasons.append(reason)
    return min(points, SIGNAL_CAP), reasons


def score_job(job: Job, profile: UserProfile, now: datetime | None = None) -> ScoredJob:
    if not profile.skills:
        raise InvalidProfile("Profile has no skills to match against")
    now = now or now_utc()
    text = _searchable_text(job)
    reasons: list[str] = []

    # --- Skills overlap ---
    skill_pts, matched = _skill_points(text, profile.skills)
    if matched:
        shown = ", ".join(matched[:5])
        reasons.append(f"Matches {len(matched)}/{len(profile.skills)} skills: {shown}")

    # --- Recency ---
    recency_pts, recency_reason = _recency_points(job.posted_date, now)
    if recency_reason:
        reasons.append(recency_reason)

    # --- Experience fit ---
    exp_pts, exp_reason = _experience_points(
        profile.experience_level or DEFAULT_LEVEL, job.experience_level or DEFAULT_LEVEL,
    )
    reasons.append(exp_reason)

    # --- Hiring signals ---
    signal_pts, signal_reasons = _signal_points(text)
    reasons.extend(signal_reasons)

    total = _round_half_up(skill_pts + recency_pts + exp_pts + signal_pts)

    # Each factor as a share of its own cap, re-weighted by that cap. This is
    # algebraically the same number as ``total``; kept as a separate estimate.
    hire_probability = _round_half_up(
        (skill_pts / SKILL_CAP) * SKILL_CAP
        + (recency_pts / RECENCY_CAP) * RECENCY_CAP
        + (exp_pts / EXPERIENCE_CAP) * EXPERIENCE_CAP
        + (signal_pts / SIGNAL_CAP) * SIGNAL_CAP
    )

    return ScoredJob(
        job=job,
        match_score=total,
        match_details=MatchDetails(
            skills=skill_pts,
            recency=recency_pts,
            experience=exp_pts,
            signals=signal_pts,
            matched_skills=matched,
        ),
        hire_probability=hire_probability,
        # First three in evaluation order, not by contribution.
        reasoning=reasons[:MAX_REASONS],
    )


def rank_jobs(
    jobs: list[Job], profile: UserProfile, now: datetime | None = None
) -> list[ScoredJob]:
    if not profile.skills:
        raise InvalidProfile("Profile has no skills to match against")
    if not jobs:
        return []
    now = now or now_utc()
    scored = [score_job(j, profile, now=now) for j in jobs]
    result = sorted(scored, key=lambda s: -s.match_score)
    log.info("Scored %d jobs (top score %d)", len(result), result[0].match_score)
    return result
