"""Data models for tracked jobs, profiles and match results."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any

EXPERIENCE_LEVELS: tuple[str, ...] = ("junior", "mid", "senior")
DEFAULT_LEVEL = "mid"

_SENIOR_TITLE_TERMS = ("senior", "lead", "staff", "principal")
_JUNIOR_TITLE_TERMS = ("junior", "entry", "intern")


def infer_experience_level(title: str) -> str:
    t = (title or "").lower()
    if any(term in t for term in _SENIOR_TITLE_TERMS):
        return "senior"
    if any(term in t for term in _JUNIOR_TITLE_TERMS):
        return "junior"
    return DEFAULT_LEVEL


@dataclass
class Job:
    id: str
    title: str
    company: str
    url: str
    location: str = "Not specified"
    description: str = ""
    posted_date: str | None = None
    salary: str | None = None
    experience_level: str = DEFAULT_LEVEL
    status: str = "new"
    applied_date: str | None = None
    next_action: str | None = None
    next_action_date: str | None = None
    notes: str | None = None
    source: str = "manual"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Job:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


# Fields a caller may change after creation; id and applied_date are excluded.
EDITABLE_FIELDS: frozenset[str] = frozenset({
    "title", "company", "url", "location", "description", "posted_date",
    "salary", "experience_level", "status", "next_action",
    "next_action_date", "notes", "source",
})


@dataclass
class UserProfile:
    skills: list[str] = field(default_factory=list)
    experience_level: str = DEFAULT_LEVEL


@dataclass
class MatchDetails:
    skills: float = 0.0
    recency: float = 0.0
    experience: float = 0.0
    signals: float = 0.0
    matched_skills: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "skills": round(self.skills, 2),
            "recency": self.recency,
            "experience": self.experience,
            "signals": self.signals,
            "matched_skills": self.matched_skills,
        }


@dataclass
class ScoredJob:
    job: Job
    match_score: int
    match_details: MatchDetails
    hire_probability: int
    reasoning: list[str]

    def to_dict(self) -> dict[str, Any]:
        data = self.job.to_dict()
        data.update({
            "match_score": self.match_score,
            "match_details": self.match_details.to_dict(),
            "hire_probability": self.hire_probability,
            "reasoning": self.reasoning,
        })
        return data
