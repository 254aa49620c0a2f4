"""JSearch API (RapidAPI) — aggregated job listings."""
from __future__ import annotations

from jobtracker.errors import ConfigurationError
from jobtracker.log import get_logger
from jobtracker.models import Job, infer_experience_level
from jobtracker.sources.base import JobSearchBase, fetch_json, hit_id
from jobtracker.utils import normalize_timestamp

log = get_logger(__name__)


def _location(hit: dict) -> str:
    if hit.get("job_is_remote"):
        return "Remote"
    parts = [hit.get("job_city"), hit.get("job_state"), hit.get("job_country")]
    return ", ".join(p for p in parts if p) or "Not specified"


def _salary(hit: dict) -> str | None:
    low, high = hit.get("job_min_salary"), hit.get("job_max_salary")
    if low and high:
        text = f"{low}-{high}"
    elif low or high:
        text = str(low or high)
    else:
        return None
    period = hit.get("job_salary_period")
    return f"{text} {period.lower()}" if period else text


class JSearchSource(JobSearchBase):
    name = "jsearch"
    BASE = "https://jsearch.p.rapidapi.com"

    def __init__(self, env_getter) -> None:
        self.api_key: str = env_getter("JSEARCH_API_KEY")
        if not self.api_key:
            raise ConfigurationError("JSearch requires JSEARCH_API_KEY to be set")

    def search(self, query: str, location: str | None = None, max_results: int = 20) -> list[Job]:
        q = f"{query} in {location}" if location else query
        data = fetch_json(
            f"{self.BASE}/search",
            params={"query": q, "num_pages": "1"},
            headers={
                "X-RapidAPI-Key": self.api_key,
                "X-RapidAPI-Host": "jsearch.p.rapidapi.com",
            },
        )
        jobs: list[Job] = []
        for hit in data.get("data", [])[:max_results]:
            title = hit.get("job_title", "")
            jobs.append(
                Job(
                    id=hit_id(hit.get("job_id") or title + hit.get("employer_name", "")),
                    title=title,
                    company=hit.get("employer_name", ""),
                    url=hit.get("job_apply_link", ""),
                    location=_location(hit),
                    description=hit.get("job_description", ""),
                    posted_date=normalize_timestamp(
                        hit.get("job_posted_at_datetime_utc") or hit.get("job_posted_at_timestamp")
                    ),
                    salary=_salary(hit),
                    experience_level=infer_experience_level(title),
                    source=self.name,
                )
            )
        log.debug("JSearch query=%r returned %d jobs", q, len(jobs))
        return jobs
