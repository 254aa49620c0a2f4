"""Remotive — free API for remote tech jobs (no API key required).

Docs: https://remotive.com/api/remote-jobs
"""
from __future__ import annotations

from jobtracker.log import get_logger
from jobtracker.models import Job, infer_experience_level
from jobtracker.sources.base import JobSearchBase, fetch_json, hit_id
from jobtracker.utils import normalize_timestamp

log = get_logger(__name__)

API_URL = "https://remotive.com/api/remote-jobs"

# Postings open to these regions match any requested location.
_OPEN_LOCATIONS: tuple[str, ...] = ("worldwide", "anywhere")


def _location_ok(required: str, wanted: str | None) -> bool:
    if not wanted or wanted.lower() == "remote":
        return True
    req = (required or "").lower()
    if not req or any(o in req for o in _OPEN_LOCATIONS):
        return True
    return wanted.lower() in req


class RemotiveSource(JobSearchBase):
    name = "remotive"

    def __init__(self, env_getter=None) -> None:
        pass

    def search(self, query: str, location: str | None = None, max_results: int = 20) -> list[Job]:
        params: dict = {"limit": max_results}
        if query:
            params["search"] = query
        data = fetch_json(API_URL, params=params)

        jobs: list[Job] = []
        for hit in data.get("jobs", []):
            required = hit.get("candidate_required_location", "") or "Remote"
            if not _location_ok(required, location):
                continue
            title = hit.get("title", "")
            company = hit.get("company_name", "")

            tags = hit.get("tags", [])
            desc = hit.get("description", "")
            if tags:
                desc += " " + " ".join(tags)

            jobs.append(
                Job(
                    id=hit_id(hit.get("id", f"{title}{company}")),
                    title=title,
                    company=company,
                    url=hit.get("url", ""),
                    location=required,
                    description=desc,
                    posted_date=normalize_timestamp(hit.get("publication_date")),
                    salary=hit.get("salary") or None,
                    experience_level=infer_experience_level(title),
                    source=self.name,
                )
            )
            if len(jobs) >= max_results:
                break
        log.debug("Remotive search=%r returned %d jobs", query, len(jobs))
        return jobs
