"""Adzuna job search — region-specific aggregator.

Free tier: 250 requests/day.  Sign up at https://developer.adzuna.com/
"""
from __future__ import annotations

from jobtracker.errors import ConfigurationError
from jobtracker.log import get_logger
from jobtracker.models import Job, infer_experience_level
from jobtracker.sources.base import JobSearchBase, fetch_json, hit_id
from jobtracker.utils import normalize_timestamp

log = get_logger(__name__)

DEFAULT_COUNTRY = "gb"
BASE_URL = "https://api.adzuna.com/v1/api/jobs/{country}/search/1"


class AdzunaSource(JobSearchBase):
    name = "adzuna"

    def __init__(self, env_getter) -> None:
        self.app_id: str = env_getter("ADZUNA_APP_ID")
        self.app_key: str = env_getter("ADZUNA_APP_KEY")
        missing = [k for k, v in (("ADZUNA_APP_ID", self.app_id), ("ADZUNA_APP_KEY", self.app_key)) if not v]
        if missing:
            raise ConfigurationError(f"Adzuna requires {' and '.join(missing)} to be set")
        self.country: str = (env_getter("ADZUNA_COUNTRY") or DEFAULT_COUNTRY).lower()

    def search(self, query: str, location: str | None = None, max_results: int = 20) -> list[Job]:
        params: dict = {
            "app_id": self.app_id,
            "app_key": self.app_key,
            "what": query,
            "results_per_page": max_results,
            "content-type": "application/json",
        }
        if location:
            params["where"] = location

        data = fetch_json(BASE_URL.format(country=self.country), params=params)

        jobs: list[Job] = []
        for hit in data.get("results", [])[:max_results]:
            title = hit.get("title", "")
            company = (hit.get("company") or {}).get("display_name", "")
            loc = (hit.get("location") or {}).get("display_name", "")

            salary_text = ""
            sal_min = hit.get("salary_min")
            sal_max = hit.get("salary_max")
            if sal_min and sal_max:
                salary_text = f"{sal_min}-{sal_max}"
            elif sal_min:
                salary_text = str(sal_min)

            jobs.append(
                Job(
                    id=hit_id(hit.get("id", f"{title}{company}{loc}")),
                    title=title,
                    company=company,
                    url=hit.get("redirect_url", ""),
                    location=loc or "Not specified",
                    description=hit.get("description", ""),
                    posted_date=normalize_timestamp(hit.get("created")),
                    salary=salary_text or None,
                    experience_level=infer_experience_level(title),
                    source=self.name,
                )
            )
        log.debug("Adzuna what=%r where=%r returned %d jobs", query, location, len(jobs))
        return jobs
