"""JobTracker: the operations a front end drives.

Wires the store, the status pipeline, the search providers, the careers-page
extractor and the scorer together. Each call is independent; nothing is
retried.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from jobtracker.careers import scrape_career_page
from jobtracker.config import get_env
from jobtracker.errors import TrackerError, ValidationError
from jobtracker.insights import TAILORING_ACTION, extract_requirements, tailoring_packet
from jobtracker.log import get_logger
from jobtracker.models import EDITABLE_FIELDS, EXPERIENCE_LEVELS, Job, ScoredJob, UserProfile
from jobtracker.pipeline import apply_transition, validate_status
from jobtracker.report import build_weekly_report, pipeline_stats
from jobtracker.scorer import rank_jobs
from jobtracker.sources import JobSearchBase, available_sources, get_source
from jobtracker.store import JobStore
from jobtracker.utils import normalize_timestamp, now_utc_iso

log = get_logger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = ("title", "company", "url")
READ_ONLY_FIELDS: frozenset[str] = frozenset({"id", "applied_date"})


@dataclass
class SearchResults:
    jobs: list[Job] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


def _clean(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _check_experience_level(value: Any) -> str:
    if value not in EXPERIENCE_LEVELS:
        raise ValidationError(
            f"Invalid experience level {value!r}; expected one of: {', '.join(EXPERIENCE_LEVELS)}"
        )
    return value


def build_job(data: dict[str, Any], source: str = "manual") -> Job:
    """Validate a creation payload and return an unsaved Job (status ``new``)."""
    data = {k: _clean(v) for k, v in data.items()}
    unknown = set(data) - EDITABLE_FIELDS - {"id"}
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")
    missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    level = data.get("experience_level") or "mid"
    _check_experience_level(level)
    posted = data.get("posted_date")
    return Job(
        id="",
        title=data["title"],
        company=data["company"],
        url=data["url"],
        location=data.get("location") or "Not specified",
        description=data.get("description") or "",
        posted_date=normalize_timestamp(posted) if posted else now_utc_iso(),
        salary=str(data["salary"]) if data.get("salary") else None,
        experience_level=level,
        next_action=data.get("next_action"),
        next_action_date=data.get("next_action_date"),
        notes=data.get("notes"),
        source=data.get("source") or source,
    )


class JobTracker:
    def __init__(
        self,
        store: JobStore,
        env_getter: Callable[..., str] = get_env,
        source_factory: Callable[..., JobSearchBase] = get_source,
        sources_factory: Callable[..., list[JobSearchBase]] = available_sources,
    ) -> None:
        self.store = store
        self.env_getter = env_getter
        self._source_factory = source_factory
        self._sources_factory = sources_factory

    # ── CRUD ────────────────────────────────────────────────────────────

    def add_job(self, data: dict[str, Any], source: str = "manual") -> Job:
        job = self.store.create(build_job(data, source=source))
        log.info("Job added: %s — %s @ %s", job.id, job.title, job.company)
        return job

    def import_jobs(self, records: list[dict[str, Any]]) -> list[Job]:
        """All-or-nothing: every record is validated before any is stored."""
        built: list[Job] = []
        for i, rec in enumerate(records):
            try:
                built.append(build_job(rec, source="import"))
            except ValidationError as exc:
                raise ValidationError(f"Record {i}: {exc.message}") from exc
        created = [self.store.create(j) for j in built]
        log.info("Imported %d job(s)", len(created))
        return created

    def save_jobs(self, jobs: list[Job]) -> list[Job]:
        """Persist search or extraction results as new tracked jobs."""
        saved: list[Job] = []
        for j in jobs:
            data = {k: v for k, v in j.to_dict().items() if k in EDITABLE_FIELDS}
            data.pop("status", None)
            try:
                saved.append(self.store.create(build_job(data, source=j.source)))
            except ValidationError as exc:
                log.warning("Not saving %r from %s: %s", j.title, j.source, exc.message)
        log.info("Saved %d of %d result(s)", len(saved), len(jobs))
        return saved

    def get_job(self, job_id: str) -> Job:
        return self.store.get(job_id)

    def list_jobs(self, status: str | None = None, limit: int | None = None) -> list[Job]:
        if status in (None, "", "all"):
            jobs = self.store.list()
        else:
            jobs = self.store.list(validate_status(status))
        return jobs[:limit] if limit else jobs

    def update_job(self, job_id: str, data: dict[str, Any], now: datetime | None = None) -> Job:
        data = {k: _clean(v) for k, v in data.items()}
        read_only = READ_ONLY_FIELDS & set(data)
        if read_only:
            raise ValidationError(f"Field(s) cannot be changed: {', '.join(sorted(read_only))}")
        unknown = set(data) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        emptied = [f for f in REQUIRED_FIELDS if f in data and not data[f]]
        if emptied:
            raise ValidationError(f"Required field(s) cannot be empty: {', '.join(emptied)}")
        if "experience_level" in data:
            _check_experience_level(data["experience_level"])

        changes = dict(data)
        if "status" in data:
            job = apply_transition(self.store.get(job_id), validate_status(data["status"]), now=now)
            changes["applied_date"] = job.applied_date
        return self.store.update(job_id, changes)

    def update_status(
        self,
        job_id: str,
        status: str,
        notes: str | None = None,
        next_action: str | None = None,
        next_action_date: str | None = None,
        now: datetime | None = None,
    ) -> Job:
        changes: dict[str, Any] = {"status": status}
        for key, value in (
            ("notes", notes), ("next_action", next_action), ("next_action_date", next_action_date),
        ):
            if value:
                changes[key] = value
        return self.update_job(job_id, changes, now=now)

    def delete_job(self, job_id: str) -> None:
        self.store.delete(job_id)
        log.info("Job deleted: %s", job_id)

    # ── Search & extraction ─────────────────────────────────────────────

    def search(
        self, provider: str, query: str, location: str | None = None, max_results: int = 20
    ) -> list[Job]:
        if not (query or "").strip():
            raise ValidationError("Search query is required")
        if max_results < 1:
            raise ValidationError("max_results must be at least 1")
        source = self._source_factory(provider, self.env_getter)
        jobs = source.search(query.strip(), location or None, max_results)
        log.info("[%s] returned %d jobs for %r", source.name, len(jobs), query)
        return jobs

    def search_all(
        self, query: str, location: str | None = None, max_results: int = 20
    ) -> SearchResults:
        """Query every configured provider in parallel and merge the results."""
        if not (query or "").strip():
            raise ValidationError("Search query is required")
        sources = self._sources_factory(self.env_getter)
        results = SearchResults()
        if not sources:
            return results

        seen: set[str] = set()
        with ThreadPoolExecutor(max_workers=len(sources)) as pool:
            futures = {
                pool.submit(src.search, query.strip(), location or None, max_results): src
                for src in sources
            }
            for future in as_completed(futures):
                name = futures[future].name
                try:
                    batch = future.result()
                except TrackerError as exc:
                    log.error("[%s] FAILED: %s", name, exc.message)
                    results.errors[name] = exc.message
                    continue
                except Exception as exc:
                    log.error("[%s] FAILED: %s", name, exc)
                    results.errors[name] = str(exc) or type(exc).__name__
                    continue
                log.info("[%s] returned %d jobs", name, len(batch))
                for job in batch:
                    key = f"{job.source}:{job.id}"
                    if key not in seen:
                        seen.add(key)
                        results.jobs.append(job)
        log.info("Total unique jobs from providers: %d", len(results.jobs))
        return results

    def scrape_careers(self, url: str, company: str, keywords: str | None = None) -> list[Job]:
        if not (url or "").strip() or not (company or "").strip():
            raise ValidationError("Careers page URL and company name are required")
        return scrape_career_page(url.strip(), company.strip(), keywords=keywords)

    # ── Scoring ─────────────────────────────────────────────────────────

    def score_jobs(
        self,
        profile: UserProfile,
        jobs: list[Job] | None = None,
        status: str | None = None,
        now: datetime | None = None,
    ) -> list[ScoredJob]:
        if jobs is None:
            jobs = self.list_jobs(status)
        return rank_jobs(jobs, profile, now=now)

    # ── Reporting ───────────────────────────────────────────────────────

    def stats(self, now: datetime | None = None) -> dict[str, int]:
        return pipeline_stats(self.store.list(), now)

    def weekly_report(self, now: datetime | None = None) -> str:
        return build_weekly_report(self.store.list(), now)

    def requirements(self, job_id: str) -> dict[str, Any]:
        return extract_requirements(self.store.get(job_id))

    def prepare_tailoring(self, job_id: str, now: datetime | None = None) -> dict[str, str]:
        """Return the tailoring packet and move the job to ``tailoring``."""
        job = self.store.get(job_id)
        packet = tailoring_packet(job)
        self.update_job(job_id, {"status": "tailoring", "next_action": TAILORING_ACTION}, now=now)
        return packet
