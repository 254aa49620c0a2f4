from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import NOW, days_ago, make_job
from jobtracker.errors import ConfigurationError, FetchError, InvalidProfile, NotFound, ValidationError
from jobtracker.models import UserProfile
from jobtracker.service import JobTracker, build_job
from jobtracker.sources import JobSearchBase

pytestmark = pytest.mark.unit

VALID = {"title": "Backend Engineer", "company": "Acme", "url": "https://acme.example/jobs/1"}


class FakeSource(JobSearchBase):
    def __init__(self, name: str, jobs=None, error: Exception | None = None) -> None:
        self.name = name
        self.jobs = jobs or []
        self.error = error
        self.calls: list[tuple] = []

    def search(self, query, location=None, max_results=20):
        self.calls.append((query, location, max_results))
        if self.error:
            raise self.error
        return self.jobs[:max_results]


# ── add / get / list ─────────────────────────────────────────────────────


def test_add_job_applies_defaults(tracker: JobTracker) -> None:
    job = tracker.add_job(dict(VALID))
    assert job.id.startswith("job_")
    assert job.status == "new"
    assert job.location == "Not specified"
    assert job.experience_level == "mid"
    assert job.posted_date
    assert job.applied_date is None
    assert job.source == "manual"
    assert tracker.get_job(job.id) == job


@pytest.mark.parametrize("missing", ["title", "company", "url"])
def test_add_job_requires_title_company_url(tracker: JobTracker, missing: str) -> None:
    data = dict(VALID)
    data[missing] = "   "
    with pytest.raises(ValidationError) as info:
        tracker.add_job(data)
    assert missing in info.value.message
    assert tracker.list_jobs() == []


def test_add_job_rejects_bad_level_and_unknown_fields(tracker: JobTracker) -> None:
    with pytest.raises(ValidationError):
        tracker.add_job({**VALID, "experience_level": "principal"})
    with pytest.raises(ValidationError) as info:
        tracker.add_job({**VALID, "colour": "blue"})
    assert "colour" in info.value.message


def test_build_job_ignores_supplied_status_and_normalizes_date() -> None:
    job = build_job({**VALID, "posted_date": "2026-03-01T08:00:00Z", "salary": 50000})
    assert job.status == "new"
    assert job.posted_date.startswith("2026-03-01T08:00:00")
    assert job.salary == "50000"


def test_get_missing_job(tracker: JobTracker) -> None:
    with pytest.raises(NotFound) as info:
        tracker.get_job("job_nope")
    assert info.value.to_dict() == {"error": "not_found", "message": "Job with ID job_nope not found"}


def test_list_jobs_filter_and_limit(tracker: JobTracker) -> None:
    a = tracker.add_job({**VALID, "title": "Role A"})
    b = tracker.add_job({**VALID, "title": "Role B"})
    tracker.add_job({**VALID, "title": "Role C"})
    tracker.update_status(b.id, "reviewed", now=NOW)

    assert [j.title for j in tracker.list_jobs(limit=2)] == ["Role A", "Role B"]
    assert [j.id for j in tracker.list_jobs("reviewed")] == [b.id]
    assert len(tracker.list_jobs("all")) == 3
    assert a.id in [j.id for j in tracker.list_jobs("new")]
    with pytest.raises(ValidationError):
        tracker.list_jobs("archived")


# ── update / delete ──────────────────────────────────────────────────────


def test_update_status_stamps_applied_date_once(tracker: JobTracker) -> None:
    job = tracker.add_job(dict(VALID))
    applied = tracker.update_status(job.id, "applied", notes="Sent via portal", now=NOW)
    assert applied.applied_date == NOW.isoformat()
    assert applied.notes == "Sent via portal"

    tracker.update_status(job.id, "interviewing", now=NOW + timedelta(days=3))
    again = tracker.update_status(job.id, "applied", now=NOW + timedelta(days=9))
    assert again.applied_date == NOW.isoformat()
    assert tracker.get_job(job.id).applied_date == NOW.isoformat()


def test_update_status_keeps_other_fields_when_none_given(tracker: JobTracker) -> None:
    job = tracker.add_job({**VALID, "notes": "Referral from Sam"})
    updated = tracker.update_status(job.id, "reviewed", now=NOW)
    assert updated.notes == "Referral from Sam"
    assert updated.title == job.title


def test_update_status_rejects_unknown_status(tracker: JobTracker) -> None:
    job = tracker.add_job(dict(VALID))
    with pytest.raises(ValidationError):
        tracker.update_status(job.id, "ghosted", now=NOW)
    assert tracker.get_job(job.id).status == "new"


def test_update_status_missing_job(tracker: JobTracker) -> None:
    with pytest.raises(NotFound):
        tracker.update_status("job_nope", "applied", now=NOW)


@pytest.mark.parametrize("field", ["id", "applied_date"])
def test_update_job_rejects_read_only_fields(tracker: JobTracker, field: str) -> None:
    job = tracker.add_job(dict(VALID))
    with pytest.raises(ValidationError):
        tracker.update_job(job.id, {field: "x"})


def test_update_job_cannot_blank_required_field(tracker: JobTracker) -> None:
    job = tracker.add_job(dict(VALID))
    with pytest.raises(ValidationError):
        tracker.update_job(job.id, {"company": ""})
    updated = tracker.update_job(job.id, {"company": "Acme Labs", "salary": "90k"})
    assert (updated.company, updated.salary) == ("Acme Labs", "90k")


def test_delete_job(tracker: JobTracker) -> None:
    job = tracker.add_job(dict(VALID))
    tracker.delete_job(job.id)
    with pytest.raises(NotFound):
        tracker.get_job(job.id)
    with pytest.raises(NotFound):
        tracker.delete_job(job.id)


# ── bulk ─────────────────────────────────────────────────────────────────


def test_import_is_all_or_nothing(tracker: JobTracker) -> None:
    with pytest.raises(ValidationError) as info:
        tracker.import_jobs([dict(VALID), {"title": "No company", "url": "https://x.example"}])
    assert info.value.message.startswith("Record 1:")
    assert tracker.list_jobs() == []

    created = tracker.import_jobs([dict(VALID), {**VALID, "title": "Data Engineer"}])
    assert [j.source for j in created] == ["import", "import"]
    assert len(tracker.list_jobs()) == 2


def test_save_jobs_skips_invalid_results(tracker: JobTracker) -> None:
    good = make_job(id="abc123", source="remotive", status="offer", posted_date=days_ago(2))
    bad = make_job(id="def456", url="", source="remotive")
    saved = tracker.save_jobs([good, bad])
    assert len(saved) == 1
    assert saved[0].id != "abc123"
    assert saved[0].status == "new"
    assert saved[0].source == "remotive"
    assert saved[0].posted_date == days_ago(2)


# ── search ───────────────────────────────────────────────────────────────


def test_search_delegates_to_named_provider(tracker: JobTracker) -> None:
    fake = FakeSource("remotive", jobs=[make_job(source="remotive")])
    requested: list[str] = []

    def factory(name, env_getter):
        requested.append(name)
        return fake

    tracker._source_factory = factory
    jobs = tracker.search("remotive", "  python  ", location="", max_results=5)
    assert requested == ["remotive"]
    assert fake.calls == [("python", None, 5)]
    assert len(jobs) == 1


def test_search_validates_input(tracker: JobTracker) -> None:
    with pytest.raises(ValidationError):
        tracker.search("remotive", "   ")
    with pytest.raises(ValidationError):
        tracker.search("remotive", "python", max_results=0)


def test_search_unknown_provider(tracker: JobTracker) -> None:
    with pytest.raises(ConfigurationError):
        tracker.search("monster", "python")


def test_search_all_collects_per_provider_errors(tracker: JobTracker) -> None:
    shared = make_job(id="same", source="jsearch")
    ok = FakeSource("jsearch", jobs=[shared, shared, make_job(id="other", source="jsearch")])
    broken = FakeSource("adzuna", error=FetchError("https://api.adzuna.example", status=500))
    tracker._sources_factory = lambda env_getter: [ok, broken]

    results = tracker.search_all("python", location="Berlin")
    assert [j.id for j in results.jobs] == ["same", "other"]
    assert list(results.errors) == ["adzuna"]
    assert "HTTP 500" in results.errors["adzuna"]
    assert ok.calls == [("python", "Berlin", 20)]


class ShapeMismatchSource(JobSearchBase):
    name = "broken"

    def search(self, query, location=None, max_results=20):
        return [hit.get("title") for hit in [["not", "a", "dict"]]]


def test_search_all_survives_unexpected_provider_errors(tracker: JobTracker) -> None:
    good = FakeSource("remotive", jobs=[make_job(id="g1", source="remotive")])
    tracker._sources_factory = lambda env_getter: [good, ShapeMismatchSource()]

    results = tracker.search_all("python")
    assert [j.id for j in results.jobs] == ["g1"]
    assert "broken" in results.errors
    assert "get" in results.errors["broken"]


def test_search_all_with_no_providers(tracker: JobTracker) -> None:
    tracker._sources_factory = lambda env_getter: []
    results = tracker.search_all("python")
    assert results.jobs == [] and results.errors == {}


def test_scrape_careers_requires_url_and_company(tracker: JobTracker) -> None:
    with pytest.raises(ValidationError):
        tracker.scrape_careers("", "Acme")
    with pytest.raises(ValidationError):
        tracker.scrape_careers("https://acme.example/careers", " ")


# ── scoring & reporting ──────────────────────────────────────────────────


def test_score_jobs_reads_the_store(tracker: JobTracker) -> None:
    tracker.add_job({**VALID, "title": "Python Engineer", "posted_date": days_ago(0)})
    tracker.add_job({**VALID, "title": "Office Manager", "posted_date": days_ago(30)})
    ranked = tracker.score_jobs(UserProfile(skills=["python"]), now=NOW)
    assert [s.job.title for s in ranked] == ["Python Engineer", "Office Manager"]

    with pytest.raises(InvalidProfile):
        tracker.score_jobs(UserProfile(skills=[]), now=NOW)


def test_stats_counts_statuses_and_this_week(tracker: JobTracker) -> None:
    recent = tracker.add_job(dict(VALID))
    old = tracker.add_job(dict(VALID))
    tracker.add_job(dict(VALID))
    tracker.update_status(recent.id, "applied", now=NOW - timedelta(days=2))
    tracker.update_status(old.id, "applied", now=NOW - timedelta(days=10))
    tracker.update_status(old.id, "rejected", now=NOW - timedelta(days=8))

    stats = tracker.stats(now=NOW)
    assert stats["total"] == 3
    assert stats["new"] == 1
    assert stats["applied"] == 1
    assert stats["rejected"] == 1
    assert stats["offer"] == 0
    assert stats["applied_this_week"] == 1


def test_weekly_report_lists_recent_applications(tracker: JobTracker) -> None:
    job = tracker.add_job({**VALID, "title": "Platform Engineer", "company": "Globex"})
    tracker.update_status(job.id, "applied", next_action="Follow up", now=NOW - timedelta(days=1))

    report = tracker.weekly_report(now=NOW)
    assert report.startswith("# Weekly Job Search Report")
    assert "2026-03-10" in report
    assert "| Applied | 1 |" in report
    assert "- **Applications submitted:** 1" in report
    assert "**Platform Engineer** @ Globex (2026-03-09)" in report
    assert "Platform Engineer @ Globex: Follow up" in report


def test_requirements_extracts_known_keywords(tracker: JobTracker) -> None:
    job = tracker.add_job(
        {**VALID, "description": "Stack: React, TypeScript, PostgreSQL and Docker on AWS."}
    )
    req = tracker.requirements(job.id)
    assert req["job"]["id"] == job.id
    assert req["skills"] == ["React", "TypeScript", "SQL", "PostgreSQL", "AWS", "Docker"]


def test_prepare_tailoring_moves_job_forward(tracker: JobTracker) -> None:
    job = tracker.add_job({**VALID, "description": "Build APIs"})
    packet = tracker.prepare_tailoring(job.id, now=NOW)
    assert packet == {
        "job_title": "Backend Engineer",
        "company": "Acme",
        "location": "Not specified",
        "job_description": "Build APIs",
        "job_url": "https://acme.example/jobs/1",
        "salary_range": "Not specified",
    }
    stored = tracker.get_job(job.id)
    assert stored.status == "tailoring"
    assert stored.next_action == "Tailor resume and cover letter"
