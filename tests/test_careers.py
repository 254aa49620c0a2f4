from __future__ import annotations

import json

import pytest
import requests

from conftest import NOW, FakeResponse
from jobtracker import careers
from jobtracker.careers import extract_jobs, fetch_career_page, scrape_career_page
from jobtracker.errors import FetchError

BASE = "https://acme.example/careers"


def _page(*anchors: str, scripts: tuple[str, ...] = ()) -> str:
    body = "\n".join(anchors)
    head = "\n".join(f'<script type="application/ld+json">{s}</script>' for s in scripts)
    return f"<html><head>{head}</head><body><nav>{body}</nav></body></html>"


@pytest.mark.unit
def test_extracts_job_link_and_ignores_navigation() -> None:
    html = _page(
        '<a href="/careers/123">Senior Backend Engineer</a>',
        '<a href="/about">About Us</a>',
    )
    jobs = extract_jobs(html, "Acme", BASE, now=NOW)

    assert len(jobs) == 1
    job = jobs[0]
    assert job.title == "Senior Backend Engineer"
    assert job.experience_level == "senior"
    assert job.url == "https://acme.example/careers/123"
    assert job.company == "Acme"
    assert job.location == "See job posting"
    assert job.description == "Found on Acme careers page"
    assert job.posted_date == NOW.isoformat()
    assert job.source == "careers"


@pytest.mark.unit
def test_duplicate_title_and_url_collapse_to_one() -> None:
    html = _page(
        '<a href="/careers/123">Senior Backend Engineer</a>',
        '<a href="/careers/123">Senior Backend Engineer</a>',
    )
    assert len(extract_jobs(html, "Acme", BASE, now=NOW)) == 1


@pytest.mark.unit
def test_same_title_different_url_is_kept() -> None:
    html = _page(
        '<a href="/careers/1">Senior Backend Engineer</a>',
        '<a href="/careers/2">Senior Backend Engineer</a>',
    )
    assert len(extract_jobs(html, "Acme", BASE, now=NOW)) == 2


@pytest.mark.unit
def test_keyword_filter_discards_non_matching_titles() -> None:
    html = _page('<a href="/careers/123">Senior Backend Engineer</a>')
    assert extract_jobs(html, "Acme", BASE, keywords="python", now=NOW) == []
    kept = extract_jobs(html, "Acme", BASE, keywords="Python BACKEND", now=NOW)
    assert [j.title for j in kept] == ["Senior Backend Engineer"]


@pytest.mark.unit
def test_link_text_length_bounds_are_exclusive() -> None:
    html = _page(
        '<a href="/jobs/1">Engineer X</a>',
        '<a href="/jobs/2">Engineer XY</a>',
        f'<a href="/jobs/3">Engineer {"x" * 141}</a>',
    )
    jobs = extract_jobs(html, "Acme", BASE, now=NOW)
    assert [j.title for j in jobs] == ["Engineer XY"]


@pytest.mark.unit
def test_href_alone_can_mark_a_posting_and_text_is_flattened() -> None:
    html = _page('<a href="jobs/42"><span>Open   roles</span> <b>in Berlin</b></a>')
    jobs = extract_jobs(html, "Acme", "https://acme.example/careers/", now=NOW)
    assert jobs[0].title == "Open roles in Berlin"
    assert jobs[0].url == "https://acme.example/careers/jobs/42"
    assert jobs[0].experience_level == "mid"


@pytest.mark.unit
def test_absolute_links_and_junior_inference() -> None:
    html = _page('<a href="https://boards.example/acme/7">Junior Data Analyst</a>')
    job = extract_jobs(html, "Acme", BASE, now=NOW)[0]
    assert job.url == "https://boards.example/acme/7"
    assert job.experience_level == "junior"


@pytest.mark.unit
def test_mailto_and_fragment_links_are_skipped() -> None:
    html = _page(
        '<a href="mailto:jobs@acme.example">Email our engineering team</a>',
        '<a href="#top">Back to senior engineer list</a>',
    )
    assert extract_jobs(html, "Acme", BASE, now=NOW) == []


@pytest.mark.unit
def test_structured_data_fallback_when_few_links() -> None:
    posting = {
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "Organization", "name": "Acme"},
            {
                "@type": "JobPosting",
                "title": "Platform Engineer",
                "description": "<p>" + "Build things. " * 60 + "</p>",
                "url": "/careers/platform",
                "datePosted": "2026-03-01",
                "jobLocation": {
                    "@type": "Place",
                    "address": {
                        "addressLocality": "Berlin",
                        "addressRegion": "BE",
                        "addressCountry": "DE",
                    },
                },
                "baseSalary": {
                    "currency": "EUR",
                    "value": {"minValue": 70000, "maxValue": 90000, "unitText": "YEAR"},
                },
            },
        ],
    }
    html = _page(
        '<a href="/careers/123">Senior Backend Engineer</a>',
        scripts=("{not json", json.dumps(posting)),
    )
    jobs = extract_jobs(html, "Acme", BASE, now=NOW)

    assert [j.title for j in jobs] == ["Senior Backend Engineer", "Platform Engineer"]
    structured = jobs[1]
    assert structured.url == "https://acme.example/careers/platform"
    assert structured.location == "Berlin, BE, DE"
    assert structured.experience_level == "mid"
    assert len(structured.description) == 500
    assert "<p>" not in structured.description
    assert structured.salary == "EUR 70000-90000 year"
    assert structured.posted_date.startswith("2026-03-01")


@pytest.mark.unit
def test_structured_data_name_and_list_payload() -> None:
    payload = [
        {"@type": "JobPosting", "name": "Staff Designer"},
        {"@type": "JobPosting"},
    ]
    jobs = extract_jobs(_page(scripts=(json.dumps(payload),)), "Acme", BASE, now=NOW)
    assert len(jobs) == 1
    assert jobs[0].title == "Staff Designer"
    assert jobs[0].url == BASE
    assert jobs[0].experience_level == "mid"
    assert jobs[0].posted_date == NOW.isoformat()


@pytest.mark.unit
def test_structured_data_ignored_when_enough_links() -> None:
    payload = {"@type": "JobPosting", "title": "Hidden Posting"}
    html = _page(
        '<a href="/jobs/1">Senior Backend Engineer</a>',
        '<a href="/jobs/2">Frontend Developer</a>',
        '<a href="/jobs/3">Product Designer</a>',
        scripts=(json.dumps(payload),),
    )
    titles = [j.title for j in extract_jobs(html, "Acme", BASE, now=NOW)]
    assert "Hidden Posting" not in titles
    assert len(titles) == 3


@pytest.mark.unit
def test_malformed_html_does_not_raise() -> None:
    assert isinstance(extract_jobs("<a href='/jobs/1'>Senior Data <div", "Acme", BASE), list)
    assert extract_jobs("", "Acme", BASE) == []


@pytest.mark.integration
def test_fetch_raises_fetch_error_on_http_status(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        careers.requests, "get",
        lambda url, **kw: FakeResponse(status_code=503, reason="Service Unavailable"),
    )
    with pytest.raises(FetchError) as info:
        fetch_career_page(BASE)
    assert info.value.url == BASE
    assert info.value.status == 503
    assert BASE in info.value.message


@pytest.mark.integration
def test_fetch_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(url, **kw):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(careers.requests, "get", boom)
    with pytest.raises(FetchError) as info:
        fetch_career_page(BASE)
    assert info.value.status is None
    assert "connection refused" in info.value.message


@pytest.mark.integration
def test_scrape_fetches_then_extracts(monkeypatch: pytest.MonkeyPatch) -> None:
    html = _page('<a href="/careers/9">Lead DevOps Engineer</a>')
    seen: dict = {}

    def fake_get(url, **kw):
        seen["url"] = url
        seen["timeout"] = kw.get("timeout")
        return FakeResponse(text=html)

    monkeypatch.setattr(careers.requests, "get", fake_get)
    jobs = scrape_career_page(BASE, "Acme")
    assert seen["url"] == BASE
    assert seen["timeout"]
    assert [(j.title, j.url, j.experience_level) for j in jobs] == [
        ("Lead DevOps Engineer", "https://acme.example/careers/9", "senior"),
    ]


@pytest.mark.unit
def test_bad_href_skips_only_that_link() -> None:
    html = _page(
        '<a href="http://[broken/jobs/1">Senior Backend Engineer</a>',
        '<a href="/careers/2">Junior Frontend Developer</a>',
    )
    jobs = extract_jobs(html, "Acme", BASE, now=NOW)
    assert [(j.title, j.url) for j in jobs] == [
        ("Junior Frontend Developer", "https://acme.example/careers/2"),
    ]


@pytest.mark.unit
def test_bad_structured_data_url_skips_only_that_posting() -> None:
    payload = [
        {"@type": "JobPosting", "title": "Broken Posting", "url": "http://[broken/x"},
        {"@type": "JobPosting", "title": "Data Scientist", "url": "/careers/ds",
         "baseSalary": {"currency": "USD", "value": {"value": 100000, "unitText": 12}}},
    ]
    jobs = extract_jobs(_page(scripts=(json.dumps(payload),)), "Acme", BASE, now=NOW)
    assert [(j.title, j.url) for j in jobs] == [
        ("Data Scientist", "https://acme.example/careers/ds"),
    ]
    assert jobs[0].salary == "USD 100000 12"
