"""Extract job postings from a company's own careers page.

Best-effort: anchors that look like postings are collected first; when that
yields fewer than ``MIN_LINK_RESULTS`` records, schema.org ``JobPosting``
blocks embedded as JSON-LD are parsed as a fallback.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from jobtracker.config import http_timeout
from jobtracker.errors import FetchError, ParseError
from jobtracker.log import get_logger
from jobtracker.models import DEFAULT_LEVEL, Job, infer_experience_level
from jobtracker.utils import normalize_timestamp, now_utc, to_iso

log = get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36"
ROLE_KEYWORDS: list[str] = [
    "engineer", "developer", "designer", "manager", "analyst", "architect",
    "lead", "senior", "junior", "intern", "fullstack", "frontend", "backend",
    "devops", "data", "ml", "ai", "product",
]
JOB_HREF_KEYWORDS: list[str] = ["job", "career", "position"]
SKIPPED_SCHEMES = ("mailto:", "javascript:", "tel:")
MIN_TITLE_LEN = 10
MAX_TITLE_LEN = 150
MIN_LINK_RESULTS = 3
MAX_DESCRIPTION_LEN = 500
LINK_LOCATION = "See job posting"


def fetch_career_page(url: str, timeout: float | None = None) -> str:
    try:
        r = requests.get(
            url,
            headers={"User-Agent": USER_AGENT, "Accept-Language": "en-US,en;q=0.9"},
            timeout=timeout or http_timeout(),
        )
    except requests.RequestException as exc:
        raise FetchError(url, reason=str(exc)) from exc
    if not 200 <= r.status_code < 300:
        raise FetchError(url, status=r.status_code, reason=r.reason or "")
    return r.text


def scrape_career_page(
    url: str, company_name: str, keywords: str | None = None
) -> list[Job]:
    html = fetch_career_page(url)
    jobs = extract_jobs(html, company_name, url, keywords=keywords)
    log.info("Extracted %d job(s) from %s careers page", len(jobs), company_name)
    return jobs


def extract_jobs(
    html: str,
    company_name: str,
    base_url: str,
    keywords: str | None = None,
    now: datetime | None = None,
) -> list[Job]:
    found_at = to_iso(now or now_utc())
    soup = BeautifulSoup(html or "", "html.parser")

    jobs = _jobs_from_links(soup, company_name, base_url, keywords, found_at)
    if len(jobs) < MIN_LINK_RESULTS:
        structured = _jobs_from_structured_data(soup, company_name, base_url, found_at)
        log.debug("Structured-data fallback added %d posting(s)", len(structured))
        jobs.extend(structured)

    return _dedupe(jobs)


def _flatten(text: str) -> str:
    return " ".join(text.split())


def _looks_like_job_link(text: str, href: str) -> bool:
    text_low, href_low = text.lower(), href.lower()
    if any(k in text_low or k in href_low for k in ROLE_KEYWORDS):
        return True
    return any(k in href_low for k in JOB_HREF_KEYWORDS)


def _passes_keyword_filter(text: str, keywords: str | None) -> bool:
    terms = (keywords or "").lower().split()
    if not terms:
        return True
    low = text.lower()
    return any(t in low for t in terms)


def _jobs_from_links(
    soup: BeautifulSoup,
    company_name: str,
    base_url: str,
    keywords: str | None,
    found_at: str,
) -> list[Job]:
    jobs: list[Job] = []
    for anchor in soup.find_all("a"):
        href = (anchor.get("href") or "").strip()
        if not href or href.startswith("#") or href.lower().startswith(SKIPPED_SCHEMES):
            continue
        text = _flatten(anchor.get_text(" "))
        if not _looks_like_job_link(text, href):
            continue
        if not MIN_TITLE_LEN < len(text) < MAX_TITLE_LEN:
            continue
        if not _passes_keyword_filter(text, keywords):
            continue
        try:
            url = urljoin(base_url, href)
        except ValueError as exc:
            log.debug("Skipping link %r with bad href %r: %s", text, href, exc)
            continue
        jobs.append(
            Job(
                id="",
                title=text,
                company=company_name,
                url=url,
                location=LINK_LOCATION,
                description=f"Found on {company_name} careers page",
                posted_date=found_at,
                experience_level=infer_experience_level(text),
                source="careers",
            )
        )
    return jobs


def _iter_ld_nodes(data: Any):
    stack = data if isinstance(data, list) else [data]
    for node in stack:
        if isinstance(node, dict):
            graph = node.get("@graph")
            if isinstance(graph, list):
                yield from _iter_ld_nodes(graph)
            yield node
        elif isinstance(node, list):
            yield from _iter_ld_nodes(node)


def _is_job_posting(node: dict) -> bool:
    t = node.get("@type")
    if isinstance(t, list):
        return "JobPosting" in t
    return t == "JobPosting"


def _location_text(job_loc: Any) -> str:
    if isinstance(job_loc, list):
        job_loc = job_loc[0] if job_loc else None
    if isinstance(job_loc, str):
        return job_loc
    if not isinstance(job_loc, dict):
        return ""
    addr = job_loc.get("address", job_loc)
    if isinstance(addr, str):
        return addr
    if not isinstance(addr, dict):
        return ""
    parts = [addr.get("addressLocality"), addr.get("addressRegion"), addr.get("addressCountry")]
    parts = [p.get("name", "") if isinstance(p, dict) else p for p in parts]
    return ", ".join(str(p) for p in parts if p)


def _salary_text(salary: Any) -> str | None:
    if salary is None or salary == "":
        return None
    if not isinstance(salary, dict):
        return str(salary)
    currency = salary.get("currency", "")
    value = salary.get("value", salary)
    if isinstance(value, dict):
        low, high = value.get("minValue"), value.get("maxValue")
        amount = f"{low}-{high}" if low and high else str(low or high or value.get("value") or "")
        unit = str(value.get("unitText") or "")
    else:
        amount, unit = str(value), ""
    text = " ".join(p for p in (currency, amount, unit.lower() if unit else "") if p)
    return text or None


def _strip_tags(text: str) -> str:
    return _flatten(BeautifulSoup(text, "html.parser").get_text(" "))


def _posting_from_node(node: dict, company_name: str, base_url: str, found_at: str) -> Job:
    title = node.get("title") or node.get("name")
    if not isinstance(title, str) or not title.strip():
        raise ParseError("JobPosting without a title")
    url = node.get("url") or base_url
    if not isinstance(url, str):
        raise ParseError(f"JobPosting {title!r} has a non-string url")
    try:
        url = urljoin(base_url, url)
    except ValueError as exc:
        raise ParseError(f"JobPosting {title!r} has a bad url: {exc}") from exc
    description = node.get("description") or ""
    if not isinstance(description, str):
        description = str(description)
    return Job(
        id="",
        title=_flatten(title),
        company=company_name,
        url=url,
        location=_location_text(node.get("jobLocation")) or LINK_LOCATION,
        description=_strip_tags(description)[:MAX_DESCRIPTION_LEN],
        posted_date=normalize_timestamp(node.get("datePosted")) or found_at,
        salary=_salary_text(node.get("baseSalary")),
        experience_level=DEFAULT_LEVEL,
        source="careers",
    )


def _jobs_from_structured_data(
    soup: BeautifulSoup, company_name: str, base_url: str, found_at: str
) -> list[Job]:
    jobs: list[Job] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        try:
            data = json.loads(raw.strip() or "null")
        except ValueError as exc:
            log.debug("Skipping malformed JSON-LD block: %s", exc)
            continue
        for node in _iter_ld_nodes(data):
            if not _is_job_posting(node):
                continue
            try:
                jobs.append(_posting_from_node(node, company_name, base_url, found_at))
            except ParseError as exc:
                log.debug("Skipping JobPosting node: %s", exc)
    return jobs


def _dedupe(jobs: list[Job]) -> list[Job]:
    seen: set[tuple[str, str]] = set()
    out: list[Job] = []
    for j in jobs:
        key = (j.title, j.url)
        if key not in seen:
            seen.add(key)
            out.append(j)
    return out
