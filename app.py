"""Streamlit UI for the job search tracker."""
from __future__ import annotations

import json
import os
from pathlib import Path

import pandas as pd
import streamlit as st

from jobtracker.config import (
    REPORTS_DIR,
    ensure_dirs,
    load_profile,
    write_profile,
)
from jobtracker.errors import TrackerError
from jobtracker.log import get_logger
from jobtracker.models import EXPERIENCE_LEVELS, Job, UserProfile
from jobtracker.pipeline import STATUSES
from jobtracker.report import write_weekly_report
from jobtracker.service import JobTracker
from jobtracker.sources import SOURCE_NAMES
from jobtracker.store import open_store

ROOT = Path(__file__).resolve().parent

log = get_logger(__name__)

# ── Constants ────────────────────────────────────────────────────────────

COMMON_SKILLS: list[str] = [
    "Python", "Java", "JavaScript", "TypeScript", "React", "Node.js",
    "Angular", "Vue", "SQL", "MongoDB", "PostgreSQL", "Redis", "Docker",
    "Kubernetes", "AWS", "GCP", "Azure", "Terraform", "Git", "Linux",
    "CI/CD", "REST API", "GraphQL", "Microservices", "Machine Learning",
    "Pandas", "TensorFlow", "PyTorch", "Spark", "Kafka", "Figma",
]

_STATUS_ICONS: dict[str, str] = {
    "new": "🆕", "reviewed": "👀", "tailoring": "✂️", "applied": "📨",
    "interviewing": "🗣️", "rejected": "❌", "offer": "🎉",
}

_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #e8eaf6 0%, #f3e5f5 40%, #e0f2f1 100%);
}
[data-testid="stMetric"] {
    background: rgba(255,255,255,0.6);
    padding: 0.75rem 1rem;
    border-radius: 12px;
    border: 1px solid rgba(255,255,255,0.4);
    box-shadow: 0 4px 16px rgba(0,0,0,0.06);
}
[data-testid="stForm"],
[data-testid="stExpander"] {
    background: rgba(255,255,255,0.5);
    border-radius: 12px;
    border: 1px solid rgba(255,255,255,0.35);
}
h1, h2, h3 {
    color: #1a1a2e;
}
</style>
"""

# ── Helpers ──────────────────────────────────────────────────────────────


def _load_env() -> dict[str, str]:
    env_path = ROOT / ".env"
    values: dict[str, str] = {}
    if env_path.exists():
        for line in env_path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                k, _, v = line.partition("=")
                values[k.strip()] = v.strip()
    return values


def _save_env(values: dict[str, str]) -> None:
    env_path = ROOT / ".env"
    template_path = ROOT / ".env.example"

    lines: list[str] = []
    written: set[str] = set()

    if template_path.exists():
        for line in template_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                k, _, _ = stripped.partition("=")
                k = k.strip()
                lines.append(f"{k}={values.get(k, '')}")
                written.add(k)
            else:
                lines.append(line)

    for k, v in values.items():
        if k not in written:
            lines.append(f"{k}={v}")

    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    log.info("Settings saved → %s", env_path)


@st.cache_resource
def _tracker() -> JobTracker:
    ensure_dirs()
    return JobTracker(open_store())


def _jobs_frame(jobs: list[Job]) -> pd.DataFrame:
    df = pd.DataFrame([j.to_dict() for j in jobs])
    cols = ["title", "company", "location", "status", "experience_level",
            "applied_date", "next_action", "url"]
    return df[[c for c in cols if c in df.columns]]


def _show_error(exc: TrackerError) -> None:
    log.warning("%s: %s", exc.kind, exc.message)
    st.error(f"{exc.kind}: {exc.message}")


def _save_results(key: str, label: str) -> None:
    results: list[Job] = st.session_state.get(key, [])
    if not results:
        return
    st.dataframe(
        _jobs_frame(results),
        use_container_width=True,
        column_config={"url": st.column_config.LinkColumn("Link")},
        hide_index=True,
    )
    if st.button(label, use_container_width=True):
        saved = _tracker().save_jobs(results)
        st.success(f"Saved {len(saved)} job(s) to the pipeline.")
        st.session_state.pop(key, None)


# ── Page: Pipeline ───────────────────────────────────────────────────────


def page_pipeline() -> None:
    st.header("Pipeline")
    tracker = _tracker()

    status_filter = st.selectbox("Status", ["all", *STATUSES])
    jobs = tracker.list_jobs(status_filter)
    if not jobs:
        st.info("No jobs tracked yet. Add one or run a search.")
        return

    st.dataframe(
        _jobs_frame(jobs),
        use_container_width=True,
        column_config={"url": st.column_config.LinkColumn("Posting")},
        hide_index=True,
    )

    st.divider()
    st.subheader("Update a Job")
    labels = {f"{_STATUS_ICONS.get(j.status, '')} {j.title} @ {j.company} ({j.id})": j for j in jobs}
    choice = st.selectbox("Job", list(labels))
    job = labels[choice]

    with st.form("update_job"):
        c1, c2 = st.columns(2)
        with c1:
            status = st.selectbox("Status", STATUSES, index=STATUSES.index(job.status))
            next_action = st.text_input("Next action", value=job.next_action or "")
        with c2:
            next_action_date = st.text_input("Next action date", value=job.next_action_date or "")
            notes = st.text_area("Notes", value=job.notes or "", height=80)
        submitted = st.form_submit_button("Save", type="primary", use_container_width=True)

    if submitted:
        try:
            tracker.update_status(
                job.id, status,
                notes=notes or None,
                next_action=next_action or None,
                next_action_date=next_action_date or None,
            )
            st.success("Job updated.")
            st.rerun()
        except TrackerError as exc:
            _show_error(exc)

    c1, c2, c3 = st.columns(3)
    with c1:
        if st.button("Requirements", use_container_width=True):
            req = tracker.requirements(job.id)
            st.markdown("**Skills mentioned:** " + (", ".join(req["skills"]) or "none detected"))
    with c2:
        if st.button("Prepare for tailoring", use_container_width=True):
            packet = tracker.prepare_tailoring(job.id)
            st.code(json.dumps(packet, indent=2), language="json")
            st.info("Status moved to **tailoring**.")
    with c3:
        if st.button("🗑️ Delete", use_container_width=True):
            tracker.delete_job(job.id)
            st.success("Job deleted.")
            st.rerun()


# ── Page: Add Job ────────────────────────────────────────────────────────


def page_add() -> None:
    st.header("Add Job")
    tracker = _tracker()

    with st.form("add_job"):
        c1, c2 = st.columns(2)
        with c1:
            title = st.text_input("Title *")
            company = st.text_input("Company *")
            url = st.text_input("Posting URL *")
        with c2:
            location = st.text_input("Location")
            salary = st.text_input("Salary")
            level = st.selectbox("Experience level", EXPERIENCE_LEVELS, index=1)
        description = st.text_area("Description", height=150)
        submitted = st.form_submit_button("Add Job", type="primary", use_container_width=True)

    if submitted:
        try:
            job = tracker.add_job({
                "title": title, "company": company, "url": url,
                "location": location, "salary": salary,
                "experience_level": level, "description": description,
            })
            st.success(f"Job added — ID `{job.id}`")
        except TrackerError as exc:
            _show_error(exc)

    st.divider()
    st.subheader("Bulk Import")
    uploaded = st.file_uploader("JSON list of jobs", type=["json"])
    if uploaded and st.button("Import", use_container_width=True):
        try:
            records = json.loads(uploaded.getvalue().decode("utf-8"))
            if isinstance(records, dict):
                records = records.get("jobs", [])
            created = tracker.import_jobs(records)
            st.success(f"Imported {len(created)} job(s).")
        except ValueError as exc:
            st.error(f"Not valid JSON: {exc}")
        except TrackerError as exc:
            _show_error(exc)


# ── Page: Search ─────────────────────────────────────────────────────────


def page_search() -> None:
    st.header("Search Job Boards")
    tracker = _tracker()

    with st.form("search"):
        c1, c2, c3 = st.columns([3, 2, 1])
        with c1:
            query = st.text_input("Keywords", placeholder="fullstack developer")
        with c2:
            location = st.text_input("Location", placeholder="Remote")
        with c3:
            max_results = st.number_input("Max", 1, 50, 20)
        provider = st.selectbox("Provider", ["all", *SOURCE_NAMES])
        submitted = st.form_submit_button("Search", type="primary", use_container_width=True)

    if submitted:
        try:
            if provider == "all":
                with st.spinner("Searching providers in parallel…"):
                    result = tracker.search_all(query, location, int(max_results))
                st.session_state["search_results"] = result.jobs
                for name, message in result.errors.items():
                    st.warning(f"{name}: {message}")
            else:
                with st.spinner(f"Searching {provider}…"):
                    st.session_state["search_results"] = tracker.search(
                        provider, query, location, int(max_results),
                    )
        except TrackerError as exc:
            _show_error(exc)

    _save_results("search_results", "Save results to pipeline")


# ── Page: Career Pages ───────────────────────────────────────────────────


def page_careers() -> None:
    st.header("Company Career Pages")
    tracker = _tracker()

    with st.form("careers"):
        url = st.text_input("Careers page URL", placeholder="https://example.com/careers")
        company = st.text_input("Company name")
        keywords = st.text_input("Keyword filter (optional)", placeholder="python backend")
        submitted = st.form_submit_button("Extract Jobs", type="primary", use_container_width=True)

    if submitted:
        try:
            with st.spinner("Fetching careers page…"):
                found = tracker.scrape_careers(url, company, keywords or None)
            st.session_state["career_results"] = found
            if not found:
                st.info("No postings detected on that page.")
        except TrackerError as exc:
            _show_error(exc)

    _save_results("career_results", "Save postings to pipeline")


# ── Page: Match ──────────────────────────────────────────────────────────


def page_match() -> None:
    st.header("Match Scoring")
    tracker = _tracker()
    profile = load_profile()

    with st.form("profile"):
        all_skill_opts = list(dict.fromkeys(profile.skills + COMMON_SKILLS))
        skills = st.multiselect("Your skills", options=all_skill_opts, default=profile.skills)
        level = st.selectbox(
            "Experience level", EXPERIENCE_LEVELS,
            index=EXPERIENCE_LEVELS.index(profile.experience_level)
            if profile.experience_level in EXPERIENCE_LEVELS else 1,
        )
        status_filter = st.selectbox("Score jobs with status", ["all", *STATUSES], index=1)
        c1, c2 = st.columns(2)
        with c1:
            run = st.form_submit_button("Score Jobs", type="primary", use_container_width=True)
        with c2:
            save = st.form_submit_button("Save Profile", use_container_width=True)

    new_profile = UserProfile(skills=skills, experience_level=level)
    if save:
        write_profile(new_profile)
        st.success("Profile saved.")

    if run:
        try:
            scored = tracker.score_jobs(new_profile, status=status_filter)
        except TrackerError as exc:
            _show_error(exc)
            return
        if not scored:
            st.info("No jobs to score.")
            return
        df = pd.DataFrame([
            {
                "title": s.job.title,
                "company": s.job.company,
                "score": s.match_score,
                "hire %": s.hire_probability,
                "why": " · ".join(s.reasoning),
                "url": s.job.url,
            }
            for s in scored
        ])
        st.dataframe(
            df,
            use_container_width=True,
            column_config={
                "url": st.column_config.LinkColumn("Posting"),
                "score": st.column_config.ProgressColumn("Score", min_value=0, max_value=100, format="%d"),
            },
            hide_index=True,
        )


# ── Page: Report ─────────────────────────────────────────────────────────


def page_report() -> None:
    st.header("Progress")
    tracker = _tracker()
    stats = tracker.stats()

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Tracked", stats["total"])
    c2.metric("Applied", stats["applied"])
    c3.metric("Interviewing", stats["interviewing"])
    c4.metric("Applied this week", stats["applied_this_week"])

    st.bar_chart(pd.Series({s: stats[s] for s in STATUSES}, name="jobs"))

    report = tracker.weekly_report()
    with st.expander("Weekly Report", expanded=True):
        st.markdown(report)
    if st.button("Save report", use_container_width=True):
        path = write_weekly_report(report)
        st.success(f"Report saved → `{path.relative_to(ROOT) if path.is_relative_to(ROOT) else path}`")

    saved = sorted(REPORTS_DIR.glob("weekly_*.md"), reverse=True) if REPORTS_DIR.exists() else []
    if saved:
        selected = st.selectbox(
            "Previous reports", saved, format_func=lambda p: p.stem.replace("weekly_", ""),
        )
        if selected:
            st.markdown(selected.read_text(encoding="utf-8"))


# ── Page: Settings ───────────────────────────────────────────────────────


def page_settings() -> None:
    st.header("Settings")
    env = _load_env()

    with st.form("creds"):
        st.subheader("Job Search Sources")
        st.caption("Remotive is free and always available. JSearch and Adzuna need keys.")
        c1, c2 = st.columns(2)
        with c1:
            jsearch_key = st.text_input(
                "JSearch API Key (RapidAPI)",
                value=env.get("JSEARCH_API_KEY", ""), type="password",
                help="https://rapidapi.com/letscrape-6bRDu3Sgupt/api/jsearch",
            )
            adzuna_country = st.text_input("Adzuna country code", value=env.get("ADZUNA_COUNTRY", "gb"))
        with c2:
            adzuna_id = st.text_input(
                "Adzuna App ID",
                value=env.get("ADZUNA_APP_ID", ""),
                help="https://developer.adzuna.com — 250 free requests/day",
            )
            adzuna_key = st.text_input("Adzuna App Key", value=env.get("ADZUNA_APP_KEY", ""), type="password")

        st.subheader("Storage")
        backends = ["json", "sqlite"]
        backend = st.selectbox(
            "Backend", backends,
            index=backends.index(env.get("JOB_STORE", "json")) if env.get("JOB_STORE", "json") in backends else 0,
        )

        if st.form_submit_button("Save All", type="primary", use_container_width=True):
            env.update({
                "JSEARCH_API_KEY": jsearch_key,
                "ADZUNA_APP_ID": adzuna_id, "ADZUNA_APP_KEY": adzuna_key,
                "ADZUNA_COUNTRY": adzuna_country, "JOB_STORE": backend,
            })
            _save_env(env)
            for k in ("JSEARCH_API_KEY", "ADZUNA_APP_ID", "ADZUNA_APP_KEY", "ADZUNA_COUNTRY", "JOB_STORE"):
                os.environ[k] = env[k]
            _tracker.clear()
            st.success("Settings saved.")


# ── Main ─────────────────────────────────────────────────────────────────


def _page(fn):
    def wrapped() -> None:
        st.markdown(_CSS, unsafe_allow_html=True)
        fn()

    wrapped.__name__ = fn.__name__
    return wrapped


pages = [
    st.Page(_page(page_pipeline), title="Pipeline", icon="📋", url_path="pipeline", default=True),
    st.Page(_page(page_add), title="Add Job", icon="➕", url_path="add"),
    st.Page(_page(page_search), title="Search", icon="🔎", url_path="search"),
    st.Page(_page(page_careers), title="Career Pages", icon="🏢", url_path="careers"),
    st.Page(_page(page_match), title="Match", icon="🎯", url_path="match"),
    st.Page(_page(page_report), title="Report", icon="📊", url_path="report"),
    st.Page(_page(page_settings), title="Settings", icon="⚙️", url_path="settings"),
]

nav = st.navigation(pages)
nav.run()
