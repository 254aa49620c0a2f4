from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from jobtracker.models import Job
from jobtracker.service import JobTracker
from jobtracker.store import JsonJobStore, SqliteJobStore

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, text: str = "", reason: str = "OK") -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = text
        self.reason = reason

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


def make_job(**overrides) -> Job:
    data = {
        "id": "job_test",
        "title": "Backend Engineer",
        "company": "Acme",
        "url": "https://acme.example/jobs/1",
        "description": "",
        "posted_date": None,
        "experience_level": "mid",
    }
    data.update(overrides)
    return Job(**data)


def days_ago(n: float) -> str:
    return (NOW - timedelta(days=n)).isoformat()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture(params=["json", "sqlite"])
def store(request, tmp_path: Path):
    if request.param == "json":
        s = JsonJobStore(tmp_path / "jobs.json")
    else:
        s = SqliteJobStore(tmp_path / "jobs.sqlite3")
    s.init()
    return s


@pytest.fixture
def tracker(tmp_path: Path) -> JobTracker:
    s = JsonJobStore(tmp_path / "jobs.json")
    s.init()
    return JobTracker(s, env_getter=lambda key, default="": default)
