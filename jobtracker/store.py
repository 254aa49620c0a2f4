"""Durable job collection: a flat JSON document or a SQLite table."""
from __future__ import annotations

import fcntl
import json
import os
import sqlite3
import tempfile
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import fields
from pathlib import Path
from typing import Any, Iterator

from jobtracker.config import Settings
from jobtracker.errors import NotFound
from jobtracker.log import get_logger
from jobtracker.models import Job
from jobtracker.pipeline import STATUSES

log = get_logger(__name__)


def new_job_id() -> str:
    return f"job_{uuid.uuid4().hex[:12]}"


class JobStore(ABC):
    @abstractmethod
    def create(self, job: Job) -> Job:
        """Persist *job* under a freshly generated id and return it."""

    @abstractmethod
    def get(self, job_id: str) -> Job:
        pass

    @abstractmethod
    def list(self, status: str | None = None) -> list[Job]:
        pass

    @abstractmethod
    def update(self, job_id: str, changes: dict[str, Any]) -> Job:
        pass

    @abstractmethod
    def delete(self, job_id: str) -> None:
        pass

    def count_by_status(self) -> dict[str, int]:
        counts = {s: 0 for s in STATUSES}
        for job in self.list():
            counts[job.status] = counts.get(job.status, 0) + 1
        return counts


# ── JSON document ────────────────────────────────────────────────────────


class JsonJobStore(JobStore):
    """``{"jobs": [...]}`` on disk, rewritten atomically under an flock."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    @contextmanager
    def _locked(self, exclusive: bool = True) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._lock_path, "a") as lock_file:
            try:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            except OSError:
                pass
            try:
                yield
            finally:
                try:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
                except OSError:
                    pass

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        return list(data.get("jobs", []))

    def _write(self, rows: list[dict[str, Any]]) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"jobs": rows}, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def init(self) -> None:
        with self._locked():
            if not self.path.exists():
                self._write([])
                log.info("Created job database → %s", self.path.name)

    def create(self, job: Job) -> Job:
        with self._locked():
            rows = self._read()
            job.id = new_job_id()
            rows.append(job.to_dict())
            self._write(rows)
        log.debug("Stored %s (%s @ %s)", job.id, job.title, job.company)
        return job

    def get(self, job_id: str) -> Job:
        with self._locked(exclusive=False):
            rows = self._read()
        for r in rows:
            if r.get("id") == job_id:
                return Job.from_dict(r)
        raise NotFound(job_id)

    def list(self, status: str | None = None) -> list[Job]:
        with self._locked(exclusive=False):
            rows = self._read()
        jobs = [Job.from_dict(r) for r in rows]
        if status:
            jobs = [j for j in jobs if j.status == status]
        return jobs

    def update(self, job_id: str, changes: dict[str, Any]) -> Job:
        with self._locked():
            rows = self._read()
            for i, r in enumerate(rows):
                if r.get("id") == job_id:
                    job = Job.from_dict({**r, **changes, "id": job_id})
                    rows[i] = job.to_dict()
                    self._write(rows)
                    return job
        raise NotFound(job_id)

    def delete(self, job_id: str) -> None:
        with self._locked():
            rows = self._read()
            kept = [r for r in rows if r.get("id") != job_id]
            if len(kept) == len(rows):
                raise NotFound(job_id)
            self._write(kept)
        log.debug("Deleted %s", job_id)


# ── SQLite ───────────────────────────────────────────────────────────────

_COLUMNS: list[str] = [f.name for f in fields(Job)]


class SqliteJobStore(JobStore):
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def init(self) -> None:
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    title TEXT NOT NULL,
                    company TEXT NOT NULL,
                    url TEXT NOT NULL,
                    location TEXT,
                    description TEXT,
                    posted_date TEXT,
                    salary TEXT,
                    experience_level TEXT,
                    status TEXT NOT NULL,
                    applied_date TEXT,
                    next_action TEXT,
                    next_action_date TEXT,
                    notes TEXT,
                    source TEXT
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs (status)")
            conn.commit()
            log.debug("SQLite job table ready → %s", self.path.name)
        finally:
            conn.close()

    @staticmethod
    def _row_to_job(row: sqlite3.Row) -> Job:
        return Job.from_dict({c: row[c] for c in _COLUMNS})

    def create(self, job: Job) -> Job:
        job.id = new_job_id()
        data = job.to_dict()
        placeholders = ", ".join("?" for _ in _COLUMNS)
        conn = self._connect()
        try:
            conn.execute(
                f"INSERT INTO jobs ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                [data[c] for c in _COLUMNS],
            )
            conn.commit()
        finally:
            conn.close()
        log.debug("Stored %s (%s @ %s)", job.id, job.title, job.company)
        return job

    def get(self, job_id: str) -> Job:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM jobs WHERE id = ?", (job_id,)).fetchone()
        finally:
            conn.close()
        if row is None:
            raise NotFound(job_id)
        return self._row_to_job(row)

    def list(self, status: str | None = None) -> list[Job]:
        conn = self._connect()
        try:
            if status:
                rows = conn.execute(
                    "SELECT * FROM jobs WHERE status = ? ORDER BY seq", (status,)
                ).fetchall()
            else:
                rows = conn.execute("SELECT * FROM jobs ORDER BY seq").fetchall()
        finally:
            conn.close()
        return [self._row_to_job(r) for r in rows]

    def update(self, job_id: str, changes: dict[str, Any]) -> Job:
        cols = [c for c in changes if c in _COLUMNS and c != "id"]
        if not cols:
            return self.get(job_id)
        conn = self._connect()
        try:
            cursor = conn.execute(
                f"UPDATE jobs SET {', '.join(f'{c} = ?' for c in cols)} WHERE id = ?",
                [changes[c] for c in cols] + [job_id],
            )
            conn.commit()
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFound(job_id)
        return self.get(job_id)

    def delete(self, job_id: str) -> None:
        conn = self._connect()
        try:
            cursor = conn.execute("DELETE FROM jobs WHERE id = ?", (job_id,))
            conn.commit()
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFound(job_id)
        log.debug("Deleted %s", job_id)

    def count_by_status(self) -> dict[str, int]:
        counts = {s: 0 for s in STATUSES}
        conn = self._connect()
        try:
            for row in conn.execute("SELECT status, COUNT(*) AS n FROM jobs GROUP BY status"):
                counts[row["status"]] = row["n"]
        finally:
            conn.close()
        return counts


def open_store(settings: Settings | None = None) -> JobStore:
    settings = settings or Settings.from_env()
    store: JsonJobStore | SqliteJobStore
    if settings.store_backend == "sqlite":
        store = SqliteJobStore(settings.db_path)
    else:
        store = JsonJobStore(settings.db_path)
    store.init()
    return store
