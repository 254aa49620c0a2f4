from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from typing import Any

import requests

from jobtracker.config import http_timeout
from jobtracker.errors import FetchError
from jobtracker.models import Job


def hit_id(raw_id: Any) -> str:
    return hashlib.sha256(str(raw_id).encode()).hexdigest()[:12]


def fetch_json(url: str, *, params: dict | None = None, headers: dict | None = None) -> Any:
    """GET *url* and decode JSON; any transport or HTTP failure is a FetchError."""
    try:
        r = requests.get(url, params=params, headers=headers, timeout=http_timeout())
    except requests.RequestException as exc:
        raise FetchError(url, reason=str(exc)) from exc
    if not 200 <= r.status_code < 300:
        raise FetchError(url, status=r.status_code, reason=r.reason or "")
    try:
        return r.json()
    except ValueError as exc:
        raise FetchError(url, status=r.status_code, reason="response was not JSON") from exc


class JobSearchBase(ABC):
    name: str = "base"

    @abstractmethod
    def search(self, query: str, location: str | None = None, max_results: int = 20) -> list[Job]:
        pass
