"""Error kinds surfaced by the tracker."""
from __future__ import annotations


class TrackerError(Exception):
    """Base error: a stable ``kind`` plus a human-readable message."""

    kind = "tracker_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


class NotFound(TrackerError):
    kind = "not_found"

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job with ID {job_id} not found")
        self.job_id = job_id


class ValidationError(TrackerError):
    kind = "validation_error"


class InvalidProfile(TrackerError):
    kind = "invalid_profile"


class ConfigurationError(TrackerError):
    kind = "configuration_error"


class FetchError(TrackerError):
    """Upstream HTTP failure; carries the URL and, when known, the status."""

    kind = "fetch_error"

    def __init__(self, url: str, status: int | None = None, reason: str = "") -> None:
        detail = f"HTTP {status}" if status is not None else (reason or "request failed")
        if status is not None and reason:
            detail += f" ({reason})"
        super().__init__(f"Fetching {url} failed: {detail}")
        self.url = url
        self.status = status


class ParseError(TrackerError):
    """Raised inside the extractor for a single bad element; never escapes it."""

    kind = "parse_error"
