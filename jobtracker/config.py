"""Load profile and env configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobtracker.log import get_logger
from jobtracker.models import DEFAULT_LEVEL, UserProfile

log = get_logger(__name__)

load_dotenv()

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = PROJECT_ROOT / "config"
PROFILE_PATH: Path = CONFIG_DIR / "profile.yaml"
REPORTS_DIR: Path = PROJECT_ROOT / "reports"
DATA_DIR: Path = PROJECT_ROOT / "data"

STORE_BACKENDS: tuple[str, ...] = ("json", "sqlite")
_DEFAULT_DB_FILES: dict[str, str] = {
    "json": "job_search_db.json",
    "sqlite": "job_search.sqlite3",
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


@dataclass
class Settings:
    store_backend: str = "json"
    db_path: Path = DATA_DIR / _DEFAULT_DB_FILES["json"]
    http_timeout: float = 15.0

    @classmethod
    def from_env(cls, env_getter=get_env) -> Settings:
        backend = env_getter("JOB_STORE", "json").lower() or "json"
        if backend not in STORE_BACKENDS:
            log.warning("Unknown JOB_STORE=%r, falling back to json", backend)
            backend = "json"
        raw_path = env_getter("JOB_DB_PATH")
        db_path = Path(raw_path) if raw_path else DATA_DIR / _DEFAULT_DB_FILES[backend]
        try:
            timeout = float(env_getter("HTTP_TIMEOUT", "15") or 15)
        except ValueError:
            log.warning("Invalid HTTP_TIMEOUT, using 15s")
            timeout = 15.0
        return cls(store_backend=backend, db_path=db_path, http_timeout=timeout)


def http_timeout() -> float:
    return Settings.from_env().http_timeout


def ensure_dirs() -> None:
    for d in (REPORTS_DIR, DATA_DIR):
        d.mkdir(parents=True, exist_ok=True)


def load_profile_data(path: Path | None = None) -> dict[str, Any]:
    path = path or PROFILE_PATH
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_profile(path: Path | None = None) -> UserProfile:
    """Build a UserProfile from ``profile.skills`` / ``profile.level`` in YAML."""
    section = load_profile_data(path).get("profile", {}) or {}
    skills = [str(s).strip() for s in section.get("skills", []) or [] if str(s).strip()]
    level = str(section.get("level") or DEFAULT_LEVEL).lower()
    return UserProfile(skills=skills, experience_level=level)


def write_profile(profile: UserProfile, path: Path | None = None) -> Path:
    path = path or PROFILE_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    data = load_profile_data(path)
    data["profile"] = {
        **(data.get("profile") or {}),
        "skills": profile.skills,
        "level": profile.experience_level,
    }
    header = (
        "# ============================================================\n"
        "# Match profile — skills and experience level used for scoring\n"
        "# ============================================================\n\n"
    )
    yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    path.write_text(header + yaml_str, encoding="utf-8")
    log.info("Profile written → %s", path)
    return path
