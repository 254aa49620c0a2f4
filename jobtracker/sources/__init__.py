from .base import JobSearchBase
from .jsearch import JSearchSource
from .adzuna import AdzunaSource
from .remotive import RemotiveSource

from jobtracker.config import get_env
from jobtracker.errors import ConfigurationError
from jobtracker.log import get_logger

log = get_logger(__name__)

__all__ = [
    "JobSearchBase", "JSearchSource", "AdzunaSource", "RemotiveSource",
    "SOURCE_NAMES", "get_source", "available_sources",
]

_SOURCES: dict[str, type[JobSearchBase]] = {
    "jsearch": JSearchSource,
    "remotive": RemotiveSource,
    "adzuna": AdzunaSource,
}
SOURCE_NAMES: tuple[str, ...] = tuple(_SOURCES)


def get_source(name: str, env_getter=get_env) -> JobSearchBase:
    """Instantiate one provider; raises ConfigurationError on missing credentials."""
    try:
        cls = _SOURCES[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown search provider {name!r}; expected one of: {', '.join(SOURCE_NAMES)}"
        ) from None
    return cls(env_getter)


def available_sources(env_getter=get_env) -> list[JobSearchBase]:
    sources: list[JobSearchBase] = []
    for name in SOURCE_NAMES:
        try:
            sources.append(get_source(name, env_getter))
            log.info("Registered source: %s", name)
        except ConfigurationError as exc:
            log.debug("Skipping source %s: %s", name, exc)
    return sources
