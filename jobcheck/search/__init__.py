from .base import SearchBase
from .mock import MockSearch
from .serper import SerperSearch

from jobcheck.log import get_logger

log = get_logger(__name__)

__all__ = ["SearchBase", "MockSearch", "SerperSearch", "get_search"]

_TRUTHY = ("1", "true", "yes")


def get_search(env_getter) -> SearchBase:
    if env_getter("SERPER_API_KEY"):
        log.info("Using search provider: Serper")
        return SerperSearch(env_getter)

    if env_getter("JOBCHECK_MOCK_SEARCH").lower() in _TRUTHY:
        log.info("No SERPER_API_KEY — using MockSearch")
        return MockSearch(env_getter)

    # Missing key surfaces per person as SearchUnavailable
    log.warning("SERPER_API_KEY not set; every check will fail until it is configured")
    return SerperSearch(env_getter)
