"""Canned search results for offline runs and demos."""
from __future__ import annotations

from jobcheck.log import get_logger
from jobcheck.models import SearchResponse, SearchResultItem
from jobcheck.search.base import SearchBase
from jobcheck.search.serper import build_query

log = get_logger(__name__)


class MockSearch(SearchBase):
    def __init__(self, env_getter=None) -> None:
        pass

    def search(self, name: str, company: str) -> SearchResponse:
        log.info("MockSearch generating sample results for %s", name)
        items = [
            SearchResultItem(
                title=f"{name} - Profile at {company} | LinkedIn",
                snippet=f"{name} works at {company}.",
                link="https://example.com/profile/1",
            ),
            SearchResultItem(
                title=f"{company} leadership team",
                snippet=f"Meet the people behind {company}, including {name}.",
                link="https://example.com/team",
            ),
        ]
        return SearchResponse(query=build_query(name, company), items=items)
