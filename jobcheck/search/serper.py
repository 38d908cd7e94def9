"""Serper.dev Google web search for a tracked person."""
from __future__ import annotations

from typing import Callable

import requests

from jobcheck.errors import SearchProviderError, SearchUnavailable
from jobcheck.log import get_logger
from jobcheck.models import SearchResponse, SearchResultItem
from jobcheck.retry import retry
from jobcheck.search.base import SearchBase

log = get_logger(__name__)

SERPER_SEARCH_URL = "https://google.serper.dev/search"
MAX_RESULTS = 10
KEPT_RESULTS = 5


def build_query(name: str, company: str) -> str:
    return f'"{name}" "{company}"'


def parse_results(data: dict, query: str) -> SearchResponse:
    items = [
        SearchResultItem(
            title=hit.get("title") or "",
            snippet=hit.get("snippet") or "",
            link=hit.get("link") or "",
        )
        for hit in (data.get("organic") or [])[:KEPT_RESULTS]
    ]
    kg = data.get("knowledgeGraph") or {}
    return SearchResponse(query=query, items=items, knowledge_graph_role=kg.get("description"))


class SerperSearch(SearchBase):
    def __init__(self, env_getter: Callable[[str], str], *, timeout: float = 20.0) -> None:
        self.api_key: str = env_getter("SERPER_API_KEY")
        self.timeout = timeout

    @retry(
        max_attempts=3,
        base_delay=2.0,
        retryable=(requests.ConnectionError, requests.Timeout),
    )
    def _post(self, query: str) -> requests.Response:
        return requests.post(
            SERPER_SEARCH_URL,
            headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
            json={"q": query, "num": MAX_RESULTS},
            timeout=self.timeout,
        )

    def search(self, name: str, company: str) -> SearchResponse:
        if not self.api_key:
            raise SearchUnavailable("SERPER_API_KEY is not configured")

        query = build_query(name, company or "")
        r = self._post(query)
        if not r.ok:
            raise SearchProviderError(f"Serper API error: {r.status_code}", status_code=r.status_code)

        response = parse_results(r.json(), query)
        log.debug("Serper query=%r returned %d result(s)", query, len(response.items))
        return response
