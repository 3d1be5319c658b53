"""External search provider adapter."""

from assistant_relay.search.tavily import (
    DEFAULT_MAX_RESULTS,
    SearchHit,
    SearchResult,
    TavilySearchClient,
)

__all__ = ["DEFAULT_MAX_RESULTS", "SearchHit", "SearchResult", "TavilySearchClient"]
