from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from assistant_relay.config.settings import Settings
from assistant_relay.errors import (
    SearchConfigurationError,
    SearchError,
    SearchValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 3


class SearchHit(BaseModel):
    title: str = ""
    url: str = ""
    content: str = ""
    score: float | None = None

    @field_validator("title", "url", "content", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class SearchResult(BaseModel):
    results: list[SearchHit] = Field(default_factory=list)
    answer: str | None = None


class TavilySearchClient:
    """Query adapter for the Tavily search API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.tavily.com",
        timeout_seconds: float = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/search"
        self._timeout = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> TavilySearchClient:
        return cls(
            settings.tavily_api_key,
            base_url=settings.tavily_base_url,
            timeout_seconds=settings.default_api_timeout_seconds,
        )

    def build_request(
        self,
        query: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        include_domains: list[str] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "api_key": self._api_key,
            "query": query,
            "max_results": max_results,
            "include_answer": True,
            "include_raw_content": False,
        }
        if include_domains:
            body["include_domains"] = list(include_domains)
        return body

    async def search(
        self,
        query: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        include_domains: list[str] | None = None,
    ) -> SearchResult:
        if not query or not query.strip():
            raise SearchValidationError("Query required")
        if not self._api_key:
            raise SearchConfigurationError("Tavily API key missing")

        logger.info(
            "Tavily search: %r (max: %s, domains: %s)",
            query,
            max_results,
            ", ".join(include_domains or []) or "any",
        )
        body = self.build_request(query, max_results, include_domains)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self._url, json=body)
        except httpx.HTTPError as exc:
            raise SearchError(str(exc) or "Search failed") from exc

        if response.is_error:
            logger.error("Tavily API error: %s", response.text)
            raise SearchError(f"Tavily API error: {response.status_code}")

        try:
            payload: dict[str, Any] = response.json() or {}
            result = SearchResult(
                results=payload.get("results") or [],
                answer=payload.get("answer") or None,
            )
        except (ValueError, AttributeError, ValidationError) as exc:
            logger.error("Unreadable Tavily response: %s", exc)
            raise SearchError("Invalid response from Tavily") from exc
        logger.info("Tavily returned %d results", len(result.results))
        return result
