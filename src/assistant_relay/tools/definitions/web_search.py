from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from assistant_relay.config.settings import get_settings
from assistant_relay.search import DEFAULT_MAX_RESULTS, TavilySearchClient
from assistant_relay.tools.tool_models import ToolSpec


class WebSearchInput(BaseModel):
    query: str = Field(description="The search query to execute.")
    max_results: int = Field(
        default=DEFAULT_MAX_RESULTS, description="Number of results to return."
    )
    include_domains: list[str] | None = Field(
        default=None,
        description="Restrict results to these domains (e.g. ['ey.com']).",
    )


async def run_web_search(arguments: WebSearchInput) -> dict[str, Any]:
    settings = get_settings()
    client = TavilySearchClient.from_settings(settings)
    domains = arguments.include_domains or settings.search_domains
    result = await client.search(
        arguments.query,
        max_results=arguments.max_results or DEFAULT_MAX_RESULTS,
        include_domains=domains,
    )
    return {
        "results": [hit.model_dump() for hit in result.results],
        "answer": result.answer,
        "query": arguments.query,
    }


tool = ToolSpec(
    name="web_search",
    description="Search the web for current information and a synthesized answer.",
    args_schema=WebSearchInput,
    handler=run_web_search,
    intent="Discover relevant real-time information from the open web.",
    empty_result={"results": []},
)
