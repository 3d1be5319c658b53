"""HTTP status, cache directive and body for each outcome."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from assistant_relay.errors import SearchValidationError
from assistant_relay.orchestrator.outcomes import ConversationResult, Outcome
from assistant_relay.search.tavily import SearchResult

NO_CACHE = "no-cache"
# Completed replies can be served from the edge for two minutes.
CHAT_CACHE_CONTROL = "s-maxage=120, stale-while-revalidate=300"
SEARCH_CACHE_CONTROL = "s-maxage=600, stale-while-revalidate=1200"


@dataclass(frozen=True)
class PolicyDecision:
    status_code: int
    cache_control: str
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def headers(self) -> dict[str, str]:
        return {"Cache-Control": self.cache_control}


def conversation_decision(result: ConversationResult) -> PolicyDecision:
    if result.outcome is Outcome.COMPLETED:
        return PolicyDecision(
            200,
            CHAT_CACHE_CONTROL,
            {"reply": result.reply, "sessionId": result.session_id},
        )
    if result.outcome in (Outcome.FAILED, Outcome.CANCELLED):
        return PolicyDecision(
            200, NO_CACHE, {"reply": result.reply, "sessionId": result.session_id}
        )
    if result.outcome is Outcome.TIMEOUT:
        return PolicyDecision(
            504, NO_CACHE, {"error": result.error, "sessionId": result.session_id}
        )

    body: dict[str, Any] = {"error": result.error or "Unknown error"}
    if result.session_id:
        body["sessionId"] = result.session_id
    return PolicyDecision(500, NO_CACHE, body)


def search_decision(result: SearchResult) -> PolicyDecision:
    return PolicyDecision(200, SEARCH_CACHE_CONTROL, result.model_dump())


def error_decision(exc: Exception, fallback: str = "Unknown error") -> PolicyDecision:
    status_code = 400 if isinstance(exc, SearchValidationError) else 500
    return PolicyDecision(status_code, NO_CACHE, {"error": str(exc) or fallback})
