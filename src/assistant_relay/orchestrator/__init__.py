"""Run orchestration: session, polling, tool servicing, cancellation."""

from assistant_relay.orchestrator.graph import Orchestrator, strip_citations
from assistant_relay.orchestrator.outcomes import ConversationResult, Outcome
from assistant_relay.orchestrator.timing import PollTimer

__all__ = [
    "ConversationResult",
    "Orchestrator",
    "Outcome",
    "PollTimer",
    "strip_citations",
]
