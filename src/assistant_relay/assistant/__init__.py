"""Client and wire models for the remote assistant service."""

from assistant_relay.assistant.client import AssistantClient, build_headers
from assistant_relay.assistant.models import (
    Run,
    RunStatus,
    ThreadMessage,
    ToolCall,
    ToolOutput,
)

__all__ = [
    "AssistantClient",
    "build_headers",
    "Run",
    "RunStatus",
    "ThreadMessage",
    "ToolCall",
    "ToolOutput",
]
