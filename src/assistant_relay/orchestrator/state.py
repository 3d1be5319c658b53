from typing import TypedDict

from assistant_relay.assistant.models import RunStatus, ToolCall


class RunState(TypedDict, total=False):
    user_input: str
    session_id: str
    session_created: bool
    run_id: str
    status: RunStatus
    poll_count: int
    tool_calls: list[ToolCall]
    tool_rounds: int
    outcome: str
    reply: str
    error: str
