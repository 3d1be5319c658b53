from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class RunStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    # Reported by the service but outside the polled/terminal sets.
    CANCELLING = "cancelling"
    EXPIRED = "expired"
    INCOMPLETE = "incomplete"

    @property
    def is_pending(self) -> bool:
        return self in _PENDING

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_PENDING = frozenset(
    {RunStatus.QUEUED, RunStatus.IN_PROGRESS, RunStatus.REQUIRES_ACTION}
)
_TERMINAL = frozenset({RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED})


class FunctionCall(BaseModel):
    name: str
    arguments: str = ""


class ToolCall(BaseModel):
    id: str
    type: str = "function"
    function: FunctionCall

    @property
    def name(self) -> str:
        return self.function.name


class SubmitToolOutputs(BaseModel):
    tool_calls: list[ToolCall] = Field(default_factory=list)


class RequiredAction(BaseModel):
    type: str = "submit_tool_outputs"
    submit_tool_outputs: SubmitToolOutputs | None = None


class Run(BaseModel):
    id: str
    thread_id: str | None = None
    status: RunStatus
    required_action: RequiredAction | None = None

    @property
    def pending_tool_calls(self) -> list[ToolCall]:
        if self.status is not RunStatus.REQUIRES_ACTION or self.required_action is None:
            return []
        submit = self.required_action.submit_tool_outputs
        return list(submit.tool_calls) if submit else []


class ToolOutput(BaseModel):
    tool_call_id: str
    output: str

    @classmethod
    def from_payload(cls, tool_call_id: str, payload: dict[str, Any]) -> ToolOutput:
        return cls(tool_call_id=tool_call_id, output=json.dumps(payload, default=str))


class ThreadMessage(BaseModel):
    id: str = ""
    role: str
    content: list[dict[str, Any]] = Field(default_factory=list)
    created_at: int | None = None

    @property
    def text(self) -> str:
        """Value of the first content part, if it is a text part."""
        if not self.content:
            return ""
        first = self.content[0]
        if first.get("type", "text") != "text":
            return ""
        text = first.get("text") or {}
        value = text.get("value") if isinstance(text, dict) else None
        return value if isinstance(value, str) else ""
