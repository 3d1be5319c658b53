"""Shared fixtures: settings builder and an in-memory stand-in for the assistant service."""
from __future__ import annotations

from typing import Any

import pytest

from assistant_relay.assistant.models import Run, ThreadMessage, ToolOutput
from assistant_relay.config.settings import Settings
from assistant_relay.errors import AssistantApiError


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "OPENAI_API_KEY": "sk-test",
        "OPENAI_ASSISTANT_ID": "asst_test",
        "TAVILY_API_KEY": "tvly-test",
        "POLL_INTERVAL_SECONDS": 0,
        "MAX_POLL_ITERATIONS": 5,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_run(status: str, tool_calls: list[dict] | None = None, run_id: str = "run_1") -> Run:
    payload: dict[str, Any] = {"id": run_id, "status": status}
    if tool_calls is not None:
        payload["required_action"] = {
            "type": "submit_tool_outputs",
            "submit_tool_outputs": {"tool_calls": tool_calls},
        }
    return Run.model_validate(payload)


def tool_call(call_id: str, name: str, arguments: str) -> dict:
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


def assistant_message(text: str) -> ThreadMessage:
    return ThreadMessage.model_validate(
        {
            "id": "msg_a",
            "role": "assistant",
            "content": [{"type": "text", "text": {"value": text, "annotations": []}}],
            "created_at": 1700000001,
        }
    )


def user_message(text: str) -> ThreadMessage:
    return ThreadMessage.model_validate(
        {
            "id": "msg_u",
            "role": "user",
            "content": [{"type": "text", "text": {"value": text}}],
            "created_at": 1700000000,
        }
    )


class FakeAssistantService:
    """Scripted assistant service. Polls walk `statuses`; the last one repeats."""

    def __init__(
        self,
        statuses: list[Run],
        *,
        messages: list[ThreadMessage] | None = None,
        thread_id: str = "thread_new",
        cancel_error: Exception | None = None,
        fail_on: str | None = None,
    ) -> None:
        self._statuses = list(statuses)
        self.messages = messages if messages is not None else [assistant_message("Hello.")]
        self.thread_id = thread_id
        self.cancel_error = cancel_error
        self.fail_on = fail_on
        self.calls: list[tuple] = []
        self.submitted: list[list[ToolOutput]] = []
        self.closed = False

    async def __aenter__(self) -> FakeAssistantService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise AssistantApiError(f"{name} rejected", 400)

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def create_thread(self) -> str:
        self._record("create_thread")
        return self.thread_id

    async def add_message(self, thread_id: str, content: str) -> None:
        self._record("add_message", thread_id, content)

    async def create_run(self, thread_id: str, assistant_id: str) -> Run:
        self._record("create_run", thread_id, assistant_id)
        return make_run("queued")

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        self._record("retrieve_run", thread_id, run_id)
        if len(self._statuses) > 1:
            return self._statuses.pop(0)
        return self._statuses[0]

    async def submit_tool_outputs(self, thread_id: str, run_id: str, outputs: list[ToolOutput]) -> None:
        self._record("submit_tool_outputs", thread_id, run_id)
        self.submitted.append(list(outputs))

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        self._record("cancel_run", thread_id, run_id)
        if self.cancel_error is not None:
            raise self.cancel_error

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        self._record("list_messages", thread_id)
        return self.messages


@pytest.fixture
def settings() -> Settings:
    return make_settings()
