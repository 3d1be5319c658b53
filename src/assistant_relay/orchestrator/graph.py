from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, START, StateGraph

from assistant_relay.assistant.client import AssistantClient
from assistant_relay.assistant.models import RunStatus, ThreadMessage
from assistant_relay.config.settings import Settings, get_settings
from assistant_relay.errors import ConfigurationError, RelayError
from assistant_relay.orchestrator.outcomes import (
    CANCELLED_REPLY,
    FAILED_REPLY,
    MISSING_CREDENTIALS_ERROR,
    NO_VALID_RESPONSE,
    TIMEOUT_ERROR,
    ConversationResult,
    Outcome,
)
from assistant_relay.orchestrator.state import RunState
from assistant_relay.orchestrator.timing import PollTimer
from assistant_relay.tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)

# File-search citations, e.g. "【4:0†source】".
CITATION_PATTERN = re.compile(r"【\d+:\d+†[^】]+】")

ClientFactory = Callable[[Settings], Any]


def strip_citations(text: str) -> str:
    return CITATION_PATTERN.sub("", text)


def latest_assistant_reply(messages: list[ThreadMessage]) -> str:
    """Text of the newest assistant message. The service lists newest first."""
    for message in messages:
        if message.role == "assistant":
            return strip_citations(message.text) or NO_VALID_RESPONSE
    return NO_VALID_RESPONSE


class Orchestrator:
    """Drives one conversational turn against the remote assistant service.

    The turn is a small state machine:
    1. Session: reuse the caller's thread or create one.
    2. Submission: append the user message and start a run.
    3. Polling: wait one interval, fetch the run, repeat while it is pending and
       the iteration budget lasts.
    4. Tool servicing: on ``requires_action`` dispatch every pending tool call,
       submit all outputs in one batch and go back to polling as ``in_progress``.
    5. Exit: a terminal status is finalized into a reply; anything else is a
       timeout, compensated by one best-effort cancel of the run.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        dispatcher: ToolDispatcher | None = None,
        timer: PollTimer | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._dispatcher = dispatcher or ToolDispatcher()
        self._timer = timer or PollTimer(self._settings.poll_interval_seconds)
        self._client_factory = client_factory or AssistantClient.from_settings
        self._max_polls = max(0, self._settings.max_poll_iterations)
        self._app = self._build_graph()

    @property
    def max_polls(self) -> int:
        return self._max_polls

    @staticmethod
    def _client(config: RunnableConfig) -> AssistantClient:
        return config["configurable"]["client"]

    def _require_credentials(self) -> None:
        if not self._settings.has_assistant_credentials:
            raise ConfigurationError(MISSING_CREDENTIALS_ERROR)

    async def ensure_session_node(
        self, state: RunState, config: RunnableConfig
    ) -> RunState:
        session_id = state.get("session_id")
        if session_id:
            logger.info("Using existing thread: %s", session_id)
            return {"session_created": False}

        session_id = await self._client(config).create_thread()
        logger.info("Created new thread: %s", session_id)
        return {"session_id": session_id, "session_created": True}

    async def add_message_node(self, state: RunState, config: RunnableConfig) -> None:
        await self._client(config).add_message(state["session_id"], state["user_input"])
        logger.debug("User message added to thread %s", state["session_id"])

    async def start_run_node(self, state: RunState, config: RunnableConfig) -> RunState:
        run = await self._client(config).create_run(
            state["session_id"], self._settings.openai_assistant_id
        )
        logger.info(
            "Run started: %s (budget %d polls x %ss, about %ss)",
            run.id,
            self._max_polls,
            self._timer.interval_seconds,
            self._timer.budget_seconds(self._max_polls),
        )
        return {
            "run_id": run.id,
            "status": RunStatus.IN_PROGRESS,
            "poll_count": 0,
            "tool_calls": [],
            "tool_rounds": 0,
        }

    async def poll_node(self, state: RunState, config: RunnableConfig) -> RunState:
        await self._timer.wait()
        run = await self._client(config).retrieve_run(state["session_id"], state["run_id"])
        poll_count = state.get("poll_count", 0) + 1
        logger.info(
            "Run status: %s (poll %d/%d)", run.status.value, poll_count, self._max_polls
        )
        return {
            "status": run.status,
            "poll_count": poll_count,
            "tool_calls": run.pending_tool_calls,
        }

    async def service_tools_node(
        self, state: RunState, config: RunnableConfig
    ) -> RunState:
        outputs = await self._dispatcher.dispatch(state.get("tool_calls", []))
        await self._client(config).submit_tool_outputs(
            state["session_id"], state["run_id"], outputs
        )
        logger.info("Submitted %d tool output(s)", len(outputs))
        # The only re-entrant transition: requires_action -> in_progress.
        return {
            "status": RunStatus.IN_PROGRESS,
            "tool_calls": [],
            "tool_rounds": state.get("tool_rounds", 0) + 1,
        }

    async def cancel_run_node(self, state: RunState, config: RunnableConfig) -> RunState:
        status = state.get("status")
        logger.error(
            "Run timeout after %d polls (about %ss, %d tool round(s)). Status: %s",
            state.get("poll_count", 0),
            self._timer.budget_seconds(state.get("poll_count", 0)),
            state.get("tool_rounds", 0),
            status.value if status else "unknown",
        )
        try:
            await self._client(config).cancel_run(state["session_id"], state["run_id"])
            logger.info("Cancelled stuck run %s", state["run_id"])
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to cancel run %s: %s", state["run_id"], exc)
        return {"outcome": Outcome.TIMEOUT.value, "error": TIMEOUT_ERROR}

    async def finalize_node(self, state: RunState, config: RunnableConfig) -> RunState:
        status = state["status"]
        logger.info(
            "Run %s finished as %s after %d polls and %d tool round(s) on %s thread %s",
            state["run_id"],
            status.value,
            state.get("poll_count", 0),
            state.get("tool_rounds", 0),
            "new" if state.get("session_created") else "existing",
            state["session_id"],
        )
        if status is RunStatus.COMPLETED:
            messages = await self._client(config).list_messages(state["session_id"])
            logger.info("Run completed successfully")
            return {
                "outcome": Outcome.COMPLETED.value,
                "reply": latest_assistant_reply(messages),
            }
        if status is RunStatus.FAILED:
            logger.error("Run failed")
            return {"outcome": Outcome.FAILED.value, "reply": FAILED_REPLY}

        logger.info("Run was cancelled")
        return {"outcome": Outcome.CANCELLED.value, "reply": CANCELLED_REPLY}

    def _next_step(self, state: RunState) -> str:
        status = state["status"]
        if status.is_terminal:
            return "finalize"
        if status is RunStatus.REQUIRES_ACTION and state.get("tool_calls"):
            return "service_tools"
        if status.is_pending and state.get("poll_count", 0) < self._max_polls:
            return "poll"
        return "cancel_run"

    def _build_graph(self):
        graph = StateGraph(RunState)
        graph.add_node("ensure_session", self.ensure_session_node)
        graph.add_node("add_message", self.add_message_node)
        graph.add_node("start_run", self.start_run_node)
        graph.add_node("poll", self.poll_node)
        graph.add_node("service_tools", self.service_tools_node)
        graph.add_node("cancel_run", self.cancel_run_node)
        graph.add_node("finalize", self.finalize_node)

        routes = {
            "poll": "poll",
            "service_tools": "service_tools",
            "cancel_run": "cancel_run",
            "finalize": "finalize",
        }
        graph.add_edge(START, "ensure_session")
        graph.add_edge("ensure_session", "add_message")
        graph.add_edge("add_message", "start_run")
        graph.add_conditional_edges("start_run", self._next_step, routes)
        graph.add_conditional_edges("poll", self._next_step, routes)
        graph.add_conditional_edges("service_tools", self._next_step, routes)
        graph.add_edge("cancel_run", END)
        graph.add_edge("finalize", END)
        return graph.compile()

    def mermaid(self) -> str:
        return self._app.get_graph().draw_mermaid()

    def _recursion_limit(self) -> int:
        # Three setup steps, at most two steps per poll, one exit step.
        return 2 * self._max_polls + 10

    async def converse(
        self, user_input: str, session_id: str | None = None
    ) -> ConversationResult:
        initial: RunState = {"user_input": user_input}
        if session_id:
            initial["session_id"] = session_id

        snapshot: RunState = initial
        try:
            self._require_credentials()
            async with self._client_factory(self._settings) as client:
                config: RunnableConfig = {
                    "recursion_limit": self._recursion_limit(),
                    "configurable": {"client": client},
                }
                async for snapshot in self._app.astream(
                    initial, config=config, stream_mode="values"
                ):
                    pass
        except RelayError as exc:
            logger.error("Chat API error: %s", exc)
            return ConversationResult(
                outcome=Outcome.ERROR,
                session_id=snapshot.get("session_id"),
                error=str(exc),
            )

        outcome = Outcome(snapshot["outcome"])
        return ConversationResult(
            outcome=outcome,
            session_id=snapshot.get("session_id"),
            reply=snapshot.get("reply"),
            error=snapshot.get("error"),
        )
