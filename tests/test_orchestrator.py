"""Tests for the run orchestrator with a scripted assistant service (no network)."""
import json
import logging
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel

from conftest import (
    FakeAssistantService,
    assistant_message,
    make_run,
    make_settings,
    tool_call,
    user_message,
)
from assistant_relay.errors import AssistantApiError
from assistant_relay.orchestrator import Orchestrator, Outcome, PollTimer, strip_citations
from assistant_relay.orchestrator.outcomes import (
    CANCELLED_REPLY,
    FAILED_REPLY,
    MISSING_CREDENTIALS_ERROR,
    NO_VALID_RESPONSE,
    TIMEOUT_ERROR,
)
from assistant_relay.tools.dispatcher import ToolDispatcher
from assistant_relay.tools.tool_models import ToolSpec


class _QueryArgs(BaseModel):
    query: str


def _search_stub(calls: list[str]) -> ToolSpec:
    async def _handler(args: _QueryArgs) -> dict:
        calls.append(args.query)
        return {"results": [{"title": "EY", "url": "https://ey.com", "content": "...", "score": 0.9}],
                "answer": "Adoption is growing.", "query": args.query}

    return ToolSpec(
        name="web_search",
        description="stub",
        args_schema=_QueryArgs,
        handler=_handler,
        empty_result={"results": []},
    )


def _orchestrator(service: FakeAssistantService, settings=None, tools=None) -> Orchestrator:
    return Orchestrator(
        settings or make_settings(),
        dispatcher=ToolDispatcher(tools or {}),
        timer=PollTimer(0),
        client_factory=lambda _settings: service,
    )


@pytest.mark.asyncio
async def test_new_session_is_created_once_and_returned():
    service = FakeAssistantService(
        [make_run("in_progress"), make_run("completed")],
        messages=[assistant_message("Here is an overview."), user_message("Give me an overview.")],
        thread_id="S1",
    )
    result = await _orchestrator(service).converse("Give me an overview.")

    assert result.outcome is Outcome.COMPLETED
    assert result.session_id == "S1"
    assert result.reply == "Here is an overview."
    assert service.count("create_thread") == 1
    assert ("add_message", "S1", "Give me an overview.") in service.calls
    assert ("create_run", "S1", "asst_test") in service.calls
    assert service.closed


@pytest.mark.asyncio
async def test_existing_session_is_reused_verbatim():
    service = FakeAssistantService([make_run("completed")])
    result = await _orchestrator(service).converse("Next question", session_id="S1")

    assert result.session_id == "S1"
    assert service.count("create_thread") == 0
    assert ("add_message", "S1", "Next question") in service.calls


@pytest.mark.asyncio
async def test_requires_action_dispatches_and_submits_outputs_once():
    queries: list[str] = []
    service = FakeAssistantService(
        [
            make_run("requires_action", [tool_call("call_1", "web_search", '{"query": "AI adoption Jamaica"}')]),
            make_run("in_progress"),
            make_run("completed"),
        ]
    )
    result = await _orchestrator(service, tools={"web_search": _search_stub(queries)}).converse(
        "How is AI adoption going?", session_id="S1"
    )

    assert result.outcome is Outcome.COMPLETED
    assert queries == ["AI adoption Jamaica"]
    assert service.count("submit_tool_outputs") == 1
    [outputs] = service.submitted
    assert [o.tool_call_id for o in outputs] == ["call_1"]
    payload = json.loads(outputs[0].output)
    assert payload["answer"] == "Adoption is growing."


@pytest.mark.asyncio
async def test_every_tool_round_is_serviced():
    queries: list[str] = []
    service = FakeAssistantService(
        [
            make_run("requires_action", [tool_call("call_1", "web_search", '{"query": "a"}')]),
            make_run("requires_action", [
                tool_call("call_2", "web_search", '{"query": "b"}'),
                tool_call("call_3", "other_tool", "{}"),
            ]),
            make_run("completed"),
        ]
    )
    result = await _orchestrator(service, tools={"web_search": _search_stub(queries)}).converse("q", "S1")

    assert result.outcome is Outcome.COMPLETED
    assert service.count("submit_tool_outputs") == 2
    second = {o.tool_call_id: json.loads(o.output) for o in service.submitted[1]}
    assert set(second) == {"call_2", "call_3"}
    assert second["call_3"] == {"error": "Unknown function"}


@pytest.mark.asyncio
async def test_failing_tool_does_not_abort_run():
    async def _boom(args):
        raise RuntimeError("Tavily API key missing")

    spec = ToolSpec(name="web_search", description="x", args_schema=_QueryArgs,
                    handler=_boom, empty_result={"results": []})
    service = FakeAssistantService(
        [make_run("requires_action", [tool_call("call_1", "web_search", '{"query": "x"}')]),
         make_run("completed")],
        messages=[assistant_message("I could not search, but here is what I know.")],
    )
    result = await _orchestrator(service, tools={"web_search": spec}).converse("q", "S1")

    assert result.outcome is Outcome.COMPLETED
    payload = json.loads(service.submitted[0][0].output)
    assert payload == {"error": "Tavily API key missing", "results": []}


@pytest.mark.asyncio
async def test_timeout_cancels_exactly_once_and_keeps_session():
    service = FakeAssistantService([make_run("in_progress")])
    result = await _orchestrator(service, settings=make_settings(MAX_POLL_ITERATIONS=3)).converse("q", "S1")

    assert result.outcome is Outcome.TIMEOUT
    assert result.error == TIMEOUT_ERROR
    assert result.session_id == "S1"
    assert result.reply is None
    assert service.count("retrieve_run") == 3
    assert service.count("cancel_run") == 1
    assert service.count("list_messages") == 0


@pytest.mark.asyncio
async def test_cancel_failure_is_swallowed():
    service = FakeAssistantService(
        [make_run("queued")], cancel_error=AssistantApiError("cannot cancel", 400)
    )
    result = await _orchestrator(service, settings=make_settings(MAX_POLL_ITERATIONS=2)).converse("q", "S1")

    assert result.outcome is Outcome.TIMEOUT
    assert service.count("cancel_run") == 1


@pytest.mark.asyncio
async def test_zero_poll_budget_cancels_without_polling():
    service = FakeAssistantService([make_run("completed")])
    result = await _orchestrator(service, settings=make_settings(MAX_POLL_ITERATIONS=0)).converse("q", "S1")

    assert result.outcome is Outcome.TIMEOUT
    assert service.count("retrieve_run") == 0
    assert service.count("cancel_run") == 1


@pytest.mark.asyncio
async def test_tool_round_on_last_poll_still_times_out():
    queries: list[str] = []
    service = FakeAssistantService(
        [make_run("requires_action", [tool_call("call_1", "web_search", '{"query": "x"}')])]
    )
    result = await _orchestrator(
        service, settings=make_settings(MAX_POLL_ITERATIONS=1), tools={"web_search": _search_stub(queries)}
    ).converse("q", "S1")

    assert result.outcome is Outcome.TIMEOUT
    assert service.count("submit_tool_outputs") == 1
    assert service.count("cancel_run") == 1


@pytest.mark.asyncio
async def test_unlisted_status_takes_timeout_path():
    service = FakeAssistantService([make_run("expired")])
    result = await _orchestrator(service).converse("q", "S1")

    assert result.outcome is Outcome.TIMEOUT
    assert service.count("retrieve_run") == 1
    assert service.count("cancel_run") == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, outcome, reply",
    [("failed", Outcome.FAILED, FAILED_REPLY), ("cancelled", Outcome.CANCELLED, CANCELLED_REPLY)],
)
async def test_remote_failure_returns_fallback_reply(status, outcome, reply):
    service = FakeAssistantService([make_run(status)])
    result = await _orchestrator(service).converse("q", "S1")

    assert result.outcome is outcome
    assert result.reply == reply
    assert result.session_id == "S1"
    assert service.count("cancel_run") == 0


@pytest.mark.asyncio
async def test_completed_without_assistant_message_falls_back():
    service = FakeAssistantService([make_run("completed")], messages=[user_message("hi")])
    result = await _orchestrator(service).converse("hi", "S1")

    assert result.outcome is Outcome.COMPLETED
    assert result.reply == NO_VALID_RESPONSE


@pytest.mark.asyncio
async def test_citations_are_stripped_from_reply():
    service = FakeAssistantService(
        [make_run("completed")],
        messages=[assistant_message("Adoption rose 40%【4:0†survey.pdf】 last year【12:3†ey.com】.")],
    )
    result = await _orchestrator(service).converse("q", "S1")

    assert result.reply == "Adoption rose 40% last year."


@pytest.mark.asyncio
async def test_missing_credentials_makes_no_remote_calls():
    factory = MagicMock()
    orchestrator = Orchestrator(
        make_settings(OPENAI_API_KEY=""),
        dispatcher=ToolDispatcher({}),
        timer=PollTimer(0),
        client_factory=factory,
    )
    result = await orchestrator.converse("q")

    assert result.outcome is Outcome.ERROR
    assert result.error == MISSING_CREDENTIALS_ERROR
    factory.assert_not_called()


@pytest.mark.asyncio
async def test_api_error_reports_remote_message_and_known_session():
    service = FakeAssistantService([make_run("completed")], thread_id="S9", fail_on="create_run")
    result = await _orchestrator(service).converse("q")

    assert result.outcome is Outcome.ERROR
    assert result.error == "create_run rejected"
    assert result.session_id == "S9"


@pytest.mark.asyncio
async def test_api_error_before_session_has_no_session_id():
    service = FakeAssistantService([make_run("completed")], fail_on="create_thread")
    result = await _orchestrator(service).converse("q")

    assert result.outcome is Outcome.ERROR
    assert result.session_id is None


def test_strip_citations_leaves_plain_brackets():
    assert strip_citations("See [1] and 【1:2†a b】done") == "See [1] and done"


def test_graph_renders_as_mermaid():
    diagram = _orchestrator(FakeAssistantService([make_run("completed")])).mermaid()
    assert "service_tools" in diagram
    assert "cancel_run" in diagram


@pytest.mark.asyncio
async def test_finished_run_logs_tool_rounds_and_thread_origin(caplog):
    queries: list[str] = []
    service = FakeAssistantService(
        [
            make_run("requires_action", [tool_call("call_1", "web_search", '{"query": "a"}')]),
            make_run("requires_action", [tool_call("call_2", "web_search", '{"query": "b"}')]),
            make_run("completed"),
        ],
        thread_id="S5",
    )
    caplog.set_level(logging.INFO, logger="assistant_relay.orchestrator.graph")
    await _orchestrator(service, tools={"web_search": _search_stub(queries)}).converse("q")

    assert "finished as completed after 3 polls and 2 tool round(s) on new thread S5" in caplog.text


@pytest.mark.asyncio
async def test_timeout_log_reports_tool_rounds(caplog):
    queries: list[str] = []
    service = FakeAssistantService(
        [make_run("requires_action", [tool_call("call_1", "web_search", '{"query": "a"}')]),
         make_run("in_progress")]
    )
    caplog.set_level(logging.INFO, logger="assistant_relay.orchestrator.graph")
    await _orchestrator(
        service, settings=make_settings(MAX_POLL_ITERATIONS=2), tools={"web_search": _search_stub(queries)}
    ).converse("q", "S1")

    assert "1 tool round(s)" in caplog.text
