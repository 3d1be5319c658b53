"""
Services the tool calls of a run paused in ``requires_action``.

Every call yields exactly one ToolOutput. Unknown tools, undecodable arguments
and handler exceptions are reported to the assistant inside the output payload;
they never fail the dispatch.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping

from pydantic import ValidationError

from assistant_relay.assistant.models import ToolCall, ToolOutput
from assistant_relay.tools.registry import ToolRegistry
from assistant_relay.tools.tool_models import ToolSpec

logger = logging.getLogger(__name__)

UNKNOWN_FUNCTION_ERROR = "Unknown function"


def _describe_decode_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if errors and errors[0].get("type") == "json_invalid":
        return f"Invalid JSON arguments: {errors[0].get('msg', '')}"
    return f"Invalid arguments: {exc.error_count()} validation error(s)"


class ToolDispatcher:
    def __init__(self, tools: Mapping[str, ToolSpec] | None = None) -> None:
        self._tools = dict(tools) if tools is not None else ToolRegistry.all_tools()

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    async def dispatch_one(self, call: ToolCall) -> ToolOutput:
        spec = self._tools.get(call.name)
        if spec is None:
            logger.warning("No handler registered for tool %r (call %s)", call.name, call.id)
            return ToolOutput.from_payload(call.id, {"error": UNKNOWN_FUNCTION_ERROR})

        try:
            arguments = spec.decode(call.function.arguments)
        except ValidationError as exc:
            logger.warning("Tool %s received undecodable arguments: %s", call.name, exc)
            return ToolOutput.from_payload(
                call.id, spec.error_payload(_describe_decode_error(exc))
            )

        try:
            payload = await spec.handle(arguments)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Tool %s failed: %s", call.name, exc)
            payload = spec.error_payload(str(exc) or exc.__class__.__name__)
        return ToolOutput.from_payload(call.id, payload)

    async def dispatch(self, tool_calls: Iterable[ToolCall]) -> list[ToolOutput]:
        calls = list(tool_calls)
        if not calls:
            return []
        logger.info("Processing %d function call(s)", len(calls))
        return list(await asyncio.gather(*(self.dispatch_one(call) for call in calls)))
