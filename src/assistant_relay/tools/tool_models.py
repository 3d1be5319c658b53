from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from langchain_core.tools import StructuredTool
from langchain_core.utils.function_calling import convert_to_openai_tool
from pydantic import BaseModel


@dataclass(frozen=True)
class ToolSpec:
    """Static definition of a tool the remote assistant may call.

    Attributes:
        name: Function name the assistant uses in its tool calls.
        description: Description sent to the assistant with the function schema.
        args_schema: Pydantic model the raw JSON arguments are decoded into.
        handler: Coroutine receiving the decoded arguments, returning a JSON-able dict.
        intent: Formal semantic purpose of the tool for developer clarity.
        empty_result: Fields merged into the error payload when the tool fails,
            so the assistant still sees the usual result shape.
    """

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[Any], Awaitable[dict[str, Any]]]
    intent: str = ""
    empty_result: dict[str, Any] = field(default_factory=dict)

    def decode(self, raw_arguments: str | dict[str, Any] | None) -> BaseModel:
        if isinstance(raw_arguments, dict):
            return self.args_schema.model_validate(raw_arguments)
        raw = (raw_arguments or "").strip() or "{}"
        return self.args_schema.model_validate_json(raw)

    async def handle(self, arguments: BaseModel) -> dict[str, Any]:
        return await self.handler(arguments)

    def error_payload(self, message: str) -> dict[str, Any]:
        return {"error": message, **self.empty_result}

    def as_structured_tool(self) -> StructuredTool:
        async def _run(**kwargs: Any) -> dict[str, Any]:
            return await self.handle(self.args_schema(**kwargs))

        return StructuredTool.from_function(
            coroutine=_run,
            name=self.name,
            description=self.description,
            args_schema=self.args_schema,
        )

    def openai_definition(self) -> dict[str, Any]:
        """Function definition to register on the remote assistant."""
        return convert_to_openai_tool(self.as_structured_tool())
