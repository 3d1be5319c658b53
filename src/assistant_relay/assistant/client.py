"""Async client for the threads/runs surface of the remote assistant service."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from assistant_relay.assistant.models import Run, ThreadMessage, ToolOutput
from assistant_relay.config.settings import Settings
from assistant_relay.errors import AssistantApiError

logger = logging.getLogger(__name__)

ASSISTANTS_BETA_HEADER = "assistants=v2"


def build_headers(
    api_key: str, organization: str | None = None
) -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "OpenAI-Beta": ASSISTANTS_BETA_HEADER,
    }
    if organization:
        headers["OpenAI-Organization"] = organization
    return headers


def _error_message(response: httpx.Response) -> str:
    try:
        payload: Any = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"Assistant API error: {response.status_code}"


class AssistantClient:
    """Thin wrapper over ``httpx.AsyncClient``; one instance per conversation turn.

    Use as an async context manager so the underlying connection pool is closed.
    """

    def __init__(
        self,
        *,
        api_key: str,
        organization: str | None = None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=build_headers(api_key, organization),
            timeout=timeout_seconds,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> AssistantClient:
        return cls(
            api_key=settings.openai_api_key,
            organization=settings.openai_organization or None,
            base_url=settings.openai_base_url,
            timeout_seconds=settings.default_api_timeout_seconds,
        )

    async def __aenter__(self) -> AssistantClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        logger.debug("%s %s", method, path)
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise AssistantApiError(str(exc) or exc.__class__.__name__) from exc
        if response.is_error:
            raise AssistantApiError(_error_message(response), response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise AssistantApiError(
                "Invalid JSON from assistant service", response.status_code
            ) from exc

    @staticmethod
    def _parse_run(payload: dict[str, Any]) -> Run:
        try:
            return Run.model_validate(payload)
        except ValidationError as exc:
            raise AssistantApiError(
                f"Unexpected run payload: {exc.error_count()} error(s)"
            ) from exc

    async def create_thread(self) -> str:
        payload = await self._request("POST", "/threads", json={})
        if not payload.get("id"):
            raise AssistantApiError("Thread creation returned no id")
        return str(payload["id"])

    async def add_message(self, thread_id: str, content: str) -> None:
        await self._request(
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": "user", "content": content},
        )

    async def create_run(self, thread_id: str, assistant_id: str) -> Run:
        payload = await self._request(
            "POST", f"/threads/{thread_id}/runs", json={"assistant_id": assistant_id}
        )
        return self._parse_run(payload)

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        payload = await self._request("GET", f"/threads/{thread_id}/runs/{run_id}")
        return self._parse_run(payload)

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: list[ToolOutput]
    ) -> None:
        await self._request(
            "POST",
            f"/threads/{thread_id}/runs/{run_id}/submit_tool_outputs",
            json={"tool_outputs": [output.model_dump() for output in outputs]},
        )

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        await self._request(
            "POST", f"/threads/{thread_id}/runs/{run_id}/cancel", json={}
        )

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        payload = await self._request("GET", f"/threads/{thread_id}/messages")
        try:
            return [
                ThreadMessage.model_validate(item) for item in payload.get("data", [])
            ]
        except ValidationError as exc:
            raise AssistantApiError("Unexpected message list payload") from exc
