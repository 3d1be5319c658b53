from __future__ import annotations

from typing import Protocol


class SessionStore(Protocol):
    """Key-value contract for remembering a client's conversation thread id."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, session_id: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...
