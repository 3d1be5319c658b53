from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


class AuthorizationPredicate(Protocol):
    def __call__(self, identity: str | None) -> bool:
        ...


class EmailAllowList:
    """Sign-in allow-list. Comparison is case-insensitive; an empty list allows everyone."""

    def __init__(self, emails: Iterable[str]) -> None:
        self._emails = frozenset(e.strip().lower() for e in emails if e.strip())

    @property
    def enabled(self) -> bool:
        return bool(self._emails)

    def __call__(self, identity: str | None) -> bool:
        if not self.enabled:
            return True
        if not identity:
            return False
        return identity.strip().lower() in self._emails
