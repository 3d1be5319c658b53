from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Outcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"
    ERROR = "error"


NO_VALID_RESPONSE = "No valid response."
FAILED_REPLY = "The assistant encountered an error. Please try again."
CANCELLED_REPLY = "Request was cancelled. Please try again."
TIMEOUT_ERROR = (
    "Request timeout. The assistant is taking longer than expected. Please try again."
)
MISSING_CREDENTIALS_ERROR = "Missing OpenAI credentials"


@dataclass(frozen=True)
class ConversationResult:
    outcome: Outcome
    session_id: str | None = None
    reply: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.COMPLETED, Outcome.FAILED, Outcome.CANCELLED)
