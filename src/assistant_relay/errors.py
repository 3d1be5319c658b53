from __future__ import annotations


class RelayError(Exception):
    """Base class for errors raised by the relay."""


class ConfigurationError(RelayError):
    """A required credential or identifier is not configured."""


class AssistantApiError(RelayError):
    """The remote assistant service rejected a call or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SearchError(RelayError):
    """The search provider call failed."""


class SearchConfigurationError(SearchError):
    pass


class SearchValidationError(SearchError):
    pass
