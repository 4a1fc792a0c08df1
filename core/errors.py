# core/errors.py
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """
    Failure categories recorded on execution log entries.
    """

    CONFIGURATION = "configuration"
    TRANSIENT_UPSTREAM = "transient_upstream"
    UPSTREAM = "upstream"
    PARSE = "parse"
    VALIDATION = "validation"
    TRANSCRIPTION = "transcription"
    CANCELLATION = "cancellation"
    INTERNAL = "internal"


class AgentError(Exception):
    """Base error for everything raised by the routing core."""

    kind: ErrorKind = ErrorKind.INTERNAL


class ConfigurationError(AgentError):
    """A required credential or setting is missing. Never retried."""

    kind = ErrorKind.CONFIGURATION


class TransientUpstreamError(AgentError):
    """Network failure or rate limit that survived the retry budget."""

    kind = ErrorKind.TRANSIENT_UPSTREAM

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class UpstreamError(AgentError):
    """The provider rejected the request; retrying would not help."""

    kind = ErrorKind.UPSTREAM

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(AgentError):
    """
    Structured output could not be extracted from a model response.
    Always absorbed by the agent's fallback, never surfaced.
    """

    kind = ErrorKind.PARSE


class InvalidToolInput(AgentError):
    """A tool was called without a required field or with the wrong type."""

    kind = ErrorKind.VALIDATION

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Invalid input for tool '{tool_name}': {message}")
        self.tool_name = tool_name


class InvalidRequest(AgentError):
    """A processor was handed a request it cannot validate."""

    kind = ErrorKind.VALIDATION


class TranscriptionError(AgentError):
    """Speech-to-text failed or the provider is not configured."""

    kind = ErrorKind.TRANSCRIPTION


def error_kind_of(exc: BaseException) -> ErrorKind:
    if isinstance(exc, AgentError):
        return exc.kind
    return ErrorKind.INTERNAL
