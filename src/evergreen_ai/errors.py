"""Evergreen AI exception hierarchy.

All package exceptions inherit from EvergreenError. Generation failures are
always raised as GenerationError, which carries a fixed-vocabulary kind,
a retryable flag and an optional suggested wait.
"""

from enum import Enum


class ErrorKind(str, Enum):
    RATE_LIMIT = "rate_limit"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    INVALID_API_KEY = "invalid_api_key"
    QUOTA_EXCEEDED = "quota_exceeded"
    MODEL_NOT_FOUND = "model_not_found"
    CONTEXT_LENGTH_EXCEEDED = "context_length_exceeded"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


class EvergreenError(Exception):
    """Base exception for all Evergreen AI errors."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class GenerationError(EvergreenError):
    """Classified failure of a generation call."""

    def __init__(
        self,
        message: str = "",
        kind: ErrorKind = ErrorKind.UNKNOWN,
        *,
        retryable: bool = False,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, retryable=retryable)
        self.kind = kind
        self.retry_after = retry_after

    def __repr__(self) -> str:
        return (
            f"GenerationError(kind={self.kind.value!r}, retryable={self.retryable}, "
            f"retry_after={self.retry_after!r}, message={self.message!r})"
        )


class ConfigError(EvergreenError):
    """Invalid or missing configuration."""
