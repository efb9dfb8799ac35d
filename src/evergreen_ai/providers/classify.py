"""Map HTTP statuses, transport exceptions and in-band errors to GenerationError."""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Mapping
from typing import Any

import httpx

from evergreen_ai.errors import ErrorKind, GenerationError

DEFAULT_RATE_LIMIT_WAIT_SECONDS = 60.0
DEFAULT_SERVER_ERROR_WAIT_SECONDS = 5.0

NETWORK_MESSAGE = "Network error - please check your internet connection"
TIMEOUT_MESSAGE = "Request timed out - try with shorter content or check your connection"

_NETWORK_SIGNATURES = (
    "fetch failed",
    "network",
    "failed to fetch",
    "networkerror",
    "econnrefused",
    "enotfound",
    "etimedout",
    "econnreset",
    "err_network",
    "connection refused",
    "connection reset",
    "name or service not known",
)
_CONTEXT_WORDS = ("context", "token", "length")
_QUOTA_WORDS = ("quota", "billing", "limit exceeded")

# "ms" must precede "m" so "500ms" is not read as minutes.
_WAIT_PHRASE = (
    r"(?:try again in|retry in|reset after)\s+"
    r"((?:\d+(?:\.\d+)?(?:ms|h|m|s))+|\d+(?:\.\d+)?)"
)

_ANTHROPIC_STREAM_ERRORS: dict[str, tuple[ErrorKind, bool]] = {
    "overloaded_error": (ErrorKind.SERVER_ERROR, True),
    "api_error": (ErrorKind.SERVER_ERROR, True),
    "rate_limit_error": (ErrorKind.RATE_LIMIT, True),
    "authentication_error": (ErrorKind.INVALID_API_KEY, False),
    "permission_error": (ErrorKind.INVALID_API_KEY, False),
    "not_found_error": (ErrorKind.MODEL_NOT_FOUND, False),
}


def _parse_possible_json(text: str) -> dict[str, Any] | None:
    value = (text or "").strip()
    if not value:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_error_message(body: object) -> str | None:
    """Pull the provider's message out of any of the known failure envelopes."""
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        parsed = _parse_possible_json(body)
        if parsed is None:
            text = body.strip()
            return text[:500] or None
        body = parsed
    if not isinstance(body, dict):
        return None
    error_obj = body.get("error")
    if isinstance(error_obj, dict):
        message = error_obj.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    if isinstance(error_obj, str) and error_obj.strip():
        return error_obj.strip()
    for key in ("message", "detail"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _duration_to_seconds(token: str) -> float | None:
    """Convert "20", "500ms", "1m30s" or "1h" to seconds."""
    value = (token or "").strip().lower()
    if not value:
        return None
    if re.fullmatch(r"\d+(?:\.\d+)?", value):
        return float(value)
    total = 0.0
    for amount, unit in re.findall(r"(\d+(?:\.\d+)?)(ms|h|m|s)", value):
        qty = float(amount)
        if unit == "ms":
            total += qty / 1000
        elif unit == "h":
            total += qty * 3600
        elif unit == "m":
            total += qty * 60
        else:
            total += qty
    return total if total > 0 else None


def parse_retry_after_seconds(text: str) -> float | None:
    """Find an explicit wait time in a provider message, e.g. "try again in 1m30s"."""
    lowered = (text or "").lower()
    if match := re.search(_WAIT_PHRASE, lowered):
        return _duration_to_seconds(match.group(1))
    if match := re.search(r"retry[-\s]*after[:=\s]+(\d+(?:\.\d+)?)", lowered):
        return float(match.group(1))
    return None


def _header_retry_after(headers: Mapping[str, str] | None) -> float | None:
    if not headers:
        return None
    raw = headers.get("retry-after") or headers.get("Retry-After")
    if raw is None:
        return None
    try:
        seconds = float(str(raw).strip())
    except ValueError:
        return None
    return seconds if seconds > 0 else None


def _mentions(message: str, words: tuple[str, ...]) -> bool:
    lowered = message.lower()
    return any(word in lowered for word in words)


def classify_status(
    status_code: int,
    body: object = None,
    headers: Mapping[str, str] | None = None,
) -> GenerationError:
    """Classify an HTTP failure status (>= 400) into a GenerationError."""
    provider_message = extract_error_message(body) or ""
    message = provider_message or "API request failed"

    if status_code == 400:
        if _mentions(provider_message, _CONTEXT_WORDS):
            return GenerationError(
                "Content too long - try with shorter text or break it into smaller parts",
                ErrorKind.CONTEXT_LENGTH_EXCEEDED,
            )
        return GenerationError(message, ErrorKind.UNKNOWN)
    if status_code == 401:
        return GenerationError(
            "Invalid API key - please check your API key in settings",
            ErrorKind.INVALID_API_KEY,
        )
    if status_code == 403:
        return GenerationError(
            "Access denied - your API key may not have the required permissions",
            ErrorKind.INVALID_API_KEY,
        )
    if status_code == 404:
        return GenerationError(
            "Model not found - please check the model name in settings",
            ErrorKind.MODEL_NOT_FOUND,
        )
    if status_code == 429:
        if _mentions(provider_message, _QUOTA_WORDS):
            return GenerationError(
                "API quota exceeded - please check your billing/usage limits",
                ErrorKind.QUOTA_EXCEEDED,
            )
        # The wait hint lives in the provider's wording, read it before rewriting.
        retry_after = parse_retry_after_seconds(provider_message)
        if retry_after is None:
            retry_after = _header_retry_after(headers)
        if retry_after is None:
            retry_after = DEFAULT_RATE_LIMIT_WAIT_SECONDS
        return GenerationError(
            "Rate limit reached - waiting and retrying...",
            ErrorKind.RATE_LIMIT,
            retryable=True,
            retry_after=retry_after,
        )
    if status_code >= 500:
        return GenerationError(
            f"Server error ({status_code}) - the AI service may be experiencing issues. "
            "Retrying...",
            ErrorKind.SERVER_ERROR,
            retryable=True,
            retry_after=DEFAULT_SERVER_ERROR_WAIT_SECONDS,
        )
    return GenerationError(message, ErrorKind.UNKNOWN)


def is_network_error(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError) and not isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, ConnectionError):
        return True
    haystack = f"{type(exc).__name__} {exc}".lower()
    return any(signature in haystack for signature in _NETWORK_SIGNATURES)


def classify_exception(exc: BaseException) -> GenerationError:
    """Wrap any exception raised during a call; classified errors pass through."""
    if isinstance(exc, GenerationError):
        return exc
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return GenerationError(TIMEOUT_MESSAGE, ErrorKind.TIMEOUT, retryable=True)
    if is_network_error(exc):
        return GenerationError(NETWORK_MESSAGE, ErrorKind.NETWORK_ERROR, retryable=True)
    message = str(exc).strip() or "Unknown error occurred"
    return GenerationError(message, ErrorKind.UNKNOWN)


def classify_stream_error(event: Mapping[str, Any]) -> GenerationError:
    """Classify an error envelope received inside an otherwise healthy stream."""
    message = extract_error_message(dict(event)) or "The AI service reported an error mid-stream"
    error_obj = event.get("error")
    if isinstance(error_obj, dict):
        error_type = str(error_obj.get("type", "")).strip().lower()
        if error_type in _ANTHROPIC_STREAM_ERRORS:
            kind, retryable = _ANTHROPIC_STREAM_ERRORS[error_type]
            return GenerationError(message, kind, retryable=retryable)
    if "not found" in message.lower():
        return GenerationError(message, ErrorKind.MODEL_NOT_FOUND)
    return GenerationError(message, ErrorKind.UNKNOWN)
