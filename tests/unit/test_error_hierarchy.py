"""Tests for error hierarchy."""

from evergreen_ai.errors import (
    ConfigError,
    ErrorKind,
    EvergreenError,
    GenerationError,
)


def test_hierarchy() -> None:
    assert issubclass(GenerationError, EvergreenError)
    assert issubclass(ConfigError, EvergreenError)


def test_retryable_default() -> None:
    assert EvergreenError("test").retryable is False
    assert GenerationError("test").retryable is False
    assert ConfigError("test").retryable is False


def test_generation_error_defaults_to_unknown_kind() -> None:
    err = GenerationError("boom")
    assert err.kind is ErrorKind.UNKNOWN
    assert err.retry_after is None


def test_error_message() -> None:
    err = GenerationError("provider down", ErrorKind.SERVER_ERROR, retryable=True, retry_after=5)
    assert str(err) == "provider down"
    assert err.message == "provider down"
    assert err.retryable is True
    assert err.retry_after == 5
    assert "server_error" in repr(err)


def test_catch_as_evergreen_error() -> None:
    try:
        raise GenerationError("test", ErrorKind.TIMEOUT, retryable=True)
    except EvergreenError as exc:
        assert exc.retryable is True
