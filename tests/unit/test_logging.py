import structlog

from evergreen_ai.logging import redact_secrets, request_context


def test_redact_secrets_masks_credentials() -> None:
    event = {
        "event": "request",
        "api_key": "sk-live",
        "Authorization": "Bearer sk-live",
        "model": "m",
    }
    redacted = redact_secrets(None, "info", event)
    assert redacted["api_key"] == "***"
    assert redacted["Authorization"] == "***"
    assert redacted["model"] == "m"


def test_request_context_binds_and_unbinds() -> None:
    with request_context(request_id="req_1", provider="openai"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["request_id"] == "req_1"
        assert bound["provider"] == "openai"
    assert "request_id" not in structlog.contextvars.get_contextvars()
