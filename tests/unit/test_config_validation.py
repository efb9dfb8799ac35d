import pytest

from evergreen_ai.config import get_settings, validate_settings
from evergreen_ai.errors import ConfigError
from evergreen_ai.providers.base import ProviderKind


def test_defaults_are_valid() -> None:
    settings = get_settings()
    validate_settings(settings)
    config = settings.provider_config()
    assert config.kind is ProviderKind.OPENAI
    assert config.model == "gpt-4o-mini"
    assert config.temperature == 0.7
    assert config.max_tokens == 2000

    policy = settings.retry_policy()
    assert (policy.max_retries, policy.base_delay_ms, policy.max_delay_ms) == (3, 1000, 30000)
    assert settings.ai_stream_timeout_seconds == 120.0


def test_explicit_model_wins_over_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_PROVIDER", "ollama")
    monkeypatch.setenv("AI_MODEL", "mistral")
    config = get_settings().provider_config()
    assert config.kind is ProviderKind.LOCAL
    assert config.model == "mistral"


def test_unknown_provider_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_PROVIDER", "gemini")
    with pytest.raises(ConfigError, match="AI_PROVIDER"):
        validate_settings(get_settings())


def test_custom_requires_endpoint_and_model(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_PROVIDER", "custom")
    with pytest.raises(ConfigError) as exc_info:
        validate_settings(get_settings())
    assert "AI_API_ENDPOINT" in str(exc_info.value)
    assert "AI_MODEL" in str(exc_info.value)


def test_custom_with_endpoint_accepts_missing_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_PROVIDER", "custom")
    monkeypatch.setenv("AI_MODEL", "qwen2.5")
    monkeypatch.setenv("AI_API_ENDPOINT", "http://10.0.0.5:8000/v1/chat/completions")
    validate_settings(get_settings())


def test_prod_requires_api_key_for_hosted_providers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("AI_PROVIDER", "anthropic")
    with pytest.raises(ConfigError, match="AI_API_KEY"):
        validate_settings(get_settings())

    get_settings.cache_clear()
    monkeypatch.setenv("AI_API_KEY", "sk-ant")
    validate_settings(get_settings())


def test_prod_local_needs_no_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("AI_PROVIDER", "local")
    validate_settings(get_settings())


def test_numeric_ranges(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_MAX_TOKENS", "0")
    monkeypatch.setenv("AI_TEMPERATURE", "3.5")
    monkeypatch.setenv("AI_PLATFORM", "tablet")
    with pytest.raises(ConfigError) as exc_info:
        validate_settings(get_settings())
    message = str(exc_info.value)
    assert "AI_MAX_TOKENS" in message
    assert "AI_TEMPERATURE" in message
    assert "AI_PLATFORM" in message


def test_negative_retry_settings_clamp_to_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_MAX_RETRIES", "-2")
    assert get_settings().retry_policy().max_retries == 0
