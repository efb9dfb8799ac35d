"""Application configuration contract."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from evergreen_ai.errors import ConfigError, GenerationError
from evergreen_ai.providers.base import (
    DEFAULT_MODELS,
    ProviderConfig,
    ProviderKind,
    resolve_provider,
)
from evergreen_ai.providers.retry import RetryPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")

    ai_provider: str = Field(alias="AI_PROVIDER", default="openai")
    ai_model: str = Field(alias="AI_MODEL", default="")
    ai_api_key: str = Field(alias="AI_API_KEY", default="")
    ai_api_endpoint: str = Field(alias="AI_API_ENDPOINT", default="")
    ai_temperature: float = Field(alias="AI_TEMPERATURE", default=0.7)
    ai_max_tokens: int = Field(alias="AI_MAX_TOKENS", default=2000)

    ai_max_retries: int = Field(alias="AI_MAX_RETRIES", default=3)
    ai_retry_base_delay_ms: int = Field(alias="AI_RETRY_BASE_DELAY_MS", default=1000)
    ai_retry_max_delay_ms: int = Field(alias="AI_RETRY_MAX_DELAY_MS", default=30000)
    ai_request_timeout_seconds: float = Field(alias="AI_REQUEST_TIMEOUT_SECONDS", default=60.0)
    ai_stream_timeout_seconds: float = Field(alias="AI_STREAM_TIMEOUT_SECONDS", default=120.0)

    # auto | desktop | mobile
    ai_platform: str = Field(alias="AI_PLATFORM", default="auto")

    def provider_config(self) -> ProviderConfig:
        model = self.ai_model.strip()
        if not model:
            try:
                model = DEFAULT_MODELS[resolve_provider(self.ai_provider)]
            except GenerationError:
                model = ""
        return ProviderConfig(
            provider=self.ai_provider.strip().lower(),
            model=model,
            api_key=self.ai_api_key,
            endpoint=self.ai_api_endpoint.strip(),
            temperature=self.ai_temperature,
            max_tokens=self.ai_max_tokens,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=max(0, self.ai_max_retries),
            base_delay_ms=max(0, self.ai_retry_base_delay_ms),
            max_delay_ms=max(0, self.ai_retry_max_delay_ms),
        )


def validate_settings(settings: Settings) -> None:
    problems: list[str] = []
    try:
        kind = resolve_provider(settings.ai_provider)
    except GenerationError:
        raise ConfigError(
            f"invalid configuration: unknown AI_PROVIDER={settings.ai_provider!r}"
        ) from None

    if kind is ProviderKind.CUSTOM and not settings.ai_api_endpoint.strip():
        problems.append("AI_API_ENDPOINT(required for custom provider)")
    if not settings.provider_config().model:
        problems.append("AI_MODEL")
    if settings.app_env == "prod" and kind in {ProviderKind.OPENAI, ProviderKind.ANTHROPIC}:
        if not settings.ai_api_key.strip():
            problems.append("AI_API_KEY")
    if settings.ai_max_tokens <= 0:
        problems.append("AI_MAX_TOKENS(must be positive)")
    if not 0.0 <= settings.ai_temperature <= 2.0:
        problems.append("AI_TEMPERATURE(0.0-2.0)")
    if settings.ai_platform.strip().lower() not in {"auto", "desktop", "mobile"}:
        problems.append("AI_PLATFORM(auto|desktop|mobile)")

    if problems:
        keys = ", ".join(sorted(set(problems)))
        raise ConfigError(f"invalid configuration: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
