"""Provider contracts shared by the request builder, parser and client."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from evergreen_ai.errors import ErrorKind, GenerationError


class ProviderKind(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    LOCAL = "local"
    CUSTOM = "custom"


_PROVIDER_ALIASES = {"ollama": ProviderKind.LOCAL}

DEFAULT_ENDPOINTS: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "https://api.openai.com/v1/chat/completions",
    ProviderKind.ANTHROPIC: "https://api.anthropic.com/v1/messages",
    ProviderKind.LOCAL: "http://localhost:11434/api/chat",
    ProviderKind.CUSTOM: "",
}

DEFAULT_MODELS: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "gpt-4o-mini",
    ProviderKind.ANTHROPIC: "claude-3-5-sonnet-20241022",
    ProviderKind.LOCAL: "llama3.2",
    ProviderKind.CUSTOM: "",
}


def resolve_provider(value: "str | ProviderKind") -> ProviderKind:
    if isinstance(value, ProviderKind):
        return value
    raw = str(value or "").strip().lower()
    if raw in _PROVIDER_ALIASES:
        return _PROVIDER_ALIASES[raw]
    try:
        return ProviderKind(raw)
    except ValueError:
        raise GenerationError(
            f"Unknown provider: {value}",
            ErrorKind.UNKNOWN,
            retryable=False,
        ) from None


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Snapshot of the caller's provider settings.

    A call captures the config it was started with; replacing the client's
    config mid-call does not affect it.
    """

    provider: str | ProviderKind
    model: str
    api_key: str = ""
    endpoint: str = ""
    temperature: float = 0.7
    max_tokens: int = 2000

    @property
    def kind(self) -> ProviderKind:
        return resolve_provider(self.provider)

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key.strip())

    def with_overrides(self, **changes: Any) -> "ProviderConfig":
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class TokenUsage:
    prompt_tokens: int | None = None
    completion_tokens: int | None = None


@dataclass(frozen=True, slots=True)
class GenerationResponse:
    content: str
    model: str
    usage: TokenUsage | None = None


@dataclass(frozen=True, slots=True)
class StreamFragment:
    text: str
    done: bool = False


@dataclass(frozen=True, slots=True)
class WireRequest:
    endpoint: str
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)
