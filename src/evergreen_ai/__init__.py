"""Evergreen AI: one generation contract over OpenAI, Anthropic, local and custom providers."""

from evergreen_ai.client import GenerationClient, user_friendly_error
from evergreen_ai.errors import ConfigError, ErrorKind, EvergreenError, GenerationError
from evergreen_ai.platform import PlatformCapabilities, detect_platform
from evergreen_ai.providers.base import (
    GenerationResponse,
    ProviderConfig,
    ProviderKind,
    StreamFragment,
    TokenUsage,
)
from evergreen_ai.providers.retry import RetryPolicy

__all__ = [
    "ConfigError",
    "ErrorKind",
    "EvergreenError",
    "GenerationClient",
    "GenerationError",
    "GenerationResponse",
    "PlatformCapabilities",
    "ProviderConfig",
    "ProviderKind",
    "RetryPolicy",
    "StreamFragment",
    "TokenUsage",
    "detect_platform",
    "user_friendly_error",
]
