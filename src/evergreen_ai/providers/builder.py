"""Provider-specific request shaping (endpoint, headers, body)."""

from __future__ import annotations

from typing import Any

from evergreen_ai.errors import ErrorKind, GenerationError
from evergreen_ai.providers.base import (
    DEFAULT_ENDPOINTS,
    ProviderConfig,
    ProviderKind,
    WireRequest,
    resolve_provider,
)

ANTHROPIC_VERSION = "2023-06-01"


def _chat_messages(prompt: str, system: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": prompt},
    ]


def _base_headers() -> dict[str, str]:
    return {"Content-Type": "application/json"}


def _bearer_headers(config: ProviderConfig) -> dict[str, str]:
    headers = _base_headers()
    if config.has_api_key:
        headers["Authorization"] = f"Bearer {config.api_key.strip()}"
    return headers


def _chat_completion_body(
    prompt: str, system: str, stream: bool, config: ProviderConfig
) -> dict[str, Any]:
    return {
        "model": config.model,
        "messages": _chat_messages(prompt, system),
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
        "stream": stream,
    }


def _build_openai(prompt: str, system: str, stream: bool, config: ProviderConfig) -> WireRequest:
    endpoint = config.endpoint.strip() or DEFAULT_ENDPOINTS[ProviderKind.OPENAI]
    return WireRequest(
        endpoint=endpoint,
        headers=_bearer_headers(config),
        body=_chat_completion_body(prompt, system, stream, config),
    )


def _build_custom(prompt: str, system: str, stream: bool, config: ProviderConfig) -> WireRequest:
    endpoint = config.endpoint.strip()
    if not endpoint:
        raise GenerationError(
            "Custom endpoint URL is required - please set the API endpoint in settings",
            ErrorKind.UNKNOWN,
            retryable=False,
        )
    return WireRequest(
        endpoint=endpoint,
        headers=_bearer_headers(config),
        body=_chat_completion_body(prompt, system, stream, config),
    )


def _build_anthropic(
    prompt: str, system: str, stream: bool, config: ProviderConfig
) -> WireRequest:
    endpoint = config.endpoint.strip() or DEFAULT_ENDPOINTS[ProviderKind.ANTHROPIC]
    headers = _base_headers()
    if config.has_api_key:
        headers["x-api-key"] = config.api_key.strip()
    headers["anthropic-version"] = ANTHROPIC_VERSION
    return WireRequest(
        endpoint=endpoint,
        headers=headers,
        body={
            "model": config.model,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "stream": stream,
        },
    )


def _build_local(prompt: str, system: str, stream: bool, config: ProviderConfig) -> WireRequest:
    endpoint = config.endpoint.strip() or DEFAULT_ENDPOINTS[ProviderKind.LOCAL]
    return WireRequest(
        endpoint=endpoint,
        headers=_base_headers(),
        body={
            "model": config.model,
            "messages": _chat_messages(prompt, system),
            "stream": stream,
            "options": {
                "temperature": config.temperature,
                "num_predict": config.max_tokens,
            },
        },
    )


_BUILDERS = {
    ProviderKind.OPENAI: _build_openai,
    ProviderKind.ANTHROPIC: _build_anthropic,
    ProviderKind.LOCAL: _build_local,
    ProviderKind.CUSTOM: _build_custom,
}


def build_request(prompt: str, system: str, stream: bool, config: ProviderConfig) -> WireRequest:
    """Translate a prompt/system pair into the wire request for ``config.provider``.

    Raises GenerationError for an unknown provider or a custom provider
    without an endpoint; no network activity happens in either case.
    """
    kind = resolve_provider(config.provider)
    return _BUILDERS[kind](prompt, system, stream, config)
