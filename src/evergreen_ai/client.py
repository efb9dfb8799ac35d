"""Generation client: one request/response contract over every provider."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from uuid import uuid4

import httpx

from evergreen_ai.config import Settings
from evergreen_ai.errors import ErrorKind, GenerationError
from evergreen_ai.logging import request_context
from evergreen_ai.platform import PlatformCapabilities, detect_platform
from evergreen_ai.providers.base import (
    GenerationResponse,
    ProviderConfig,
    ProviderKind,
    resolve_provider,
)
from evergreen_ai.providers.builder import build_request
from evergreen_ai.providers.parsing import parse_response, parse_stream_line
from evergreen_ai.providers.retry import RetryPolicy, SleepFn, run_with_retry
from evergreen_ai.providers.transport import (
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_STREAM_TIMEOUT_SECONDS,
    Transport,
)

logger = logging.getLogger(__name__)

CONNECTION_TEST_PROMPT = 'Say "connected" and nothing else.'
CONNECTION_TEST_SYSTEM = "You are a helpful assistant."
CONNECTION_TEST_TOKEN = "connected"

LOCAL_UNSUPPORTED_MESSAGE = (
    "Ollama (local AI) is not supported on this platform. "
    "Please use OpenAI, Anthropic, or a cloud-based custom endpoint."
)


def _request_id() -> str:
    return f"req_{uuid4().hex[:12]}"


def _invoke_callback(callback: Callable[..., None], *args: str) -> None:
    # Caller failures are reported as-is, never as transport problems.
    try:
        callback(*args)
    except GenerationError:
        raise
    except Exception as exc:
        message = str(exc).strip() or "Unknown error occurred"
        raise GenerationError(message, ErrorKind.UNKNOWN, retryable=False) from exc


class GenerationClient:
    def __init__(
        self,
        config: ProviderConfig,
        *,
        retry_policy: RetryPolicy | None = None,
        platform: PlatformCapabilities | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFn = asyncio.sleep,
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        stream_timeout_seconds: float = DEFAULT_STREAM_TIMEOUT_SECONDS,
    ) -> None:
        self._config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self.platform = platform or detect_platform()
        self._sleep = sleep
        self._transport = Transport(
            transport=transport,
            request_timeout_seconds=request_timeout_seconds,
            stream_timeout_seconds=stream_timeout_seconds,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> GenerationClient:
        return cls(
            settings.provider_config(),
            retry_policy=settings.retry_policy(),
            platform=detect_platform(settings.ai_platform),
            transport=transport,
            request_timeout_seconds=settings.ai_request_timeout_seconds,
            stream_timeout_seconds=settings.ai_stream_timeout_seconds,
        )

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def update_config(self, config: ProviderConfig) -> None:
        self._config = config

    def _check_platform(self, kind: ProviderKind) -> None:
        if kind is ProviderKind.LOCAL and not self.platform.local_network:
            raise GenerationError(LOCAL_UNSUPPORTED_MESSAGE, ErrorKind.UNKNOWN, retryable=False)

    async def generate(self, prompt: str, system: str) -> GenerationResponse:
        """Run one non-streaming generation, retrying retryable failures."""
        config = self._config
        kind = resolve_provider(config.provider)
        self._check_platform(kind)

        with request_context(request_id=_request_id(), provider=kind.value):
            return await run_with_retry(
                lambda: self._generate_once(prompt, system, config, kind),
                self.retry_policy,
                sleep=self._sleep,
            )

    async def _generate_once(
        self,
        prompt: str,
        system: str,
        config: ProviderConfig,
        kind: ProviderKind,
    ) -> GenerationResponse:
        request = build_request(prompt, system, False, config)
        logger.info(
            "generation request start",
            extra={"endpoint": request.endpoint, "model": config.model, "stream": False},
        )
        started = time.perf_counter()
        try:
            payload = await self._transport.post_json(request)
        except GenerationError as exc:
            logger.warning(
                "generation request failed",
                extra={
                    "error_kind": exc.kind.value,
                    "retryable": exc.retryable,
                    "retry_after": exc.retry_after,
                    "message_preview": exc.message[:240],
                },
            )
            raise
        response = parse_response(payload, kind, fallback_model=config.model)
        logger.info(
            "generation request end",
            extra={
                "duration_ms": int((time.perf_counter() - started) * 1000),
                "text_chars": len(response.content),
            },
        )
        return response

    async def generate_stream(
        self,
        prompt: str,
        system: str,
        on_chunk: Callable[[str], None],
        on_complete: Callable[[], None],
    ) -> None:
        """Stream one generation through ``on_chunk`` and finish with ``on_complete``.

        Streams are not retried. ``on_complete`` fires exactly once on success
        and never before the last fragment; on failure a GenerationError is
        raised instead.
        """
        config = self._config
        kind = resolve_provider(config.provider)
        self._check_platform(kind)

        if not self.platform.native_streaming:
            response = await self.generate(prompt, system)
            _invoke_callback(on_chunk, response.content)
            _invoke_callback(on_complete)
            return

        request = build_request(prompt, system, True, config)
        fragments = 0

        def handle_line(line: str) -> bool:
            nonlocal fragments
            fragment = parse_stream_line(line, kind)
            if fragment is None:
                return False
            if fragment.text:
                fragments += 1
                _invoke_callback(on_chunk, fragment.text)
            return fragment.done

        with request_context(request_id=_request_id(), provider=kind.value):
            logger.info(
                "generation stream start",
                extra={"endpoint": request.endpoint, "model": config.model, "stream": True},
            )
            try:
                saw_marker = await self._transport.stream(request, handle_line)
            except GenerationError as exc:
                logger.warning(
                    "generation stream failed",
                    extra={
                        "error_kind": exc.kind.value,
                        "retryable": exc.retryable,
                        "fragments": fragments,
                        "message_preview": exc.message[:240],
                    },
                )
                raise
            logger.info(
                "generation stream end",
                extra={"fragments": fragments, "end_marker": saw_marker},
            )
        _invoke_callback(on_complete)

    async def test_connection(self) -> bool:
        """Send a fixed prompt and report whether the reply confirms connectivity."""
        response = await self.generate(CONNECTION_TEST_PROMPT, CONNECTION_TEST_SYSTEM)
        return CONNECTION_TEST_TOKEN in response.content.lower()


def user_friendly_error(error: BaseException) -> str:
    """Message suitable for showing to a user for any failure."""
    if isinstance(error, GenerationError):
        return error.message
    message = str(error)
    lowered = message.lower()
    if "fetch failed" in lowered or "failed to fetch" in lowered:
        return "Network error - please check your internet connection"
    if "timeout" in lowered or "timed out" in lowered:
        return "Request timed out - try again or check your connection"
    return message or "An unexpected error occurred"
