"""HTTP exchange for buffered and streamed generation calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx

from evergreen_ai.errors import ErrorKind, GenerationError
from evergreen_ai.providers.base import WireRequest
from evergreen_ai.providers.classify import classify_exception, classify_status
from evergreen_ai.providers.parsing import StreamLineBuffer

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0
DEFAULT_STREAM_TIMEOUT_SECONDS = 120.0

LineHandler = Callable[[str], bool]


class Transport:
    def __init__(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        stream_timeout_seconds: float = DEFAULT_STREAM_TIMEOUT_SECONDS,
    ) -> None:
        self._transport = transport
        self.request_timeout_seconds = request_timeout_seconds
        self.stream_timeout_seconds = stream_timeout_seconds

    async def post_json(self, request: WireRequest) -> dict[str, Any]:
        """POST ``request`` and return the decoded JSON body.

        Every failure leaves this method as a GenerationError.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.request_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    request.endpoint,
                    headers=request.headers,
                    json=request.body,
                )
        except GenerationError:
            raise
        except Exception as exc:
            raise classify_exception(exc) from exc

        logger.debug(
            "provider response received",
            extra={"endpoint": request.endpoint, "status_code": response.status_code},
        )
        if response.status_code >= 400:
            raise classify_status(response.status_code, response.text, response.headers)
        try:
            payload = response.json()
        except ValueError as exc:
            raise GenerationError(
                "The AI service returned an invalid response",
                ErrorKind.UNKNOWN,
            ) from exc
        return payload if isinstance(payload, dict) else {}

    async def stream(self, request: WireRequest, handle_line: LineHandler) -> bool:
        """Stream ``request`` and hand every complete line to ``handle_line``.

        ``handle_line`` returns True once it has seen the end-of-stream marker,
        which stops reading. The whole exchange is bounded by
        ``stream_timeout_seconds``; expiry cancels the request and raises a
        retryable timeout error. Returns whether the marker was seen.
        """
        try:
            return await asyncio.wait_for(
                self._stream(request, handle_line),
                timeout=self.stream_timeout_seconds,
            )
        except GenerationError:
            raise
        except Exception as exc:
            raise classify_exception(exc) from exc

    async def _stream(self, request: WireRequest, handle_line: LineHandler) -> bool:
        buffer = StreamLineBuffer()
        async with httpx.AsyncClient(
            timeout=self.stream_timeout_seconds,
            transport=self._transport,
        ) as client:
            async with client.stream(
                "POST",
                request.endpoint,
                headers=request.headers,
                json=request.body,
            ) as response:
                if response.status_code >= 400:
                    detail = (await response.aread()).decode("utf-8", errors="replace")
                    raise classify_status(response.status_code, detail, response.headers)
                async for chunk in response.aiter_bytes():
                    for line in buffer.feed(chunk):
                        if handle_line(line):
                            return True
        for line in buffer.flush():
            if handle_line(line):
                return True
        return False
