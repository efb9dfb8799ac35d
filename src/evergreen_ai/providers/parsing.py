"""Response and stream-chunk parsing for every provider shape."""

from __future__ import annotations

import codecs
import json
from typing import Any

from evergreen_ai.providers.base import (
    GenerationResponse,
    ProviderKind,
    StreamFragment,
    TokenUsage,
)
from evergreen_ai.providers.classify import classify_stream_error

DONE_SENTINEL = "[DONE]"
_TERMINAL = StreamFragment(text="", done=True)


def _coerce_text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _first(items: object) -> dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def _as_dict(value: object) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    return value if isinstance(value, int) else None


def _usage(prompt_tokens: object, completion_tokens: object) -> TokenUsage | None:
    prompt = _as_int(prompt_tokens)
    completion = _as_int(completion_tokens)
    if prompt is None and completion is None:
        return None
    return TokenUsage(prompt_tokens=prompt, completion_tokens=completion)


def parse_response(
    payload: object,
    kind: ProviderKind,
    *,
    fallback_model: str = "",
) -> GenerationResponse:
    """Extract text, model and usage from a complete (non-streamed) body.

    Missing or malformed fields degrade to empty values instead of raising.
    """
    data = _as_dict(payload)
    model = _coerce_text(data.get("model")) or fallback_model

    if kind is ProviderKind.ANTHROPIC:
        content = _coerce_text(_first(data.get("content")).get("text"))
        usage_obj = data.get("usage")
        usage = None
        if isinstance(usage_obj, dict):
            usage = _usage(usage_obj.get("input_tokens"), usage_obj.get("output_tokens"))
        return GenerationResponse(content=content, model=model, usage=usage)

    if kind is ProviderKind.LOCAL:
        content = _coerce_text(_as_dict(data.get("message")).get("content"))
        usage = _usage(data.get("prompt_eval_count"), data.get("eval_count"))
        return GenerationResponse(content=content, model=model, usage=usage)

    message = _as_dict(_first(data.get("choices")).get("message"))
    content = _coerce_text(message.get("content"))
    usage_obj = data.get("usage")
    usage = None
    if isinstance(usage_obj, dict):
        usage = _usage(usage_obj.get("prompt_tokens"), usage_obj.get("completion_tokens"))
    return GenerationResponse(content=content, model=model, usage=usage)


def _decode_line(line: str) -> dict[str, Any] | None | StreamFragment:
    trimmed = line.strip()
    if not trimmed:
        return None
    if trimmed.startswith("data:"):
        data = trimmed[len("data:") :].strip()
        if data == DONE_SENTINEL:
            return _TERMINAL
    elif trimmed.startswith("{"):
        data = trimmed
    else:
        return None
    try:
        event = json.loads(data)
    except json.JSONDecodeError:
        return None
    if not isinstance(event, dict):
        return None
    return event


def parse_stream_line(line: str, kind: ProviderKind) -> StreamFragment | None:
    """Decode one line of a streamed body.

    Returns None for lines to skip, a fragment with ``done=True`` for the
    end-of-stream marker, or a text fragment. Malformed lines are skipped.
    Raises GenerationError when the provider reports an in-band error.
    """
    decoded = _decode_line(line)
    if decoded is None or isinstance(decoded, StreamFragment):
        return decoded
    event = decoded

    if kind is ProviderKind.ANTHROPIC:
        event_type = event.get("type")
        if event_type == "content_block_delta":
            return StreamFragment(text=_coerce_text(_as_dict(event.get("delta")).get("text")))
        if event_type == "message_stop":
            return _TERMINAL
        if event_type == "error":
            raise classify_stream_error(event)
        return None

    if kind is ProviderKind.LOCAL:
        if event.get("error"):
            raise classify_stream_error(event)
        if "message" not in event and "done" not in event:
            return None
        text = _coerce_text(_as_dict(event.get("message")).get("content"))
        return StreamFragment(text=text, done=event.get("done") is True)

    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        if isinstance(event.get("error"), dict):
            raise classify_stream_error(event)
        return None
    choice = _first(choices)
    if choice.get("finish_reason") == "stop":
        return _TERMINAL
    return StreamFragment(text=_coerce_text(_as_dict(choice.get("delta")).get("content")))


class StreamLineBuffer:
    """Carries partial lines across network reads.

    Bytes are decoded incrementally, so a multi-byte character split between
    two reads is reassembled before the line is emitted.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, chunk: bytes) -> list[str]:
        self._pending += self._decoder.decode(chunk)
        if "\n" not in self._pending:
            return []
        *lines, self._pending = self._pending.split("\n")
        return lines

    def flush(self) -> list[str]:
        self._pending += self._decoder.decode(b"", final=True)
        remainder, self._pending = self._pending, ""
        if not remainder:
            return []
        return remainder.split("\n")
