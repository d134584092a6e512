"""Server-Sent Events framing for recipe streams.

Server side: ``encode_event`` turns a ``StreamEvent`` into exactly one
``data: <json>\\n\\n`` frame. Client side: ``SSEDecoder`` reassembles frames
from arbitrary byte/str chunks (several events per read, or one event split
across reads) and yields the ``data`` payload of each complete event.
"""
import json
from collections.abc import AsyncIterable, AsyncIterator
from datetime import datetime, timezone
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field, ValidationError

logger = structlog.get_logger(__name__)

EventType = Literal["chunk", "complete", "error"]
TERMINAL_TYPES = frozenset({"complete", "error"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class StreamEvent(BaseModel):
    """One typed event of a recipe stream."""

    type: EventType
    content: str | None = None
    message: str | None = None
    ingredients: list[str] | None = None
    timestamp: str = Field(default_factory=_now_iso)

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_TYPES

    @classmethod
    def chunk(cls, text: str) -> "StreamEvent":
        return cls(type="chunk", content=text)

    @classmethod
    def complete(cls, full_text: str, ingredients: list[str] | None = None) -> "StreamEvent":
        return cls(type="complete", content=full_text, ingredients=ingredients)

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(type="error", message=message)


def encode_event(event: StreamEvent) -> str:
    payload = event.model_dump_json(exclude_none=True)
    return f"data: {payload}\n\n"


class SSEDecoder:
    """Line-buffered SSE reassembly.

    Only ``data:`` fields are collected; comment lines (``:``) and other
    fields (``event:``, ``id:``, ``retry:``) are ignored. Multiple ``data``
    lines of one event are joined with ``\\n`` per the SSE format.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._data_lines: list[str] = []

    def feed(self, chunk: bytes | str) -> list[str]:
        """Buffer ``chunk`` and return the payloads of every event it completes."""
        if isinstance(chunk, bytes):
            chunk = chunk.decode("utf-8", errors="replace")
        self._buffer += chunk
        payloads: list[str] = []
        while True:
            idx = self._buffer.find("\n")
            if idx == -1:
                break
            line = self._buffer[:idx].rstrip("\r")
            self._buffer = self._buffer[idx + 1 :]
            payload = self._handle_line(line)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def flush(self) -> list[str]:
        """Return a trailing event the server closed without a blank line."""
        payloads: list[str] = []
        if self._buffer:
            payload = self._handle_line(self._buffer.rstrip("\r"))
            self._buffer = ""
            if payload is not None:
                payloads.append(payload)
        if self._data_lines:
            payloads.append("\n".join(self._data_lines))
            self._data_lines = []
        return payloads

    def _handle_line(self, line: str) -> str | None:
        if line == "":
            if not self._data_lines:
                return None
            data = "\n".join(self._data_lines)
            self._data_lines = []
            return data
        if line.startswith(":"):
            return None
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            self._data_lines.append(value)
        return None


def parse_event(data: str) -> StreamEvent | None:
    """Parse one ``data`` payload; malformed payloads are logged and skipped."""
    try:
        raw: Any = json.loads(data)
        return StreamEvent.model_validate(raw)
    except (ValueError, ValidationError) as e:
        logger.warning("sse_frame_malformed", error=type(e).__name__, size=len(data))
        return None


async def iter_events(chunks: AsyncIterable[bytes | str]) -> AsyncIterator[StreamEvent]:
    """Decode a byte stream into StreamEvents, stopping after the first terminal event."""
    decoder = SSEDecoder()
    async for chunk in chunks:
        for data in decoder.feed(chunk):
            event = parse_event(data)
            if event is None:
                continue
            yield event
            if event.is_terminal:
                return
    for data in decoder.flush():
        event = parse_event(data)
        if event is None:
            continue
        yield event
        if event.is_terminal:
            return
