# src/thoughtrag/streaming.py
"""Server-sent-event relay for streamed chat completions.

Wire format, one frame per event:

    data: {"choices": [{"delta": {"content": "Hel"}}]}\\n\\n
    data: {"choices": [{"delta": {"content": "lo"}}]}\\n\\n
    data: [DONE]\\n\\n

StreamRelay turns an arbitrarily chunked byte stream in that format into the
ordered sequence of text deltas. Frames may span several network reads and a
single read may hold several frames; only complete frames are processed.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from thoughtrag.errors import StreamParseError, UpstreamError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"
FRAME_DELIMITER = "\n\n"


def encode_event(payload: dict[str, Any]) -> bytes:
    """Encode one JSON payload as a wire frame."""
    return f"data: {json.dumps(payload, separators=(',', ':'))}{FRAME_DELIMITER}".encode()


def encode_done() -> bytes:
    """Encode the terminal frame."""
    return f"data: {DONE_SENTINEL}{FRAME_DELIMITER}".encode()


def extract_delta(payload: Any) -> str | None:
    """Return ``choices[0].delta.content`` from a chunk payload, if present."""
    try:
        content = payload["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    if isinstance(content, str) and content:
        return content
    return None


def parse_frame(frame: str) -> str | None:
    """Parse one frame into its data payload.

    Multiple ``data:`` lines are joined with newlines, other SSE fields
    (``event:``, ``id:``, ``:`` comments) are ignored.

    Returns:
        The data payload, or None if the frame carries no data lines.
    """
    data_lines = []
    for line in frame.split("\n"):
        if not line.startswith(DATA_PREFIX):
            continue
        value = line[len(DATA_PREFIX) :]
        if value.startswith(" "):
            value = value[1:]
        data_lines.append(value)
    if not data_lines:
        return None
    return "\n".join(data_lines)


class StreamRelay:
    """Incremental decoder from SSE bytes to text deltas.

    Feed it chunks with feed() and collect the deltas it returns, or let
    relay() drive an async byte source. Once the ``[DONE]`` frame is seen,
    ``done`` is True and further input is ignored.

    Example:
        relay = StreamRelay()
        async for delta in relay.relay(completion_service.stream(prompt)):
            print(delta, end="")
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.done = False
        self.skipped_frames = 0

    def feed(self, chunk: bytes) -> list[str]:
        """Consume one chunk of bytes and return the deltas it completed."""
        if self.done:
            return []
        text = self._decoder.decode(chunk)
        self._buffer = (self._buffer + text).replace("\r\n", "\n")

        deltas: list[str] = []
        while not self.done:
            frame, sep, rest = self._buffer.partition(FRAME_DELIMITER)
            if not sep:
                break
            self._buffer = rest
            delta = self._process_frame(frame)
            if delta is not None:
                deltas.append(delta)
        return deltas

    def flush(self) -> list[str]:
        """Process whatever remains buffered once the input has ended."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer.strip("\n"), ""
        if not remainder:
            return []
        delta = self._process_frame(remainder)
        return [delta] if delta is not None else []

    async def relay(self, source: AsyncIterable[bytes]) -> AsyncIterator[str]:
        """Yield deltas from an async byte source in arrival order.

        Raises:
            UpstreamError: If the source ends without the ``[DONE]`` frame.
        """
        async for chunk in source:
            for delta in self.feed(chunk):
                yield delta
            if self.done:
                return
        for delta in self.flush():
            yield delta
        if not self.done:
            raise UpstreamError("Completion stream ended before [DONE]", service="completion")

    def _process_frame(self, frame: str) -> str | None:
        try:
            return self._decode_frame(frame)
        except StreamParseError as e:
            self.skipped_frames += 1
            logger.warning("Skipping malformed stream frame: %s (%r)", e, e.frame[:200])
            return None

    def _decode_frame(self, frame: str) -> str | None:
        data = parse_frame(frame)
        if data is None:
            return None
        if data.strip() == DONE_SENTINEL:
            self.done = True
            return None
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            raise StreamParseError(f"Invalid JSON in stream frame: {e}", frame) from e
        return extract_delta(payload)
