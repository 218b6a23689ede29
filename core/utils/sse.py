"""Server-sent-event framing.

Each event is one ``data: <JSON>`` line followed by a blank line. Readers
buffer input until the blank-line delimiter; a trailing partial frame stays
buffered until more input arrives or the stream ends.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

logger = logging.getLogger("formfill.sse")

FRAME_DELIMITER = "\n\n"
_DATA_PREFIX = "data:"


def format_sse(payload: dict[str, Any]) -> str:
    return f"{_DATA_PREFIX} {json.dumps(payload, ensure_ascii=False)}{FRAME_DELIMITER}"


class SseFrameBuffer:
    """Incremental decoder for ``data:`` frames.

    Frames that do not decode to a JSON object are logged and skipped.
    """

    def __init__(self) -> None:
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, chunk: str) -> list[dict[str, Any]]:
        """Add ``chunk`` and return every event completed by it."""

        self._pending += chunk.replace("\r\n", "\n")
        events: list[dict[str, Any]] = []
        while FRAME_DELIMITER in self._pending:
            frame, self._pending = self._pending.split(FRAME_DELIMITER, 1)
            event = _safe_decode(frame)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> list[dict[str, Any]]:
        """Decode an unterminated final frame left over at end of stream."""

        frame, self._pending = self._pending, ""
        if not frame.strip():
            return []
        event = _safe_decode(frame.rstrip("\n"))
        return [event] if event is not None else []


async def iter_sse_events(chunks: AsyncIterable[str]) -> AsyncIterator[dict[str, Any]]:
    buffer = SseFrameBuffer()
    async for chunk in chunks:
        for event in buffer.feed(chunk):
            yield event
    for event in buffer.flush():
        yield event


def _safe_decode(frame: str) -> dict[str, Any] | None:
    try:
        return _decode_frame(frame)
    except ValueError as exc:
        logger.warning("skipping malformed event frame: %s", exc)
        return None


def _decode_frame(frame: str) -> dict[str, Any] | None:
    data_lines = [
        line[len(_DATA_PREFIX) :].lstrip(" ")
        for line in frame.split("\n")
        if line.startswith(_DATA_PREFIX)
    ]
    if not data_lines:
        return None
    decoded = json.loads("\n".join(data_lines))
    if not isinstance(decoded, dict):
        raise ValueError("event payload must be a JSON object")
    return decoded
