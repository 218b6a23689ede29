from __future__ import annotations

import logging

import pytest

from core.utils.sse import SseFrameBuffer, format_sse, iter_sse_events


def test_format_sse_frame() -> None:
    assert format_sse({"type": "status", "message": "ok"}) == (
        'data: {"type": "status", "message": "ok"}\n\n'
    )


def test_partial_frames_stay_buffered() -> None:
    buffer = SseFrameBuffer()
    frame = format_sse({"type": "progress", "current": 1})

    assert buffer.feed(frame[:10]) == []
    assert buffer.pending == frame[:10]
    assert buffer.feed(frame[10:-1]) == []
    assert buffer.feed(frame[-1:]) == [{"type": "progress", "current": 1}]
    assert buffer.pending == ""


def test_one_chunk_may_complete_several_frames() -> None:
    buffer = SseFrameBuffer()
    chunk = format_sse({"n": 1}) + format_sse({"n": 2}) + "data: {\"n\""

    assert buffer.feed(chunk) == [{"n": 1}, {"n": 2}]
    assert buffer.feed(": 3}\r\n\r\n") == [{"n": 3}]


def test_non_data_frames_are_ignored() -> None:
    buffer = SseFrameBuffer()

    assert buffer.feed(": keep-alive\n\n") == []


def test_malformed_frames_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="formfill.sse")
    buffer = SseFrameBuffer()

    events = buffer.feed(
        'data: {broken\n\ndata: [1, 2]\n\ndata: {"type": "complete", "data": {}}\n\n'
    )

    assert events == [{"type": "complete", "data": {}}]
    messages = [record.message for record in caplog.records if record.name == "formfill.sse"]
    assert len(messages) == 2
    assert any("JSON object" in message for message in messages)


def test_flush_decodes_unterminated_final_frame() -> None:
    buffer = SseFrameBuffer()

    assert buffer.feed('data: {"type": "complete", "data": {}}') == []
    assert buffer.flush() == [{"type": "complete", "data": {}}]
    assert buffer.pending == ""
    assert buffer.flush() == []


@pytest.mark.anyio
async def test_iter_sse_events_across_chunks() -> None:
    async def chunks():
        yield 'data: {"type": "sta'
        yield 'tus"}\n'
        yield '\ndata: {"type": "complete"}\n\n'

    events = [event async for event in iter_sse_events(chunks())]

    assert events == [{"type": "status"}, {"type": "complete"}]


@pytest.mark.anyio
async def test_iter_sse_events_yields_trailing_frame_without_delimiter() -> None:
    async def chunks():
        yield 'data: {"type": "status"}\n\n'
        yield 'data: {"type": "complete", "data": {}}'

    events = [event async for event in iter_sse_events(chunks())]

    assert events == [{"type": "status"}, {"type": "complete", "data": {}}]


@pytest.mark.anyio
async def test_iter_sse_events_continues_after_malformed_frame() -> None:
    async def chunks():
        yield 'data: {broken\n\ndata: {"type": "complete", "data": {}}\n\n'

    events = [event async for event in iter_sse_events(chunks())]

    assert events == [{"type": "complete", "data": {}}]
