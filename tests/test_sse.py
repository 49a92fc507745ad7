"""Tests for the SSE decoder and frame helpers."""

import json

import httpx
import pytest

from openanakin.core.sse import (
    DONE_FRAME,
    RawEvent,
    data_frame,
    iter_raw_events,
    legacy_error_frame,
    openai_error_frame,
    parse_data_line,
)


async def _aiter(lines: list[str]):
    for line in lines:
        yield line


async def _failing_lines(lines: list[str], error: Exception):
    for line in lines:
        yield line
    raise error


async def _collect(lines) -> list[RawEvent]:
    return [event async for event in iter_raw_events(lines)]


class TestParseDataLine:
    def test_strips_prefix(self):
        assert parse_data_line('data: {"content":"a"}') == '{"content":"a"}'

    def test_strips_surrounding_whitespace(self):
        assert parse_data_line('  data: {"content":"a"}\r\n') == '{"content":"a"}'

    def test_ignores_other_lines(self):
        assert parse_data_line("event: message") is None
        assert parse_data_line(": keep-alive") is None
        assert parse_data_line("") is None

    def test_bare_data_line_is_skipped(self):
        assert parse_data_line("data: ") is None
        assert parse_data_line("data:") is None


class TestIterRawEvents:
    @pytest.mark.asyncio
    async def test_yields_payloads_then_end_on_done(self):
        events = await _collect(
            _aiter(['data: {"content":"a"}', "", 'data: {"content":"b"}', "", "data: [DONE]", ""])
        )
        assert [e.data for e in events[:-1]] == ['{"content":"a"}', '{"content":"b"}']
        assert events[-1] == RawEvent.end()

    @pytest.mark.asyncio
    async def test_nothing_after_done(self):
        events = await _collect(_aiter(["data: [DONE]", 'data: {"content":"late"}']))
        assert events == [RawEvent.end()]

    @pytest.mark.asyncio
    async def test_skips_lines_without_prefix(self):
        events = await _collect(_aiter(["event: message", "id: 1", 'data: {"content":"x"}']))
        assert [e.data for e in events if e.data is not None] == ['{"content":"x"}']

    @pytest.mark.asyncio
    async def test_clean_eof_ends_normally(self):
        events = await _collect(_aiter(['data: {"content":"a"}']))
        assert events[-1].done is True
        assert events[-1].error is None

    @pytest.mark.asyncio
    async def test_read_failure_ends_with_error(self):
        error = httpx.ReadError("connection reset")
        events = await _collect(_failing_lines(['data: {"content":"a"}'], error))
        assert events[0].data == '{"content":"a"}'
        assert events[-1].error is error
        assert events[-1].done is False
        assert events[-1].is_terminal

    @pytest.mark.asyncio
    async def test_empty_stream_ends_normally(self):
        assert await _collect(_aiter([])) == [RawEvent.end()]


class TestFrames:
    def test_data_frame(self):
        assert data_frame('{"a":1}') == b'data: {"a":1}\n\n'

    def test_done_frame(self):
        assert DONE_FRAME == b"data: [DONE]\n\n"

    def test_legacy_error_frame(self):
        assert legacy_error_frame("boom") == b"error: boom\n\n"

    def test_openai_error_frame_is_data_framed(self):
        frame = openai_error_frame("boom")
        assert frame.startswith(b"data: ")
        assert frame.endswith(b"\n\n")
        body = json.loads(frame[len(b"data: "):].decode("utf-8"))
        assert body == {"error": {"message": "boom", "type": "upstream_error", "code": None}}
