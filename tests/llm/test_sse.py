"""Tests for chatbridge.llm.sse — incremental event-stream decoding."""

from __future__ import annotations

import random

import pytest

from chatbridge.llm.errors import MalformedFrameError
from chatbridge.llm.sse import EventFrame, StreamFrameDecoder
from fakes import chunked, delta_line, sse_body

# Multi-byte characters (2, 3 and 4 bytes in UTF-8) so that splits land
# inside characters as well as inside lines.
BODY = (
    b": keep-alive\n\n"
    + sse_body(
        delta_line("héllo"),
        "event: ping",
        delta_line(" 世界"),
        delta_line(" \U0001f389", finish_reason="stop"),
        "data: [DONE]",
    )
)


def _decode_all(parts: list[bytes]) -> list[EventFrame]:
    decoder = StreamFrameDecoder()
    frames: list[EventFrame] = []
    for part in parts:
        frames.extend(decoder.feed(part))
    return frames


def _split(data: bytes, cuts: list[int]) -> list[bytes]:
    bounds = [0, *sorted(cuts), len(data)]
    return [data[a:b] for a, b in zip(bounds, bounds[1:])]


def _texts(frames: list[EventFrame]) -> list[str]:
    return [f.payload["choices"][0]["delta"].get("content", "") for f in frames]


class TestFrameExtraction:
    def test_whole_body_yields_data_frames_in_order(self) -> None:
        frames = _decode_all([BODY])
        assert _texts(frames) == ["héllo", " 世界", " \U0001f389"]

    def test_non_data_lines_are_ignored(self) -> None:
        decoder = StreamFrameDecoder()
        frames = decoder.feed(b": comment\nevent: message\nid: 7\nretry: 10\n\n")
        assert frames == []
        assert decoder.malformed_frames == 0

    def test_prefix_without_space_and_crlf(self) -> None:
        decoder = StreamFrameDecoder()
        frames = decoder.feed(b'data:{"a": 1}\r\n\r\n')
        assert [f.payload for f in frames] == [{"a": 1}]
        assert frames[0].data == '{"a": 1}'

    def test_terminator_ends_sequence_and_discards_rest(self) -> None:
        decoder = StreamFrameDecoder()
        frames = decoder.feed(
            sse_body(delta_line("a"), "data: [DONE]", delta_line("never"))
        )
        assert _texts(frames) == ["a"]
        assert decoder.finished
        assert decoder.feed(sse_body(delta_line("late"))) == []

    def test_terminator_with_surrounding_whitespace(self) -> None:
        decoder = StreamFrameDecoder()
        assert decoder.feed(b"data:   [DONE]  \n") == []
        assert decoder.finished

    def test_incomplete_line_is_held_back(self) -> None:
        decoder = StreamFrameDecoder()
        line = delta_line("partial").encode()
        assert decoder.feed(line) == []
        frames = decoder.feed(b"\n")
        assert _texts(frames) == ["partial"]


class TestSegmentation:
    def test_every_single_split_point(self) -> None:
        expected = _decode_all([BODY])
        for cut in range(1, len(BODY)):
            assert _decode_all(_split(BODY, [cut])) == expected, cut

    def test_byte_by_byte(self) -> None:
        parts = [BODY[i : i + 1] for i in range(len(BODY))]
        assert _decode_all(parts) == _decode_all([BODY])

    def test_random_segmentations(self) -> None:
        rng = random.Random(1234)
        expected = _decode_all([BODY])
        for _ in range(300):
            cuts = rng.sample(range(1, len(BODY)), rng.randint(2, 12))
            assert _decode_all(_split(BODY, cuts)) == expected, cuts

    def test_split_inside_multibyte_character(self) -> None:
        encoded = sse_body(delta_line("世"))
        cut = encoded.index("世".encode()) + 1
        frames = _decode_all(_split(encoded, [cut]))
        assert _texts(frames) == ["世"]


class TestMalformedFrames:
    def test_malformed_line_is_skipped_and_reported(self) -> None:
        seen: list[MalformedFrameError] = []
        decoder = StreamFrameDecoder(on_malformed=seen.append)
        frames = decoder.feed(
            sse_body(delta_line("one"), "data: {not json", delta_line("two"))
        )
        assert _texts(frames) == ["one", "two"]
        assert decoder.malformed_frames == 1
        assert len(seen) == 1
        assert seen[0].line == "{not json"
        assert not decoder.finished

    def test_malformed_frames_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        decoder = StreamFrameDecoder()
        with caplog.at_level("WARNING", logger="chatbridge.llm.sse"):
            decoder.feed(b"data: nope\n")
        assert "malformed stream frame" in caplog.text

    def test_report_malformed_from_caller(self) -> None:
        seen: list[MalformedFrameError] = []
        decoder = StreamFrameDecoder(on_malformed=seen.append)
        cause = ValueError("bad shape")
        decoder.report_malformed("{}", cause)
        assert decoder.malformed_frames == 1
        assert seen[0].__cause__ is cause


class TestAsyncFrames:
    @pytest.mark.asyncio
    async def test_frames_stop_at_terminator(self) -> None:
        decoder = StreamFrameDecoder()
        body = sse_body(delta_line("Hel"), delta_line("lo"), "data: [DONE]")
        frames = [f async for f in decoder.frames(chunked(body[:7], body[7:40], body[40:]))]
        assert _texts(frames) == ["Hel", "lo"]

    @pytest.mark.asyncio
    async def test_close_without_terminator_is_normal_end(self) -> None:
        decoder = StreamFrameDecoder()
        body = sse_body(delta_line("a")) + delta_line("dangling").encode()
        frames = [f async for f in decoder.frames(chunked(body))]
        assert _texts(frames) == ["a"]
        assert decoder.finished

    @pytest.mark.asyncio
    async def test_does_not_pull_past_terminator(self) -> None:
        pulled: list[int] = []

        async def source():
            for i, part in enumerate(
                [sse_body(delta_line("x"), "data: [DONE]"), b"unreachable"]
            ):
                pulled.append(i)
                yield part

        decoder = StreamFrameDecoder()
        frames = [f async for f in decoder.frames(source())]
        assert len(frames) == 1
        assert pulled == [0]
