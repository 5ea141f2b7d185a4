"""Server-sent event decoding for streamed chat completions.

:class:`StreamFrameDecoder` turns arbitrarily-sized byte chunks into
complete ``data:`` frames. Chunk boundaries need not align with lines or
even with characters: bytes go through an incremental UTF-8 decoder and
the trailing partial line is held back until a later chunk completes it.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

from chatbridge.llm.errors import MalformedFrameError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
TERMINATOR = "[DONE]"

MalformedFrameHandler = Callable[[MalformedFrameError], None]


@dataclass
class EventFrame:
    """One complete ``data:`` line with its decoded JSON payload."""

    data: str
    payload: Any


class StreamFrameDecoder:
    """Incremental decoder from raw bytes to :class:`EventFrame` values.

    One decoder serves exactly one stream. Feed chunks with :meth:`feed`
    (synchronous) or wrap a chunk source with :meth:`frames` (async).
    Lines without the ``data:`` prefix are ignored. A ``[DONE]`` payload
    sets :attr:`finished`; everything after it is discarded.

    Lines whose payload is not valid JSON are skipped. Each occurrence is
    counted in :attr:`malformed_frames`, logged, and handed to the
    ``on_malformed`` callback when one is given.
    """

    def __init__(
        self,
        on_malformed: MalformedFrameHandler | None = None,
        *,
        encoding: str = "utf-8",
    ) -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self._on_malformed = on_malformed
        self.finished = False
        self.malformed_frames = 0

    def feed(self, chunk: bytes) -> list[EventFrame]:
        """Consume one chunk and return the frames it completes."""
        if self.finished:
            return []
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")

        frames: list[EventFrame] = []
        for line in lines:
            if not line.startswith(DATA_PREFIX):
                continue
            data = line[len(DATA_PREFIX) :].strip()
            if data == TERMINATOR:
                self._finish()
                break
            try:
                payload = json.loads(data)
            except json.JSONDecodeError as exc:
                self.report_malformed(data, exc)
                continue
            frames.append(EventFrame(data=data, payload=payload))
        return frames

    def report_malformed(self, line: str, error: Exception) -> None:
        """Record a frame that could not be used; never raises it."""
        self.malformed_frames += 1
        logger.warning("Skipping malformed stream frame: %s (%r)", error, line)
        if self._on_malformed is not None:
            err = MalformedFrameError(str(error), line=line)
            err.__cause__ = error
            self._on_malformed(err)

    async def frames(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[EventFrame]:
        """Yield frames from *chunks* until the terminator or end of input.

        End of input without a terminator is a normal close; an incomplete
        trailing line is dropped, not interpreted.
        """
        async for chunk in chunks:
            for frame in self.feed(chunk):
                yield frame
            if self.finished:
                return
        if self._buffer:
            logger.debug("Stream closed with %d unterminated character(s)", len(self._buffer))
        self._finish()

    def _finish(self) -> None:
        self.finished = True
        self._buffer = ""
