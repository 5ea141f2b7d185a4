"""Streaming utilities for callers of ``generate_content_stream``.

The generator yields one partial response per delta and never joins them.
:class:`ResponseAccumulator` does that joining on the caller's side.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from chatbridge.llm.models import (
    Candidate,
    Content,
    GenerateContentResponse,
    Role,
    TextPart,
)


@dataclass
class ResponseAccumulator:
    """Accumulates partial responses into one complete response.

    Feed responses via `process()` or collect an entire async stream
    with `collect()`. Text is concatenated per candidate index; the last
    non-null finish reason of each candidate wins.
    """

    text_parts: dict[int, list[str]] = field(default_factory=dict)
    finish_reasons: dict[int, str | None] = field(default_factory=dict)
    chunks: int = 0

    def process(self, response: GenerateContentResponse) -> None:
        """Process a single partial response."""
        self.chunks += 1
        for candidate in response.candidates:
            self.text_parts.setdefault(candidate.index, []).append(
                candidate.content.text()
            )
            if candidate.finish_reason is not None:
                self.finish_reasons[candidate.index] = candidate.finish_reason
            else:
                self.finish_reasons.setdefault(candidate.index, None)

    def text(self, index: int = 0) -> str:
        """Text accumulated so far for one candidate."""
        return "".join(self.text_parts.get(index, []))

    def to_response(self) -> GenerateContentResponse:
        """Assemble accumulated text into a complete response."""
        candidates = [
            Candidate(
                index=index,
                content=Content(role=Role.MODEL, parts=[TextPart(text=self.text(index))]),
                finish_reason=self.finish_reasons.get(index),
            )
            for index in sorted(self.text_parts)
        ]
        return GenerateContentResponse(candidates=candidates)

    async def collect(
        self, stream: AsyncIterator[GenerateContentResponse]
    ) -> GenerateContentResponse:
        """Consume an entire async stream and return the assembled response."""
        async for response in stream:
            self.process(response)
        return self.to_response()
