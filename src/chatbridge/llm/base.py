"""Base protocol for content generation backends."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from chatbridge.llm.models import (
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    GenerateContentParameters,
    GenerateContentResponse,
)


@runtime_checkable
class GenerationProvider(Protocol):
    """Protocol that every generation backend must satisfy.

    Callers depend only on this interface; each implementation translates
    the generic request/response models to one specific backend API.
    """

    async def generate_content(
        self, request: GenerateContentParameters
    ) -> GenerateContentResponse:
        """Generate one complete response."""
        ...

    async def generate_content_stream(
        self, request: GenerateContentParameters
    ) -> AsyncIterator[GenerateContentResponse]:
        """Open a stream and return its partial responses as an iterator."""
        ...

    async def count_tokens(
        self, request: CountTokensParameters
    ) -> CountTokensResponse:
        """Count the tokens in a request."""
        ...

    async def embed_content(
        self, request: EmbedContentParameters
    ) -> EmbedContentResponse:
        """Embed the request contents."""
        ...
