"""chatbridge LLM layer - generic content generation over chat completions."""

from __future__ import annotations

from collections.abc import AsyncIterator

from chatbridge.llm.base import GenerationProvider
from chatbridge.llm.config import GeneratorSettings
from chatbridge.llm.errors import (
    AccessDeniedError,
    AuthenticationError,
    BackendHttpError,
    ConfigurationError,
    EmptyTurnError,
    InvalidRequestError,
    MalformedFrameError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    ProviderError,
    RateLimitError,
    RequestTimeoutError,
    SDKError,
    ServerError,
    TranslationError,
    UnsupportedPartError,
    UnsupportedRoleError,
)
from chatbridge.llm.generator import ChatCompletionsGenerator
from chatbridge.llm.models import (
    Candidate,
    Content,
    ContentsLike,
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    FunctionCallPart,
    FunctionResponsePart,
    GenerateContentParameters,
    GenerateContentResponse,
    InlineDataPart,
    Part,
    PartKind,
    PromptFeedback,
    Role,
    TextPart,
)
from chatbridge.llm.sse import EventFrame, StreamFrameDecoder
from chatbridge.llm.streaming import ResponseAccumulator

# ---------------------------------------------------------------------------
# Module-level default generator
# ---------------------------------------------------------------------------

_default_generator: GenerationProvider | None = None


def set_default_generator(generator: GenerationProvider) -> None:
    """Set the module-level default generator."""
    global _default_generator
    _default_generator = generator


def get_default_generator() -> GenerationProvider:
    """Get the module-level default generator, lazily creating from env."""
    global _default_generator
    if _default_generator is None:
        _default_generator = ChatCompletionsGenerator.from_env()
    return _default_generator


async def generate(
    contents: ContentsLike,
    model: str | None = None,
    generator: GenerationProvider | None = None,
) -> GenerateContentResponse:
    """Module-level generate_content using the default generator."""
    g = generator or get_default_generator()
    return await g.generate_content(
        GenerateContentParameters(contents=contents, model=model)
    )


async def stream(
    contents: ContentsLike,
    model: str | None = None,
    generator: GenerationProvider | None = None,
) -> AsyncIterator[GenerateContentResponse]:
    """Module-level generate_content_stream using the default generator."""
    g = generator or get_default_generator()
    responses = await g.generate_content_stream(
        GenerateContentParameters(contents=contents, model=model)
    )
    async for response in responses:
        yield response


__all__ = [
    "ChatCompletionsGenerator",
    "GenerationProvider",
    "GeneratorSettings",
    # Module-level API
    "set_default_generator",
    "get_default_generator",
    "generate",
    "stream",
    # Streaming
    "EventFrame",
    "ResponseAccumulator",
    "StreamFrameDecoder",
    # Errors
    "AccessDeniedError",
    "AuthenticationError",
    "BackendHttpError",
    "ConfigurationError",
    "EmptyTurnError",
    "InvalidRequestError",
    "MalformedFrameError",
    "MalformedResponseError",
    "NetworkError",
    "NotFoundError",
    "ProviderError",
    "RateLimitError",
    "RequestTimeoutError",
    "SDKError",
    "ServerError",
    "TranslationError",
    "UnsupportedPartError",
    "UnsupportedRoleError",
    # Models
    "Candidate",
    "Content",
    "ContentsLike",
    "CountTokensParameters",
    "CountTokensResponse",
    "EmbedContentParameters",
    "EmbedContentResponse",
    "FunctionCallPart",
    "FunctionResponsePart",
    "GenerateContentParameters",
    "GenerateContentResponse",
    "InlineDataPart",
    "Part",
    "PartKind",
    "PromptFeedback",
    "Role",
    "TextPart",
]
