"""Content generation backed by an OpenAI-compatible chat-completions API.

:class:`ChatCompletionsGenerator` implements the generic
:class:`~chatbridge.llm.base.GenerationProvider` interface by translating
turns to ``/chat/completions`` messages and translating single-shot bodies
or server-sent event streams back into ``GenerateContentResponse`` values.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from types import TracebackType
from typing import Any

import httpx

from chatbridge.llm.config import GeneratorSettings
from chatbridge.llm.errors import (
    BackendHttpError,
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    RequestTimeoutError,
    error_from_status,
)
from chatbridge.llm.models import (
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    GenerateContentParameters,
    GenerateContentResponse,
)
from chatbridge.llm.sse import MalformedFrameHandler, StreamFrameDecoder
from chatbridge.llm.translate import (
    to_backend_messages,
    to_generic_delta,
    to_generic_response,
)
from chatbridge.llm.wire import ChatCompletionChunk, ChatCompletionRequest

logger = logging.getLogger(__name__)

PROVIDER = "openai"


async def _iter_chunks(response: httpx.Response) -> AsyncIterator[bytes]:
    """Yield body chunks; a stream closed underneath us just ends."""
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.StreamClosed:
        logger.debug("Response stream was closed; ending sequence")
    except httpx.TimeoutException as exc:
        raise RequestTimeoutError(str(exc), provider=PROVIDER) from exc
    except httpx.TransportError as exc:
        raise NetworkError(str(exc)) from exc


def _http_error(response: httpx.Response) -> BackendHttpError:
    body = response.text
    raw: dict[str, Any] | None = None
    try:
        parsed = json.loads(body)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        raw = parsed
    return error_from_status(
        response.status_code,
        response.reason_phrase,
        body,
        provider=PROVIDER,
        raw=raw,
    )


class ChatCompletionsGenerator:
    """Generic content generation over ``POST {base_url}/chat/completions``.

    Only plain ``user``/``model`` text turns are supported; anything else
    is rejected before a request is sent. Token counting and embeddings
    are not available from this backend: :meth:`count_tokens` and
    :meth:`embed_content` return placeholders flagged ``supported=False``.

    Args:
        api_key: Bearer credential. Falls back to ``settings``.
        base_url: API root. Falls back to ``settings``.
        model: Model id. Falls back to ``settings``.
        settings: Connection settings; read from the environment when omitted.
        http_client: Client to send requests with. When omitted one is
            created on first use and closed by :meth:`aclose`.
        on_malformed_frame: Called once per skipped streaming frame.

    Raises:
        ConfigurationError: If no API key is available.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        *,
        settings: GeneratorSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        on_malformed_frame: MalformedFrameHandler | None = None,
    ) -> None:
        if settings is None:
            settings = GeneratorSettings.from_env()
        self._api_key = api_key or settings.api_key
        if not self._api_key:
            raise ConfigurationError(
                "API key is not provided. Please set the OPENAI_API_KEY "
                "environment variable."
            )
        self._base_url = (base_url or settings.base_url).rstrip("/")
        self._model = model if model is not None else settings.model
        self._timeout = settings.timeout
        self._client = http_client
        self._owns_client = http_client is None
        self._on_malformed_frame = on_malformed_frame

    @classmethod
    def from_env(
        cls, env_file: str | None = None, **kwargs: Any
    ) -> ChatCompletionsGenerator:
        """Create a generator from environment variables (and a dotenv file).

        See :meth:`GeneratorSettings.from_env` for the variables read.
        """
        return cls(settings=GeneratorSettings.from_env(env_file), **kwargs)

    def provider_name(self) -> str:
        """Return the canonical provider name."""
        return PROVIDER

    @property
    def model(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this generator created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> ChatCompletionsGenerator:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # -----------------------------------------------------------------
    # Request building / sending
    # -----------------------------------------------------------------

    def _build_body(
        self, request: GenerateContentParameters, *, stream: bool
    ) -> ChatCompletionRequest:
        return ChatCompletionRequest(
            model=request.model or self._model,
            messages=to_backend_messages(request.contents),
            stream=stream,
        )

    async def _send(self, body: ChatCompletionRequest) -> httpx.Response:
        client = self._http()
        http_request = client.build_request(
            "POST",
            self.endpoint,
            json=body.to_dict(),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
        )
        logger.debug(
            "POST %s model=%s messages=%d stream=%s",
            self.endpoint,
            body.model,
            len(body.messages),
            body.stream,
        )
        try:
            return await client.send(http_request, stream=body.stream)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(str(exc), provider=PROVIDER) from exc
        except httpx.TransportError as exc:
            raise NetworkError(str(exc)) from exc

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    async def generate_content(
        self, request: GenerateContentParameters
    ) -> GenerateContentResponse:
        """Send a non-streaming completion request.

        Args:
            request: Generic request to send.

        Returns:
            A response with one candidate taken from the first choice.

        Raises:
            TranslationError: If a turn cannot be translated (nothing is sent).
            BackendHttpError: On a non-success HTTP status.
            MalformedResponseError: If the body is not a valid completion.
            NetworkError: On connection failures.
        """
        body = self._build_body(request, stream=False)
        response = await self._send(body)
        if not response.is_success:
            raise _http_error(response)
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"Response body is not valid JSON: {exc}"
            ) from exc
        return to_generic_response(data)

    async def generate_content_stream(
        self, request: GenerateContentParameters
    ) -> AsyncIterator[GenerateContentResponse]:
        """Send a streaming completion request.

        The request is sent and its status checked before this coroutine
        returns, so HTTP failures surface here rather than on iteration.

        Args:
            request: Generic request to send.

        Returns:
            A lazy, single-pass iterator yielding one partial response per
            streamed delta, ending at ``[DONE]`` or when the body ends.

        Raises:
            TranslationError: If a turn cannot be translated (nothing is sent).
            BackendHttpError: On a non-success status or an empty body.
            NetworkError: On connection failures.
        """
        body = self._build_body(request, stream=True)
        response = await self._send(body)
        if not response.is_success or response.status_code == httpx.codes.NO_CONTENT:
            try:
                await response.aread()
            except httpx.TimeoutException as exc:
                raise RequestTimeoutError(str(exc), provider=PROVIDER) from exc
            except httpx.TransportError as exc:
                raise NetworkError(str(exc)) from exc
            finally:
                await response.aclose()
            raise _http_error(response)
        decoder = StreamFrameDecoder(on_malformed=self._on_malformed_frame)
        return self._iter_stream(response, decoder)

    async def _iter_stream(
        self, response: httpx.Response, decoder: StreamFrameDecoder
    ) -> AsyncIterator[GenerateContentResponse]:
        try:
            async for frame in decoder.frames(_iter_chunks(response)):
                try:
                    chunk = ChatCompletionChunk.from_dict(frame.payload)
                except MalformedResponseError as exc:
                    decoder.report_malformed(frame.data, exc)
                    continue
                yield to_generic_delta(chunk)
        finally:
            await response.aclose()
            if decoder.malformed_frames:
                logger.info(
                    "Stream ended with %d malformed frame(s) skipped",
                    decoder.malformed_frames,
                )

    async def count_tokens(
        self, request: CountTokensParameters
    ) -> CountTokensResponse:
        """Token counting is unavailable; returns a zero placeholder."""
        logger.warning("Token counting is not supported by the %s backend", PROVIDER)
        return CountTokensResponse(total_tokens=0, supported=False)

    async def embed_content(
        self, request: EmbedContentParameters
    ) -> EmbedContentResponse:
        """Embedding is unavailable; returns an empty placeholder."""
        logger.warning("Content embedding is not supported by the %s backend", PROVIDER)
        return EmbedContentResponse(embeddings=[], supported=False)
