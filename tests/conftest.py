"""Shared fixtures: a clean OPENAI_* environment and mock-transport generators."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from chatbridge.llm.config import GeneratorSettings
from chatbridge.llm.generator import ChatCompletionsGenerator

ENV_VARS = ("OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL", "OPENAI_TIMEOUT")

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure no real OPENAI_* settings leak into tests.

    Setting before deleting registers each variable with monkeypatch, so
    values loaded from dotenv files during a test are undone afterwards.
    """
    for var in ENV_VARS:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


@pytest.fixture()
def settings() -> GeneratorSettings:
    return GeneratorSettings(
        api_key="sk-test",
        base_url="https://api.test/v1",
        model="test-model",
    )


@pytest.fixture()
def sent_requests() -> list[httpx.Request]:
    return []


@pytest.fixture()
def make_generator(
    settings: GeneratorSettings, sent_requests: list[httpx.Request]
) -> Callable[..., ChatCompletionsGenerator]:
    """Return a factory building a generator whose transport calls *handler*.

    Every request that reaches the transport is appended to ``sent_requests``.
    """

    def _make(handler: Handler, **kwargs: Any) -> ChatCompletionsGenerator:
        def _record(request: httpx.Request) -> httpx.Response:
            sent_requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        return ChatCompletionsGenerator(settings=settings, http_client=client, **kwargs)

    return _make
