"""Connection settings for the chat-completion backend."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from chatbridge.llm.errors import ConfigurationError

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = 60.0


@dataclass
class GeneratorSettings:
    """Where and how to reach the backend.

    Attributes:
        api_key: Bearer credential. Empty means "not configured".
        base_url: API root; ``/chat/completions`` is appended to it.
        model: Model id sent with every request.
        timeout: HTTP timeout in seconds.
    """

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = ""
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        self.base_url = (self.base_url or DEFAULT_BASE_URL).rstrip("/")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")

    @classmethod
    def from_env(cls, env_file: str | None = None) -> GeneratorSettings:
        """Build settings from environment variables.

        Environment variables:
            OPENAI_API_KEY: Bearer credential.
            OPENAI_BASE_URL: API root (default ``https://api.openai.com/v1``).
            OPENAI_MODEL: Model id.
            OPENAI_TIMEOUT: HTTP timeout in seconds.

        Args:
            env_file: Optional dotenv file loaded first. Variables already
                set in the environment take precedence over it.

        Raises:
            ConfigurationError: If ``OPENAI_TIMEOUT`` is not a positive number.
        """
        if env_file:
            load_dotenv(env_file, override=False)

        raw_timeout = os.environ.get("OPENAI_TIMEOUT", "")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigurationError(
                f"OPENAI_TIMEOUT must be a number, got {raw_timeout!r}"
            ) from None

        return cls(
            api_key=os.environ.get("OPENAI_API_KEY", ""),
            base_url=os.environ.get("OPENAI_BASE_URL", "") or DEFAULT_BASE_URL,
            model=os.environ.get("OPENAI_MODEL", ""),
            timeout=timeout,
        )
