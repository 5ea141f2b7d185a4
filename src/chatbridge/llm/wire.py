"""Chat-completion wire records.

Explicit shapes for the backend's JSON: the outbound request and messages,
the single-shot completion body, and the streamed chunk body. ``from_dict``
constructors validate the untyped JSON and raise
:class:`MalformedResponseError` on any shape mismatch instead of letting a
missing field surface later as a ``KeyError`` or ``AttributeError``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from chatbridge.llm.errors import MalformedResponseError


class ChatRole(str, enum.Enum):
    """Message roles of the chat-completion API."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass
class ChatMessage:
    """One wire-level message."""

    role: ChatRole
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class ChatCompletionRequest:
    """Body POSTed to ``/chat/completions``."""

    model: str
    messages: list[ChatMessage] = field(default_factory=list)
    stream: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
            "stream": self.stream,
        }


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _require_dict(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedResponseError(
            f"Expected {what} to be an object, got {type(value).__name__}"
        )
    return value


def _first_choice(body: Any, what: str) -> dict[str, Any]:
    body = _require_dict(body, what)
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        raise MalformedResponseError(f"{what} has no choices")
    return _require_dict(choices[0], "choices[0]")


def _optional_str(obj: dict[str, Any], key: str, what: str) -> str | None:
    value = obj.get(key)
    if value is not None and not isinstance(value, str):
        raise MalformedResponseError(
            f"Expected {what}.{key} to be a string, got {type(value).__name__}"
        )
    return value


def _index(choice: dict[str, Any]) -> int:
    value = choice.get("index", 0)
    # bool is an int subclass but never a valid index
    if not isinstance(value, int) or isinstance(value, bool):
        raise MalformedResponseError(
            f"Expected choices[0].index to be an integer, got {value!r}"
        )
    return value


# ---------------------------------------------------------------------------
# Single-shot body
# ---------------------------------------------------------------------------


@dataclass
class ChatChoice:
    index: int = 0
    content: str | None = None
    finish_reason: str | None = None


@dataclass
class ChatCompletion:
    """Single-shot completion body. Only the first choice is kept."""

    choice: ChatChoice
    id: str = ""
    model: str = ""

    @classmethod
    def from_dict(cls, body: Any) -> ChatCompletion:
        """Validate a decoded JSON body.

        Raises:
            MalformedResponseError: If ``choices[0].message`` is missing or
                any field has the wrong type.
        """
        choice = _first_choice(body, "completion")
        message = _require_dict(choice.get("message"), "choices[0].message")
        return cls(
            choice=ChatChoice(
                index=_index(choice),
                content=_optional_str(message, "content", "message"),
                finish_reason=_optional_str(choice, "finish_reason", "choices[0]"),
            ),
            id=str(body.get("id") or ""),
            model=str(body.get("model") or ""),
        )


# ---------------------------------------------------------------------------
# Streamed chunk body
# ---------------------------------------------------------------------------


@dataclass
class ChatDelta:
    content: str | None = None


@dataclass
class ChunkChoice:
    index: int = 0
    delta: ChatDelta = field(default_factory=ChatDelta)
    finish_reason: str | None = None


@dataclass
class ChatCompletionChunk:
    """One streamed delta. Only the first choice is kept."""

    choice: ChunkChoice

    @classmethod
    def from_dict(cls, payload: Any) -> ChatCompletionChunk:
        """Validate one decoded stream payload.

        Raises:
            MalformedResponseError: If ``choices[0].delta`` is missing or
                any field has the wrong type.
        """
        choice = _first_choice(payload, "chunk")
        delta = _require_dict(choice.get("delta"), "choices[0].delta")
        return cls(
            choice=ChunkChoice(
                index=_index(choice),
                delta=ChatDelta(content=_optional_str(delta, "content", "delta")),
                finish_reason=_optional_str(choice, "finish_reason", "choices[0]"),
            )
        )
