"""Generic content-generation data models.

Defines the vendor-neutral conversation format (turns made of typed parts),
the candidate/response structures returned to callers, and the parameter
and result records for the capability interface.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Role(str, enum.Enum):
    """Turn roles of the generic contract."""

    USER = "user"
    MODEL = "model"


class PartKind(str, enum.Enum):
    """Discriminator for the Part tagged union."""

    TEXT = "text"
    INLINE_DATA = "inline_data"
    FUNCTION_CALL = "function_call"
    FUNCTION_RESPONSE = "function_response"


# ---------------------------------------------------------------------------
# Parts (Tagged Union)
# ---------------------------------------------------------------------------


@dataclass
class TextPart:
    """Plain text fragment."""

    kind: PartKind = field(default=PartKind.TEXT, init=False)
    text: str = ""


@dataclass
class InlineDataPart:
    """Binary payload (image, audio, ...) carried inline."""

    kind: PartKind = field(default=PartKind.INLINE_DATA, init=False)
    mime_type: str = "application/octet-stream"
    data: bytes = b""


@dataclass
class FunctionCallPart:
    """A function call requested by the model."""

    kind: PartKind = field(default=PartKind.FUNCTION_CALL, init=False)
    name: str = ""
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class FunctionResponsePart:
    """The result of a function call, returned to the model."""

    kind: PartKind = field(default=PartKind.FUNCTION_RESPONSE, init=False)
    name: str = ""
    response: dict[str, Any] = field(default_factory=dict)


Part = TextPart | InlineDataPart | FunctionCallPart | FunctionResponsePart


# ---------------------------------------------------------------------------
# Turns
# ---------------------------------------------------------------------------


@dataclass
class Content:
    """One conversational turn.

    ``role`` is usually a :class:`Role`, but any string is accepted so that
    turns from other producers (``"tool"``, ``"system"``) can be carried and
    rejected at translation time.
    """

    role: Role | str = Role.USER
    parts: list[Part] = field(default_factory=list)

    @staticmethod
    def user(text: str) -> Content:
        """Create a user turn with a single text part.

        Args:
            text: The user's message text.

        Returns:
            A Content with role USER and one TextPart.
        """
        return Content(role=Role.USER, parts=[TextPart(text=text)])

    @staticmethod
    def model(text: str) -> Content:
        """Create a model turn with a single text part.

        Args:
            text: The model's reply text.

        Returns:
            A Content with role MODEL and one TextPart.
        """
        return Content(role=Role.MODEL, parts=[TextPart(text=text)])

    def text(self) -> str:
        """Concatenate the text of all TextPart parts."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


@dataclass
class PromptFeedback:
    """Prompt-level feedback. No content filtering is performed, so it is
    always empty."""

    block_reason: str | None = None
    safety_ratings: list[Any] = field(default_factory=list)


@dataclass
class Candidate:
    """One generated response alternative."""

    index: int = 0
    content: Content = field(default_factory=lambda: Content(role=Role.MODEL))
    finish_reason: str | None = None
    safety_ratings: list[Any] = field(default_factory=list)
    citation_metadata: Any = None


@dataclass
class GenerateContentResponse:
    """A batch of candidates plus prompt feedback."""

    candidates: list[Candidate] = field(default_factory=list)
    prompt_feedback: PromptFeedback = field(default_factory=PromptFeedback)

    @property
    def text(self) -> str:
        """Text of the first candidate, or ``""`` when there is none."""
        if not self.candidates:
            return ""
        return self.candidates[0].content.text()

    @property
    def finish_reason(self) -> str | None:
        """Finish reason of the first candidate."""
        if not self.candidates:
            return None
        return self.candidates[0].finish_reason


# ---------------------------------------------------------------------------
# Request parameters
# ---------------------------------------------------------------------------


ContentsLike = list[Content] | Content | str


@dataclass
class GenerateContentParameters:
    """Arguments for ``generate_content`` and ``generate_content_stream``.

    ``contents`` may be a list of turns, a single turn, or a bare string
    (one user turn). ``model`` overrides the configured model id when set.
    """

    contents: ContentsLike = field(default_factory=list)
    model: str | None = None

    def turns(self) -> list[Content]:
        """Return ``contents`` normalised to a list of turns."""
        if isinstance(self.contents, str):
            return [Content.user(self.contents)]
        if isinstance(self.contents, Content):
            return [self.contents]
        return list(self.contents)


@dataclass
class CountTokensParameters:
    contents: ContentsLike = field(default_factory=list)
    model: str | None = None


@dataclass
class CountTokensResponse:
    """Token count. ``supported`` is False when the backend cannot count."""

    total_tokens: int = 0
    supported: bool = True


@dataclass
class EmbedContentParameters:
    contents: ContentsLike = field(default_factory=list)
    model: str | None = None


@dataclass
class EmbedContentResponse:
    """Embedding vectors. ``supported`` is False when the backend cannot
    embed."""

    embeddings: list[list[float]] = field(default_factory=list)
    supported: bool = True
