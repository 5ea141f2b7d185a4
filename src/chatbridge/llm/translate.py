"""Translation between generic turns and chat-completion records.

Outbound, each generic turn becomes exactly one ``ChatMessage`` whose
content is the text of the turn's first part. Inbound, the first choice of
a completion (or of a streamed chunk) becomes a single-candidate
``GenerateContentResponse``. Nothing here accumulates streamed text.
"""

from __future__ import annotations

import logging
from typing import Any

from chatbridge.llm.errors import (
    EmptyTurnError,
    UnsupportedPartError,
    UnsupportedRoleError,
)
from chatbridge.llm.models import (
    Candidate,
    Content,
    ContentsLike,
    GenerateContentParameters,
    GenerateContentResponse,
    PromptFeedback,
    Role,
    TextPart,
)
from chatbridge.llm.wire import (
    ChatCompletion,
    ChatCompletionChunk,
    ChatMessage,
    ChatRole,
)

logger = logging.getLogger(__name__)

_ROLE_MAP: dict[str, ChatRole] = {
    Role.USER.value: ChatRole.USER,
    Role.MODEL.value: ChatRole.ASSISTANT,
}


def to_backend_role(role: Role | str) -> ChatRole:
    """Map a generic role onto its chat-completion counterpart.

    Raises:
        UnsupportedRoleError: For anything other than ``user`` or ``model``.
    """
    key = role.value if isinstance(role, Role) else role
    try:
        return _ROLE_MAP[key]
    except (KeyError, TypeError):
        raise UnsupportedRoleError(role) from None


def to_backend_message(turn: Content) -> ChatMessage:
    """Translate one generic turn into a chat message.

    Only the first part is carried over. Additional parts are dropped with
    a warning, since the flat message format has a single content string.

    Args:
        turn: The turn to translate.

    Returns:
        A ChatMessage with the mapped role and the first part's text.

    Raises:
        UnsupportedRoleError: If the role is not ``user`` or ``model``.
        EmptyTurnError: If the turn has no parts.
        UnsupportedPartError: If the first part is not a TextPart.
    """
    role = to_backend_role(turn.role)
    if not turn.parts:
        raise EmptyTurnError(turn.role)
    first = turn.parts[0]
    if not isinstance(first, TextPart):
        raise UnsupportedPartError(getattr(first, "kind", type(first).__name__))
    if len(turn.parts) > 1:
        logger.warning(
            "Dropping %d extra part(s) from %s turn; only the first part is sent",
            len(turn.parts) - 1,
            role.value,
        )
    return ChatMessage(role=role, content=first.text)


def to_backend_messages(contents: ContentsLike) -> list[ChatMessage]:
    """Translate a conversation, in order, into chat messages."""
    turns = GenerateContentParameters(contents=contents).turns()
    return [to_backend_message(turn) for turn in turns]


def _single_candidate(
    index: int, text: str | None, finish_reason: str | None
) -> GenerateContentResponse:
    return GenerateContentResponse(
        candidates=[
            Candidate(
                index=index,
                content=Content(role=Role.MODEL, parts=[TextPart(text=text or "")]),
                finish_reason=finish_reason,
            )
        ],
        prompt_feedback=PromptFeedback(),
    )


def to_generic_response(body: ChatCompletion | Any) -> GenerateContentResponse:
    """Translate a single-shot completion body.

    Args:
        body: A validated ChatCompletion, or the decoded JSON body.

    Returns:
        A response with one candidate built from ``choices[0]``. Missing
        message content becomes empty text.

    Raises:
        MalformedResponseError: If a raw body lacks the expected structure.
    """
    if not isinstance(body, ChatCompletion):
        body = ChatCompletion.from_dict(body)
    choice = body.choice
    return _single_candidate(choice.index, choice.content, choice.finish_reason)


def to_generic_delta(chunk: ChatCompletionChunk | Any) -> GenerateContentResponse:
    """Translate one streamed chunk into a partial-text response.

    Raises:
        MalformedResponseError: If a raw payload lacks the expected structure.
    """
    if not isinstance(chunk, ChatCompletionChunk):
        chunk = ChatCompletionChunk.from_dict(chunk)
    choice = chunk.choice
    return _single_candidate(choice.index, choice.delta.content, choice.finish_reason)
