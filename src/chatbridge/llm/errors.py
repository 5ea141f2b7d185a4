"""Error hierarchy for chatbridge.

Defines typed exceptions for configuration problems, turns that cannot be
translated to the chat-completion wire format, HTTP failures returned by
the backend, and payloads that do not have the expected shape. HTTP status
codes are mapped to specific ``BackendHttpError`` subclasses so callers can
branch on the failure kind.
"""

from __future__ import annotations

from typing import Any


class SDKError(Exception):
    """Base exception for all chatbridge errors."""

    @property
    def is_retryable(self) -> bool:
        """Whether this error is safe to retry."""
        return False


class ConfigurationError(SDKError):
    """Misconfiguration (missing API key, invalid settings, etc.)."""


# ---------------------------------------------------------------------------
# Translation errors (raised before any network call)
# ---------------------------------------------------------------------------


class TranslationError(SDKError):
    """A generic turn cannot be represented as a backend message."""


class UnsupportedRoleError(TranslationError):
    """The turn's role has no chat-completion counterpart."""

    def __init__(self, role: Any) -> None:
        super().__init__(f"Unsupported role: {role}")
        self.role = role


class EmptyTurnError(TranslationError):
    """The turn has no parts."""

    def __init__(self, role: Any = None) -> None:
        shown = getattr(role, "value", role)
        super().__init__(f"Turn with role {shown!r} has no parts")
        self.role = role


class UnsupportedPartError(TranslationError):
    """The turn's first part is not plain text."""

    def __init__(self, kind: Any) -> None:
        super().__init__(f"Unsupported part type: {kind}")
        self.kind = kind


# ---------------------------------------------------------------------------
# Provider errors
# ---------------------------------------------------------------------------


class ProviderError(SDKError):
    """Base class for errors returned by the backend.

    Attributes:
        provider: Which provider returned the error.
        status_code: HTTP status code, if applicable.
        retryable: Whether this error is safe to retry.
        raw: Parsed error body, when the backend returned JSON.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str = "",
        status_code: int | None = None,
        retryable: bool = False,
        raw: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retryable = retryable
        self.raw = raw

    @property
    def is_retryable(self) -> bool:
        """Whether this error is safe to retry."""
        return self.retryable


class BackendHttpError(ProviderError):
    """Non-success HTTP status (or an unreadable streaming body).

    Attributes:
        status_text: HTTP reason phrase.
        body: Raw response body text, verbatim.
    """

    def __init__(
        self,
        message: str,
        *,
        status_text: str = "",
        body: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status_text = status_text
        self.body = body


class InvalidRequestError(BackendHttpError):
    """400/422: Malformed request, invalid parameters."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class AuthenticationError(BackendHttpError):
    """401: Invalid API key or expired token."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class AccessDeniedError(BackendHttpError):
    """403: Insufficient permissions."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class NotFoundError(BackendHttpError):
    """404: Model not found, endpoint not found."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class RateLimitError(BackendHttpError):
    """429: Rate limit exceeded."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class ServerError(BackendHttpError):
    """500-599: Backend internal error."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class RequestTimeoutError(ProviderError):
    """Request timed out before a response arrived."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


# ---------------------------------------------------------------------------
# Non-provider errors
# ---------------------------------------------------------------------------


class NetworkError(SDKError):
    """Network-level failure (connection refused, DNS, etc.)."""

    @property
    def is_retryable(self) -> bool:
        return True


class MalformedResponseError(SDKError):
    """A backend body is missing the expected structure."""


class MalformedFrameError(SDKError):
    """One streaming line could not be parsed.

    Never raised by the stream itself: instances are handed to the
    decoder's malformed-frame callback and the line is skipped.

    Attributes:
        line: The offending line, without the event-data prefix.
    """

    def __init__(self, message: str, *, line: str = "") -> None:
        super().__init__(message)
        self.line = line


# ---------------------------------------------------------------------------
# HTTP status code mapping
# ---------------------------------------------------------------------------

_STATUS_TO_ERROR: dict[int, type[BackendHttpError]] = {
    400: InvalidRequestError,
    401: AuthenticationError,
    403: AccessDeniedError,
    404: NotFoundError,
    422: InvalidRequestError,
    429: RateLimitError,
}


def error_from_status(
    status_code: int,
    status_text: str,
    body: str,
    *,
    provider: str = "",
    raw: dict[str, Any] | None = None,
) -> BackendHttpError:
    """Create the appropriate BackendHttpError subclass from an HTTP status.

    The message embeds the status code, reason phrase and body text
    verbatim. 5xx statuses map to ``ServerError``; other unknown statuses
    fall back to a plain ``BackendHttpError``.

    Args:
        status_code: HTTP status code from the backend response.
        status_text: HTTP reason phrase.
        body: Raw response body text.
        provider: Provider name.
        raw: Parsed JSON error body, if any.

    Returns:
        An instance of the appropriate BackendHttpError subclass.
    """
    if status_code in _STATUS_TO_ERROR:
        cls = _STATUS_TO_ERROR[status_code]
    elif 500 <= status_code <= 599:
        cls = ServerError
    else:
        cls = BackendHttpError
    message = f"API error: {status_code} {status_text} - {body}"
    return cls(
        message,
        provider=provider,
        status_code=status_code,
        status_text=status_text,
        body=body,
        raw=raw,
    )
