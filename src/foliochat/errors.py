"""Completion failure taxonomy and its mapping to display text."""

from __future__ import annotations

from enum import Enum


class ChatErrorKind(Enum):
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    BAD_REQUEST = "bad_request"
    AUTH_FAILED = "auth_failed"
    NOT_FOUND = "not_found"
    MALFORMED_RESPONSE = "malformed_response"
    NETWORK_ERROR = "network_error"
    OTHER = "other"


RETRYABLE_KINDS = frozenset(
    {ChatErrorKind.RATE_LIMITED, ChatErrorKind.SERVER_ERROR, ChatErrorKind.NETWORK_ERROR}
)


class CompletionError(RuntimeError):
    """A failed completion attempt, tagged with its kind.

    ``status`` is the HTTP status code when the endpoint answered at all.
    """

    def __init__(self, kind: ChatErrorKind, status: int | None = None, detail: str = "") -> None:
        self.kind = kind
        self.status = status
        self.detail = detail
        label = f"{kind.value} ({status})" if status is not None else kind.value
        super().__init__(f"{label}: {detail}" if detail else label)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


def classify_status(status: int) -> ChatErrorKind:
    """Map a non-2xx HTTP status to an error kind."""
    if status == 429:
        return ChatErrorKind.RATE_LIMITED
    if 500 <= status < 600:
        return ChatErrorKind.SERVER_ERROR
    if status == 400:
        return ChatErrorKind.BAD_REQUEST
    if status in (401, 403):
        return ChatErrorKind.AUTH_FAILED
    if status == 404:
        return ChatErrorKind.NOT_FOUND
    return ChatErrorKind.OTHER


_TERMINAL_MESSAGES = {
    ChatErrorKind.RATE_LIMITED: "Too many requests. Please wait a few minutes and try again.",
    ChatErrorKind.SERVER_ERROR: "The server is having issues. Please try again later.",
    ChatErrorKind.NETWORK_ERROR: "Network connection error. Please check your connection and try again.",
    ChatErrorKind.MALFORMED_RESPONSE: "Error: Could not understand AI response.",
    ChatErrorKind.BAD_REQUEST: "Invalid request. The message might be too long or malformed.",
    ChatErrorKind.AUTH_FAILED: "Authentication failed. Please refresh the page.",
    ChatErrorKind.NOT_FOUND: "The chat service is currently unavailable.",
    ChatErrorKind.OTHER: "An error occurred. Please try again.",
}

_RETRY_NOTICES = {
    ChatErrorKind.RATE_LIMITED: "Rate limited.",
    ChatErrorKind.SERVER_ERROR: "Temporary server issue.",
    ChatErrorKind.NETWORK_ERROR: "Connection issue.",
}

_TRANSCRIPT_LABELS = {
    ChatErrorKind.RATE_LIMITED: "Rate limited",
    ChatErrorKind.SERVER_ERROR: "Server error",
    ChatErrorKind.NETWORK_ERROR: "API connection",
    ChatErrorKind.MALFORMED_RESPONSE: "Invalid AI response",
}


def display_message(error: CompletionError) -> str:
    """Terminal, user-facing message for a failed exchange."""
    message = _TERMINAL_MESSAGES[error.kind]
    if error.kind in RETRYABLE_KINDS or error.kind is ChatErrorKind.MALFORMED_RESPONSE:
        return message
    # Client errors carry the status so users can report it.
    if error.status is None:
        return message
    return f"{message} (Error {error.status})"


def retry_notice(error: CompletionError, delay: float) -> str:
    """Placeholder text shown while a retry is scheduled."""
    prefix = _RETRY_NOTICES.get(error.kind, "Request failed.")
    return f"{prefix} Retrying in {round(delay)} seconds..."


def transcript_label(error: CompletionError) -> str:
    """Label used in the synthetic ``[Error: ...]`` assistant turn."""
    label = _TRANSCRIPT_LABELS.get(error.kind)
    if label is not None:
        return label
    return str(error.status) if error.status is not None else error.kind.value
