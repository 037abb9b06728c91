"""Tests for error classification and display text."""

from __future__ import annotations

import pytest

from foliochat.errors import (
    ChatErrorKind,
    CompletionError,
    classify_status,
    display_message,
    retry_notice,
    transcript_label,
)


@pytest.mark.parametrize(
    "status, kind",
    [
        (429, ChatErrorKind.RATE_LIMITED),
        (500, ChatErrorKind.SERVER_ERROR),
        (503, ChatErrorKind.SERVER_ERROR),
        (599, ChatErrorKind.SERVER_ERROR),
        (400, ChatErrorKind.BAD_REQUEST),
        (401, ChatErrorKind.AUTH_FAILED),
        (403, ChatErrorKind.AUTH_FAILED),
        (404, ChatErrorKind.NOT_FOUND),
        (409, ChatErrorKind.OTHER),
        (302, ChatErrorKind.OTHER),
    ],
)
def test_classify_status(status, kind):
    assert classify_status(status) is kind


def test_retryable_kinds():
    retryable = {k for k in ChatErrorKind if CompletionError(k).retryable}
    assert retryable == {
        ChatErrorKind.RATE_LIMITED,
        ChatErrorKind.SERVER_ERROR,
        ChatErrorKind.NETWORK_ERROR,
    }


class TestDisplayText:
    def test_server_error_has_no_status_suffix(self):
        err = CompletionError(ChatErrorKind.SERVER_ERROR, 502)
        assert display_message(err) == "The server is having issues. Please try again later."

    def test_client_error_carries_status(self):
        err = CompletionError(ChatErrorKind.BAD_REQUEST, 400)
        assert display_message(err).endswith("(Error 400)")

    def test_client_error_without_status(self):
        err = CompletionError(ChatErrorKind.OTHER)
        assert display_message(err) == "An error occurred. Please try again."

    @pytest.mark.parametrize(
        "kind, delay, text",
        [
            (ChatErrorKind.RATE_LIMITED, 2.2, "Rate limited. Retrying in 2 seconds..."),
            (ChatErrorKind.SERVER_ERROR, 3.7, "Temporary server issue. Retrying in 4 seconds..."),
            (ChatErrorKind.NETWORK_ERROR, 8.1, "Connection issue. Retrying in 8 seconds..."),
        ],
    )
    def test_retry_notice(self, kind, delay, text):
        assert retry_notice(CompletionError(kind), delay) == text

    @pytest.mark.parametrize(
        "kind, status, label",
        [
            (ChatErrorKind.RATE_LIMITED, 429, "Rate limited"),
            (ChatErrorKind.SERVER_ERROR, 500, "Server error"),
            (ChatErrorKind.NETWORK_ERROR, None, "API connection"),
            (ChatErrorKind.MALFORMED_RESPONSE, 200, "Invalid AI response"),
            (ChatErrorKind.AUTH_FAILED, 401, "401"),
        ],
    )
    def test_transcript_label(self, kind, status, label):
        assert transcript_label(CompletionError(kind, status)) == label


def test_error_str_includes_kind_and_status():
    err = CompletionError(ChatErrorKind.RATE_LIMITED, 429, "slow down")
    assert str(err) == "rate_limited (429): slow down"
