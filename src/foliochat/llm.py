"""Completion client -- one POST to the hosted chat completion endpoint."""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
import random
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

from .errors import ChatErrorKind, CompletionError, classify_status

logger = logging.getLogger(__name__)

COMPLETION_URL = "https://text.pollinations.ai/openai"
DEFAULT_MODEL = "openai"
DEFAULT_REFERRER = "FolioChatPortfolio"


def _error_detail(body: bytes) -> str:
    """Pull ``error.message`` out of a JSON error body, else the raw text."""
    text = body.decode("utf-8", errors="replace")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return text


def parse_completion(status: int, body: bytes) -> dict[str, str]:
    """Classify an HTTP outcome; return the assistant message or raise.

    Raises:
        CompletionError: for any non-2xx status or a 2xx body without a
            usable ``choices[0].message``.
    """
    if not 200 <= status < 300:
        raise CompletionError(classify_status(status), status, _error_detail(body))

    try:
        result: Any = json.loads(body.decode("utf-8"))
        message = result["choices"][0]["message"]
    except (json.JSONDecodeError, UnicodeDecodeError, KeyError, IndexError, TypeError) as exc:
        raise CompletionError(ChatErrorKind.MALFORMED_RESPONSE, status, f"no assistant message: {exc}") from exc

    if not isinstance(message, dict) or not isinstance(message.get("content"), str):
        raise CompletionError(ChatErrorKind.MALFORMED_RESPONSE, status, "no assistant message content")
    return {"role": "assistant", "content": message["content"]}


@dataclass
class CompletionClient:
    """Minimal async-friendly client for the completion endpoint using stdlib only."""

    endpoint: str = COMPLETION_URL
    model: str = DEFAULT_MODEL
    referrer: str = DEFAULT_REFERRER
    private: bool = False
    timeout: float = 60.0

    def _post_sync(self, payload: dict[str, Any]) -> tuple[int, bytes]:
        """Blocking POST. Meant to be run via asyncio.to_thread.

        HTTP errors are returned as ``(status, body)``. Transport failures,
        including a malformed status line or a truncated body, raise
        :class:`CompletionError` with ``NETWORK_ERROR``.
        """
        data = json.dumps(payload).encode("utf-8")
        try:
            req = urllib.request.Request(
                self.endpoint,
                data=data,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                method="POST",
            )
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.status, resp.read()
        except urllib.error.HTTPError as exc:
            try:
                body = exc.read()
            except (OSError, http.client.HTTPException):
                body = b"Could not read error response"
            return exc.code, body
        except (urllib.error.URLError, OSError, http.client.HTTPException, ValueError) as exc:
            # URLError subclasses OSError; timeouts surface as either.
            # ValueError covers an endpoint urllib cannot parse.
            raise CompletionError(ChatErrorKind.NETWORK_ERROR, None, str(exc)) from exc

    def build_payload(self, messages: list[dict[str, str]], *, seed: int | None = None) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "seed": seed if seed is not None else random.randint(0, 9999),
            "private": self.private,
            "referrer": self.referrer,
        }

    async def complete(self, messages: list[dict[str, str]], *, seed: int | None = None) -> dict[str, str]:
        """Send one completion request and return the assistant message."""
        payload = self.build_payload(messages, seed=seed)
        logger.debug("POST %s (%d messages, seed=%s)", self.endpoint, len(messages), payload["seed"])
        status, body = await asyncio.to_thread(self._post_sync, payload)
        try:
            return parse_completion(status, body)
        except CompletionError as exc:
            logger.warning("Completion request failed: %s", exc)
            raise
