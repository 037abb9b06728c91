"""Chat request orchestrator -- admission, rate limiting, dispatch and retry.

One orchestrator serves one conversation. Its state is a single
:class:`ExchangeState` value; the admission gate is derived from it, so an
external send is either the only exchange in flight or ignored.

Exchange lifecycle::

    IDLE -> ADMITTING -> [RATE_LIMIT_WAITING] -> DISPATCHING -> AWAITING_RESPONSE
         -> SUCCEEDED | FAILED | RETRY_SCHEDULED -> DISPATCHING ...

Retries are a loop inside one exchange, not new sends: they skip both the
admission check and the rate-limit wait.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .digest import RefreshStatus, RepositoryContextBuilder
from .errors import CompletionError, display_message, retry_notice, transcript_label
from .guards import is_project_info_query
from .prompts import PROJECT_CONTEXT
from .render import format_message_text
from .transcript import ConversationTranscript
from .view import RETRYING, THINKING, ChatView, MessageSlot, NoOpView

logger = logging.getLogger(__name__)

MIN_REQUEST_INTERVAL = 1.5
MAX_RETRIES = 3
BASE_RETRY_DELAY = 1.0
MAX_RETRY_DELAY = 10.0


class CompletionBackend(Protocol):
    async def complete(self, messages: list[dict[str, str]]) -> dict[str, str]: ...


class ExchangeState(Enum):
    IDLE = "idle"
    ADMITTING = "admitting"
    RATE_LIMIT_WAITING = "rate_limit_waiting"
    DISPATCHING = "dispatching"
    AWAITING_RESPONSE = "awaiting_response"
    RETRY_SCHEDULED = "retry_scheduled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_SETTLED = frozenset({ExchangeState.IDLE, ExchangeState.SUCCEEDED, ExchangeState.FAILED})


class SendStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DUPLICATE_IGNORED = "duplicate_ignored"


@dataclass
class ExchangeResult:
    status: SendStatus
    message: dict[str, str] | None = None
    error: CompletionError | None = None
    attempts: int = 0


class ChatOrchestrator:
    """Turns user messages into completion requests for one conversation."""

    def __init__(
        self,
        client: CompletionBackend,
        transcript: ConversationTranscript,
        *,
        context: RepositoryContextBuilder | None = None,
        system_prompt: Callable[[str], str] | None = None,
        owner_handle: str = "",
        max_repos: int = 10,
        view: ChatView | None = None,
        min_request_interval: float = MIN_REQUEST_INTERVAL,
        max_retries: int = MAX_RETRIES,
        base_retry_delay: float = BASE_RETRY_DELAY,
        max_retry_delay: float = MAX_RETRY_DELAY,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
        renderer: Callable[[str], str] = format_message_text,
    ) -> None:
        self._client = client
        self.transcript = transcript
        self._context = context
        self._system_prompt = system_prompt
        self.owner_handle = owner_handle
        self.max_repos = max_repos
        self._view = view or NoOpView()
        self.min_request_interval = min_request_interval
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay
        self.max_retry_delay = max_retry_delay
        self._clock = clock
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._render = renderer

        self._state = ExchangeState.IDLE
        self.last_request_time: float | None = None
        self.retry_count = 0
        self.scheduled_delay: float | None = None
        self._failed: tuple[list[dict[str, str]], MessageSlot] | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> ExchangeState:
        return self._state

    @property
    def request_in_progress(self) -> bool:
        return self._state not in _SETTLED

    @property
    def can_retry(self) -> bool:
        return self._state is ExchangeState.FAILED and self._failed is not None

    def backoff_delay(self, retry_index: int) -> float:
        """Jittered exponential delay (seconds) before retry *retry_index*."""
        jitter = self._rng.uniform(0.8, 1.2)
        return min(self.max_retry_delay, self.base_retry_delay * (2 ** retry_index) * jitter)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def send(self, user_text: str, *, steering: Sequence[str] = ()) -> ExchangeResult:
        """Run one externally triggered exchange for *user_text*.

        Each *steering* text is added as a scratch system turn for this
        exchange only.
        """
        if self.request_in_progress:
            logger.info("Request already in progress, ignoring duplicate request")
            return ExchangeResult(SendStatus.DUPLICATE_IGNORED)

        self._state = ExchangeState.ADMITTING
        self.retry_count = 0
        self._failed = None
        try:
            await self._refresh_context()
            self.transcript.append_user(user_text)
            for text in steering:
                self.transcript.add_scratch(text)
            self._inject_project_context(user_text)
            await self._wait_for_rate_limit()

            slot = self._view.create_slot()
            slot.set_placeholder(THINKING)
            return await self._run(self.transcript.to_messages(), slot)
        except BaseException:
            self._abort()
            raise

    async def retry(self) -> ExchangeResult:
        """Re-attempt the last failed exchange with the same messages."""
        if self.request_in_progress:
            logger.info("Request already in progress, ignoring retry")
            return ExchangeResult(SendStatus.DUPLICATE_IGNORED)
        if self._failed is None:
            raise RuntimeError("No failed exchange to retry")

        messages, slot = self._failed
        self._failed = None
        self.retry_count = 0
        self._state = ExchangeState.DISPATCHING
        slot.set_placeholder(RETRYING)
        try:
            return await self._run(messages, slot)
        except BaseException:
            self._abort()
            raise

    # ------------------------------------------------------------------
    # Exchange steps
    # ------------------------------------------------------------------

    async def _refresh_context(self) -> None:
        if self._context is None:
            return
        result = await self._context.refresh(self.owner_handle, self.max_repos)
        if result.status is RefreshStatus.REFRESHED and self._system_prompt is not None:
            self.transcript.set_system_prompt(self._system_prompt(self._context.digest_text))

    def _inject_project_context(self, user_text: str) -> None:
        if self._context is None or not is_project_info_query(user_text):
            return
        name = self._context.match_project(user_text)
        if name is None:
            return
        excerpt = self._context.project_excerpt(name)
        if excerpt is None:
            return
        logger.debug("Adding project context for %s", name)
        self.transcript.add_scratch_before_last_user(PROJECT_CONTEXT.format(name=name, excerpt=excerpt))

    async def _wait_for_rate_limit(self) -> None:
        if self.last_request_time is None:
            return
        wait = self.min_request_interval - (self._clock() - self.last_request_time)
        if wait > 0:
            self._state = ExchangeState.RATE_LIMIT_WAITING
            logger.info("Rate limiting: waiting %.2fs before sending next request", wait)
            await self._sleep(wait)

    async def _run(self, messages: list[dict[str, str]], slot: MessageSlot) -> ExchangeResult:
        attempts = 0
        while True:
            self._state = ExchangeState.DISPATCHING
            self.last_request_time = self._clock()
            if attempts:
                slot.set_placeholder(RETRYING)
            attempts += 1

            self._state = ExchangeState.AWAITING_RESPONSE
            logger.debug(
                "Sending %s request (%d messages)",
                f"retry #{self.retry_count}" if attempts > 1 else "initial",
                len(messages),
            )
            try:
                message = await self._client.complete(messages)
            except CompletionError as exc:
                error = exc
            else:
                return self._succeed(message, slot, attempts)

            if not error.retryable or self.retry_count >= self.max_retries:
                return self._fail(error, messages, slot, attempts)

            self.retry_count += 1
            delay = self.backoff_delay(self.retry_count)
            self._state = ExchangeState.RETRY_SCHEDULED
            self.scheduled_delay = delay
            logger.warning("%s. Retry #%d in %.2fs", error, self.retry_count, delay)
            slot.set_placeholder(retry_notice(error, delay))
            await self._sleep(delay)
            self.scheduled_delay = None

    def _succeed(self, message: dict[str, str], slot: MessageSlot, attempts: int) -> ExchangeResult:
        content = message["content"]
        self.transcript.clear_scratch()
        self.transcript.append_assistant(content)
        self.retry_count = 0
        self._state = ExchangeState.SUCCEEDED
        slot.set_content(content, self._render(content))
        return ExchangeResult(SendStatus.SUCCEEDED, message=message, attempts=attempts)

    def _fail(
        self,
        error: CompletionError,
        messages: list[dict[str, str]],
        slot: MessageSlot,
        attempts: int,
    ) -> ExchangeResult:
        self.transcript.clear_scratch()
        self.transcript.append_error(transcript_label(error))
        self._failed = (messages, slot)
        self._state = ExchangeState.FAILED
        logger.error("Chat exchange failed after %d attempt(s): %s", attempts, error)
        slot.set_error(display_message(error), retryable=True)
        return ExchangeResult(SendStatus.FAILED, error=error, attempts=attempts)

    def _abort(self) -> None:
        """Release the gate after an unexpected exception or cancellation."""
        self.transcript.clear_scratch()
        self.scheduled_delay = None
        if self.request_in_progress:
            self._state = ExchangeState.IDLE
