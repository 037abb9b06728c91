"""Chat session -- wires config, digest, transcript and orchestrator together.

The session plays the UI controller: it classifies user text, disables input
for the whole exchange and hands the text to the orchestrator.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from .digest import RepositoryContextBuilder, RepositoryDataProvider
from .github import GitHubClient
from .guards import is_listing_request, is_relevant_question
from .llm import CompletionClient
from .models import FoliochatConfig
from .orchestrator import ChatOrchestrator, CompletionBackend, ExchangeResult
from .prompts import (
    LISTING_INSTRUCTION,
    OFF_TOPIC_REMINDER,
    build_greeting,
    build_system_prompt,
    load_profile,
)
from .transcript import ConversationTranscript
from .view import ChatView, NoOpView

logger = logging.getLogger(__name__)


class ChatSession:
    """One conversation with the portfolio assistant."""

    def __init__(
        self,
        config: FoliochatConfig,
        orchestrator: ChatOrchestrator,
        context: RepositoryContextBuilder,
        view: ChatView,
    ) -> None:
        self.config = config
        self.orchestrator = orchestrator
        self.context = context
        self.view = view

    @property
    def transcript(self) -> ConversationTranscript:
        return self.orchestrator.transcript

    @classmethod
    async def start(
        cls,
        config: FoliochatConfig,
        *,
        view: ChatView | None = None,
        client: CompletionBackend | None = None,
        provider: RepositoryDataProvider | None = None,
        clock: Callable[[], float] = time.monotonic,
        **orchestrator_kwargs: Any,
    ) -> ChatSession:
        """Fetch the initial digest and build a ready-to-use session."""
        view = view or NoOpView()
        provider = provider or GitHubClient(token=config.github_token)
        client = client or CompletionClient(
            endpoint=config.endpoint,
            model=config.model,
            referrer=config.referrer,
            timeout=config.request_timeout,
        )
        context = RepositoryContextBuilder(
            provider,
            config.owner_name,
            featured_projects=config.featured_projects,
            project_titles=config.project_titles,
            ttl=config.digest_ttl,
            clock=clock,
        )
        await context.refresh(config.github_user, config.max_repos)

        profile = load_profile(config)

        def system_prompt(digest_text: str) -> str:
            return build_system_prompt(config, digest_text, profile)

        transcript = ConversationTranscript(
            system_prompt(context.digest_text), greeting=build_greeting(config)
        )
        orchestrator = ChatOrchestrator(
            client,
            transcript,
            context=context,
            system_prompt=system_prompt,
            owner_handle=config.github_user,
            max_repos=config.max_repos,
            view=view,
            min_request_interval=config.min_request_interval,
            max_retries=config.max_retries,
            base_retry_delay=config.base_retry_delay,
            max_retry_delay=config.max_retry_delay,
            clock=clock,
            **orchestrator_kwargs,
        )
        return cls(config, orchestrator, context, view)

    def steering_for(self, text: str) -> list[str]:
        """Scratch instructions to send along with *text*."""
        owner = self.config.owner_name
        steering: list[str] = []
        if not is_relevant_question(text, owner):
            logger.info("Off-topic question detected, adding reminder")
            steering.append(OFF_TOPIC_REMINDER.format(owner=owner))
        if is_listing_request(text):
            steering.append(LISTING_INSTRUCTION.format(owner=owner))
        return steering

    async def handle_message(self, text: str) -> ExchangeResult | None:
        """Send *text* as the next user turn; ``None`` for blank input."""
        text = text.strip()
        if not text:
            return None
        if self.orchestrator.request_in_progress:
            # Input stays disabled; the in-flight exchange re-enables it.
            return await self.orchestrator.send(text)
        self.view.set_input_enabled(False)
        try:
            return await self.orchestrator.send(text, steering=self.steering_for(text))
        finally:
            self.view.set_input_enabled(True)

    async def retry(self) -> ExchangeResult:
        """Activate the retry affordance of the last failed exchange."""
        if self.orchestrator.request_in_progress:
            return await self.orchestrator.retry()
        self.view.set_input_enabled(False)
        try:
            return await self.orchestrator.retry()
        finally:
            self.view.set_input_enabled(True)
