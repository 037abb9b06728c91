"""Foliochat - Portfolio assistant chat client."""

from .models import (  # noqa: F401 -- public re-exports
    Commit,
    ContributionSummary,
    FoliochatConfig,
    ProviderError,
    Repository,
    RepositoryActivity,
    Turn,
)
from .digest import RepositoryContextBuilder
from .errors import ChatErrorKind, CompletionError
from .llm import CompletionClient
from .orchestrator import ChatOrchestrator, ExchangeResult, ExchangeState, SendStatus
from .render import format_message_text
from .session import ChatSession
from .transcript import ConversationTranscript

__version__ = "0.1.0"

__all__ = [
    "ChatErrorKind",
    "ChatOrchestrator",
    "ChatSession",
    "Commit",
    "CompletionClient",
    "CompletionError",
    "ContributionSummary",
    "ConversationTranscript",
    "ExchangeResult",
    "ExchangeState",
    "FoliochatConfig",
    "ProviderError",
    "Repository",
    "RepositoryActivity",
    "RepositoryContextBuilder",
    "SendStatus",
    "Turn",
    "format_message_text",
]
