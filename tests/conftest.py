"""Shared fakes for foliochat tests. No test touches the network."""

from __future__ import annotations

import asyncio
import random

import pytest

from foliochat.errors import ChatErrorKind, CompletionError
from foliochat.models import Commit, ContributionSummary, ProviderError, RepositoryActivity


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class FakeCompletionClient:
    """Replays scripted outcomes: a dict is returned, an exception raised.

    The last outcome repeats once the script is exhausted.
    """

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes) or [{"role": "assistant", "content": "ok"}]
        self.calls: list[list[dict[str, str]]] = []
        self.gate: asyncio.Event | None = None

    async def complete(self, messages):
        self.calls.append([dict(m) for m in messages])
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSlot:
    def __init__(self) -> None:
        self.history: list[tuple[str, str]] = []
        self.retryable: bool | None = None

    def set_placeholder(self, text: str) -> None:
        self.history.append(("placeholder", text))

    def set_content(self, text: str, html: str) -> None:
        self.history.append(("content", html))

    def set_error(self, text: str, retryable: bool = True) -> None:
        self.retryable = retryable
        self.history.append(("error", text))

    @property
    def current(self) -> tuple[str, str]:
        return self.history[-1]


class RecordingView:
    def __init__(self) -> None:
        self.slots: list[RecordingSlot] = []
        self.input_events: list[bool] = []

    def create_slot(self) -> RecordingSlot:
        slot = RecordingSlot()
        self.slots.append(slot)
        return slot

    def set_input_enabled(self, enabled: bool) -> None:
        self.input_events.append(enabled)


class FakeProvider:
    """Contribution-summary provider returning a fixed payload."""

    def __init__(self, result: ContributionSummary | ProviderError | Exception) -> None:
        self.result = result
        self.calls: list[tuple[str, int]] = []

    async def get_contribution_summary(self, username: str, repo_limit: int = 5):
        self.calls.append((username, repo_limit))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def assistant(content: str) -> dict[str, str]:
    return {"role": "assistant", "content": content}


def http_error(status: int) -> CompletionError:
    from foliochat.errors import classify_status

    return CompletionError(classify_status(status), status, "scripted")


def network_error() -> CompletionError:
    return CompletionError(ChatErrorKind.NETWORK_ERROR, None, "connection refused")


def make_summary() -> ContributionSummary:
    return ContributionSummary(
        username="sridhar1805",
        total_repositories=2,
        contribution_summary=[
            RepositoryActivity(
                repository="Flood-Prediction",
                description="Flood forecasting using the KNN algorithm",
                language="Python",
                stars=4,
                forks=1,
                recent_commits=[
                    Commit(sha="abc1234", message="✨ Add rainfall features"),
                    Commit(sha="def5678", message="Fix CSV loader\n\nlong body"),
                ],
            ),
            RepositoryActivity(
                repository="NM-House-Rent-RentEase-",
                description="MERN rental property platform",
                language="JavaScript",
                recent_commits=[],
            ),
        ],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
