"""Conversation transcript with one permanent system turn."""

from __future__ import annotations

from collections.abc import Iterator

from .models import Turn


class ConversationTranscript:
    """Ordered turns sent to the model as prompt history.

    Index 0 always holds the permanent system turn. Any other system turn is
    a scratch turn and disappears at the next :meth:`clear_scratch`.
    """

    def __init__(self, system_prompt: str, greeting: str | None = None) -> None:
        self._turns: list[Turn] = [Turn(role="system", content=system_prompt)]
        if greeting:
            self._turns.append(Turn(role="assistant", content=greeting))

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def system_prompt(self) -> str:
        return self._turns[0].content

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def last_user_index(self) -> int | None:
        for index in range(len(self._turns) - 1, -1, -1):
            if self._turns[index].role == "user":
                return index
        return None

    def has_scratch(self) -> bool:
        return any(t.scratch for t in self._turns)

    def to_messages(self) -> list[dict[str, str]]:
        """Wire format for the completion endpoint."""
        return [t.to_message() for t in self._turns]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_system_prompt(self, prompt: str) -> None:
        self._turns[0] = Turn(role="system", content=prompt)

    def append_user(self, content: str) -> None:
        self._turns.append(Turn(role="user", content=content))

    def append_assistant(self, content: str) -> None:
        self._turns.append(Turn(role="assistant", content=content))

    def append_error(self, label: str) -> None:
        """Record a failed exchange so the log stays coherent."""
        self.append_assistant(f"[Error: {label}]")

    def add_scratch(self, content: str) -> None:
        """Append a transient steering turn at the end."""
        self._turns.append(Turn(role="system", content=content, scratch=True))

    def add_scratch_before_last_user(self, content: str) -> None:
        """Insert a transient turn immediately before the latest user turn."""
        index = self.last_user_index()
        if index is None:
            self.add_scratch(content)
            return
        self._turns.insert(index, Turn(role="system", content=content, scratch=True))

    def clear_scratch(self) -> int:
        """Drop every scratch turn; returns how many were removed."""
        before = len(self._turns)
        self._turns = [t for t in self._turns if not t.scratch]
        return before - len(self._turns)
