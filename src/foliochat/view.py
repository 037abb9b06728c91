"""UI boundary of the chat core.

Each exchange owns one :class:`MessageSlot`, mutated in place as the
exchange moves from placeholder to its terminal content.
"""

from __future__ import annotations

from typing import Protocol

THINKING = "Thinking..."
RETRYING = "Retrying..."


class MessageSlot(Protocol):
    def set_placeholder(self, text: str) -> None: ...

    def set_content(self, text: str, html: str) -> None: ...

    def set_error(self, text: str, retryable: bool = True) -> None: ...


class ChatView(Protocol):
    def create_slot(self) -> MessageSlot: ...

    def set_input_enabled(self, enabled: bool) -> None: ...


class NoOpSlot:
    """Drop-in slot that does nothing; used for headless sessions."""

    def set_placeholder(self, text: str) -> None:
        pass

    def set_content(self, text: str, html: str) -> None:
        pass

    def set_error(self, text: str, retryable: bool = True) -> None:
        pass


class NoOpView:
    """Drop-in replacement that does nothing; used when no UI is attached."""

    def create_slot(self) -> MessageSlot:
        return NoOpSlot()

    def set_input_enabled(self, enabled: bool) -> None:
        pass
