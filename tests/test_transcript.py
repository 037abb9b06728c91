"""Tests for the conversation transcript."""

from __future__ import annotations

from foliochat.transcript import ConversationTranscript


def _roles(transcript: ConversationTranscript) -> list[str]:
    return [t.role for t in transcript]


class TestTranscript:
    def test_starts_with_system_and_greeting(self):
        t = ConversationTranscript("SYS", greeting="Hello!")
        assert len(t) == 2
        assert t.system_prompt == "SYS"
        assert t.to_messages() == [
            {"role": "system", "content": "SYS"},
            {"role": "assistant", "content": "Hello!"},
        ]

    def test_without_greeting(self):
        t = ConversationTranscript("SYS")
        assert _roles(t) == ["system"]
        assert t.last_user_index() is None

    def test_error_turn_format(self):
        t = ConversationTranscript("SYS")
        t.append_user("hi")
        t.append_error("Rate limited")
        assert t.turns[-1].role == "assistant"
        assert t.turns[-1].content == "[Error: Rate limited]"

    def test_turns_is_a_snapshot(self):
        t = ConversationTranscript("SYS")
        snapshot = t.turns
        t.append_user("hi")
        assert len(snapshot) == 1


class TestScratchTurns:
    def test_scratch_before_last_user(self):
        t = ConversationTranscript("SYS", greeting="Hello!")
        t.append_user("first")
        t.append_assistant("answer")
        t.append_user("second")
        t.add_scratch_before_last_user("CONTEXT")

        assert _roles(t) == ["system", "assistant", "user", "assistant", "system", "user"]
        assert t.turns[4].content == "CONTEXT"
        assert t.turns[5].content == "second"
        assert t.last_user_index() == 5

    def test_scratch_before_user_without_user_appends(self):
        t = ConversationTranscript("SYS")
        t.add_scratch_before_last_user("CONTEXT")
        assert _roles(t) == ["system", "system"]

    def test_scratch_turn_sent_as_plain_system_message(self):
        t = ConversationTranscript("SYS")
        t.append_user("hi")
        t.add_scratch("REMINDER")
        assert t.to_messages()[-1] == {"role": "system", "content": "REMINDER"}
        assert "scratch" not in t.to_messages()[-1]

    def test_clear_scratch_keeps_permanent_system_turn(self):
        t = ConversationTranscript("SYS", greeting="Hello!")
        t.append_user("q")
        t.add_scratch_before_last_user("CONTEXT")
        t.add_scratch("REMINDER")
        assert t.has_scratch()

        removed = t.clear_scratch()

        assert removed == 2
        assert not t.has_scratch()
        assert [(t_.role, t_.content) for t_ in t] == [
            ("system", "SYS"),
            ("assistant", "Hello!"),
            ("user", "q"),
        ]
        assert t.clear_scratch() == 0

    def test_set_system_prompt_replaces_index_zero(self):
        t = ConversationTranscript("old")
        t.append_user("q")
        t.set_system_prompt("new")
        assert t.turns[0].content == "new"
        assert not t.turns[0].scratch
        assert len(t) == 2
