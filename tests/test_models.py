"""Tests for core data models."""

import pytest

from ellen_core.chat.threads import create_optimistic_thread
from ellen_core.data import (
    ChatSession,
    DocumentSearchHit,
    DocumentSearchResult,
    EventType,
    Message,
    Role,
    Source,
    StreamEvent,
    Thread,
)


class TestSource:
    def test_frozen(self) -> None:
        source = Source(title="IEA", url="https://iea.org")
        with pytest.raises(AttributeError):
            source.url = "other"  # type: ignore[misc]

    def test_snippet_optional(self) -> None:
        assert Source(title="IEA", url="https://iea.org").snippet is None


class TestStreamEvent:
    def test_event_type_compares_to_wire_tag(self) -> None:
        assert StreamEvent(type="token", content="x").type == EventType.TOKEN
        assert EventType("suggestions") is EventType.SUGGESTIONS


class TestThread:
    def test_persisted_thread_is_not_optimistic(self) -> None:
        thread = Thread(
            thread_id="42",
            session_id="s-1",
            user_message=Message("u", "s-1", Role.USER, "Q"),
            assistant_message=Message("a", "s-1", Role.ASSISTANT, "A"),
        )
        assert not thread.is_optimistic
        assert not thread.is_streaming
        assert thread.sources == []


class TestChatSession:
    def test_with_thread_returns_new_session(self) -> None:
        session = ChatSession(id="s-1")
        thread = create_optimistic_thread("s-1", "Q")

        updated = session.with_thread(thread)

        assert session.threads == ()
        assert updated.threads == (thread,)
        assert updated.id == "s-1"

    def test_replace_thread(self) -> None:
        first = create_optimistic_thread("s-1", "one")
        second = create_optimistic_thread("s-1", "two")
        replacement = create_optimistic_thread("s-1", "one again")
        session = ChatSession(id="s-1", threads=(first, second))

        updated = session.replace_thread(first.thread_id, replacement)

        assert updated.threads == (replacement, second)

    def test_replace_missing_thread_raises(self) -> None:
        with pytest.raises(KeyError):
            ChatSession(id="s-1").replace_thread("nope", create_optimistic_thread("s-1", "q"))


class TestDocumentSearchResult:
    def test_found(self) -> None:
        hit = DocumentSearchHit(document_name="a.pdf", chunk_id="c1", content="x", score=20.0)

        result = DocumentSearchResult.found(
            "x", [hit], total_documents=2, total_results=7, scope="session"
        )

        assert result.success
        assert not result.no_documents
        assert result.hits == (hit,)
        assert result.message == "Found 1 relevant sections in 2 uploaded document(s)"

    def test_empty(self) -> None:
        result = DocumentSearchResult.empty("x")
        assert result.success
        assert result.no_documents
        assert result.total_results == 0

    def test_failed(self) -> None:
        result = DocumentSearchResult.failed("x", "timeout")
        assert not result.success
        assert not result.no_documents
        assert result.error == "Failed to search documents: timeout"
