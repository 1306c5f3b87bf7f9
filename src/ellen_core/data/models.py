"""Core data models for Ellen."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class EventType(StrEnum):
    """Tags of the newline-delimited JSON records sent by the chat backend."""

    TOKEN = "token"
    SOURCES = "sources"
    MATERIALS = "materials"
    SUGGESTIONS = "suggestions"
    ERROR = "error"


class Role(StrEnum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Source:
    """A reference cited by an assistant answer. Identity is the URL."""

    title: str
    url: str
    snippet: str | None = None


@dataclass(frozen=True)
class Material:
    """A record from the materials reference catalog.

    ``scores`` holds the 1-5 risk scores keyed by their catalog column name
    (``supply_score``, ``ownership_score``, ...).
    """

    name: str
    id: str | None = None
    symbol: str | None = None
    short_summary: str | None = None
    summary: str | None = None
    color: str | None = None
    url: str | None = None
    scores: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class StreamEvent:
    """One parsed stream record with its payload converted to typed values."""

    type: str
    content: Any = None


@dataclass
class Message:
    """A user or assistant message. Assistant content grows while streaming."""

    id: str
    session_id: str
    role: Role
    content: str = ""


@dataclass
class Thread:
    """A single question/answer exchange within a chat session.

    Mutated only by the stream handler that owns it while ``is_streaming`` is
    set; treated as immutable afterwards.
    """

    thread_id: str
    session_id: str
    user_message: Message
    assistant_message: Message
    sources: list[Source] = field(default_factory=list)
    related_materials: list[Material] = field(default_factory=list)
    suggested_questions: list[str] = field(default_factory=list)
    created_at: str | None = None
    is_streaming: bool = False
    error: str | None = None

    @property
    def is_optimistic(self) -> bool:
        """Whether this thread is a client-side placeholder not yet persisted."""
        return self.thread_id.startswith("temp-")


@dataclass(frozen=True)
class ChatSession:
    """A chat session and its threads, oldest first.

    Frozen: every change yields a new session so callers swap whole values
    instead of merging fields.
    """

    id: str
    title: str = "New Chat"
    project_id: str | None = None
    threads: tuple[Thread, ...] = ()

    def with_thread(self, thread: Thread) -> "ChatSession":
        return ChatSession(
            id=self.id,
            title=self.title,
            project_id=self.project_id,
            threads=(*self.threads, thread),
        )

    def replace_thread(self, thread_id: str, thread: Thread) -> "ChatSession":
        """Return a session where the thread ``thread_id`` is swapped for ``thread``.

        Raises:
            KeyError: If no thread has the given id.
        """
        if not any(t.thread_id == thread_id for t in self.threads):
            raise KeyError(thread_id)
        return ChatSession(
            id=self.id,
            title=self.title,
            project_id=self.project_id,
            threads=tuple(thread if t.thread_id == thread_id else t for t in self.threads),
        )


@dataclass(frozen=True)
class NewsItem:
    """A news article used as input for related-article ranking."""

    id: str
    headline: str
    source: str = ""
    published_at: datetime | None = None
    geographic_focus: str | None = None
    interest_cluster: str | None = None
    type: str | None = None
    related_materials: tuple[str, ...] = ()


@dataclass(frozen=True)
class DocumentChunk:
    """A chunk of an uploaded document produced by the ingestion pipeline."""

    id: str
    content: str
    chunk_index: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SessionDocument:
    """An uploaded document together with its content chunks."""

    id: str
    filename: str
    session_id: str | None = None
    uploaded_at: datetime | None = None
    chunks: tuple[DocumentChunk, ...] = ()


@dataclass(frozen=True)
class DocumentSearchHit:
    """A document chunk that matched a keyword search."""

    document_name: str
    chunk_id: str
    content: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DocumentSearchResult:
    """Outcome of a document-chunk search.

    ``success=False`` means the store failed. Finding nothing is a success
    with ``total_documents == 0`` and an explanatory ``message``.
    """

    success: bool
    query: str
    hits: tuple[DocumentSearchHit, ...] = ()
    total_documents: int = 0
    total_results: int = 0
    scope: str | None = None
    message: str | None = None
    error: str | None = None

    @property
    def no_documents(self) -> bool:
        return self.success and self.total_documents == 0

    @classmethod
    def found(
        cls,
        query: str,
        hits: list[DocumentSearchHit],
        *,
        total_documents: int,
        total_results: int,
        scope: str,
    ) -> "DocumentSearchResult":
        return cls(
            success=True,
            query=query,
            hits=tuple(hits),
            total_documents=total_documents,
            total_results=total_results,
            scope=scope,
            message=(
                f"Found {len(hits)} relevant sections in {total_documents} uploaded document(s)"
            ),
        )

    @classmethod
    def empty(cls, query: str) -> "DocumentSearchResult":
        return cls(
            success=True,
            query=query,
            message="No documents found. Please upload a document first.",
        )

    @classmethod
    def failed(cls, query: str, error: str) -> "DocumentSearchResult":
        return cls(success=False, query=query, error=f"Failed to search documents: {error}")
