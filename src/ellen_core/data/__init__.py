"""Data models for Ellen."""

from ellen_core.data.models import (
    ChatSession,
    DocumentChunk,
    DocumentSearchHit,
    DocumentSearchResult,
    EventType,
    Material,
    Message,
    NewsItem,
    Role,
    SessionDocument,
    Source,
    StreamEvent,
    Thread,
)

__all__ = [
    "ChatSession",
    "DocumentChunk",
    "DocumentSearchHit",
    "DocumentSearchResult",
    "EventType",
    "Material",
    "Message",
    "NewsItem",
    "Role",
    "SessionDocument",
    "Source",
    "StreamEvent",
    "Thread",
]
