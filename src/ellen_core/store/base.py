"""Protocols for the data stores the core reads from."""

from typing import Protocol

from ellen_core.data import ChatSession, Material, NewsItem, SessionDocument


class SessionStore(Protocol):
    """Persisted chat sessions and their threads."""

    async def fetch_session(self, session_id: str) -> ChatSession:
        """Fetch a session with all of its persisted threads, oldest first.

        Raises:
            LookupError: If the session does not exist.
        """
        ...

    async def create_session(self, title: str, project_id: str | None = None) -> ChatSession:
        """Create an empty session."""
        ...


class NewsStore(Protocol):
    """Filtered listing over the news feed."""

    async def get_news_item(self, item_id: str) -> NewsItem:
        """Fetch one visible news item.

        Raises:
            LookupError: If no visible item has the given id.
        """
        ...

    async def list_news(
        self,
        *,
        cluster: str | None = None,
        geography: str | None = None,
        type: str | None = None,
        limit: int = 60,
    ) -> list[NewsItem]:
        """List the most recent news items matching every given filter."""
        ...


class DocumentStore(Protocol):
    """Uploaded documents and their content chunks."""

    async def list_session_documents(
        self,
        session_id: str,
        *,
        filename: str | None = None,
    ) -> list[SessionDocument]:
        """List documents attached to a session, optionally filtered by filename."""
        ...

    async def list_documents_by_filename(
        self,
        pattern: str,
        *,
        limit: int = 3,
    ) -> list[SessionDocument]:
        """List documents from any session whose filename contains ``pattern``.

        Returns the most recently uploaded documents first.
        """
        ...


class MaterialStore(Protocol):
    """The materials reference catalog."""

    async def list_materials(self) -> list[Material]:
        """List every catalog record."""
        ...
