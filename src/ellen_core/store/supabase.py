"""Supabase-backed stores using the PostgREST HTTP API."""

import html
import json
import logging
import os
import re
from datetime import UTC, datetime
from typing import Any

import httpx

from ellen_core.data import (
    ChatSession,
    DocumentChunk,
    Material,
    Message,
    NewsItem,
    Role,
    SessionDocument,
    Source,
    Thread,
)
from ellen_core.materials import material_from_record

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")


def clean_html_text(text: str | None) -> str:
    """Decode HTML entities and strip tags from feed text."""
    if not text:
        return ""
    return _TAG_RE.sub("", html.unescape(text)).strip()


def parse_related_materials(value: Any) -> tuple[str, ...]:
    """Normalize a related-materials column (array, JSON string or CSV) to names."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            value = value.split(",")
    if not isinstance(value, list):
        return ()
    return tuple(v.strip() for v in value if isinstance(v, str) and v.strip())


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable timestamp: %s", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _news_from_row(row: dict[str, Any]) -> NewsItem:
    return NewsItem(
        id=str(row["id"]),
        headline=clean_html_text(row.get("title")) or "No title",
        source=row.get("source") or "",
        published_at=parse_timestamp(row.get("created_at")),
        geographic_focus=row.get("geographic_focus") or None,
        interest_cluster=row.get("interest_cluster") or None,
        type=row.get("type") or None,
        related_materials=parse_related_materials(row.get("related_materials")),
    )


def _document_from_row(row: dict[str, Any]) -> SessionDocument:
    chunks: list[DocumentChunk] = []
    raw_chunks = row.get("content_chunks")
    if isinstance(raw_chunks, list):
        for index, chunk in enumerate(raw_chunks):
            if not isinstance(chunk, dict) or not isinstance(chunk.get("content"), str):
                continue
            chunk_index = chunk.get("chunk_index")
            chunks.append(
                DocumentChunk(
                    id=str(chunk.get("id") or f"{row['id']}-{index}"),
                    content=chunk["content"],
                    chunk_index=int(chunk_index) if chunk_index is not None else index,
                    metadata=chunk.get("metadata") or {},
                )
            )
    session_id = row.get("session_id")
    return SessionDocument(
        id=str(row["id"]),
        filename=row.get("original_filename") or row.get("filename") or "unknown",
        session_id=str(session_id) if session_id else None,
        uploaded_at=parse_timestamp(row.get("uploaded_at") or row.get("processed_at")),
        chunks=tuple(chunks),
    )


def _threads_from_messages(session_id: str, rows: list[dict[str, Any]]) -> tuple[Thread, ...]:
    """Pair each user message with the assistant reply that follows it."""
    threads: list[Thread] = []
    for row in rows:
        role = row.get("role")
        if role == Role.USER:
            user_id = str(row["id"])
            threads.append(
                Thread(
                    thread_id=user_id,
                    session_id=session_id,
                    user_message=Message(user_id, session_id, Role.USER, row.get("content") or ""),
                    assistant_message=Message(f"{user_id}-assistant", session_id, Role.ASSISTANT),
                    created_at=row.get("created_at"),
                )
            )
        elif role == Role.ASSISTANT and threads:
            thread = threads[-1]
            thread.assistant_message = Message(
                str(row["id"]), session_id, Role.ASSISTANT, row.get("content") or ""
            )
            thread.sources = [
                Source(title=s.get("title") or s["url"], url=s["url"], snippet=s.get("snippet"))
                for s in row.get("sources") or []
                if isinstance(s, dict) and s.get("url")
            ]
            thread.related_materials = [
                material_from_record(m)
                for m in row.get("related_materials") or []
                if isinstance(m, dict) and m.get("material")
            ]
            thread.suggested_questions = [str(q) for q in row.get("suggested_questions") or []]
    return tuple(threads)


class SupabaseStore:
    """Read access to the Ellen Supabase tables.

    Implements ``SessionStore``, ``NewsStore``, ``DocumentStore`` and
    ``MaterialStore``.

    Args:
        url: Project URL (defaults to SUPABASE_URL env var).
        api_key: Service key (defaults to SUPABASE_SERVICE_KEY env var).
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        *,
        url: str | None = None,
        api_key: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._url = url or os.environ.get("SUPABASE_URL")
        if not self._url:
            raise ValueError("Supabase URL required. Pass url or set SUPABASE_URL env var.")
        self._api_key = api_key or os.environ.get("SUPABASE_SERVICE_KEY")
        if not self._api_key:
            raise ValueError(
                "Supabase API key required. Pass api_key or set SUPABASE_SERVICE_KEY env var."
            )
        self._timeout = timeout

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._api_key,  # type: ignore[dict-item]
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }

    def _table_url(self, table: str) -> str:
        return f"{self._url.rstrip('/')}/rest/v1/{table}"  # type: ignore[union-attr]

    async def _select(self, table: str, params: dict[str, str | int]) -> list[dict[str, Any]]:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(
                self._table_url(table), params=params, headers=self._headers
            )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"Unexpected response from {table}: {data!r}")
        return data

    async def fetch_session(self, session_id: str) -> ChatSession:
        rows = await self._select("sessions", {"select": "*", "id": f"eq.{session_id}"})
        if not rows:
            raise LookupError(f"Session not found: {session_id}")
        messages = await self._select(
            "messages",
            {"select": "*", "session_id": f"eq.{session_id}", "order": "created_at.asc"},
        )
        session = rows[0]
        return ChatSession(
            id=str(session["id"]),
            title=session.get("title") or "New Chat",
            project_id=session.get("project_id"),
            threads=_threads_from_messages(str(session["id"]), messages),
        )

    async def create_session(self, title: str, project_id: str | None = None) -> ChatSession:
        payload = {
            "title": title,
            "project_id": project_id,
            "metadata": {"created_by": "ellen_core"},
        }
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                self._table_url("sessions"),
                json=payload,
                headers={**self._headers, "Prefer": "return=representation"},
            )
        response.raise_for_status()
        row = response.json()[0]
        return ChatSession(
            id=str(row["id"]), title=row.get("title") or title, project_id=project_id
        )

    async def get_news_item(self, item_id: str) -> NewsItem:
        rows = await self._select(
            "rss_feeds", {"select": "*", "show": "eq.true", "id": f"eq.{item_id}"}
        )
        if not rows:
            raise LookupError(f"News item not found: {item_id}")
        return _news_from_row(rows[0])

    async def list_news(
        self,
        *,
        cluster: str | None = None,
        geography: str | None = None,
        type: str | None = None,
        limit: int = 60,
    ) -> list[NewsItem]:
        params: dict[str, str | int] = {
            "select": "*",
            "show": "eq.true",
            "order": "created_at.desc",
            "limit": limit,
        }
        if cluster:
            params["interest_cluster"] = f"eq.{cluster}"
        if geography:
            params["geographic_focus"] = f"eq.{geography}"
        if type:
            params["type"] = f"eq.{type}"
        rows = await self._select("rss_feeds", params)
        return [_news_from_row(row) for row in rows]

    async def list_session_documents(
        self,
        session_id: str,
        *,
        filename: str | None = None,
    ) -> list[SessionDocument]:
        params: dict[str, str | int] = {
            "select": "*",
            "session_id": f"eq.{session_id}",
            "order": "uploaded_at.desc",
        }
        if filename:
            params["original_filename"] = f"ilike.*{filename}*"
        rows = await self._select("session_documents", params)
        return [_document_from_row(row) for row in rows]

    async def list_documents_by_filename(
        self,
        pattern: str,
        *,
        limit: int = 3,
    ) -> list[SessionDocument]:
        rows = await self._select(
            "session_documents",
            {
                "select": "*",
                "original_filename": f"ilike.*{pattern}*",
                "order": "uploaded_at.desc",
                "limit": limit,
            },
        )
        return [_document_from_row(row) for row in rows]

    async def list_materials(self) -> list[Material]:
        rows = await self._select("materials", {"select": "*"})
        materials: list[Material] = []
        for row in rows:
            try:
                materials.append(material_from_record(row))
            except ValueError as e:
                logger.warning("Skipping catalog row: %s", e)
        return materials
