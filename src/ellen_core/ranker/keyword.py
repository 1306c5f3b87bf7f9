"""Keyword search over uploaded document chunks.

A chunk is admitted only if it contains the whole query (case-insensitive).
Admitted chunks are scored by keyword density::

    score = occurrences(query) / len(content) * 1000

which favors short chunks with many hits over long chunks with
proportionally fewer.
"""

import logging
import re

from ellen_core.data import DocumentSearchHit, DocumentSearchResult, SessionDocument
from ellen_core.store.base import DocumentStore

logger = logging.getLogger(__name__)

# All-caps tokens such as "FEOC" or "IRA" name the document family a query is about.
_ACRONYM_RE = re.compile(r"\b[A-Z][A-Z0-9]{1,9}\b")

SCOPE_SESSION = "session"
SCOPE_DOCUMENT_NAME = "document_name"
SCOPE_FILENAME_KEYWORD = "filename_keyword"


def count_occurrences(content: str, query: str) -> int:
    """Count non-overlapping, case-insensitive occurrences of ``query``."""
    needle = query.lower()
    if not needle:
        return 0
    return content.lower().count(needle)


def keyword_density(content: str, query: str) -> float:
    """Score a chunk by query occurrences per thousand characters (0 if absent)."""
    haystack = content.lower()
    matches = count_occurrences(haystack, query)
    if matches == 0:
        return 0.0
    return matches / len(haystack) * 1000


def filename_keyword(query: str) -> str | None:
    """Derive a filename keyword from a query: its first all-caps acronym."""
    match = _ACRONYM_RE.search(query)
    return match.group(0) if match else None


def rank_chunks(
    documents: list[SessionDocument],
    query: str,
    top_k: int = 5,
) -> tuple[list[DocumentSearchHit], int]:
    """Score every chunk of ``documents`` against ``query``.

    Returns:
        Tuple of (top-k hits sorted by descending score, total matching chunks).
    """
    hits: list[DocumentSearchHit] = []
    for document in documents:
        for chunk in document.chunks:
            score = keyword_density(chunk.content, query)
            if score <= 0:
                continue
            hits.append(
                DocumentSearchHit(
                    document_name=document.filename,
                    chunk_id=chunk.id,
                    content=chunk.content,
                    score=score,
                    metadata=chunk.metadata,
                )
            )
    hits.sort(key=lambda hit: hit.score, reverse=True)
    return hits[:top_k], len(hits)


class DocumentChunkSearcher:
    """Search the documents uploaded to a chat session.

    Documents are scoped in three steps, stopping at the first that yields
    any: the session's own documents; documents matching an explicit
    ``document_name``; the most recent documents whose filename contains a
    keyword derived from the query. The later steps cover uploads that are
    not yet linked to the session when the search runs.

    Args:
        store: Store holding uploaded documents.
        top_k: Number of chunks returned.
        max_fallback_documents: Cap on documents considered by the keyword fallback.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        top_k: int = 5,
        max_fallback_documents: int = 3,
    ) -> None:
        self._store = store
        self._top_k = top_k
        self._max_fallback = max_fallback_documents

    async def search(
        self,
        query: str,
        *,
        session_id: str,
        document_name: str | None = None,
    ) -> DocumentSearchResult:
        """Search documents for ``query``.

        Args:
            query: Free-text query matched as a whole substring.
            session_id: Active chat session.
            document_name: Optional filename filter.

        Returns:
            A successful result (possibly with no documents), or a failed
            result if the document store raised.
        """
        logger.info("Searching documents for session %s, query: %s", session_id, query)
        try:
            documents, scope = await self._scoped_documents(query, session_id, document_name)
        except Exception as e:
            logger.error("Document search failed for session %s: %s", session_id, e)
            return DocumentSearchResult.failed(query, str(e))

        if not documents:
            logger.info("No documents found for session %s", session_id)
            return DocumentSearchResult.empty(query)

        hits, total = rank_chunks(documents, query, self._top_k) if query.strip() else ([], 0)
        logger.info(
            "Found %d matching chunks in %d document(s) (scope=%s), returning %d",
            total,
            len(documents),
            scope,
            len(hits),
        )
        return DocumentSearchResult.found(
            query,
            hits,
            total_documents=len(documents),
            total_results=total,
            scope=scope,
        )

    async def _scoped_documents(
        self,
        query: str,
        session_id: str,
        document_name: str | None,
    ) -> tuple[list[SessionDocument], str | None]:
        documents = await self._store.list_session_documents(session_id, filename=document_name)
        if documents:
            return documents, SCOPE_SESSION

        if document_name:
            documents = await self._store.list_documents_by_filename(
                document_name, limit=self._max_fallback
            )
            if documents:
                logger.info("Using documents matching name %r outside the session", document_name)
            return documents, SCOPE_DOCUMENT_NAME

        keyword = filename_keyword(query)
        if keyword is None:
            return [], None
        documents = await self._store.list_documents_by_filename(keyword, limit=self._max_fallback)
        if documents:
            logger.info("Using recent documents matching keyword %r", keyword)
        return documents, SCOPE_FILENAME_KEYWORD
