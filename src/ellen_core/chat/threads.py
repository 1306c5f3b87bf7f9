"""Optimistic threads and the stream handler that fills them in."""

import logging
import secrets
import string
import time

from ellen_core.data import Material, Message, Role, Source, Thread
from ellen_core.materials import MaterialCatalog, dedupe_materials

logger = logging.getLogger(__name__)

TEMP_ID_PREFIX = "temp-"
_BASE36 = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 8


def _random_suffix() -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(_SUFFIX_LENGTH))


def create_optimistic_thread(session_id: str, content: str) -> Thread:
    """Create a placeholder thread for a message that was just submitted.

    The temporary id combines the current time in milliseconds with a random
    suffix, so two calls within the same millisecond still differ. The
    placeholder is never persisted; it is replaced wholesale once the server
    copy is fetched.

    Args:
        session_id: Session the message belongs to.
        content: The user's message text.

    Returns:
        A streaming thread with empty assistant content and empty lists.
    """
    temp_id = f"{TEMP_ID_PREFIX}{time.time_ns() // 1_000_000}-{_random_suffix()}"
    return Thread(
        thread_id=temp_id,
        session_id=session_id,
        user_message=Message(
            id=f"{temp_id}-user",
            session_id=session_id,
            role=Role.USER,
            content=content,
        ),
        assistant_message=Message(
            id=f"{temp_id}-assistant",
            session_id=session_id,
            role=Role.ASSISTANT,
        ),
        is_streaming=True,
    )


class ThreadStreamHandler:
    """``StreamHandler`` that writes stream results into a single thread.

    Lists are replaced, never appended to. Materials are deduplicated by name
    and, when a catalog is available, name-only entries are resolved to their
    catalog records.

    Args:
        thread: The thread owned by the stream.
        catalog: Optional materials catalog for resolving bare names.
    """

    def __init__(self, thread: Thread, catalog: MaterialCatalog | None = None) -> None:
        self._thread = thread
        self._catalog = catalog
        self._finished = False
        self._thread.is_streaming = True

    @property
    def thread(self) -> Thread:
        return self._thread

    def on_token(self, text: str) -> None:
        if self._accepting("token"):
            self._thread.assistant_message.content = text

    def on_sources(self, sources: list[Source]) -> None:
        if self._accepting("sources"):
            self._thread.sources = list(sources)

    def on_materials(self, materials: list[Material]) -> None:
        if self._accepting("materials"):
            self._thread.related_materials = dedupe_materials(
                self._enrich(m) for m in materials
            )

    def on_suggestions(self, suggestions: list[str]) -> None:
        if self._accepting("suggestions"):
            self._thread.suggested_questions = list(suggestions)

    def on_error(self, error: Exception) -> None:
        if self._accepting("error"):
            self._thread.error = str(error)

    def finish(self) -> Thread:
        """Mark the stream as over; later callbacks are ignored."""
        self._finished = True
        self._thread.is_streaming = False
        return self._thread

    def _accepting(self, kind: str) -> bool:
        if self._finished:
            logger.warning(
                "Ignoring %s update for finished thread %s", kind, self._thread.thread_id
            )
            return False
        return True

    def _enrich(self, material: Material) -> Material:
        if self._catalog is None or material.id is not None:
            return material
        return self._catalog.lookup(material.name) or material
