"""Chat session state: optimistic threads, streaming, and reconciliation."""

import asyncio
import logging
import time

from ellen_core.chat.client import ChatClient
from ellen_core.chat.threads import ThreadStreamHandler, create_optimistic_thread
from ellen_core.data import ChatSession, Thread
from ellen_core.errors import ChatRequestError
from ellen_core.materials import MaterialCatalog
from ellen_core.run_logger import RunLogger
from ellen_core.store.base import SessionStore

logger = logging.getLogger(__name__)

_TITLE_CHARS = 50


class ChatSessionController:
    """Owns one chat session and drives message streaming for it.

    Flow of ``send_message``:
    1. Cancel any stream still in flight
    2. Append an optimistic thread so the message shows immediately
    3. Stream the reply into that thread
    4. Fetch the persisted session and swap it in wholesale

    Args:
        client: Chat endpoint client.
        store: Session store used to create and reload sessions.
        catalog: Optional materials catalog for resolving streamed names.
        project_id: Project new sessions are created under.
        run_logger: Optional RunLogger for intermediate result logging.
    """

    def __init__(
        self,
        client: ChatClient,
        store: SessionStore,
        *,
        catalog: MaterialCatalog | None = None,
        project_id: str | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._catalog = catalog
        self._project_id = project_id
        self._run_logger = run_logger
        self._session: ChatSession | None = None
        self._in_flight: asyncio.Event | None = None

    @property
    def session(self) -> ChatSession | None:
        return self._session

    @property
    def is_streaming(self) -> bool:
        return self._in_flight is not None

    async def load(self, session_id: str) -> ChatSession:
        """Load an existing session from the store."""
        self._session = await self._store.fetch_session(session_id)
        return self._session

    def cancel(self) -> None:
        """Cancel the stream in flight, if any."""
        if self._in_flight is not None:
            logger.info("Cancelling in-flight chat stream")
            self._in_flight.set()
            self._in_flight = None

    async def send_message(self, content: str) -> Thread:
        """Send a message and stream the reply.

        Args:
            content: The user's message.

        Returns:
            The thread for this message: the persisted copy when the session
            could be reloaded, otherwise the optimistic thread as streamed.

        Raises:
            ChatRequestError: If the chat endpoint could not be reached or
                rejected the request. The optimistic thread keeps the error.
        """
        self.cancel()
        cancelled = asyncio.Event()
        self._in_flight = cancelled

        if self._session is None:
            self._session = await self._store.create_session(
                content[:_TITLE_CHARS] or "New Chat", self._project_id
            )

        thread = create_optimistic_thread(self._session.id, content)
        self._session = self._session.with_thread(thread)
        handler = ThreadStreamHandler(thread, self._catalog)

        if self._run_logger:
            self._run_logger.start_run("chat", {"session_id": self._session.id, "message": content})

        t0 = time.monotonic()
        try:
            aggregator = await self._client.stream_reply(
                session_id=self._session.id,
                message=content,
                handler=handler,
                project_id=self._project_id,
                cancelled=cancelled,
            )
        except ChatRequestError as e:
            thread.error = str(e)
            handler.finish()
            if self._run_logger:
                self._run_logger.log_stage(
                    stage="stream",
                    component=type(self._client).__name__,
                    input_data={"message": content},
                    output_data={"error": str(e), "status_code": e.status_code},
                    duration_seconds=time.monotonic() - t0,
                )
            self._finish_run(thread)
            raise
        finally:
            handler.finish()
            if self._in_flight is cancelled:
                self._in_flight = None
        stream_duration = time.monotonic() - t0

        if self._run_logger:
            self._run_logger.log_stage(
                stage="stream",
                component=type(self._client).__name__,
                input_data={"message": content},
                output_data=thread,
                duration_seconds=stream_duration,
            )

        if aggregator.cancelled or aggregator.failed:
            # Keep the partial answer and its error visible instead of reloading.
            logger.info("Stream for thread %s ended early", thread.thread_id)
            self._finish_run(thread)
            return thread

        result = await self._reconcile(thread)
        self._finish_run(result)
        return result

    async def _reconcile(self, thread: Thread) -> Thread:
        """Swap the optimistic session state for the persisted one."""
        assert self._session is not None
        t0 = time.monotonic()
        try:
            persisted = await self._store.fetch_session(self._session.id)
        except Exception as e:
            logger.warning("Could not reload session %s: %s", self._session.id, e)
            return thread

        # Placeholders for messages sent after this one are still streaming.
        position = next(
            (i for i, t in enumerate(self._session.threads) if t is thread),
            len(self._session.threads),
        )
        later = tuple(t for t in self._session.threads[position + 1 :] if t.is_optimistic)
        self._session = ChatSession(
            id=persisted.id,
            title=persisted.title,
            project_id=persisted.project_id,
            threads=(*persisted.threads, *later),
        )

        if self._run_logger:
            self._run_logger.log_stage(
                stage="reconcile",
                component=type(self._store).__name__,
                input_data={"optimistic_thread_id": thread.thread_id},
                output_data={"thread_count": len(persisted.threads)},
                duration_seconds=time.monotonic() - t0,
            )
        return persisted.threads[-1] if persisted.threads else thread

    def _finish_run(self, thread: Thread) -> None:
        if self._run_logger:
            self._run_logger.finish_run(len(thread.sources) + len(thread.related_materials))
