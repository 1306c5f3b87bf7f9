"""HTTP client for the streaming chat endpoint."""

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from ellen_core.errors import ChatRequestError
from ellen_core.stream import HttpxByteReader, StreamAggregator, StreamHandler

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_ENDPOINT = "/api/chat"


class ChatClient:
    """Send a chat message and stream the reply into a ``StreamHandler``.

    Args:
        base_url: Application base URL (defaults to ELLEN_BASE_URL env var,
            then ``http://localhost:3000``).
        endpoint: Path of the chat endpoint.
        timeout: Request timeout in seconds.
        http_client: Optional shared client; when given it is not closed here.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        base_url = base_url or os.environ.get("ELLEN_BASE_URL") or DEFAULT_BASE_URL
        self._base_url = base_url.rstrip("/")
        self._endpoint = endpoint
        self._timeout = timeout
        self._http_client = http_client

    @property
    def url(self) -> str:
        return f"{self._base_url}{self._endpoint}"

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def stream_reply(
        self,
        *,
        session_id: str,
        message: str,
        handler: StreamHandler,
        project_id: str | None = None,
        cancelled: asyncio.Event | None = None,
    ) -> StreamAggregator:
        """Post ``message`` and stream the assistant reply into ``handler``.

        Args:
            session_id: Session the message belongs to.
            message: The user's message.
            handler: Receiver of tokens, sources, materials and suggestions.
            project_id: Optional project the session belongs to.
            cancelled: Optional signal to abandon the stream.

        Returns:
            The aggregator, holding the final text and termination state.

        Raises:
            ChatRequestError: If the request fails or the endpoint answers with
                an error status.
        """
        payload = {"session_id": session_id, "message": message, "project_id": project_id}
        aggregator = StreamAggregator(handler)

        try:
            async with self._client() as client:
                async with client.stream("POST", self.url, json=payload) as response:
                    if response.is_error:
                        raise ChatRequestError(
                            f"Stream error: {response.status_code} {response.reason_phrase}",
                            status_code=response.status_code,
                        )
                    await aggregator.run(HttpxByteReader(response), cancelled=cancelled)
        except httpx.TransportError as e:
            raise ChatRequestError(f"Chat request failed: {e}") from e

        logger.info(
            "Chat stream finished for session %s (%d chars, %d skipped lines)",
            session_id,
            len(aggregator.text),
            aggregator.skipped_lines,
        )
        return aggregator
