"""Byte stream readers for the stream aggregator."""

import logging
from collections.abc import AsyncIterator, Iterable

import httpx

from ellen_core.errors import StreamCancelledError

logger = logging.getLogger(__name__)


class HttpxByteReader:
    """Read the body of a streamed ``httpx.Response`` chunk by chunk.

    The response must have been opened with ``client.stream(...)``.

    Args:
        response: Streaming response whose body is not yet consumed.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._chunks: AsyncIterator[bytes] = response.aiter_bytes()
        self.cancel_count = 0

    async def read(self) -> bytes | None:
        try:
            return await anext(self._chunks)
        except StopAsyncIteration:
            return None
        except httpx.StreamClosed as e:
            raise StreamCancelledError("Response stream was closed") from e

    async def cancel(self, reason: str) -> None:
        self.cancel_count += 1
        logger.debug("Closing response stream: %s", reason)
        await self._response.aclose()


class IterableByteReader:
    """Serve a fixed sequence of chunks, e.g. a recorded response body.

    Args:
        chunks: Chunks returned by successive ``read`` calls.
    """

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self._chunks = iter(chunks)
        self.cancel_count = 0
        self.cancel_reason: str | None = None

    async def read(self) -> bytes | None:
        return next(self._chunks, None)

    async def cancel(self, reason: str) -> None:
        self.cancel_count += 1
        self.cancel_reason = reason
