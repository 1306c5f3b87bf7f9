"""Aggregation of a chat event stream into handler callbacks.

The aggregator suspends only while awaiting ``reader.read()``. Everything
between two reads (decode, split, parse, dispatch) runs synchronously, so
callbacks fire strictly in stream order.
"""

import asyncio
import logging

from ellen_core.data import EventType, StreamEvent
from ellen_core.errors import StreamCancelledError, StreamError
from ellen_core.stream.base import ByteStreamReader, StreamHandler
from ellen_core.stream.parser import StreamParser

logger = logging.getLogger(__name__)


class StreamAggregator:
    """Turn a byte stream of chat events into ``StreamHandler`` callbacks.

    Token payloads are deltas; the handler always receives the cumulative
    text. Source, material and suggestion payloads replace the previous list.

    Args:
        handler: Receiver of the aggregated results.
        encoding: Text encoding of the stream.
    """

    def __init__(self, handler: StreamHandler, *, encoding: str = "utf-8") -> None:
        self._handler = handler
        self._parser = StreamParser(encoding)
        self._text = ""
        self._failed = False
        self._cancelled = False

    @property
    def text(self) -> str:
        """Assistant text aggregated so far."""
        return self._text

    @property
    def failed(self) -> bool:
        """Whether the stream ended through ``on_error``."""
        return self._failed

    @property
    def cancelled(self) -> bool:
        """Whether the stream ended through cancellation."""
        return self._cancelled

    @property
    def skipped_lines(self) -> int:
        return self._parser.skipped_lines

    def dispatch(self, event: StreamEvent) -> bool:
        """Deliver one event to the handler.

        Returns:
            False if the event terminates the stream, True otherwise.
        """
        match event.type:
            case EventType.TOKEN:
                self._text += event.content
                self._handler.on_token(self._text)
            case EventType.SOURCES:
                self._handler.on_sources(list(event.content))
            case EventType.MATERIALS:
                self._handler.on_materials(list(event.content))
            case EventType.SUGGESTIONS:
                self._handler.on_suggestions(list(event.content))
            case EventType.ERROR:
                self._fail(StreamError(event.content))
                return False
            case _:
                logger.warning("Ignoring unknown stream event type: %s", event.type)
        return True

    def feed(self, chunk: bytes) -> bool:
        """Parse and dispatch one chunk. Returns False once the stream has ended."""
        return self._dispatch_all(self._parser.feed(chunk))

    def close(self) -> bool:
        """Dispatch whatever is still buffered at end-of-stream."""
        return self._dispatch_all(self._parser.close())

    async def run(
        self,
        reader: ByteStreamReader,
        *,
        cancelled: asyncio.Event | None = None,
    ) -> str:
        """Read ``reader`` to the end, dispatching events as they arrive.

        The reader is cancelled exactly once unless end-of-stream was reached.
        Cancellation (through ``cancelled`` or a ``StreamCancelledError`` from
        the reader) ends the loop without further callbacks and without
        ``on_error``.

        Args:
            reader: Source of raw response bytes.
            cancelled: Optional signal set by the caller to abandon the stream.

        Returns:
            The aggregated assistant text.
        """
        drained = False
        try:
            while True:
                if cancelled is not None and cancelled.is_set():
                    self._cancelled = True
                    break
                try:
                    chunk = await reader.read()
                except StreamCancelledError:
                    logger.info("Stream was cancelled")
                    self._cancelled = True
                    break
                except StreamError as e:
                    self._fail(e)
                    break
                except Exception as e:
                    self._fail(StreamError(f"Stream read error: {e}"))
                    break

                if chunk is None:
                    drained = True
                    if cancelled is None or not cancelled.is_set():
                        self.close()
                    break
                if cancelled is not None and cancelled.is_set():
                    self._cancelled = True
                    break
                if not self.feed(chunk):
                    break
        finally:
            if not drained:
                await self._release(reader)
        return self._text

    def _dispatch_all(self, events: list[StreamEvent]) -> bool:
        for index, event in enumerate(events):
            if not self.dispatch(event):
                dropped = len(events) - index - 1
                if dropped:
                    logger.info("Dropped %d event(s) after stream error", dropped)
                return False
        return True

    def _fail(self, error: Exception) -> None:
        logger.error("Chat stream failed: %s", error)
        self._failed = True
        self._handler.on_error(error)

    async def _release(self, reader: ByteStreamReader) -> None:
        try:
            await reader.cancel("Stream processing completed or interrupted")
        except Exception as e:
            logger.warning("Error cancelling stream reader: %s", e)
