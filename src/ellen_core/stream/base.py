"""Protocols for chat stream consumption."""

from typing import Protocol

from ellen_core.data import Material, Source


class ByteStreamReader(Protocol):
    """Pull-based reader over the raw bytes of a chat response body."""

    async def read(self) -> bytes | None:
        """Read the next chunk.

        Returns:
            The next chunk of bytes, or None once the stream is exhausted.

        Raises:
            StreamCancelledError: If the consumer cancelled the stream.
        """
        ...

    async def cancel(self, reason: str) -> None:
        """Release the underlying transport before the stream is exhausted."""
        ...


class StreamHandler(Protocol):
    """Receives the aggregated results of a chat stream, in stream order."""

    def on_token(self, text: str) -> None:
        """Called with the full assistant text received so far."""
        ...

    def on_sources(self, sources: list[Source]) -> None:
        """Called with the complete source list as of this point in the stream."""
        ...

    def on_materials(self, materials: list[Material]) -> None:
        """Called with the complete material list as of this point in the stream."""
        ...

    def on_suggestions(self, suggestions: list[str]) -> None:
        """Called with the complete list of suggested follow-up questions."""
        ...

    def on_error(self, error: Exception) -> None:
        """Called once when the stream fails."""
        ...
