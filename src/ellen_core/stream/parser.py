"""Incremental parser for newline-delimited JSON chat events.

The chat backend writes one JSON record per line::

    {"type": "token", "content": "Lith"}
    {"type": "sources", "content": [{"title": "...", "url": "..."}]}

Network chunks are not aligned to lines: a chunk may hold several lines, and
a line (or a multi-byte UTF-8 character) may be split across chunks. The
``StreamParser`` buffers partial input and yields complete events; it does no
I/O so it can be driven from canned chunks.
"""

import codecs
import json
import logging
from typing import Any

from ellen_core.data import EventType, Material, Source, StreamEvent
from ellen_core.errors import MalformedEventError
from ellen_core.materials import material_from_record

logger = logging.getLogger(__name__)

_SSE_DATA_PREFIX = "data:"
_SSE_DONE = "[DONE]"
_LOG_PREVIEW_CHARS = 200


class LineBuffer:
    """Decode byte chunks incrementally and split them into complete lines.

    Args:
        encoding: Text encoding of the stream (default UTF-8).
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    def feed(self, chunk: bytes) -> list[str]:
        """Decode ``chunk`` and return the non-empty lines it completes."""
        self._pending += self._decoder.decode(chunk)
        *lines, self._pending = self._pending.split("\n")
        return [line.strip() for line in lines if line.strip()]

    def flush(self) -> list[str]:
        """Return the final unterminated line, if any, and reset the buffer."""
        self._pending += self._decoder.decode(b"", final=True)
        rest, self._pending = self._pending.strip(), ""
        return [rest] if rest else []


def _source_from_payload(item: Any) -> Source:
    if not isinstance(item, dict) or not isinstance(item.get("url"), str):
        raise MalformedEventError(f"Invalid source entry: {item!r}")
    return Source(
        title=str(item.get("title") or item["url"]),
        url=item["url"],
        snippet=item.get("snippet"),
    )


def _material_from_payload(item: Any) -> Material:
    # Tool calls stream bare names; the metadata path streams catalog rows.
    if isinstance(item, str):
        if not item.strip():
            raise MalformedEventError("Empty material name")
        return Material(name=item.strip())
    if isinstance(item, dict):
        try:
            return material_from_record(item)
        except ValueError as e:
            raise MalformedEventError(str(e)) from e
    raise MalformedEventError(f"Invalid material entry: {item!r}")


def _require_list(event_type: str, content: Any) -> list[Any]:
    if not isinstance(content, list):
        raise MalformedEventError(
            f"'{event_type}' payload must be a list, got {type(content).__name__}"
        )
    return content


def _convert_content(event_type: str, content: Any) -> Any:
    if event_type in (EventType.TOKEN, EventType.ERROR):
        if not isinstance(content, str):
            raise MalformedEventError(f"'{event_type}' payload must be a string")
        return content
    if event_type == EventType.SOURCES:
        return [_source_from_payload(item) for item in _require_list(event_type, content)]
    if event_type == EventType.MATERIALS:
        return [_material_from_payload(item) for item in _require_list(event_type, content)]
    if event_type == EventType.SUGGESTIONS:
        return [str(item) for item in _require_list(event_type, content)]
    # Unknown types pass through untouched; the aggregator decides what to do.
    return content


def parse_event(line: str) -> StreamEvent | None:
    """Parse one stream line into a typed event.

    An SSE ``data:`` prefix is accepted and stripped.

    Args:
        line: A single, already-stripped line.

    Returns:
        The parsed event, or None for the ``[DONE]`` control line.

    Raises:
        MalformedEventError: If the line is not a valid event record.
    """
    text = line.strip()
    if text.startswith(_SSE_DATA_PREFIX):
        text = text[len(_SSE_DATA_PREFIX) :].strip()
    if text == _SSE_DONE:
        return None

    try:
        record = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedEventError(f"Invalid JSON: {e.msg}", line=line) from e

    if not isinstance(record, dict) or not isinstance(record.get("type"), str):
        raise MalformedEventError("Event record has no 'type' field", line=line)

    event_type = record["type"]
    try:
        content = _convert_content(event_type, record.get("content"))
    except MalformedEventError as e:
        e.line = line
        raise
    return StreamEvent(type=event_type, content=content)


class StreamParser:
    """State machine turning byte chunks into stream events.

    Malformed lines are logged and skipped; they never stop later lines from
    being parsed.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._lines = LineBuffer(encoding)
        self.skipped_lines = 0

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """Consume one chunk and return the events it completes, in order."""
        return self._parse_lines(self._lines.feed(chunk))

    def close(self) -> list[StreamEvent]:
        """Parse whatever remains buffered at end-of-stream."""
        return self._parse_lines(self._lines.flush())

    def _parse_lines(self, lines: list[str]) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        for line in lines:
            try:
                event = parse_event(line)
            except MalformedEventError as e:
                self.skipped_lines += 1
                logger.warning(
                    "Skipping malformed stream line (%s): %s",
                    e,
                    line[:_LOG_PREVIEW_CHARS],
                )
                continue
            if event is not None:
                events.append(event)
        return events
