"""Tests for StreamAggregator."""

import asyncio
import json

import pytest

from ellen_core.data import Material, Source
from ellen_core.errors import StreamCancelledError, StreamError
from ellen_core.stream import IterableByteReader, StreamAggregator


class RecordingHandler:
    """StreamHandler that records every callback in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def on_token(self, text: str) -> None:
        self.calls.append(("token", text))

    def on_sources(self, sources: list[Source]) -> None:
        self.calls.append(("sources", sources))

    def on_materials(self, materials: list[Material]) -> None:
        self.calls.append(("materials", materials))

    def on_suggestions(self, suggestions: list[str]) -> None:
        self.calls.append(("suggestions", suggestions))

    def on_error(self, error: Exception) -> None:
        self.calls.append(("error", error))

    def of(self, kind: str) -> list[object]:
        return [payload for name, payload in self.calls if name == kind]


class FailingReader:
    """Reader that yields its chunks and then raises ``error``."""

    def __init__(self, chunks: list[bytes], error: Exception) -> None:
        self._chunks = list(chunks)
        self._error = error
        self.cancel_count = 0

    async def read(self) -> bytes | None:
        if self._chunks:
            return self._chunks.pop(0)
        raise self._error

    async def cancel(self, reason: str) -> None:
        self.cancel_count += 1


def _line(event_type: str, content: object) -> bytes:
    return (json.dumps({"type": event_type, "content": content}) + "\n").encode()


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


async def test_tokens_are_delivered_cumulatively(handler: RecordingHandler) -> None:
    deltas = ["Lith", "ium ", "is ", "critical."]
    reader = IterableByteReader([_line("token", d) for d in deltas])

    text = await StreamAggregator(handler).run(reader)

    assert text == "".join(deltas)
    assert handler.of("token") == ["Lith", "Lithium ", "Lithium is ", "Lithium is critical."]


async def test_many_lines_in_one_chunk_keep_order(handler: RecordingHandler) -> None:
    chunk = _line("token", "A") + _line("sources", [{"title": "T", "url": "u"}]) + _line(
        "token", "B"
    )
    await StreamAggregator(handler).run(IterableByteReader([chunk]))

    assert [name for name, _ in handler.calls] == ["token", "sources", "token"]
    assert handler.of("token") == ["A", "AB"]


async def test_line_split_across_chunks(handler: RecordingHandler) -> None:
    data = _line("token", "Cobalt") + _line("token", " rises")
    chunks = [data[i : i + 7] for i in range(0, len(data), 7)]

    await StreamAggregator(handler).run(IterableByteReader(chunks))

    assert handler.of("token") == ["Cobalt", "Cobalt rises"]


async def test_malformed_line_is_skipped(handler: RecordingHandler) -> None:
    reader = IterableByteReader(
        [_line("token", "first"), b"{broken json\n", _line("token", " second")]
    )

    aggregator = StreamAggregator(handler)
    await aggregator.run(reader)

    assert handler.of("token") == ["first", "first second"]
    assert handler.of("error") == []
    assert aggregator.skipped_lines == 1


async def test_later_lists_replace_earlier_ones(handler: RecordingHandler) -> None:
    reader = IterableByteReader(
        [
            _line("sources", [{"title": "A", "url": "a"}, {"title": "B", "url": "b"}]),
            _line("sources", [{"title": "C", "url": "c"}]),
        ]
    )
    await StreamAggregator(handler).run(reader)

    assert handler.of("sources")[-1] == [Source(title="C", url="c")]


async def test_materials_and_suggestions_dispatched(handler: RecordingHandler) -> None:
    reader = IterableByteReader(
        [_line("materials", ["Gallium"]), _line("suggestions", ["What about germanium?"])]
    )
    await StreamAggregator(handler).run(reader)

    assert handler.of("materials") == [[Material(name="Gallium")]]
    assert handler.of("suggestions") == [["What about germanium?"]]


async def test_unknown_event_type_is_ignored(handler: RecordingHandler) -> None:
    reader = IterableByteReader([_line("tool_status", "Searching"), _line("token", "ok")])
    await StreamAggregator(handler).run(reader)

    assert handler.calls == [("token", "ok")]


async def test_trailing_line_without_newline_is_processed(handler: RecordingHandler) -> None:
    reader = IterableByteReader([_line("token", "a"), _line("token", "b").rstrip(b"\n")])
    await StreamAggregator(handler).run(reader)

    assert handler.of("token") == ["a", "ab"]


async def test_drained_stream_is_not_cancelled(handler: RecordingHandler) -> None:
    reader = IterableByteReader([_line("token", "done")])
    await StreamAggregator(handler).run(reader)

    assert reader.cancel_count == 0


async def test_error_event_is_surfaced_and_terminal(handler: RecordingHandler) -> None:
    chunk = _line("token", "partial") + _line("error", "model overloaded") + _line("token", "!")
    reader = IterableByteReader([chunk, _line("token", " more")])

    aggregator = StreamAggregator(handler)
    text = await aggregator.run(reader)

    assert text == "partial"
    errors = handler.of("error")
    assert len(errors) == 1
    assert isinstance(errors[0], StreamError)
    assert str(errors[0]) == "model overloaded"
    assert aggregator.failed
    assert reader.cancel_count == 1


async def test_cancelled_read_is_benign(handler: RecordingHandler) -> None:
    reader = FailingReader([_line("token", "hi")], StreamCancelledError("aborted"))

    aggregator = StreamAggregator(handler)
    await aggregator.run(reader)

    assert handler.of("token") == ["hi"]
    assert handler.of("error") == []
    assert aggregator.cancelled
    assert reader.cancel_count == 1


async def test_read_failure_calls_on_error(handler: RecordingHandler) -> None:
    reader = FailingReader([_line("token", "hi")], ConnectionResetError("reset by peer"))

    aggregator = StreamAggregator(handler)
    await aggregator.run(reader)

    errors = handler.of("error")
    assert len(errors) == 1
    assert isinstance(errors[0], StreamError)
    assert "reset by peer" in str(errors[0])
    assert aggregator.failed
    assert reader.cancel_count == 1


async def test_cancel_signal_stops_callbacks(handler: RecordingHandler) -> None:
    cancelled = asyncio.Event()

    class CancellingHandler(RecordingHandler):
        def on_token(self, text: str) -> None:
            super().on_token(text)
            cancelled.set()

    cancelling = CancellingHandler()
    reader = IterableByteReader([_line("token", "one"), _line("token", "two")])

    aggregator = StreamAggregator(cancelling)
    await aggregator.run(reader, cancelled=cancelled)

    assert cancelling.of("token") == ["one"]
    assert cancelling.of("error") == []
    assert aggregator.cancelled
    assert reader.cancel_count == 1


async def test_reader_cancel_failure_does_not_propagate(handler: RecordingHandler) -> None:
    class BrokenCancelReader(FailingReader):
        async def cancel(self, reason: str) -> None:
            self.cancel_count += 1
            raise RuntimeError("already closed")

    reader = BrokenCancelReader([], StreamCancelledError("aborted"))
    await StreamAggregator(handler).run(reader)

    assert reader.cancel_count == 1


async def test_handler_exception_still_releases_reader() -> None:
    class ExplodingHandler(RecordingHandler):
        def on_token(self, text: str) -> None:
            raise KeyError("boom")

    reader = IterableByteReader([_line("token", "x"), _line("token", "y")])

    with pytest.raises(KeyError):
        await StreamAggregator(ExplodingHandler()).run(reader)
    assert reader.cancel_count == 1


async def test_task_cancellation_releases_reader_and_propagates() -> None:
    class BlockingReader:
        def __init__(self) -> None:
            self.cancel_count = 0

        async def read(self) -> bytes | None:
            await asyncio.sleep(10)
            return None

        async def cancel(self, reason: str) -> None:
            self.cancel_count += 1

    reader = BlockingReader()
    task = asyncio.create_task(StreamAggregator(RecordingHandler()).run(reader))
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert reader.cancel_count == 1


def test_dispatch_without_io() -> None:
    handler = RecordingHandler()
    aggregator = StreamAggregator(handler)

    assert aggregator.feed(_line("token", "a") + _line("token", "b"))
    assert not aggregator.feed(_line("error", "bad"))
    assert aggregator.text == "ab"
    assert [name for name, _ in handler.calls] == ["token", "token", "error"]


async def test_end_of_stream_wins_over_late_cancel_signal() -> None:
    cancelled = asyncio.Event()

    class EndThenCancelReader:
        def __init__(self) -> None:
            self._chunks = [_line("token", "all"), None]
            self.cancel_count = 0

        async def read(self) -> bytes | None:
            chunk = self._chunks.pop(0)
            if chunk is None:
                cancelled.set()
            return chunk

        async def cancel(self, reason: str) -> None:
            self.cancel_count += 1

    handler = RecordingHandler()
    reader = EndThenCancelReader()
    aggregator = StreamAggregator(handler)

    text = await aggregator.run(reader, cancelled=cancelled)

    assert text == "all"
    assert not aggregator.cancelled
    assert reader.cancel_count == 0
