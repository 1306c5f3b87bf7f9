"""Chat event stream parsing and aggregation."""

from ellen_core.stream.aggregator import StreamAggregator
from ellen_core.stream.base import ByteStreamReader, StreamHandler
from ellen_core.stream.parser import LineBuffer, StreamParser, parse_event
from ellen_core.stream.readers import HttpxByteReader, IterableByteReader

__all__ = [
    "ByteStreamReader",
    "HttpxByteReader",
    "IterableByteReader",
    "LineBuffer",
    "StreamAggregator",
    "StreamHandler",
    "StreamParser",
    "parse_event",
]
