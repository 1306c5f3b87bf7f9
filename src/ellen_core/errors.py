"""Exception types raised across Ellen components."""


class EllenError(Exception):
    """Base class for all Ellen errors."""


class StreamError(EllenError):
    """A chat stream failed: an in-band error event or a genuine read failure."""


class StreamCancelledError(StreamError):
    """Raised by a reader when the stream was cancelled by its consumer.

    The aggregator treats this as a benign termination, never as a failure.
    """


class MalformedEventError(StreamError, ValueError):
    """A single stream line could not be parsed into an event record."""

    def __init__(self, message: str, line: str = "") -> None:
        self.line = line
        super().__init__(message)


class ChatRequestError(EllenError):
    """The chat endpoint answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
