"""Chat threads, streaming client and session controller."""

from ellen_core.chat.client import ChatClient
from ellen_core.chat.session import ChatSessionController
from ellen_core.chat.threads import ThreadStreamHandler, create_optimistic_thread

__all__ = [
    "ChatClient",
    "ChatSessionController",
    "ThreadStreamHandler",
    "create_optimistic_thread",
]
