"""Ellen core: chat stream aggregation and relevance ranking for materials intelligence."""

from ellen_core.chat import (
    ChatClient,
    ChatSessionController,
    ThreadStreamHandler,
    create_optimistic_thread,
)
from ellen_core.config import EllenComponents, EllenConfig, create_from_config, load_config
from ellen_core.data import (
    ChatSession,
    DocumentChunk,
    DocumentSearchHit,
    DocumentSearchResult,
    EventType,
    Material,
    Message,
    NewsItem,
    Role,
    SessionDocument,
    Source,
    StreamEvent,
    Thread,
)
from ellen_core.errors import (
    ChatRequestError,
    EllenError,
    MalformedEventError,
    StreamCancelledError,
    StreamError,
)
from ellen_core.materials import MaterialCatalog, dedupe_materials, material_from_record
from ellen_core.ranker import (
    ArticleRanker,
    DocumentChunkSearcher,
    RelatedArticleFinder,
    RelatedArticleRanker,
    RelatedWeights,
    keyword_density,
)
from ellen_core.run_logger import RunLogger
from ellen_core.store import DocumentStore, MaterialStore, NewsStore, SessionStore, SupabaseStore
from ellen_core.stream import (
    ByteStreamReader,
    HttpxByteReader,
    IterableByteReader,
    StreamAggregator,
    StreamHandler,
    StreamParser,
    parse_event,
)

__all__ = [
    # Models
    "ChatSession",
    "DocumentChunk",
    "DocumentSearchHit",
    "DocumentSearchResult",
    "EventType",
    "Material",
    "Message",
    "NewsItem",
    "Role",
    "SessionDocument",
    "Source",
    "StreamEvent",
    "Thread",
    # Errors
    "ChatRequestError",
    "EllenError",
    "MalformedEventError",
    "StreamCancelledError",
    "StreamError",
    # Protocols
    "ArticleRanker",
    "ByteStreamReader",
    "DocumentStore",
    "MaterialStore",
    "NewsStore",
    "SessionStore",
    "StreamHandler",
    # Streaming
    "HttpxByteReader",
    "IterableByteReader",
    "StreamAggregator",
    "StreamParser",
    "parse_event",
    # Chat
    "ChatClient",
    "ChatSessionController",
    "ThreadStreamHandler",
    "create_optimistic_thread",
    # Materials
    "MaterialCatalog",
    "dedupe_materials",
    "material_from_record",
    # Rankers
    "DocumentChunkSearcher",
    "RelatedArticleFinder",
    "RelatedArticleRanker",
    "RelatedWeights",
    "keyword_density",
    # Stores
    "SupabaseStore",
    # Logging
    "RunLogger",
    # Config
    "EllenComponents",
    "EllenConfig",
    "create_from_config",
    "load_config",
]
