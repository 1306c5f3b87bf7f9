"""Factory functions to create components from configuration."""

from dataclasses import dataclass
from pathlib import Path

from ellen_core.chat.client import ChatClient
from ellen_core.config.models import (
    ChatClientConfig,
    DocumentSearchConfig,
    EllenConfig,
    RelatedRankerConfig,
    SupabaseStoreConfig,
)
from ellen_core.ranker.keyword import DocumentChunkSearcher
from ellen_core.ranker.related import RelatedArticleFinder, RelatedArticleRanker, RelatedWeights
from ellen_core.run_logger import RunLogger
from ellen_core.store.base import DocumentStore, NewsStore
from ellen_core.store.supabase import SupabaseStore


@dataclass(frozen=True)
class EllenComponents:
    """Components built from one configuration."""

    store: SupabaseStore
    chat_client: ChatClient
    related_finder: RelatedArticleFinder
    document_searcher: DocumentChunkSearcher
    run_logger: RunLogger | None
    project_id: str | None = None


def create_store(config: SupabaseStoreConfig) -> SupabaseStore:
    """Create a data store from config.

    Uses explicit type matching rather than getattr.
    """
    if isinstance(config, SupabaseStoreConfig):
        return SupabaseStore(url=config.url, timeout=config.timeout_seconds)
    msg = f"Unknown store config type: {type(config)}"
    raise ValueError(msg)


def create_chat_client(config: ChatClientConfig) -> ChatClient:
    """Create a chat endpoint client from config."""
    return ChatClient(
        base_url=config.base_url,
        endpoint=config.endpoint,
        timeout=config.timeout_seconds,
    )


def create_related_finder(config: RelatedRankerConfig, store: NewsStore) -> RelatedArticleFinder:
    """Create a related-article finder from config."""
    weights = RelatedWeights(
        material=config.material_weight,
        cluster=config.cluster_weight,
        geography=config.geography_weight,
        type=config.type_weight,
    )
    return RelatedArticleFinder(
        store,
        RelatedArticleRanker(weights=weights, limit=config.limit),
        pool_size=config.pool_size,
    )


def create_document_searcher(
    config: DocumentSearchConfig,
    store: DocumentStore,
) -> DocumentChunkSearcher:
    """Create a document-chunk searcher from config."""
    return DocumentChunkSearcher(
        store,
        top_k=config.top_k,
        max_fallback_documents=config.max_fallback_documents,
    )


def create_from_config(
    config: EllenConfig,
    *,
    log_override: bool | None = None,
    log_dir_override: str | None = None,
) -> EllenComponents:
    """Create every component from root config.

    Args:
        config: Root configuration.
        log_override: Override the config's logging.enabled setting.
        log_dir_override: Override the config's logging.log_dir setting.

    Returns:
        The component bundle. ``run_logger`` is None if logging is disabled.
    """
    log_enabled = log_override if log_override is not None else config.logging.enabled
    log_dir = Path(log_dir_override if log_dir_override is not None else config.logging.log_dir)

    run_logger: RunLogger | None = None
    if log_enabled:
        run_logger = RunLogger(log_dir=log_dir, enabled=True)

    store = create_store(config.store)
    return EllenComponents(
        store=store,
        chat_client=create_chat_client(config.chat),
        related_finder=create_related_finder(config.related, store),
        document_searcher=create_document_searcher(config.document_search, store),
        run_logger=run_logger,
        project_id=config.chat.project_id,
    )
