"""Pydantic configuration models for Ellen components."""

from typing import Literal

from pydantic import BaseModel, Field

# ============================================================
# Chat Config
# ============================================================


class ChatClientConfig(BaseModel):
    """Configuration for ChatClient."""

    base_url: str | None = None
    endpoint: str = "/api/chat"
    timeout_seconds: float = 60.0
    project_id: str | None = None

    model_config = {"frozen": True}


# ============================================================
# Store Configs
# ============================================================


class SupabaseStoreConfig(BaseModel):
    """Configuration for SupabaseStore. Credentials fall back to env vars."""

    type: Literal["supabase"] = "supabase"
    url: str | None = None
    timeout_seconds: float = 30.0

    model_config = {"frozen": True}


# ============================================================
# Ranker Configs
# ============================================================


class RelatedRankerConfig(BaseModel):
    """Configuration for related-article ranking."""

    limit: int = Field(default=6, ge=1)
    pool_size: int = Field(default=60, ge=1)
    material_weight: int = 5
    cluster_weight: int = 3
    geography_weight: int = 2
    type_weight: int = 1

    model_config = {"frozen": True}


class DocumentSearchConfig(BaseModel):
    """Configuration for keyword document-chunk search."""

    top_k: int = Field(default=5, ge=1)
    max_fallback_documents: int = Field(default=3, ge=1)

    model_config = {"frozen": True}


# ============================================================
# Logging Config
# ============================================================


class LoggingConfig(BaseModel):
    """Configuration for JSON run logging."""

    enabled: bool = False
    log_dir: str = "logs"

    model_config = {"frozen": True}


# ============================================================
# Root Config
# ============================================================


class EllenConfig(BaseModel):
    """Root configuration for Ellen."""

    chat: ChatClientConfig = Field(default_factory=ChatClientConfig)
    store: SupabaseStoreConfig = Field(default_factory=SupabaseStoreConfig)
    related: RelatedRankerConfig = Field(default_factory=RelatedRankerConfig)
    document_search: DocumentSearchConfig = Field(default_factory=DocumentSearchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}
