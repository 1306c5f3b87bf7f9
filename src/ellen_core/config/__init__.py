"""Configuration module for Ellen."""

from ellen_core.config.factory import EllenComponents, create_from_config
from ellen_core.config.loader import get_default_config_path, load_config
from ellen_core.config.models import (
    ChatClientConfig,
    DocumentSearchConfig,
    EllenConfig,
    LoggingConfig,
    RelatedRankerConfig,
    SupabaseStoreConfig,
)

__all__ = [
    "ChatClientConfig",
    "DocumentSearchConfig",
    "EllenComponents",
    "EllenConfig",
    "LoggingConfig",
    "RelatedRankerConfig",
    "SupabaseStoreConfig",
    "create_from_config",
    "get_default_config_path",
    "load_config",
]
