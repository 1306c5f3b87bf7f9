"""Data store collaborators."""

from ellen_core.store.base import DocumentStore, MaterialStore, NewsStore, SessionStore
from ellen_core.store.supabase import SupabaseStore

__all__ = [
    "DocumentStore",
    "MaterialStore",
    "NewsStore",
    "SessionStore",
    "SupabaseStore",
]
