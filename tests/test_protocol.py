"""Tests for protocol compliance."""

import pytest

from ellen_core.chat.threads import ThreadStreamHandler, create_optimistic_thread
from ellen_core.ranker import RelatedArticleRanker
from ellen_core.store import SupabaseStore
from ellen_core.stream import HttpxByteReader, IterableByteReader


def test_thread_handler_matches_stream_handler_protocol() -> None:
    """ThreadStreamHandler exposes every StreamHandler callback."""
    handler = ThreadStreamHandler(create_optimistic_thread("s-1", "q"))
    for name in ("on_token", "on_sources", "on_materials", "on_suggestions", "on_error"):
        assert callable(getattr(handler, name))


@pytest.mark.parametrize("reader_cls", [HttpxByteReader, IterableByteReader])
def test_readers_match_byte_stream_reader_protocol(reader_cls: type) -> None:
    assert callable(reader_cls.read)
    assert callable(reader_cls.cancel)


def test_related_ranker_matches_article_ranker_protocol() -> None:
    assert callable(RelatedArticleRanker().rank)


def test_supabase_store_implements_every_store_protocol(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """SupabaseStore structurally matches all four store protocols."""
    monkeypatch.setenv("SUPABASE_URL", "https://db.example.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "test-key")
    store = SupabaseStore()
    for name in (
        "fetch_session",
        "create_session",
        "get_news_item",
        "list_news",
        "list_session_documents",
        "list_documents_by_filename",
        "list_materials",
    ):
        assert callable(getattr(store, name))
