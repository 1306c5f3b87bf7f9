"""Relevance ranking for related articles and document chunks."""

from ellen_core.ranker.base import ArticleRanker
from ellen_core.ranker.keyword import (
    DocumentChunkSearcher,
    count_occurrences,
    filename_keyword,
    keyword_density,
    rank_chunks,
)
from ellen_core.ranker.related import (
    RelatedArticleFinder,
    RelatedArticleRanker,
    RelatedWeights,
    recency_bonus,
    relatedness_score,
)

__all__ = [
    "ArticleRanker",
    "DocumentChunkSearcher",
    "RelatedArticleFinder",
    "RelatedArticleRanker",
    "RelatedWeights",
    "count_occurrences",
    "filename_keyword",
    "keyword_density",
    "rank_chunks",
    "recency_bonus",
    "relatedness_score",
]
