"""Protocol for related-article ranking."""

from datetime import datetime
from typing import Protocol

from ellen_core.data import NewsItem


class ArticleRanker(Protocol):
    """Interface for ranking candidate articles against a focal article."""

    def rank(
        self,
        focal: NewsItem,
        candidates: list[NewsItem],
        *,
        now: datetime | None = None,
    ) -> list[NewsItem]:
        """Select the candidates most related to ``focal``.

        Args:
            focal: The article being read. Never part of the result.
            candidates: Pool of articles to choose from.
            now: Reference time for recency scoring (defaults to the current time).

        Returns:
            Ranked, truncated list of related articles.
        """
        ...
