"""Related-article ranking for the news feed.

Each candidate gets an additive score against the focal article:

    score = 5 · |shared materials| + 3 · [same cluster] + 2 · [same geography]
            + 1 · [same type] + recency

where recency is 3 for items published within a week of now, 2 within a
month, and 1 otherwise (including items without a publish date). Results are
sorted by score, newest first on ties, and capped at six.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from ellen_core.data import NewsItem
from ellen_core.ranker.base import ArticleRanker
from ellen_core.store.base import NewsStore

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, tz=UTC)


@dataclass(frozen=True)
class RelatedWeights:
    """Fixed weights of the related-article score."""

    material: int = 5
    cluster: int = 3
    geography: int = 2
    type: int = 1
    recent_week: int = 3
    recent_month: int = 2
    older: int = 1


def _as_utc(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _shared_materials(focal: NewsItem, candidate: NewsItem) -> int:
    """Count related-material names the two items share, ignoring case."""
    focal_names = {m.casefold() for m in focal.related_materials}
    if not focal_names:
        return 0
    return len(focal_names & {m.casefold() for m in candidate.related_materials})


def _same(focal_value: str | None, candidate_value: str | None) -> bool:
    """True when the focal item has a value and the candidate has the same one."""
    return bool(focal_value) and candidate_value == focal_value


def recency_bonus(
    published_at: datetime | None,
    now: datetime,
    weights: RelatedWeights = RelatedWeights(),
) -> int:
    """Score freshness relative to ``now`` (not to the focal article)."""
    age = _as_utc(now) - _as_utc(published_at)
    if age < timedelta(days=7):
        return weights.recent_week
    if age < timedelta(days=30):
        return weights.recent_month
    return weights.older


def relatedness_score(
    focal: NewsItem,
    candidate: NewsItem,
    *,
    now: datetime,
    weights: RelatedWeights = RelatedWeights(),
) -> int:
    """Compute the additive relatedness score of ``candidate`` to ``focal``."""
    score = weights.material * _shared_materials(focal, candidate)
    if _same(focal.interest_cluster, candidate.interest_cluster):
        score += weights.cluster
    if _same(focal.geographic_focus, candidate.geographic_focus):
        score += weights.geography
    if _same(focal.type, candidate.type):
        score += weights.type
    return score + recency_bonus(candidate.published_at, now, weights)


class RelatedArticleRanker:
    """Rank candidate articles by shared entities, category and freshness.

    Args:
        weights: Score weights.
        limit: Maximum number of related articles returned.
    """

    def __init__(self, weights: RelatedWeights | None = None, limit: int = 6) -> None:
        self._weights = weights or RelatedWeights()
        self._limit = limit

    def score(self, focal: NewsItem, candidate: NewsItem, *, now: datetime) -> int:
        return relatedness_score(focal, candidate, now=now, weights=self._weights)

    def rank(
        self,
        focal: NewsItem,
        candidates: list[NewsItem],
        *,
        now: datetime | None = None,
    ) -> list[NewsItem]:
        """Return up to ``limit`` candidates, best first.

        The focal item is removed from the pool by id before scoring. There
        is no minimum score: a small pool is returned in full.
        """
        now = now or datetime.now(tz=UTC)
        pool = [c for c in candidates if str(c.id) != str(focal.id)]
        scored = [(self.score(focal, c, now=now), _as_utc(c.published_at), c) for c in pool]
        scored.sort(key=lambda entry: (entry[0], entry[1]), reverse=True)
        return [c for _, _, c in scored[: self._limit]]


class RelatedArticleFinder:
    """Fetch a candidate pool for an article and rank it.

    Related articles are an enhancement: any failure while fetching the pool
    yields an empty list instead of an error.

    Args:
        store: News store to draw candidates from.
        ranker: Ranker applied to the pool.
        pool_size: Number of recent items fetched as candidates.
    """

    def __init__(
        self,
        store: NewsStore,
        ranker: ArticleRanker | None = None,
        pool_size: int = 60,
    ) -> None:
        self._store = store
        self._ranker = ranker or RelatedArticleRanker()
        self._pool_size = pool_size

    async def find(self, focal: NewsItem, *, now: datetime | None = None) -> list[NewsItem]:
        """Return the articles most related to ``focal``, or [] if the pool is unavailable."""
        try:
            pool = await self._store.list_news(
                cluster=focal.interest_cluster or None,
                limit=self._pool_size,
            )
        except Exception as e:
            logger.warning("Failed to fetch related articles for %s: %s", focal.id, e)
            return []
        return self._ranker.rank(focal, pool, now=now)
