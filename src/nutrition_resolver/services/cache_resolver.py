"""Cache tier: fuzzy lookups against the shared nutrition cache."""

import logging
from dataclasses import dataclass
from typing import Protocol

from nutrition_resolver.domain.nutrition import (
    CacheCandidate,
    CachedFood,
    ResolutionResult,
    ResolutionSource,
)
from nutrition_resolver.domain.tiers import TierOutcome, TierStatus
from nutrition_resolver.services.text import normalize, similarity

CACHE_MATCH_THRESHOLD = 0.85
CACHE_CANDIDATE_LIMIT = 10

_logger = logging.getLogger(__name__)


class NutritionCacheRepository(Protocol):
    """Persistence interface for the shared nutrition cache."""

    def search(self, normalized_query: str, limit: int) -> list[CachedFood]:
        """Return rows whose normalized name contains the query, most used first."""

    def upsert(self, candidates: list[CacheCandidate]) -> None:
        """Insert or replace rows keyed by normalized name."""

    def increment_usage(self, normalized_name: str) -> None:
        """Atomically increment the usage counter of a row."""


@dataclass
class CacheResolver:
    """Accepts the best cached row scoring at or above the threshold."""

    repository: NutritionCacheRepository
    match_threshold: float = CACHE_MATCH_THRESHOLD
    candidate_limit: int = CACHE_CANDIDATE_LIMIT

    def resolve(self, query: str) -> TierOutcome:
        """Look up a food name in the cache."""
        normalized_query = normalize(query)
        if not normalized_query:
            return TierOutcome.miss()
        try:
            rows = self.repository.search(normalized_query, self.candidate_limit)
        except Exception:
            _logger.exception("Nutrition cache search failed: query=%s", query)
            return TierOutcome(status=TierStatus.UNAVAILABLE)

        best: CachedFood | None = None
        best_score = 0.0
        for row in rows:
            score = max(
                similarity(row.normalized_name, normalized_query),
                similarity(row.food.name, query),
            )
            if score > best_score:
                best, best_score = row, score

        if best is None or best_score < self.match_threshold:
            _logger.info(
                "Cache miss: query=%s candidates=%s best_score=%.3f",
                query,
                len(rows),
                best_score,
            )
            return TierOutcome.miss()

        unverified = best.unverified or best.source == ResolutionSource.GENERATIVE.value
        _logger.info(
            "Cache hit: query=%s match=%s score=%.3f",
            query,
            best.normalized_name,
            best_score,
        )
        return TierOutcome.hit(
            ResolutionResult(
                source=ResolutionSource.CACHE,
                food=best.food,
                match_description=best.normalized_name,
                match_score=best_score,
                unverified=unverified,
                cache_candidate=None,
            )
        )
