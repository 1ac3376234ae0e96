"""Deferred writes to the shared nutrition cache."""

import logging
from dataclasses import dataclass

from nutrition_resolver.domain.nutrition import CacheCandidate
from nutrition_resolver.services.cache_resolver import NutritionCacheRepository
from nutrition_resolver.services.text import normalize

_logger = logging.getLogger(__name__)


@dataclass
class CacheWriteBackService:
    """Persists committed cache candidates and usage counts; never raises."""

    repository: NutritionCacheRepository

    def upsert_candidates(self, candidates: list[CacheCandidate]) -> bool:
        """Upsert candidates keyed by normalized name; later entries win."""
        latest: dict[str, CacheCandidate] = {}
        for candidate in candidates:
            if candidate.normalized_name:
                latest[candidate.normalized_name] = candidate
        if not latest:
            return True
        try:
            self.repository.upsert(list(latest.values()))
        except Exception:
            _logger.exception(
                "Nutrition cache upsert failed: names=%s", sorted(latest)
            )
            return False
        _logger.info("Nutrition cache upserted %s rows", len(latest))
        return True

    def bump_usage(self, food_names: list[str]) -> int:
        """Increment usage for cache hits; returns the number of rows bumped."""
        bumped = 0
        for normalized_name in dict.fromkeys(normalize(name) for name in food_names):
            if not normalized_name:
                continue
            try:
                self.repository.increment_usage(normalized_name)
            except Exception:
                _logger.exception(
                    "Nutrition cache usage bump failed: name=%s", normalized_name
                )
                continue
            bumped += 1
        return bumped
