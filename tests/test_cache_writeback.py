"""Tests for cache write-back."""

from nutrition_resolver.domain.nutrition import (
    CacheCandidate,
    NutritionFact,
    ResolutionSource,
)
from nutrition_resolver.services.cache_writeback import CacheWriteBackService
from tests.conftest import InMemoryNutritionCacheRepository, make_cached_food


def _candidate(name: str, calories: float) -> CacheCandidate:
    return CacheCandidate(
        normalized_name=name,
        food=NutritionFact.build(name, calories=calories),
        source=ResolutionSource.GENERATIVE,
        unverified=True,
        match_confidence=0.0,
        match_notes="generative estimate (unverified)",
    )


def test_upsert_dedupes_by_name_keeping_latest(
    cache_repository: InMemoryNutritionCacheRepository,
) -> None:
    service = CacheWriteBackService(cache_repository)

    stored = service.upsert_candidates(
        [
            _candidate("trail mix", 450),
            _candidate("granola", 470),
            _candidate("trail mix", 462),
        ]
    )

    assert stored is True
    assert len(cache_repository.upsert_calls) == 1
    assert len(cache_repository.upsert_calls[0]) == 2
    assert cache_repository.rows["trail mix"].food.calories_per_100g == 462
    assert cache_repository.rows["trail mix"].source == "generative"
    assert cache_repository.rows["trail mix"].unverified is True


def test_upsert_keeps_usage_of_existing_rows(
    cache_repository: InMemoryNutritionCacheRepository,
) -> None:
    cache_repository.add(make_cached_food("granola", times_used=7))

    CacheWriteBackService(cache_repository).upsert_candidates(
        [_candidate("granola", 470)]
    )

    assert cache_repository.rows["granola"].times_used == 7
    assert cache_repository.rows["granola"].food.calories_per_100g == 470


def test_empty_commit_skips_the_store(
    cache_repository: InMemoryNutritionCacheRepository,
) -> None:
    assert CacheWriteBackService(cache_repository).upsert_candidates([]) is True
    assert cache_repository.upsert_calls == []


def test_upsert_failure_is_reported_not_raised(
    cache_repository: InMemoryNutritionCacheRepository,
) -> None:
    cache_repository.fail_upsert = True

    stored = CacheWriteBackService(cache_repository).upsert_candidates(
        [_candidate("granola", 470)]
    )

    assert stored is False
    assert cache_repository.rows == {}


def test_bump_usage_increments_each_name_once(
    cache_repository: InMemoryNutritionCacheRepository,
) -> None:
    cache_repository.add(make_cached_food("banana", times_used=40))

    bumped = CacheWriteBackService(cache_repository).bump_usage(
        ["Banana", "banana", "unknown food", ""]
    )

    assert bumped == 1
    assert cache_repository.rows["banana"].times_used == 41
