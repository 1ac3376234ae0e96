"""Tests for the external food database tier."""

import asyncio

import httpx

from nutrition_resolver.domain.nutrition import ResolutionSource
from nutrition_resolver.domain.tiers import TierStatus
from nutrition_resolver.services.external_resolver import (
    ExternalResolver,
    classify_serving,
    has_complete_nutrients,
)
from tests.conftest import FakeFoodDatabaseClient, make_product

CODE = "0123456789012"


def test_barcode_lookup_accepts_complete_product(
    food_database: FakeFoodDatabaseClient,
) -> None:
    food_database.products[CODE] = make_product(
        "Rolled Oats",
        brands="Quaker, PepsiCo",
        serving_size="40 g",
        serving_quantity=40,
    )

    outcome = asyncio.run(ExternalResolver(food_database).resolve("0123 4567 89012"))

    assert outcome.status is TierStatus.HIT
    result = outcome.result
    assert result is not None
    assert result.source is ResolutionSource.EXTERNAL
    assert result.match_score == 1.0
    assert result.unverified is False
    assert result.food.name == "Quaker, PepsiCo Rolled Oats"
    assert result.food.brand == "Quaker"
    assert result.food.calories_per_100g == 375
    assert result.food.fat_per_100g == 6.8
    assert result.food.sodium_mg_per_100g == 450
    assert result.food.serving_grams == 40
    assert result.food.serving_milliliters is None
    assert food_database.calls == [("product", CODE)]

    candidate = result.cache_candidate
    assert candidate is not None
    assert candidate.normalized_name == "quaker pepsico rolled oats"
    assert candidate.source is ResolutionSource.EXTERNAL
    assert candidate.unverified is False
    assert candidate.match_notes == "Rolled Oats"


def test_barcode_with_missing_nutrient_is_a_miss_with_name_hint(
    food_database: FakeFoodDatabaseClient,
) -> None:
    food_database.products[CODE] = make_product(
        "Choco Bar", brands="Acme", missing=("sugars_100g",)
    )

    outcome = asyncio.run(ExternalResolver(food_database).resolve(CODE))

    assert outcome.status is TierStatus.MISS
    assert outcome.result is None
    assert outcome.name_hint == "Acme Choco Bar"


def test_unknown_barcode_is_a_plain_miss(
    food_database: FakeFoodDatabaseClient,
) -> None:
    outcome = asyncio.run(ExternalResolver(food_database).resolve(CODE))

    assert outcome.status is TierStatus.MISS
    assert outcome.name_hint is None


def test_text_search_accepts_score_at_threshold(
    food_database: FakeFoodDatabaseClient,
) -> None:
    food_database.search_results = [
        make_product("Peanut Butter"),
        make_product("Natural Peanut Butter Crunchy Jar", brands="Teddie"),
    ]

    outcome = asyncio.run(
        ExternalResolver(food_database).resolve("natural peanut butter crunchy")
    )

    assert outcome.status is TierStatus.HIT
    assert outcome.result is not None
    assert outcome.result.match_score == 4 / 5
    assert outcome.result.match_description == "Natural Peanut Butter Crunchy Jar"
    assert outcome.result.food.name == "Teddie Natural Peanut Butter Crunchy Jar"
    assert outcome.result.cache_candidate is not None
    assert (
        outcome.result.cache_candidate.normalized_name
        == "natural peanut butter crunchy"
    )
    assert food_database.calls == [("search", "natural peanut butter crunchy")]


def test_text_search_below_threshold_is_a_miss(
    food_database: FakeFoodDatabaseClient,
) -> None:
    food_database.search_results = [make_product("Natural Peanut Butter")]

    outcome = asyncio.run(
        ExternalResolver(food_database).resolve("natural peanut butter crunchy")
    )

    assert outcome.status is TierStatus.MISS
    assert outcome.result is None


def test_incomplete_candidates_are_never_accepted(
    food_database: FakeFoodDatabaseClient,
) -> None:
    food_database.search_results = [
        make_product("Greek Yogurt Plain Nonfat", missing=("fiber_100g",)),
        make_product("Greek Yogurt Plain Nonfat Cup"),
    ]

    outcome = asyncio.run(
        ExternalResolver(food_database).resolve("greek yogurt plain nonfat")
    )

    assert outcome.result is not None
    assert outcome.result.match_description == "Greek Yogurt Plain Nonfat Cup"
    assert outcome.result.match_score == 4 / 5


def test_slow_database_times_out(food_database: FakeFoodDatabaseClient) -> None:
    food_database.delay_seconds = 0.5
    resolver = ExternalResolver(food_database, timeout_seconds=0.05)

    outcome = asyncio.run(resolver.resolve("banana"))

    assert outcome.status is TierStatus.TIMEOUT
    assert outcome.result is None
    assert food_database.timeouts == [0.05]


def test_database_errors_are_reported_unavailable(
    food_database: FakeFoodDatabaseClient,
) -> None:
    request = httpx.Request("GET", "https://world.openfoodfacts.org/cgi/search.pl")
    food_database.error = httpx.HTTPStatusError(
        "server error",
        request=request,
        response=httpx.Response(503, request=request),
    )

    outcome = asyncio.run(ExternalResolver(food_database).resolve("banana"))

    assert outcome.status is TierStatus.UNAVAILABLE


def test_has_complete_nutrients_rejects_non_numbers() -> None:
    product = make_product("Oats")
    assert has_complete_nutrients(product) is True

    product["nutriments"]["proteins_100g"] = "n/a"  # type: ignore[index]
    assert has_complete_nutrients(product) is False
    assert has_complete_nutrients({"product_name": "Oats"}) is False


def test_classify_serving_by_units() -> None:
    assert classify_serving("250 ml", 250) == (None, 250)
    assert classify_serving("1 cup (240ml)", 240) == (None, 240)
    assert classify_serving("30 g", 30) == (30, None)
    assert classify_serving("1 bar 40g 1.4 oz", 40) == (40, None)
    assert classify_serving("1 bottle (500 ml / 510 g)", 500) == (None, None)
    assert classify_serving("2 biscuits", 25) == (None, None)
    assert classify_serving(None, 40) == (None, None)
    assert classify_serving("30 g", 0) == (None, None)
