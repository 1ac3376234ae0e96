"""Nutrition domain models."""

import math
from dataclasses import dataclass
from enum import Enum


class ResolutionSource(str, Enum):
    """Where a resolved nutrition record came from."""

    CACHE = "cache"
    EXTERNAL = "external"
    GENERATIVE = "generative"
    BARCODE = "barcode"
    LABEL_PHOTO = "label_photo"


def _non_negative(value: object) -> float:
    """Coerce a raw nutrient value to a non-negative finite float."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _optional_positive(value: object) -> float | None:
    number = _non_negative(value)
    return number if number > 0 else None


@dataclass(frozen=True)
class NutritionFact:
    """Per-100g macro record for a single food."""

    name: str
    brand: str | None
    calories_per_100g: float
    protein_per_100g: float
    fat_per_100g: float
    carbs_per_100g: float
    fiber_per_100g: float
    sugar_per_100g: float
    sodium_mg_per_100g: float
    serving_size_label: str | None = None
    serving_grams: float | None = None
    serving_milliliters: float | None = None

    @classmethod
    def build(  # noqa: PLR0913
        cls,
        name: str,
        brand: str | None = None,
        *,
        calories: object = 0.0,
        protein: object = 0.0,
        fat: object = 0.0,
        carbs: object = 0.0,
        fiber: object = 0.0,
        sugar: object = 0.0,
        sodium_mg: object = 0.0,
        serving_size_label: str | None = None,
        serving_grams: object = None,
        serving_milliliters: object = None,
    ) -> "NutritionFact":
        """Create a fact, coercing missing or invalid nutrients to zero."""
        return cls(
            name=name.strip() or "Unknown food",
            brand=brand or None,
            calories_per_100g=_non_negative(calories),
            protein_per_100g=_non_negative(protein),
            fat_per_100g=_non_negative(fat),
            carbs_per_100g=_non_negative(carbs),
            fiber_per_100g=_non_negative(fiber),
            sugar_per_100g=_non_negative(sugar),
            sodium_mg_per_100g=_non_negative(sodium_mg),
            serving_size_label=serving_size_label or None,
            serving_grams=_optional_positive(serving_grams),
            serving_milliliters=_optional_positive(serving_milliliters),
        )


@dataclass(frozen=True)
class CacheCandidate:
    """Resolved record waiting to be written to the nutrition cache."""

    normalized_name: str
    food: NutritionFact
    source: ResolutionSource
    unverified: bool
    match_confidence: float
    match_notes: str | None

    def to_row(self) -> dict[str, object]:
        """Return the upsert payload for the cache table."""
        return {
            "normalized_name": self.normalized_name,
            "food_name": self.food.name,
            "brand": self.food.brand,
            "calories_per_100g": self.food.calories_per_100g,
            "protein_per_100g": self.food.protein_per_100g,
            "fat_per_100g": self.food.fat_per_100g,
            "carbs_per_100g": self.food.carbs_per_100g,
            "fiber_per_100g": self.food.fiber_per_100g,
            "sugar_per_100g": self.food.sugar_per_100g,
            "sodium_mg_per_100g": self.food.sodium_mg_per_100g,
            "serving_size_label": self.food.serving_size_label,
            "serving_g": self.food.serving_grams,
            "serving_ml": self.food.serving_milliliters,
            "source": self.source.value,
            "unverified": self.unverified,
            "match_confidence": self.match_confidence,
            "match_notes": self.match_notes,
        }


@dataclass(frozen=True)
class CachedFood:
    """Row stored in the shared nutrition cache."""

    normalized_name: str
    food: NutritionFact
    source: str
    unverified: bool
    times_used: int = 0


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving one food name or barcode."""

    source: ResolutionSource
    food: NutritionFact
    match_description: str
    match_score: float
    unverified: bool
    cache_candidate: CacheCandidate | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.match_score <= 1.0:
            raise ValueError(f"match_score out of range: {self.match_score}")
        if self.source is ResolutionSource.CACHE and self.cache_candidate is not None:
            raise ValueError("cache results are already persisted")
        if self.source is ResolutionSource.GENERATIVE and (
            not self.unverified or self.match_score != 0.0
        ):
            raise ValueError("generative results must be unverified with score 0")


DEVICE_SOURCES = frozenset({ResolutionSource.BARCODE, ResolutionSource.LABEL_PHOTO})


def device_capture_result(
    food: NutritionFact, source: ResolutionSource
) -> ResolutionResult:
    """Wrap a confirmed barcode or label-photo capture as a trusted result."""
    if source not in DEVICE_SOURCES:
        raise ValueError(f"Not a capture device source: {source.value}")
    return ResolutionResult(
        source=source,
        food=food,
        match_description=food.name,
        match_score=1.0,
        unverified=False,
        cache_candidate=None,
    )
