"""Generative tier: per-100g macro estimates from a language model."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrition_resolver.domain.errors import ResolutionError
from nutrition_resolver.domain.estimates import GenerativeEstimate
from nutrition_resolver.domain.nutrition import (
    CacheCandidate,
    NutritionFact,
    ResolutionResult,
    ResolutionSource,
)
from nutrition_resolver.domain.tiers import (
    TIER_TIMEOUT_SECONDS,
    TierOutcome,
    TierStatus,
)
from nutrition_resolver.services.text import normalize

GENERATIVE_MATCH_DESCRIPTION = "generative estimate (unverified)"

_MACRO_PROPERTY = {"type": "number", "minimum": 0}

ESTIMATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "brand": {"anyOf": [{"type": "string"}, {"type": "null"}]},
        "calories_per_100g": _MACRO_PROPERTY,
        "protein_per_100g": _MACRO_PROPERTY,
        "fat_per_100g": _MACRO_PROPERTY,
        "carbs_per_100g": _MACRO_PROPERTY,
        "fiber_per_100g": _MACRO_PROPERTY,
        "sugar_per_100g": _MACRO_PROPERTY,
        "sodium_mg_per_100g": _MACRO_PROPERTY,
    },
    "required": [
        "name",
        "brand",
        "calories_per_100g",
        "protein_per_100g",
        "fat_per_100g",
        "carbs_per_100g",
        "fiber_per_100g",
        "sugar_per_100g",
        "sodium_mg_per_100g",
    ],
    "additionalProperties": False,
}

_logger = logging.getLogger(__name__)


class EstimateClient(Protocol):
    """Interface for structured LLM completions."""

    async def estimate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        timeout: float,
    ) -> dict[str, object]:
        """Return structured output matching the schema."""


@dataclass
class GenerativeResolver:
    """Asks a language model for per-100g macros; results are unverified."""

    client: EstimateClient
    model: str
    reasoning_effort: str | None = None
    store: bool = False
    timeout_seconds: float = TIER_TIMEOUT_SECONDS

    async def resolve(self, food_name: str) -> TierOutcome:
        """Estimate macros for a food name.

        Raises:
            ResolutionError: If the model call fails or returns malformed data.
        """
        prompt = (
            "You are a nutrition expert. Estimate the nutrition facts per 100 grams "
            f"for this food: {food_name}\n"
            "Prefer typical label values for branded packaged foods. "
            "Do not output placeholder zeros for calories, protein, fat or carbs. "
            "Units: calories in kcal, protein/fat/carbs/fiber/sugar in grams, "
            "sodium in milligrams. Use null for brand when the food is generic."
        )
        try:
            async with asyncio.timeout(self.timeout_seconds):
                raw = await self.client.estimate(
                    model=self.model,
                    reasoning_effort=self.reasoning_effort,
                    store=self.store,
                    prompt=prompt,
                    schema=ESTIMATE_SCHEMA,
                    timeout=self.timeout_seconds,
                )
        except TimeoutError:
            _logger.warning(
                "Generative estimate timed out after %ss: food=%s",
                self.timeout_seconds,
                food_name,
            )
            return TierOutcome(status=TierStatus.TIMEOUT)
        except Exception as exc:
            raise ResolutionError(f"Generative estimate failed: {exc}") from exc

        try:
            estimate = GenerativeEstimate.model_validate(raw)
        except ValidationError as exc:
            raise ResolutionError(f"Malformed generative estimate: {exc}") from exc

        _logger.info("Generative estimate: food=%s name=%s", food_name, estimate.name)
        return TierOutcome.hit(_to_result(estimate, food_name))


def calories_from_macros(protein: float, carbs: float, fat: float) -> float:
    """Atwater estimate of calories from grams of protein, carbs and fat."""
    return float(round(protein * 4 + carbs * 4 + fat * 9))


def _to_result(estimate: GenerativeEstimate, food_name: str) -> ResolutionResult:
    calories = estimate.calories_per_100g
    notes = GENERATIVE_MATCH_DESCRIPTION
    macro_count = sum(
        1
        for value in (
            estimate.protein_per_100g,
            estimate.carbs_per_100g,
            estimate.fat_per_100g,
        )
        if value > 0
    )
    if calories == 0 and macro_count >= 2:  # noqa: PLR2004
        calories = calories_from_macros(
            estimate.protein_per_100g, estimate.carbs_per_100g, estimate.fat_per_100g
        )
        notes = f"{GENERATIVE_MATCH_DESCRIPTION}; calories derived from macros"

    food = NutritionFact.build(
        estimate.name,
        estimate.brand,
        calories=calories,
        protein=estimate.protein_per_100g,
        fat=estimate.fat_per_100g,
        carbs=estimate.carbs_per_100g,
        fiber=estimate.fiber_per_100g,
        sugar=estimate.sugar_per_100g,
        sodium_mg=estimate.sodium_mg_per_100g,
    )
    candidate = CacheCandidate(
        normalized_name=normalize(food_name) or normalize(food.name),
        food=food,
        source=ResolutionSource.GENERATIVE,
        unverified=True,
        match_confidence=0.0,
        match_notes=notes,
    )
    return ResolutionResult(
        source=ResolutionSource.GENERATIVE,
        food=food,
        match_description=GENERATIVE_MATCH_DESCRIPTION,
        match_score=0.0,
        unverified=True,
        cache_candidate=candidate,
    )
