"""External tier: Open Food Facts lookups by barcode or text search."""

import asyncio
import logging
import math
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from nutrition_resolver.domain.nutrition import (
    CacheCandidate,
    NutritionFact,
    ResolutionResult,
    ResolutionSource,
)
from nutrition_resolver.domain.quantity import Macro
from nutrition_resolver.domain.tiers import (
    TIER_TIMEOUT_SECONDS,
    TierOutcome,
    TierStatus,
)
from nutrition_resolver.services.quantity import round_macro
from nutrition_resolver.services.text import as_barcode, normalize, similarity

EXTERNAL_MATCH_THRESHOLD = 0.80
EXTERNAL_CANDIDATE_LIMIT = 10

REQUIRED_NUTRIENTS = (
    "energy-kcal_100g",
    "proteins_100g",
    "fat_100g",
    "carbohydrates_100g",
    "sugars_100g",
    "fiber_100g",
    "sodium_100g",
)

_VOLUME_UNITS = re.compile(
    r"\d\s*(?:ml|cl|dl|l|millilit(?:er|re)s?|lit(?:er|re)s?)\b|\bfl\.?\s*oz\b"
)
_MASS_UNITS = re.compile(r"\d\s*(?:g|gr|grams?|kg|mg)\b|\boz\b")

_logger = logging.getLogger(__name__)


class FoodDatabaseClient(Protocol):
    """Interface for the external open food database."""

    async def get_product(self, code: str, *, timeout: float) -> dict[str, object]:
        """Fetch a product by barcode and return raw API data."""

    async def search_products(
        self, query: str, *, page_size: int, timeout: float
    ) -> dict[str, object]:
        """Search products by free text and return raw API data."""


@dataclass
class ExternalResolver:
    """Resolves names or barcodes against the external food database."""

    client: FoodDatabaseClient
    match_threshold: float = EXTERNAL_MATCH_THRESHOLD
    candidate_limit: int = EXTERNAL_CANDIDATE_LIMIT
    timeout_seconds: float = TIER_TIMEOUT_SECONDS

    async def resolve(self, query: str) -> TierOutcome:
        """Look up a barcode exactly, or search by text otherwise."""
        code = as_barcode(query)
        if code is not None:
            return await self.lookup_code(code)
        return await self.search_text(query)

    async def lookup_code(self, code: str) -> TierOutcome:
        """Accept the product for a barcode only with a complete nutrient set."""
        payload, status = await self._fetch(
            lambda: self.client.get_product(code, timeout=self.timeout_seconds),
            action=f"product:{code}",
        )
        if payload is None:
            return TierOutcome(status=status)
        product = payload.get("product")
        if payload.get("status") != 1 or not isinstance(product, dict):
            _logger.info("External miss: code=%s not found", code)
            return TierOutcome.miss()
        display_name = _display_name(product)
        if not has_complete_nutrients(product):
            _logger.info("External miss: code=%s incomplete nutrients", code)
            return TierOutcome.miss(name_hint=display_name)
        _logger.info("External hit: code=%s name=%s", code, display_name)
        return TierOutcome.hit(_accept(product, score=1.0, cache_key=display_name))

    async def search_text(self, query: str) -> TierOutcome:
        """Accept the best-scoring complete product above the threshold."""
        payload, status = await self._fetch(
            lambda: self.client.search_products(
                query, page_size=self.candidate_limit, timeout=self.timeout_seconds
            ),
            action=f"search:{query}",
        )
        if payload is None:
            return TierOutcome(status=status)
        products = payload.get("products")
        if not isinstance(products, list):
            products = []

        best: dict[str, object] | None = None
        best_score = 0.0
        for product in products[: self.candidate_limit]:
            if not isinstance(product, dict):
                continue
            score = similarity(str(product.get("product_name") or ""), query)
            if score < self.match_threshold or not has_complete_nutrients(product):
                continue
            if best is None or score > best_score:
                best, best_score = product, score

        if best is None:
            _logger.info(
                "External miss: query=%s candidates=%s", query, len(products)
            )
            return TierOutcome.miss()
        _logger.info(
            "External hit: query=%s name=%s score=%.3f",
            query,
            best.get("product_name"),
            best_score,
        )
        return TierOutcome.hit(_accept(best, score=best_score, cache_key=query))

    async def _fetch(
        self,
        func: Callable[[], Awaitable[dict[str, object]]],
        *,
        action: str,
    ) -> tuple[dict[str, object] | None, TierStatus]:
        """Run one external call under the tier deadline."""
        try:
            async with asyncio.timeout(self.timeout_seconds):
                payload = await func()
        except TimeoutError:
            _logger.warning(
                "External %s timed out after %ss", action, self.timeout_seconds
            )
            return None, TierStatus.TIMEOUT
        except Exception as exc:
            _logger.warning(
                "External %s failed (status=%s): %s",
                action,
                _status_code_from_exception(exc),
                exc,
            )
            return None, TierStatus.UNAVAILABLE
        if not isinstance(payload, dict):
            return None, TierStatus.MISS
        return payload, TierStatus.HIT


def has_complete_nutrients(product: dict[str, object]) -> bool:
    """Return True when every required per-100g nutrient is a finite number."""
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        return False
    return all(
        _finite_number(nutriments.get(key)) is not None for key in REQUIRED_NUTRIENTS
    )


def classify_serving(
    serving_label: str | None, serving_quantity: object
) -> tuple[float | None, float | None]:
    """Split a serving quantity into (grams, milliliters) by its label units."""
    quantity = _finite_number(serving_quantity)
    if not serving_label or quantity is None or quantity <= 0:
        return None, None
    label = serving_label.lower()
    is_volume = _VOLUME_UNITS.search(label) is not None
    is_mass = _MASS_UNITS.search(_VOLUME_UNITS.sub(" ", label)) is not None
    if is_volume and not is_mass:
        return None, quantity
    if is_mass and not is_volume:
        return quantity, None
    return None, None


def _accept(
    product: dict[str, object], *, score: float, cache_key: str
) -> ResolutionResult:
    """Convert an accepted product into a result with a cache candidate."""
    nutriments = product.get("nutriments") or {}
    display_name = _display_name(product)
    serving_label = _optional_text(product.get("serving_size"))
    serving_grams, serving_ml = classify_serving(
        serving_label, product.get("serving_quantity")
    )

    def value(key: str, macro: Macro, factor: float = 1.0) -> float:
        raw = _finite_number(nutriments.get(key)) or 0.0
        return round_macro(raw * factor, macro)

    food = NutritionFact.build(
        display_name,
        _first_brand(product.get("brands")),
        calories=value("energy-kcal_100g", Macro.CALORIES),
        protein=value("proteins_100g", Macro.PROTEIN),
        fat=value("fat_100g", Macro.FAT),
        carbs=value("carbohydrates_100g", Macro.CARBS),
        fiber=value("fiber_100g", Macro.FIBER),
        sugar=value("sugars_100g", Macro.SUGAR),
        sodium_mg=value("sodium_100g", Macro.SODIUM, factor=1000.0),
        serving_size_label=serving_label,
        serving_grams=serving_grams,
        serving_milliliters=serving_ml,
    )
    product_name = _optional_text(product.get("product_name"))
    candidate = CacheCandidate(
        normalized_name=normalize(cache_key),
        food=food,
        source=ResolutionSource.EXTERNAL,
        unverified=False,
        match_confidence=score,
        match_notes=product_name,
    )
    return ResolutionResult(
        source=ResolutionSource.EXTERNAL,
        food=food,
        match_description=product_name or food.name,
        match_score=score,
        unverified=False,
        cache_candidate=candidate,
    )


def _display_name(product: dict[str, object]) -> str:
    parts = [
        _optional_text(product.get("brands")),
        _optional_text(product.get("product_name")),
    ]
    return " ".join(part for part in parts if part) or "Unknown Product"


def _first_brand(brands: object) -> str | None:
    text = _optional_text(brands)
    if text is None:
        return None
    return text.split(",")[0].strip() or None


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _finite_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
