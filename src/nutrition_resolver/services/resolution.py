"""Tiered nutrition resolution: cache, then external database, then generative."""

import asyncio
import logging
from dataclasses import dataclass

from nutrition_resolver.domain.errors import InvalidInputError, ResolutionError
from nutrition_resolver.domain.nutrition import ResolutionResult
from nutrition_resolver.domain.tiers import TierOutcome
from nutrition_resolver.services.cache_resolver import CacheResolver
from nutrition_resolver.services.external_resolver import ExternalResolver
from nutrition_resolver.services.generative_resolver import GenerativeResolver
from nutrition_resolver.services.text import as_barcode

_logger = logging.getLogger(__name__)


@dataclass
class ResolutionService:
    """Runs the resolution tiers in priority order and stops at the first hit."""

    cache_resolver: CacheResolver
    external_resolver: ExternalResolver
    generative_resolver: GenerativeResolver

    async def resolve(self, food_name_or_barcode: str) -> ResolutionResult:
        """Resolve a food name or barcode to a per-100g record.

        Raises:
            InvalidInputError: If the input is empty.
            ResolutionError: If no tier produced an acceptable record.
        """
        query = (food_name_or_barcode or "").strip()
        if not query:
            raise InvalidInputError("Food name or barcode is required")

        outcomes: list[tuple[str, TierOutcome]] = []

        cache_outcome = self.cache_resolver.resolve(query)
        outcomes.append(("cache", cache_outcome))
        if cache_outcome.result is not None:
            return cache_outcome.result

        external_outcome = await self.external_resolver.resolve(query)
        outcomes.append(("external", external_outcome))
        if external_outcome.result is not None:
            return external_outcome.result

        generative_name = external_outcome.name_hint
        if generative_name is None and as_barcode(query) is None:
            generative_name = query
        if generative_name is None:
            _logger.info("Generative tier skipped: no food name for code=%s", query)
        else:
            generative_outcome = await self.generative_resolver.resolve(
                generative_name
            )
            outcomes.append(("generative", generative_outcome))
            if generative_outcome.result is not None:
                return generative_outcome.result

        details = ", ".join(
            f"{tier}={outcome.status.value}" for tier, outcome in outcomes
        )
        _logger.warning("Resolution failed: query=%s tiers=%s", query, details)
        raise ResolutionError(f"All tiers exhausted ({details})")

    async def resolve_many(
        self, queries: list[str]
    ) -> list[ResolutionResult | Exception]:
        """Resolve several items concurrently; failures are returned per item."""
        results = await asyncio.gather(
            *(self.resolve(query) for query in queries), return_exceptions=True
        )
        resolved: list[ResolutionResult | Exception] = []
        for result in results:
            if isinstance(result, InvalidInputError | ResolutionError):
                resolved.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                resolved.append(result)
        return resolved
