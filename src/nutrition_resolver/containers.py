"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_resolver.adapters.off_client import HttpxOpenFoodFactsClient
from nutrition_resolver.adapters.openai_estimate_client import OpenAIEstimateClient
from nutrition_resolver.adapters.supabase_nutrition_cache_repository import (
    SupabaseNutritionCacheRepository,
)
from nutrition_resolver.config import Settings
from nutrition_resolver.services.cache_resolver import CacheResolver
from nutrition_resolver.services.cache_writeback import CacheWriteBackService
from nutrition_resolver.services.external_resolver import ExternalResolver
from nutrition_resolver.services.generative_resolver import GenerativeResolver
from nutrition_resolver.services.resolution import ResolutionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    resolution_service: ResolutionService
    cache_writeback_service: CacheWriteBackService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    cache_repository = SupabaseNutritionCacheRepository(
        supabase_client, table=resolved_settings.cache_table
    )
    off_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
    )
    openai_client = OpenAIEstimateClient.create(resolved_settings.openai_api_key)
    resolution_service = ResolutionService(
        cache_resolver=CacheResolver(
            repository=cache_repository,
            match_threshold=resolved_settings.cache_match_threshold,
            candidate_limit=resolved_settings.cache_candidate_limit,
        ),
        external_resolver=ExternalResolver(
            client=off_client,
            match_threshold=resolved_settings.external_match_threshold,
            candidate_limit=resolved_settings.external_candidate_limit,
            timeout_seconds=resolved_settings.tier_timeout_seconds,
        ),
        generative_resolver=GenerativeResolver(
            client=openai_client,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
            timeout_seconds=resolved_settings.tier_timeout_seconds,
        ),
    )
    cache_writeback_service = CacheWriteBackService(cache_repository)

    async def close_resources() -> None:
        await off_client.close()
        await openai_client.client.close()

    return AppContainer(
        settings=resolved_settings,
        resolution_service=resolution_service,
        cache_writeback_service=cache_writeback_service,
        close_resources=close_resources,
    )
