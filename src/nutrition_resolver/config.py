"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from nutrition_resolver.domain.tiers import TIER_TIMEOUT_SECONDS
from nutrition_resolver.services.cache_resolver import (
    CACHE_CANDIDATE_LIMIT,
    CACHE_MATCH_THRESHOLD,
)
from nutrition_resolver.services.external_resolver import (
    EXTERNAL_CANDIDATE_LIMIT,
    EXTERNAL_MATCH_THRESHOLD,
)

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    cache_table: str = "master_food_database"
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    off_base_url: str = "https://world.openfoodfacts.org"
    off_user_agent: str = "NutritionResolver/1.0"
    cache_match_threshold: float = CACHE_MATCH_THRESHOLD
    cache_candidate_limit: int = CACHE_CANDIDATE_LIMIT
    external_match_threshold: float = EXTERNAL_MATCH_THRESHOLD
    external_candidate_limit: int = EXTERNAL_CANDIDATE_LIMIT
    tier_timeout_seconds: float = TIER_TIMEOUT_SECONDS
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
