"""Supabase implementation for the shared nutrition cache."""

from dataclasses import dataclass

from supabase import Client

from nutrition_resolver.domain.nutrition import CacheCandidate, CachedFood, NutritionFact
from nutrition_resolver.services.cache_resolver import NutritionCacheRepository

DEFAULT_TABLE = "master_food_database"
INCREMENT_USAGE_FUNCTION = "increment_food_usage"


@dataclass
class SupabaseNutritionCacheRepository(NutritionCacheRepository):
    """Supabase-backed repository for cached nutrition records."""

    client: Client
    table: str = DEFAULT_TABLE

    def search(self, normalized_query: str, limit: int) -> list[CachedFood]:
        """Return rows containing the query, most used first."""
        response = (
            self.client.table(self.table)
            .select("*")
            .ilike("normalized_name", f"%{normalized_query}%")
            .order("times_used", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def upsert(self, candidates: list[CacheCandidate]) -> None:
        """Insert or replace rows keyed by normalized name."""
        if not candidates:
            return
        self.client.table(self.table).upsert(
            [candidate.to_row() for candidate in candidates],
            on_conflict="normalized_name",
        ).execute()

    def increment_usage(self, normalized_name: str) -> None:
        """Increment the usage counter inside the database."""
        self.client.rpc(
            INCREMENT_USAGE_FUNCTION, {"p_normalized_name": normalized_name}
        ).execute()


def _parse_row(row: dict[str, object]) -> CachedFood:
    """Parse a cache row into a domain model."""
    food = NutritionFact.build(
        str(row.get("food_name") or row.get("normalized_name") or ""),
        row.get("brand"),
        calories=row.get("calories_per_100g"),
        protein=row.get("protein_per_100g"),
        fat=row.get("fat_per_100g"),
        carbs=row.get("carbs_per_100g"),
        fiber=row.get("fiber_per_100g"),
        sugar=row.get("sugar_per_100g"),
        sodium_mg=row.get("sodium_mg_per_100g"),
        serving_size_label=row.get("serving_size_label"),
        serving_grams=row.get("serving_g"),
        serving_milliliters=row.get("serving_ml"),
    )
    return CachedFood(
        normalized_name=str(row.get("normalized_name", "")),
        food=food,
        source=str(row.get("source") or ""),
        unverified=bool(row.get("unverified", False)),
        times_used=int(row.get("times_used") or 0),
    )
