"""Models for generative nutrition estimates."""

from pydantic import BaseModel, Field


class GenerativeEstimate(BaseModel):
    """Structured per-100g estimate returned by the language model."""

    name: str = Field(min_length=1)
    brand: str | None = None
    calories_per_100g: float = Field(ge=0.0, allow_inf_nan=False)
    protein_per_100g: float = Field(ge=0.0, allow_inf_nan=False)
    fat_per_100g: float = Field(ge=0.0, allow_inf_nan=False)
    carbs_per_100g: float = Field(ge=0.0, allow_inf_nan=False)
    fiber_per_100g: float = Field(ge=0.0, allow_inf_nan=False)
    sugar_per_100g: float = Field(ge=0.0, allow_inf_nan=False)
    sodium_mg_per_100g: float = Field(ge=0.0, allow_inf_nan=False)
