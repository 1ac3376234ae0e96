"""Domain models for scaled log items and meal groups."""

from dataclasses import dataclass, fields
from enum import Enum

from nutrition_resolver.domain.nutrition import ResolutionSource


class Macro(str, Enum):
    """Macro fields tracked on every log item."""

    CALORIES = "calories"
    PROTEIN = "protein_g"
    FAT = "fat_g"
    CARBS = "carbs_g"
    FIBER = "fiber_g"
    SUGAR = "sugar_g"
    SODIUM = "sodium_mg"


@dataclass(frozen=True)
class Macros:
    """Seven-field macro vector."""

    calories: float = 0.0
    protein_g: float = 0.0
    fat_g: float = 0.0
    carbs_g: float = 0.0
    fiber_g: float = 0.0
    sugar_g: float = 0.0
    sodium_mg: float = 0.0

    def get(self, macro: Macro) -> float:
        """Return the value for a macro."""
        return getattr(self, macro.value)

    def as_dict(self) -> dict[str, float]:
        """Return the macros keyed by field name."""
        return {field.name: getattr(self, field.name) for field in fields(self)}


@dataclass(frozen=True)
class ServingQuantity:
    """Parsed `N x serving` quantity."""

    amount: float
    serving_size_label: str


@dataclass(frozen=True)
class ScaledItem:
    """Logged food occurrence scaled to the user's amount."""

    food_name: str
    serving_size_label: str
    amount: float
    base: Macros
    absolute: Macros
    source: ResolutionSource | None = None
    unverified: bool = False


class MealType(str, Enum):
    """Meal slots a logged item can belong to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class MealGroup:
    """Ordered items logged together under one meal type."""

    group_id: str
    meal_type: MealType
    items: list[ScaledItem]
