"""Meal grouping for scaled log items."""

from dataclasses import replace
from uuid import uuid4

from nutrition_resolver.domain.quantity import MealGroup, MealType, ScaledItem


def parse_meal_type(raw: str | None) -> MealType:
    """Map free-form meal labels onto a meal type, defaulting to snack."""
    value = (raw or "").strip().lower()
    for meal_type in MealType:
        if value == meal_type.value:
            return meal_type
    return MealType.SNACK


def build_meal_group(
    meal_type: MealType | str,
    items: list[ScaledItem],
    group_id: str | None = None,
) -> MealGroup:
    """Create a meal group with a fresh grouping id when none is given."""
    resolved_type = (
        meal_type if isinstance(meal_type, MealType) else parse_meal_type(meal_type)
    )
    return MealGroup(
        group_id=group_id or str(uuid4()),
        meal_type=resolved_type,
        items=list(items),
    )


def retag_meal(group: MealGroup, meal_type: MealType | str) -> MealGroup:
    """Correct the meal type of an unsaved group."""
    resolved_type = (
        meal_type if isinstance(meal_type, MealType) else parse_meal_type(meal_type)
    )
    return replace(group, meal_type=resolved_type)


def replace_item(group: MealGroup, index: int, item: ScaledItem) -> MealGroup:
    """Return a group with one item swapped for its edited version."""
    if not 0 <= index < len(group.items):
        raise IndexError(f"No item at position {index}")
    items = list(group.items)
    items[index] = item
    return replace(group, items=items)
