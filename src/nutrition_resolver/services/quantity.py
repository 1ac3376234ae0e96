"""Quantity model shared by every log, saved-meal and pantry edit.

A `ScaledItem` keeps two macro vectors: `base` (per single unit of the chosen
serving) and `absolute` (base multiplied by the logged amount). Every edit in
this module goes through `derive_base_from_absolute` or
`derive_absolute_from_base`, so `absolute == round(base * amount)` holds after
any sequence of edits.
"""

import math
import re
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal

from nutrition_resolver.domain.nutrition import (
    NutritionFact,
    ResolutionResult,
    ResolutionSource,
)
from nutrition_resolver.domain.quantity import Macro, Macros, ScaledItem, ServingQuantity

DEFAULT_SERVING_LABEL = "1 serving"
PER_100G_LABEL = "100g"

_COMPOSITE = re.compile(
    r"^\s*(-?[\d.,]+)\s*(?:x\s+|x(?=\d)|×\s*)(\S.*?)\s*$", re.IGNORECASE
)
_INTEGER_MACROS = frozenset({Macro.CALORIES, Macro.SODIUM})
_ONE_PLACE = Decimal("0.1")
_WHOLE = Decimal("1")


def parse_composite(text: str | None) -> ServingQuantity:
    """Parse `<number> x <label>` into an amount and a serving label."""
    cleaned = (text or "").strip()
    match = _COMPOSITE.match(cleaned)
    if match is None:
        return ServingQuantity(
            amount=1.0, serving_size_label=cleaned or DEFAULT_SERVING_LABEL
        )
    return ServingQuantity(
        amount=_parse_amount(match.group(1)),
        serving_size_label=match.group(2),
    )


def format_composite(serving_size_label: str, amount: float) -> str:
    """Render a label and amount in `N x label` notation."""
    label = serving_size_label.strip() or DEFAULT_SERVING_LABEL
    if amount == 1:
        return label
    return f"{_format_amount(amount)} x {label}"


def derive_base_from_absolute(absolute_value: float, amount: float) -> float:
    """Return the per-unit value behind an absolute value."""
    return absolute_value / _safe_amount(amount)


def derive_absolute_from_base(
    base_value: float, amount: float, macro: Macro = Macro.CALORIES
) -> float:
    """Scale a per-unit value by amount with macro-specific rounding."""
    return round_macro(base_value * _safe_amount(amount), macro)


def round_macro(value: float, macro: Macro) -> float:
    """Round half-up: calories and sodium to integers, grams to one decimal."""
    precision = _WHOLE if macro in _INTEGER_MACROS else _ONE_PLACE
    return float(Decimal(repr(value)).quantize(precision, rounding=ROUND_HALF_UP))


def derive_absolute_macros(base: Macros, amount: float) -> Macros:
    """Derive all seven absolute macros from base values."""
    return Macros(
        **{
            macro.value: derive_absolute_from_base(base.get(macro), amount, macro)
            for macro in Macro
        }
    )


def base_macros_from_fact(fact: NutritionFact) -> tuple[Macros, str]:
    """Return per-unit macros and the unit label for a per-100g fact.

    The unit is the product serving when its size is known, otherwise 100 g.
    """
    serving_size = fact.serving_grams or fact.serving_milliliters
    if serving_size:
        factor = serving_size / 100.0
        unit = "ml" if fact.serving_grams is None else "g"
        label = fact.serving_size_label or f"{_format_amount(serving_size)}{unit}"
    else:
        factor = 1.0
        label = PER_100G_LABEL
    base = Macros(
        calories=fact.calories_per_100g * factor,
        protein_g=fact.protein_per_100g * factor,
        fat_g=fact.fat_per_100g * factor,
        carbs_g=fact.carbs_per_100g * factor,
        fiber_g=fact.fiber_per_100g * factor,
        sugar_g=fact.sugar_per_100g * factor,
        sodium_mg=fact.sodium_mg_per_100g * factor,
    )
    return base, label


def scale_result(result: ResolutionResult, amount: float = 1.0) -> ScaledItem:
    """Create a log item from a resolution result."""
    _check_amount(amount)
    base, label = base_macros_from_fact(result.food)
    return ScaledItem(
        food_name=result.food.name,
        serving_size_label=label,
        amount=amount,
        base=base,
        absolute=derive_absolute_macros(base, amount),
        source=result.source,
        unverified=result.unverified,
    )


def set_amount(item: ScaledItem, amount: float) -> ScaledItem:
    """Change the amount and re-derive every absolute macro."""
    _check_amount(amount)
    return replace(
        item, amount=amount, absolute=derive_absolute_macros(item.base, amount)
    )


def set_quantity_text(item: ScaledItem, text: str) -> ScaledItem:
    """Apply an edited `N x label` quantity string."""
    quantity = parse_composite(text)
    updated = set_amount(item, quantity.amount)
    return replace(updated, serving_size_label=quantity.serving_size_label)


def set_absolute(item: ScaledItem, macro: Macro, value: float) -> ScaledItem:
    """Edit an absolute macro and re-derive its base value."""
    _check_value(value)
    base_value = derive_base_from_absolute(value, item.amount)
    return _with_base_value(item, macro, base_value)


def set_base(item: ScaledItem, macro: Macro, value: float) -> ScaledItem:
    """Edit a per-unit macro and re-derive its absolute value."""
    _check_value(value)
    return _with_base_value(item, macro, value)


def apply_override(
    item: ScaledItem,
    base: Macros,
    *,
    source: ResolutionSource,
    serving_size_label: str | None = None,
) -> ScaledItem:
    """Replace per-unit macros with scanned values, keeping the amount."""
    return replace(
        item,
        base=base,
        absolute=derive_absolute_macros(base, item.amount),
        serving_size_label=serving_size_label or item.serving_size_label,
        source=source,
        unverified=False,
    )


def _with_base_value(item: ScaledItem, macro: Macro, base_value: float) -> ScaledItem:
    base = replace(item.base, **{macro.value: base_value})
    absolute = replace(
        item.absolute,
        **{macro.value: derive_absolute_from_base(base_value, item.amount, macro)},
    )
    return replace(item, base=base, absolute=absolute)


def _parse_amount(raw: str) -> float:
    try:
        amount = float(raw.replace(",", "."))
    except ValueError:
        return 1.0
    if not math.isfinite(amount) or amount <= 0:
        return 1.0
    return amount


def _format_amount(amount: float) -> str:
    number = float(amount)
    if number.is_integer():
        return str(int(number))
    return format(Decimal(repr(number)).normalize(), "f")


def _safe_amount(amount: float) -> float:
    if not math.isfinite(amount) or amount <= 0:
        return 1.0
    return amount


def _check_amount(amount: float) -> None:
    if not math.isfinite(amount) or amount <= 0:
        raise ValueError(f"Amount must be a positive number, got {amount}")


def _check_value(value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Macro value must be a non-negative number, got {value}")
