"""Pydantic models for the resolution API payloads."""

from dataclasses import asdict

from pydantic import BaseModel, Field

from nutrition_resolver.domain.nutrition import (
    CacheCandidate,
    NutritionFact,
    ResolutionResult,
    ResolutionSource,
)
from nutrition_resolver.domain.quantity import Macros, ScaledItem
from nutrition_resolver.services.quantity import (
    derive_absolute_macros,
    format_composite,
)


class NutritionFactPayload(BaseModel):
    """Per-100g nutrition record."""

    name: str
    brand: str | None = None
    calories_per_100g: float = Field(default=0.0, ge=0.0)
    protein_per_100g: float = Field(default=0.0, ge=0.0)
    fat_per_100g: float = Field(default=0.0, ge=0.0)
    carbs_per_100g: float = Field(default=0.0, ge=0.0)
    fiber_per_100g: float = Field(default=0.0, ge=0.0)
    sugar_per_100g: float = Field(default=0.0, ge=0.0)
    sodium_mg_per_100g: float = Field(default=0.0, ge=0.0)
    serving_size_label: str | None = None
    serving_grams: float | None = None
    serving_milliliters: float | None = None

    @classmethod
    def from_domain(cls, fact: NutritionFact) -> "NutritionFactPayload":
        """Build a payload from a domain fact."""
        return cls(**asdict(fact))

    def to_domain(self) -> NutritionFact:
        """Convert to a domain fact."""
        return NutritionFact.build(
            self.name,
            self.brand,
            calories=self.calories_per_100g,
            protein=self.protein_per_100g,
            fat=self.fat_per_100g,
            carbs=self.carbs_per_100g,
            fiber=self.fiber_per_100g,
            sugar=self.sugar_per_100g,
            sodium_mg=self.sodium_mg_per_100g,
            serving_size_label=self.serving_size_label,
            serving_grams=self.serving_grams,
            serving_milliliters=self.serving_milliliters,
        )


class CacheCandidatePayload(BaseModel):
    """Resolved record the caller commits on save."""

    normalized_name: str
    food: NutritionFactPayload
    source: ResolutionSource
    unverified: bool
    match_confidence: float = Field(ge=0.0, le=1.0)
    match_notes: str | None = None

    @classmethod
    def from_domain(cls, candidate: CacheCandidate) -> "CacheCandidatePayload":
        """Build a payload from a domain candidate."""
        return cls(
            normalized_name=candidate.normalized_name,
            food=NutritionFactPayload.from_domain(candidate.food),
            source=candidate.source,
            unverified=candidate.unverified,
            match_confidence=candidate.match_confidence,
            match_notes=candidate.match_notes,
        )

    def to_domain(self) -> CacheCandidate:
        """Convert to a domain candidate."""
        return CacheCandidate(
            normalized_name=self.normalized_name,
            food=self.food.to_domain(),
            source=self.source,
            unverified=self.unverified,
            match_confidence=self.match_confidence,
            match_notes=self.match_notes,
        )


class ResolutionResultPayload(BaseModel):
    """Resolution response envelope."""

    source: ResolutionSource
    food: NutritionFactPayload
    match_description: str
    match_score: float = Field(ge=0.0, le=1.0)
    unverified: bool
    cache_candidate: CacheCandidatePayload | None = None

    @classmethod
    def from_domain(cls, result: ResolutionResult) -> "ResolutionResultPayload":
        """Build a payload from a domain result."""
        return cls(
            source=result.source,
            food=NutritionFactPayload.from_domain(result.food),
            match_description=result.match_description,
            match_score=result.match_score,
            unverified=result.unverified,
            cache_candidate=(
                CacheCandidatePayload.from_domain(result.cache_candidate)
                if result.cache_candidate
                else None
            ),
        )

    def to_domain(self) -> ResolutionResult:
        """Convert to a domain result; raises ValueError on broken invariants."""
        return ResolutionResult(
            source=self.source,
            food=self.food.to_domain(),
            match_description=self.match_description,
            match_score=self.match_score,
            unverified=self.unverified,
            cache_candidate=(
                self.cache_candidate.to_domain() if self.cache_candidate else None
            ),
        )


class MacrosPayload(BaseModel):
    """Seven-field macro vector."""

    calories: float = Field(default=0.0, ge=0.0)
    protein_g: float = Field(default=0.0, ge=0.0)
    fat_g: float = Field(default=0.0, ge=0.0)
    carbs_g: float = Field(default=0.0, ge=0.0)
    fiber_g: float = Field(default=0.0, ge=0.0)
    sugar_g: float = Field(default=0.0, ge=0.0)
    sodium_mg: float = Field(default=0.0, ge=0.0)


class ScaledItemPayload(BaseModel):
    """Quantity-scaled log item."""

    food_name: str
    serving_size_label: str
    amount: float = Field(gt=0.0)
    base: MacrosPayload
    absolute: MacrosPayload
    source: ResolutionSource | None = None
    unverified: bool = False
    quantity: str | None = None

    @classmethod
    def from_domain(cls, item: ScaledItem) -> "ScaledItemPayload":
        """Build a payload from a domain item, including its display quantity."""
        return cls(
            food_name=item.food_name,
            serving_size_label=item.serving_size_label,
            amount=item.amount,
            base=MacrosPayload(**item.base.as_dict()),
            absolute=MacrosPayload(**item.absolute.as_dict()),
            source=item.source,
            unverified=item.unverified,
            quantity=format_composite(item.serving_size_label, item.amount),
        )

    def to_domain(self) -> ScaledItem:
        """Convert to a domain item; absolute values are re-derived from base."""
        base = Macros(**self.base.model_dump())
        return ScaledItem(
            food_name=self.food_name,
            serving_size_label=self.serving_size_label,
            amount=self.amount,
            base=base,
            absolute=derive_absolute_macros(base, self.amount),
            source=self.source,
            unverified=self.unverified,
        )


class ResolveRequest(BaseModel):
    """Single resolution request."""

    food_name_or_barcode: str


class BatchResolveRequest(BaseModel):
    """Resolution request for several items of one meal."""

    items: list[str]


class CaptureRequest(BaseModel):
    """Confirmed output of a barcode scan or label photo."""

    source: ResolutionSource
    food: NutritionFactPayload


class ScaleRequest(BaseModel):
    """Scale a resolution result into a log item."""

    result: ResolutionResultPayload
    amount: float = Field(default=1.0, gt=0.0)
    quantity: str | None = None


class EditRequest(BaseModel):
    """Edit one field of a log item.

    `field` is `amount`, `quantity`, an absolute macro name such as
    `calories`, or a base macro name prefixed with `base_`.
    """

    item: ScaledItemPayload
    field: str
    value: float | str


class CommitRequest(BaseModel):
    """Cache write-back issued when the caller saves a log entry."""

    candidates: list[CacheCandidatePayload] = Field(default_factory=list)
    cache_hits: list[str] = Field(default_factory=list)


class CommitResponse(BaseModel):
    """Outcome of a cache write-back."""

    upserted: bool
    usage_bumped: int


class ErrorResponse(BaseModel):
    """Error payload for failed requests."""

    error: str
    details: str | None = None


class BatchItemResponse(BaseModel):
    """Per-item outcome of a batch resolution."""

    query: str
    result: ResolutionResultPayload | None = None
    error: ErrorResponse | None = None
