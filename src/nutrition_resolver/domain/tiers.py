"""Per-tier outcomes of the resolution pipeline."""

from dataclasses import dataclass
from enum import Enum

from nutrition_resolver.domain.nutrition import ResolutionResult

TIER_TIMEOUT_SECONDS = 30.0


class TierStatus(str, Enum):
    """How a single resolution tier ended."""

    HIT = "hit"
    MISS = "miss"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class TierOutcome:
    """Result of one tier; only HIT carries a resolution result."""

    status: TierStatus
    result: ResolutionResult | None = None
    name_hint: str | None = None

    @classmethod
    def hit(cls, result: ResolutionResult) -> "TierOutcome":
        """Return an accepted outcome."""
        return cls(status=TierStatus.HIT, result=result)

    @classmethod
    def miss(cls, name_hint: str | None = None) -> "TierOutcome":
        """Return an outcome with no acceptable candidate."""
        return cls(status=TierStatus.MISS, name_hint=name_hint)
