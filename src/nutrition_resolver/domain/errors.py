"""Errors surfaced by the resolution pipeline."""

RESOLUTION_FAILURE_MESSAGE = "Could not determine nutrition info, try again"


class InvalidInputError(ValueError):
    """Raised when a resolution request carries no usable food name."""


class ResolutionError(RuntimeError):
    """Raised when every tier failed to produce nutrition data."""

    def __init__(self, details: str | None = None) -> None:
        super().__init__(RESOLUTION_FAILURE_MESSAGE)
        self.details = details
