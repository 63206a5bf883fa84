# Copyright (c) Syntropy Systems
"""Error types raised by the growthai workflow."""

from __future__ import annotations


class GrowthAIError(Exception):
    """Base class for all growthai errors."""


class ValidationError(GrowthAIError):
    """A user-supplied input was rejected (e.g. not a CSV file)."""


class PreconditionError(GrowthAIError):
    """An action was attempted before its prerequisite was met."""


class GatewayError(GrowthAIError):
    """A call to the analysis gateway failed.

    ``detail`` carries the gateway's own error text when it sent one; callers
    show it to the user and fall back to a generic message otherwise.
    """

    detail: str | None
    status_code: int | None

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.detail = detail
        self.status_code = status_code

    def display_message(self, default: str) -> str:
        """Return the gateway detail, or ``default`` when there is none."""
        return self.detail or default


class DuplicateFeedbackError(GrowthAIError):
    """Feedback was already given for this recommendation."""

    recommendation_id: str

    def __init__(self, recommendation_id: str) -> None:
        super().__init__(f"Feedback already recorded for recommendation {recommendation_id}")
        self.recommendation_id = recommendation_id


class UnsupportedRecommendationTypeError(GrowthAIError):
    """No simulated action is known for this recommendation type."""

    rec_type: str

    def __init__(self, rec_type: str) -> None:
        super().__init__(f"Cannot simulate recommendation of type '{rec_type}'")
        self.rec_type = rec_type
