# Copyright (c) Syntropy Systems
"""Usefulness feedback on recommendations."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

from growthai.errors import DuplicateFeedbackError, GatewayError
from growthai.events import Channel, Notifier
from growthai.models.api import FeedbackJudgment

if TYPE_CHECKING:
    from collections.abc import Mapping

    from growthai.client import GatewayClient
    from growthai.models.api import Recommendation

logger = logging.getLogger(__name__)

FEEDBACK_FAILED = "Failed to submit feedback"

FeedbackChannel = Channel[FeedbackJudgment]


class FeedbackRecorder:
    """Submits at most one judgment per recommendation for this session.

    Every recorded judgment is published on ``changed`` so that listeners
    such as the evaluation refresher can react.
    """

    def __init__(
        self,
        client: GatewayClient,
        notifier: Notifier | None = None,
        changed: FeedbackChannel | None = None,
    ) -> None:
        self._client = client
        self._notifier = notifier or Notifier()
        self.changed: FeedbackChannel = changed or Channel("feedback-changed")
        self._judgments: dict[str, FeedbackJudgment] = {}
        self._pending: set[str] = set()

    @property
    def judgments(self) -> Mapping[str, FeedbackJudgment]:
        return MappingProxyType(self._judgments)

    def judgment(self, recommendation_id: str) -> FeedbackJudgment | None:
        return self._judgments.get(recommendation_id)

    def can_submit(self, recommendation_id: str) -> bool:
        """False once a judgment is recorded or while one is being sent."""
        return (
            recommendation_id not in self._judgments
            and recommendation_id not in self._pending
        )

    async def submit(
        self,
        recommendation_id: str,
        recommendation_type: str,
        is_useful: bool,
    ) -> FeedbackJudgment:
        """Send a judgment and record it locally once the gateway accepts it.

        Raises:
            DuplicateFeedbackError: If this recommendation already has (or is
                getting) a judgment. No request is made.
            GatewayError: If the gateway rejected the judgment. Nothing is
                recorded and the recommendation stays eligible.

        """
        if not self.can_submit(recommendation_id):
            raise DuplicateFeedbackError(recommendation_id)

        self._pending.add(recommendation_id)
        try:
            _ = await self._client.submit_feedback(
                recommendation_id, recommendation_type, is_useful
            )
        except GatewayError as e:
            logger.warning("Feedback for %s failed: %s", recommendation_id, e)
            self._notifier.error(FEEDBACK_FAILED)
            raise
        finally:
            self._pending.discard(recommendation_id)

        judgment = FeedbackJudgment(
            recommendation_id=recommendation_id,
            recommendation_type=recommendation_type,
            is_useful=is_useful,
        )
        self._judgments[recommendation_id] = judgment
        self._notifier.success("Thanks for the feedback!" if is_useful else "Feedback noted")
        await self.changed.emit(judgment)
        return judgment

    async def submit_for(self, recommendation: Recommendation, is_useful: bool) -> FeedbackJudgment:
        return await self.submit(recommendation.id, recommendation.type, is_useful)
