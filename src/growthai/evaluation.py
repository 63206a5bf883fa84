# Copyright (c) Syntropy Systems
"""Precision metrics computed from recommendation feedback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from growthai.errors import GatewayError
from growthai.events import Notifier
from growthai.models.api import confidence_pct, type_label

if TYPE_CHECKING:
    from growthai.client import GatewayClient
    from growthai.feedback import FeedbackChannel
    from growthai.models.api import EvaluationMetrics, FeedbackJudgment

logger = logging.getLogger(__name__)

LOW_SAMPLE_THRESHOLD = 5
EVALUATION_FAILED = "Failed to fetch evaluation metrics"


@dataclass(frozen=True)
class RulePrecision:
    """Precision of one rule type, ready for display."""

    rec_type: str
    label: str
    precision_pct: int
    useful: int
    total: int


@dataclass(frozen=True)
class EvaluationSummary:
    """What the evaluation view shows for a set of metrics.

    When ``has_data`` is False no percentages are computed at all.
    """

    has_data: bool
    total_feedback: int = 0
    useful_count: int = 0
    overall_pct: int | None = None
    rules: tuple[RulePrecision, ...] = ()
    top_rule: RulePrecision | None = None
    low_sample_types: tuple[str, ...] = ()

    @classmethod
    def from_metrics(
        cls,
        metrics: EvaluationMetrics | None,
        low_sample_threshold: int = LOW_SAMPLE_THRESHOLD,
    ) -> EvaluationSummary:
        if metrics is None or metrics.total_feedback == 0:
            return cls(has_data=False)

        rules = tuple(
            RulePrecision(
                rec_type=rec_type,
                label=type_label(rec_type),
                precision_pct=confidence_pct(entry.precision),
                useful=entry.useful,
                total=entry.total,
            )
            for rec_type, entry in metrics.by_type.items()
        )
        # sorted() is stable, so equal precision keeps input order
        ranked = sorted(
            metrics.by_type.items(), key=lambda item: item[1].precision, reverse=True
        )
        top_type = ranked[0][0] if ranked else None
        top_rule = next((r for r in rules if r.rec_type == top_type), None)

        return cls(
            has_data=True,
            total_feedback=metrics.total_feedback,
            useful_count=metrics.useful_count,
            overall_pct=confidence_pct(metrics.overall_precision),
            rules=rules,
            top_rule=top_rule,
            low_sample_types=tuple(
                rec_type
                for rec_type, entry in metrics.by_type.items()
                if entry.total < low_sample_threshold
            ),
        )


class EvaluationRefresher:
    """Fetches evaluation metrics wholesale, on demand or on feedback."""

    def __init__(
        self,
        client: GatewayClient,
        notifier: Notifier | None = None,
        low_sample_threshold: int = LOW_SAMPLE_THRESHOLD,
    ) -> None:
        self._client = client
        self._notifier = notifier or Notifier()
        self.low_sample_threshold = low_sample_threshold
        self.metrics: EvaluationMetrics | None = None
        self.fetch_count = 0

    @property
    def summary(self) -> EvaluationSummary:
        return EvaluationSummary.from_metrics(self.metrics, self.low_sample_threshold)

    async def fetch(self) -> EvaluationSummary:
        """Re-fetch all metrics, replacing whatever was held before.

        Raises:
            GatewayError: If the metrics could not be fetched. Previous
                metrics are kept.

        """
        self.fetch_count += 1
        try:
            metrics = await self._client.get_evaluation_metrics()
        except GatewayError as e:
            logger.warning("Evaluation metrics unavailable: %s", e)
            self._notifier.error(EVALUATION_FAILED)
            raise
        self.metrics = metrics
        return self.summary

    async def on_feedback(self, judgment: FeedbackJudgment) -> None:
        logger.debug("Feedback on %s changed, refreshing metrics", judgment.recommendation_id)
        _ = await self.fetch()

    def attach(self, channel: FeedbackChannel) -> None:
        """Refresh whenever feedback is recorded on ``channel``."""
        channel.subscribe(self.on_feedback)
