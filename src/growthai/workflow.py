# Copyright (c) Syntropy Systems
"""Top-level workflow: upload, analyze, review recommendations, evaluate."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from growthai.errors import GatewayError, PreconditionError
from growthai.evaluation import EVALUATION_FAILED, LOW_SAMPLE_THRESHOLD, EvaluationRefresher
from growthai.events import Notifier
from growthai.feedback import FEEDBACK_FAILED, FeedbackRecorder
from growthai.simulation import SimulationRequester
from growthai.store import RecommendationStore
from growthai.upload import UploadCoordinator

if TYPE_CHECKING:
    from growthai.client import GatewayClient
    from growthai.config import GrowthAIConfig
    from growthai.evaluation import EvaluationSummary
    from growthai.models.api import (
        AnalyzeAck,
        Benchmark,
        FeedbackJudgment,
        Recommendation,
        UploadResult,
    )
    from growthai.simulation import SimulationView

logger = logging.getLogger(__name__)

ANALYZE_FAILED = "Failed to analyze campaigns"


class Step(str, Enum):
    """Workflow steps."""

    UPLOAD = "upload"
    RECOMMENDATIONS = "recommendations"
    EVALUATION = "evaluation"


@dataclass
class AnalyzeSaga:
    """Benchmarks, analyze and recommendations fetched as one unit.

    Each step only stages its result. Nothing reaches the store unless every
    step succeeds; a failure discards what was staged.
    """

    client: GatewayClient
    benchmarks: list[Benchmark] = field(default_factory=list)
    ack: AnalyzeAck | None = None
    recommendations: list[Recommendation] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)

    async def run(self) -> None:
        """Run all steps in order, discarding staged data on failure.

        Raises:
            GatewayError: From the first step that failed.

        """
        try:
            self.benchmarks = await self.client.get_benchmarks()
            self.completed.append("benchmarks")
            self.ack = await self.client.analyze()
            self.completed.append("analyze")
            self.recommendations = await self.client.get_recommendations()
            self.completed.append("recommendations")
        except GatewayError:
            logger.warning("Analyze aborted after steps %s", self.completed or "none")
            self.discard()
            raise

    def discard(self) -> None:
        self.benchmarks = []
        self.ack = None
        self.recommendations = []

    def commit(self, store: RecommendationStore) -> None:
        store.replace(self.recommendations, self.benchmarks)


class WorkflowStateMachine:
    """Sequences the workflow components and gates navigation between steps."""

    def __init__(
        self,
        client: GatewayClient,
        notifier: Notifier | None = None,
        sample_path: str | None = None,
        low_sample_threshold: int = LOW_SAMPLE_THRESHOLD,
    ) -> None:
        self.client = client
        self.notifier = notifier or Notifier()
        self.uploads = UploadCoordinator(client, self.notifier, sample_path=sample_path)
        self.store = RecommendationStore(client)
        self.feedback = FeedbackRecorder(client, self.notifier)
        self.evaluation = EvaluationRefresher(
            client, self.notifier, low_sample_threshold=low_sample_threshold
        )
        self.simulations = SimulationRequester(client)
        self.evaluation.attach(self.feedback.changed)
        self.uploads.on_success(self._on_upload)

        self.step = Step.UPLOAD
        self.upload_result: UploadResult | None = None
        self.error: str | None = None
        self._analyzing = False

    @classmethod
    def from_config(
        cls,
        client: GatewayClient,
        config: GrowthAIConfig,
        notifier: Notifier | None = None,
    ) -> WorkflowStateMachine:
        return cls(
            client,
            notifier,
            sample_path=config.sample_path,
            low_sample_threshold=config.low_sample_threshold,
        )

    @property
    def analyzing(self) -> bool:
        return self._analyzing

    async def _on_upload(self, result: UploadResult) -> None:
        self.upload_result = result
        self.error = None

    # --- Navigation ---

    def can_navigate(self, step: Step) -> bool:
        """Only the upload step is reachable while there are no recommendations."""
        return step is Step.UPLOAD or not self.store.is_empty

    def navigate(self, step: Step | str) -> Step:
        """Move to ``step``.

        Raises:
            PreconditionError: If the step needs recommendations and there are none.

        """
        target = Step(step)
        if not self.can_navigate(target):
            msg = f"Cannot open {target.value} before recommendations exist"
            raise PreconditionError(msg)
        self.step = target
        return self.step

    # --- Analysis ---

    async def analyze(self) -> bool:
        """Generate recommendations for the uploaded data.

        Returns True on success and moves to the recommendations step when
        there is at least one recommendation. On
        failure the store and step are left as they were, ``error`` is set,
        and False is returned. A call while analysis is running does nothing.

        Raises:
            PreconditionError: If nothing has been uploaded yet.

        """
        if self.upload_result is None:
            msg = "Upload campaign data before analyzing"
            raise PreconditionError(msg)
        if self._analyzing:
            logger.debug("Analysis already running, ignoring")
            return False

        self._analyzing = True
        self.error = None
        saga = AnalyzeSaga(self.client)
        try:
            await saga.run()
        except GatewayError as e:
            self.error = e.display_message(ANALYZE_FAILED)
            self.notifier.error(self.error)
            return False
        finally:
            self._analyzing = False

        saga.commit(self.store)
        logger.info(
            "Analysis produced %d recommendations citing %d benchmarks",
            len(saga.recommendations),
            len(saga.benchmarks),
        )
        if self.store.is_empty:
            logger.info("Analysis found nothing to recommend, staying on upload")
        else:
            self.step = Step.RECOMMENDATIONS
        return True

    # --- Composed operations ---

    async def submit_feedback(
        self,
        recommendation_id: str,
        is_useful: bool,
    ) -> FeedbackJudgment | None:
        """Record feedback for a stored recommendation; metrics refresh after.

        Returns the recorded judgment, or None when the gateway rejected it.
        In that case ``error`` is set and the recommendation stays eligible.

        Raises:
            PreconditionError: If the recommendation is not in the store.
            DuplicateFeedbackError: If it was already judged.

        """
        recommendation = self._require(recommendation_id)
        self.error = None
        try:
            return await self.feedback.submit_for(recommendation, is_useful)
        except GatewayError as e:
            self.error = e.display_message(FEEDBACK_FAILED)
            return None

    def open_simulation(self, recommendation_id: str) -> SimulationView:
        """Open a simulation view for a stored recommendation."""
        return self.simulations.open(self._require(recommendation_id))

    async def simulate(self, recommendation_id: str) -> SimulationView:
        """Open a simulation view and run it."""
        view = self.open_simulation(recommendation_id)
        _ = await view.run()
        return view

    def close_simulation(self) -> None:
        self.simulations.close()

    async def refresh_evaluation(self) -> EvaluationSummary | None:
        """Fetch evaluation metrics, as when the evaluation view first opens.

        Returns None and sets ``error`` when the metrics could not be
        fetched; the previous metrics stay in place.
        """
        self.error = None
        try:
            return await self.evaluation.fetch()
        except GatewayError as e:
            self.error = e.display_message(EVALUATION_FAILED)
            return None

    def _require(self, recommendation_id: str) -> Recommendation:
        recommendation = self.store.get(recommendation_id)
        if recommendation is None:
            msg = f"Unknown recommendation {recommendation_id}"
            raise PreconditionError(msg)
        return recommendation
