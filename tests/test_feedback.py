# Copyright (c) Syntropy Systems
"""Tests for feedback recording and evaluation metrics."""

import logging

import pytest

from growthai.errors import DuplicateFeedbackError, GatewayError
from growthai.evaluation import EvaluationRefresher, EvaluationSummary
from growthai.events import Channel, Notice, Notifier
from growthai.feedback import FeedbackRecorder
from growthai.models.api import EvaluationMetrics, TypePrecision


@pytest.fixture
def recorder(client, notifier):
    return FeedbackRecorder(client, notifier)


@pytest.fixture
def refresher(client, notifier):
    return EvaluationRefresher(client, notifier)


def _metrics(**by_type: tuple[float, int, int]) -> EvaluationMetrics:
    total = sum(t for _, _, t in by_type.values())
    useful = sum(u for _, u, _ in by_type.values())
    return EvaluationMetrics(
        total_feedback=total,
        useful_count=useful,
        overall_precision=useful / total if total else 0.0,
        by_type={
            name: TypePrecision(precision=p, useful=u, total=t)
            for name, (p, u, t) in by_type.items()
        },
    )


class TestFeedbackRecorder:
    """Tests for submitting judgments."""

    @pytest.mark.asyncio
    async def test_submit_records_judgment(self, recorder, gateway, notifier):
        """Test a successful submission is recorded and announced."""
        judgment = await recorder.submit("rec-1", "fatigue", True)

        assert recorder.judgment("rec-1") == judgment
        assert not recorder.can_submit("rec-1")
        assert gateway.feedback[0]["is_useful"] is True
        assert notifier.notices == [Notice("success", "Thanks for the feedback!")]

    @pytest.mark.asyncio
    async def test_not_useful_message(self, recorder, notifier):
        """Test the acknowledgement for a negative judgment."""
        _ = await recorder.submit("rec-2", "reallocation", False)
        assert notifier.notices[-1].message == "Feedback noted"

    @pytest.mark.asyncio
    async def test_duplicate_rejected_without_request(self, recorder, gateway):
        """Test a second judgment for the same recommendation is refused."""
        _ = await recorder.submit("rec-1", "fatigue", True)

        with pytest.raises(DuplicateFeedbackError) as exc_info:
            _ = await recorder.submit("rec-1", "fatigue", False)

        assert exc_info.value.recommendation_id == "rec-1"
        assert gateway.count("feedback") == 1
        assert recorder.judgment("rec-1").is_useful is True

    @pytest.mark.asyncio
    async def test_failure_keeps_recommendation_eligible(self, recorder, gateway, notifier):
        """Test a rejected judgment is not recorded and can be retried."""
        gateway.fail("feedback")

        with pytest.raises(GatewayError):
            _ = await recorder.submit("rec-1", "fatigue", True)

        assert recorder.can_submit("rec-1")
        assert recorder.judgments == {}
        assert notifier.notices == [Notice("error", "Failed to submit feedback")]

        gateway.failures.clear()
        _ = await recorder.submit("rec-1", "fatigue", True)
        assert recorder.judgment("rec-1") is not None

    @pytest.mark.asyncio
    async def test_changed_channel_receives_judgment(self, recorder):
        """Test each recorded judgment is published."""
        received = []

        async def on_change(judgment):
            received.append(judgment)

        recorder.changed.subscribe(on_change)
        judgment = await recorder.submit("rec-3", "fatigue", False)

        assert received == [judgment]

    def test_judgments_read_only(self, recorder):
        """Test the judgments mapping cannot be modified."""
        with pytest.raises(TypeError):
            recorder.judgments["rec-1"] = None


class TestChannel:
    """Tests for the async channel."""

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_logged(self, caplog):
        """Test a subscriber error does not stop delivery."""
        channel = Channel("feedback-changed")
        delivered = []

        async def broken(payload):
            raise RuntimeError("boom")

        async def working(payload):
            delivered.append(payload)

        channel.subscribe(broken)
        channel.subscribe(working)

        with caplog.at_level(logging.ERROR, logger="growthai.events"):
            await channel.emit("judgment")

        assert delivered == ["judgment"]
        assert "Subscriber of feedback-changed channel failed" in caplog.text

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        """Test an unsubscribed callback is no longer called."""
        channel = Channel("c")
        calls = []

        async def callback(payload):
            calls.append(payload)

        channel.subscribe(callback)
        channel.unsubscribe(callback)
        channel.unsubscribe(callback)
        await channel.emit(1)

        assert calls == []
        assert len(channel) == 0

    def test_notifier_sink_failure_is_logged(self, caplog):
        """Test a failing sink does not lose the notice."""
        notifier = Notifier()

        def sink(notice):
            raise RuntimeError("closed")

        notifier.add_sink(sink)
        with caplog.at_level(logging.ERROR, logger="growthai.events"):
            notice = notifier.info("hello")

        assert notifier.notices == [notice]
        assert "Notice sink failed" in caplog.text


class TestEvaluationSummary:
    """Tests for deriving the evaluation view."""

    def test_no_data(self):
        """Test no percentages are computed without feedback."""
        for metrics in (None, EvaluationMetrics()):
            summary = EvaluationSummary.from_metrics(metrics)

            assert not summary.has_data
            assert summary.overall_pct is None
            assert summary.top_rule is None
            assert summary.rules == ()

    def test_top_rule(self):
        """Test the highest-precision rule is picked."""
        summary = EvaluationSummary.from_metrics(
            _metrics(fatigue=(0.5, 3, 6), reallocation=(0.75, 6, 8))
        )

        assert summary.has_data
        assert summary.top_rule is not None
        assert summary.top_rule.rec_type == "reallocation"
        assert summary.top_rule.label == "Budget Reallocation"
        assert summary.top_rule.precision_pct == 75

    def test_top_rule_tie_keeps_first(self):
        """Test equal precision picks the rule listed first."""
        summary = EvaluationSummary.from_metrics(
            _metrics(fatigue=(0.5, 3, 6), reallocation=(0.5, 4, 8))
        )
        assert summary.top_rule.rec_type == "fatigue"

        summary = EvaluationSummary.from_metrics(
            _metrics(reallocation=(0.5, 4, 8), fatigue=(0.5, 3, 6))
        )
        assert summary.top_rule.rec_type == "reallocation"

    def test_low_sample_types(self):
        """Test rules with fewer than the threshold judgments are flagged."""
        metrics = _metrics(fatigue=(1.0, 2, 2), reallocation=(0.6, 3, 5))

        assert EvaluationSummary.from_metrics(metrics).low_sample_types == ("fatigue",)
        assert EvaluationSummary.from_metrics(metrics, low_sample_threshold=6).low_sample_types == (
            "fatigue",
            "reallocation",
        )

    def test_overall_percentage(self):
        """Test overall precision is shown as a whole percentage."""
        summary = EvaluationSummary.from_metrics(
            _metrics(fatigue=(0.5, 1, 2), reallocation=(1.0, 2, 2))
        )

        assert summary.total_feedback == 4
        assert summary.useful_count == 3
        assert summary.overall_pct == 75


class TestEvaluationRefresher:
    """Tests for fetching metrics."""

    @pytest.mark.asyncio
    async def test_fetch_with_no_feedback(self, refresher):
        """Test the no-data state from a fresh gateway."""
        summary = await refresher.fetch()

        assert not summary.has_data
        assert refresher.fetch_count == 1

    @pytest.mark.asyncio
    async def test_feedback_triggers_refetch(self, recorder, refresher):
        """Test each recorded judgment refreshes the metrics."""
        refresher.attach(recorder.changed)

        _ = await recorder.submit("rec-1", "fatigue", True)
        assert refresher.fetch_count == 1
        assert refresher.metrics.total_feedback == 1

        _ = await recorder.submit("rec-2", "reallocation", False)
        assert refresher.fetch_count == 2
        assert refresher.metrics.total_feedback == 2
        assert refresher.summary.top_rule.rec_type == "fatigue"

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_metrics(self, refresher, gateway, notifier):
        """Test a failed fetch keeps the old metrics and notifies."""
        _ = await refresher.fetch()
        previous = refresher.metrics

        gateway.fail("evaluation")
        with pytest.raises(GatewayError):
            _ = await refresher.fetch()

        assert refresher.metrics is previous
        assert notifier.notices[-1] == Notice("error", "Failed to fetch evaluation metrics")

    @pytest.mark.asyncio
    async def test_refresh_failure_does_not_undo_feedback(self, recorder, refresher, gateway):
        """Test a failed refresh after feedback leaves the judgment recorded."""
        refresher.attach(recorder.changed)
        gateway.fail("evaluation")

        judgment = await recorder.submit("rec-1", "fatigue", True)

        assert recorder.judgment("rec-1") == judgment
        assert refresher.metrics is None
