# Copyright (c) Syntropy Systems
"""Tests for impact simulation."""

import asyncio

import pytest

from fake_gateway import RECOMMENDATIONS
from growthai.errors import UnsupportedRecommendationTypeError, ValidationError
from growthai.models.api import Recommendation
from growthai.simulation import (
    SimulationRequester,
    SimulationTarget,
    SimulationView,
    derive_action,
    interval_bar,
    lift_bar,
)

FATIGUE, REALLOCATION, _ = (Recommendation.model_validate(r) for r in RECOMMENDATIONS)


def _rec(rec_type: str, **details) -> Recommendation:
    return Recommendation(id="rec-x", type=rec_type, title="t", confidence=0.7, details=details)


class TestDeriveAction:
    """Tests for mapping recommendations to simulated actions."""

    def test_fatigue(self):
        """Test fatigue refreshes the campaign's creative."""
        assert derive_action(FATIGUE) == SimulationTarget("Summer Sale", "refresh_creative")

    def test_reallocation(self):
        """Test reallocation moves budget away from the source campaign."""
        assert derive_action(REALLOCATION) == SimulationTarget(
            "Evergreen Prospecting", "reallocate_budget"
        )

    def test_unknown_type(self):
        """Test unknown types are refused."""
        with pytest.raises(UnsupportedRecommendationTypeError) as exc_info:
            _ = derive_action(_rec("bid_cap", campaign_name="A"))

        assert exc_info.value.rec_type == "bid_cap"

    def test_missing_campaign(self):
        """Test a recommendation without a campaign is refused."""
        with pytest.raises(ValidationError, match="from_campaign"):
            _ = derive_action(_rec("reallocation", to_campaign="B"))


class TestBarGeometry:
    """Tests for interval bar layout."""

    def test_interval_bar(self):
        """Test placement on an axis padded 20% each side."""
        bar = interval_bar(10.0, 15.0, 20.0)

        # axis 8..24
        assert bar.left_pct == pytest.approx(12.5)
        assert bar.width_pct == pytest.approx(62.5)
        assert bar.dot_pct == pytest.approx(43.75)

    def test_interval_bar_projected_roas(self):
        """Test a realistic ROAS interval stays inside the track."""
        bar = interval_bar(2.41, 2.53, 2.66)

        assert bar.left_pct == pytest.approx(38.1329, abs=1e-3)
        assert bar.width_pct == pytest.approx(19.7785, abs=1e-3)
        assert bar.dot_pct == pytest.approx(47.6266, abs=1e-3)
        assert 0 <= bar.left_pct <= bar.dot_pct <= bar.left_pct + bar.width_pct <= 100

    def test_interval_bar_axis_floored_at_zero(self):
        """Test the axis never starts below zero."""
        bar = interval_bar(0.0, 1.0, 2.0)

        # axis 0..2.4
        assert bar.left_pct == pytest.approx(0.0)
        assert bar.dot_pct == pytest.approx(1.0 / 2.4 * 100)

    def test_interval_bar_zero_span(self):
        """Test an all-zero interval does not divide by zero."""
        bar = interval_bar(0.0, 0.0, 0.0)

        assert (bar.left_pct, bar.width_pct, bar.dot_pct) == (0.0, 0.0, 0.0)

    def test_lift_bar(self):
        """Test revenue lift placement."""
        bar = lift_bar(100.0, 150.0, 200.0)

        assert bar.left_pct == pytest.approx(12.5)
        assert bar.width_pct == pytest.approx(62.5)
        assert bar.dot_pct == pytest.approx(43.75)

    def test_lift_bar_zero_span(self):
        """Test an all-zero lift falls back to a unit axis."""
        bar = lift_bar(0.0, 0.0, 0.0)

        assert (bar.left_pct, bar.width_pct, bar.dot_pct) == (0.0, 0.0, 0.0)


class TestSimulationView:
    """Tests for a single simulation view."""

    @pytest.mark.asyncio
    async def test_run_completes(self, client, gateway):
        """Test a successful run holds the result and bar geometry."""
        view = SimulationView(client, FATIGUE)
        assert view.state == "idle"

        state = await view.run()

        assert state == "complete"
        assert view.result is not None
        assert view.result.campaign_name == "Summer Sale"
        assert view.roas_bar == interval_bar(2.41, 2.53, 2.66)
        assert view.revenue_bar == lift_bar(924.0, 1452.0, 2002.0)
        assert "simulate:Summer Sale:refresh_creative" in gateway.calls

    @pytest.mark.asyncio
    async def test_run_only_once(self, client, gateway):
        """Test a view sends one request however often it is run."""
        view = SimulationView(client, FATIGUE)

        _ = await view.run()
        _ = await view.run()

        assert gateway.count("simulate") == 1

    @pytest.mark.asyncio
    async def test_gateway_error(self, client, gateway):
        """Test a failed simulation shows the gateway's message."""
        gateway.fail("simulate", 404, "No data found for campaign: Summer Sale")
        view = SimulationView(client, FATIGUE)

        assert await view.run() == "errored"
        assert view.message == "No data found for campaign: Summer Sale"
        assert view.result is None
        assert view.roas_bar is None

    @pytest.mark.asyncio
    async def test_gateway_error_without_detail(self, client, gateway):
        """Test the generic failure message."""
        gateway.fail("simulate")
        view = SimulationView(client, REALLOCATION)

        assert await view.run() == "errored"
        assert view.message == "Failed to run simulation"

    @pytest.mark.asyncio
    async def test_unsupported_type_makes_no_request(self, client, gateway):
        """Test an unsupported type errors without calling the gateway."""
        view = SimulationView(client, _rec("bid_cap", campaign_name="A"))

        assert await view.run() == "errored"
        assert "bid_cap" in view.message
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_result_after_close_is_discarded(self, client, gateway):
        """Test a result arriving after close is dropped."""
        gateway.simulate_gate = asyncio.Event()
        view = SimulationView(client, FATIGUE)

        task = asyncio.create_task(view.run())
        await asyncio.sleep(0)
        assert view.state == "running"

        view.close()
        gateway.simulate_gate.set()
        _ = await task

        assert view.closed
        assert view.result is None
        assert view.state != "complete"

    @pytest.mark.asyncio
    async def test_closed_view_does_not_run(self, client, gateway):
        """Test a view closed before running never sends a request."""
        view = SimulationView(client, FATIGUE)
        view.close()

        assert await view.run() == "idle"
        assert gateway.calls == []


class TestSimulationRequester:
    """Tests for opening views."""

    @pytest.mark.asyncio
    async def test_every_open_is_a_fresh_request(self, client, gateway):
        """Test reopening the same recommendation simulates again."""
        requester = SimulationRequester(client)

        first = await requester.run(FATIGUE)
        second = await requester.run(FATIGUE)

        assert first is not second
        assert first.closed
        assert not second.closed
        assert gateway.count("simulate") == 2

    def test_close(self, client):
        """Test close disposes the current view."""
        requester = SimulationRequester(client)
        view = requester.open(FATIGUE)

        requester.close()

        assert view.closed
        assert requester.current is None
