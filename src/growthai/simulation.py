# Copyright (c) Syntropy Systems
"""Impact simulation for a selected recommendation.

Each opened view issues one simulate request. Interval bars are laid out on
a padded axis: the axis runs from 80% of the lowest value to 120% of the
highest, and the 90% interval and the median are placed on it as
percentages of the axis span.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from growthai.errors import GatewayError, UnsupportedRecommendationTypeError, ValidationError

if TYPE_CHECKING:
    from growthai.client import GatewayClient
    from growthai.models.api import Recommendation, SimulationResult

logger = logging.getLogger(__name__)

SIMULATION_FAILED = "Failed to run simulation"

SimulationState = Literal["idle", "running", "complete", "errored"]

# recommendation type -> (details key naming the campaign, simulated action)
ACTIONS: dict[str, tuple[str, str]] = {
    "fatigue": ("campaign_name", "refresh_creative"),
    "reallocation": ("from_campaign", "reallocate_budget"),
}


@dataclass(frozen=True)
class SimulationTarget:
    """Campaign and action to simulate."""

    campaign_name: str
    action: str


@dataclass(frozen=True)
class BarGeometry:
    """Placement of an interval bar and its median dot, in percent of the track."""

    left_pct: float
    width_pct: float
    dot_pct: float


def derive_action(recommendation: Recommendation) -> SimulationTarget:
    """Map a recommendation to the campaign and action to simulate.

    Raises:
        UnsupportedRecommendationTypeError: For types with no known action.
        ValidationError: If the recommendation names no campaign.

    """
    try:
        key, action = ACTIONS[recommendation.type]
    except KeyError:
        raise UnsupportedRecommendationTypeError(recommendation.type) from None
    campaign_name = recommendation.details.get(key)
    if not campaign_name:
        msg = f"Recommendation {recommendation.id} has no '{key}' to simulate"
        raise ValidationError(msg)
    return SimulationTarget(str(campaign_name), action)


def _place(lo: float, span: float, p5: float, median: float, p95: float) -> BarGeometry:
    return BarGeometry(
        left_pct=(min(p5, p95) - lo) / span * 100,
        width_pct=abs(p95 - p5) / span * 100,
        dot_pct=(median - lo) / span * 100,
    )


def interval_bar(p5: float, median: float, p95: float) -> BarGeometry:
    """Bar geometry for a non-negative metric such as ROAS."""
    lo = max(0, min(p5, median, p95) * 0.8)
    hi = max(p5, median, p95) * 1.2
    span = (hi - lo) or 1
    return _place(lo, span, p5, median, p95)


def lift_bar(p5: float, median: float, p95: float) -> BarGeometry:
    """Bar geometry for revenue lift, whose axis may extend below zero."""
    lo = min(p5, median) * 0.8
    hi = max(p95, median) * 1.2 or 1
    span = (hi - lo) or 1
    return _place(lo, span, p5, median, p95)


class SimulationView:
    """One open simulation: runs once, and ignores results after close."""

    def __init__(self, client: GatewayClient, recommendation: Recommendation) -> None:
        self._client = client
        self.recommendation = recommendation
        self.state: SimulationState = "idle"
        self.result: SimulationResult | None = None
        self.message: str | None = None
        self.target: SimulationTarget | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Dispose of the view. A pending result will be dropped on arrival."""
        self._closed = True
        self.result = None

    async def run(self) -> SimulationState:
        """Request the simulation. Only the first call does anything."""
        if self.state != "idle" or self._closed:
            return self.state

        self.state = "running"
        try:
            self.target = derive_action(self.recommendation)
        except (UnsupportedRecommendationTypeError, ValidationError) as e:
            self.message = str(e)
            self.state = "errored"
            return self.state

        try:
            result = await self._client.simulate(self.target.campaign_name, self.target.action)
        except GatewayError as e:
            if self._closed:
                logger.debug("Simulation failed after close, ignoring: %s", e)
                return self.state
            logger.warning("Simulation of %s failed: %s", self.target.campaign_name, e)
            self.message = e.display_message(SIMULATION_FAILED)
            self.state = "errored"
            return self.state

        if self._closed:
            logger.debug("Simulation for %s arrived after close", self.target.campaign_name)
            return self.state
        self.result = result
        self.state = "complete"
        return self.state

    @property
    def roas_bar(self) -> BarGeometry | None:
        if self.result is None:
            return None
        roas = self.result.projected_metrics.roas
        return interval_bar(roas.p5, roas.median, roas.p95)

    @property
    def revenue_bar(self) -> BarGeometry | None:
        if self.result is None:
            return None
        lift = self.result.projected_metrics.daily_revenue_lift
        return lift_bar(lift.p5, lift.median, lift.p95)


class SimulationRequester:
    """Opens a fresh simulation view per request; nothing is cached."""

    def __init__(self, client: GatewayClient) -> None:
        self._client = client
        self.current: SimulationView | None = None

    def open(self, recommendation: Recommendation) -> SimulationView:
        """Open a new view, closing any view that is still open."""
        if self.current is not None:
            self.current.close()
        self.current = SimulationView(self._client, recommendation)
        return self.current

    async def run(self, recommendation: Recommendation) -> SimulationView:
        """Open a view and run its simulation."""
        view = self.open(recommendation)
        _ = await view.run()
        return view

    def close(self) -> None:
        if self.current is not None:
            self.current.close()
            self.current = None
