# Copyright (c) Syntropy Systems
"""Recommendations and benchmark citations fetched after analysis."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from growthai.errors import GatewayError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from growthai.client import GatewayClient
    from growthai.models.api import Benchmark, Recommendation

logger = logging.getLogger(__name__)

ALL = "all"


def filter_recommendations(
    recommendations: Iterable[Recommendation],
    platform: str = ALL,
    rec_type: str = ALL,
    min_confidence_pct: int = 0,
) -> list[Recommendation]:
    """Select recommendations matching the type, confidence and platform filters.

    Input order is preserved and the input is never modified.
    """
    selected: list[Recommendation] = []
    for rec in recommendations:
        if rec_type != ALL and rec.type != rec_type:
            continue
        if rec.confidence_pct < min_confidence_pct:
            continue
        if platform != ALL and rec.details.get("platform") != platform:
            continue
        selected.append(rec)
    return selected


class RecommendationStore:
    """Holds the current recommendations and the benchmarks they cite."""

    def __init__(self, client: GatewayClient) -> None:
        self._client = client
        self._recommendations: tuple[Recommendation, ...] = ()
        self._benchmarks: tuple[Benchmark, ...] = ()

    @property
    def recommendations(self) -> tuple[Recommendation, ...]:
        return self._recommendations

    @property
    def benchmarks(self) -> tuple[Benchmark, ...]:
        return self._benchmarks

    @property
    def is_empty(self) -> bool:
        return not self._recommendations

    def __len__(self) -> int:
        return len(self._recommendations)

    def __iter__(self) -> Iterator[Recommendation]:
        return iter(self._recommendations)

    def replace(
        self,
        recommendations: Sequence[Recommendation],
        benchmarks: Sequence[Benchmark],
    ) -> None:
        """Swap in a complete new set of recommendations and benchmarks."""
        self._recommendations = tuple(recommendations)
        self._benchmarks = tuple(benchmarks)

    async def load(self) -> None:
        """Fetch recommendations and benchmarks as two independent calls.

        A benchmark failure leaves the benchmark list empty; citations then
        resolve to nothing. A recommendation failure raises and leaves the
        store untouched.

        Raises:
            GatewayError: If the recommendations could not be fetched.

        """
        try:
            benchmarks = await self._client.get_benchmarks()
        except GatewayError as e:
            logger.warning("Benchmarks unavailable, citations will be empty: %s", e)
            benchmarks = []
        recommendations = await self._client.get_recommendations()
        self.replace(recommendations, benchmarks)

    def filtered(
        self,
        platform: str = ALL,
        rec_type: str = ALL,
        min_confidence_pct: int = 0,
    ) -> list[Recommendation]:
        """Project the current list through the given filters."""
        return filter_recommendations(
            self._recommendations, platform, rec_type, min_confidence_pct
        )

    def get(self, rec_id: str) -> Recommendation | None:
        return next((r for r in self._recommendations if r.id == rec_id), None)

    def citations(self, recommendation: Recommendation) -> list[Benchmark]:
        """Benchmarks cited by a recommendation, unknown ids skipped."""
        cited = set(recommendation.source_ids)
        return [b for b in self._benchmarks if b.id in cited]

    def platforms(self) -> list[str]:
        """Distinct platforms across recommendations, in fetch order."""
        seen: dict[str, None] = {}
        for rec in self._recommendations:
            seen.setdefault(rec.platform, None)
        return list(seen)

    async def lookup_benchmark(self, benchmark_id: str) -> Benchmark:
        """Return a benchmark from the local list, or fetch it by id.

        Raises:
            GatewayError: If the benchmark is not known locally and the lookup fails.

        """
        for benchmark in self._benchmarks:
            if benchmark.id == benchmark_id:
                return benchmark
        return await self._client.get_benchmark(benchmark_id)
