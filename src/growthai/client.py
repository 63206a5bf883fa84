# Copyright (c) Syntropy Systems
"""Async HTTP client for the growthai analysis gateway."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar, cast, overload

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as SchemaError
from typing_extensions import Self

from growthai.errors import GatewayError
from growthai.models.api import (
    AnalyzeAck,
    Benchmark,
    ErrorResponse,
    EvaluationMetrics,
    FeedbackAck,
    NormalizedRow,
    Recommendation,
    SimulationResult,
    UploadResult,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from growthai.config import GrowthAIConfig
    from growthai.models.base import JSONValue

logger = logging.getLogger(__name__)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)

_RECOMMENDATIONS = TypeAdapter(list[Recommendation])
_BENCHMARKS = TypeAdapter(list[Benchmark])
_ROWS = TypeAdapter(list[NormalizedRow])

# Methods safe to repeat after a transport failure
_IDEMPOTENT = frozenset({"GET"})


class GatewayClient:
    """Async client for the analysis gateway's request/response operations."""

    base_url: str
    timeout: float
    retries: int
    retry_backoff: float
    _client: httpx.AsyncClient

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retries: int = 2,
        retry_backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Gateway URL including any API prefix
                (e.g., "http://localhost:8001/api")
            timeout: Request timeout in seconds
            retries: Extra attempts for GET requests that fail in transport
            retry_backoff: Seconds between retry attempts
            transport: Optional httpx transport (used to target in-process apps)

        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retries = max(0, retries)
        self.retry_backoff = retry_backoff
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_config(
        cls,
        config: GrowthAIConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> GatewayClient:
        """Create a client from loaded configuration."""
        return cls(
            config.base_url,
            timeout=config.timeout,
            retries=config.retries,
            retry_backoff=config.retry_backoff,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        """Enter the client context and return self."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the client context and close the HTTP client."""
        await self.aclose()

    @overload
    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, object] | None = None,
        params: Mapping[str, str] | None = None,
        files: Mapping[str, tuple[str, bytes, str]] | None = None,
        response_model: type[ResponseModel],
    ) -> ResponseModel:
        ...

    @overload
    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, object] | None = None,
        params: Mapping[str, str] | None = None,
        files: Mapping[str, tuple[str, bytes, str]] | None = None,
        response_model: None = None,
    ) -> JSONValue:
        ...

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, object] | None = None,
        params: Mapping[str, str] | None = None,
        files: Mapping[str, tuple[str, bytes, str]] | None = None,
        response_model: type[ResponseModel] | None = None,
    ) -> ResponseModel | JSONValue:
        """Make an HTTP request to the gateway."""
        url = f"{self.base_url}{path}"
        attempts = 1 + (self.retries if method in _IDEMPOTENT else 0)

        for attempt in range(1, attempts + 1):
            logger.debug("%s %s (attempt %d/%d)", method, url, attempt, attempts)
            try:
                response = await self._client.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    files=files,
                )
                _ = response.raise_for_status()
                data = cast("JSONValue", response.json())
                if response_model is None:
                    return data
                return response_model.model_validate(data)
            except httpx.HTTPStatusError as e:
                detail = _error_detail(e.response)
                msg = f"Server error: {detail or e}"
                raise GatewayError(msg, detail=detail, status_code=e.response.status_code) from e
            except httpx.TransportError as e:
                if attempt < attempts:
                    logger.warning(
                        "%s %s failed (%s), retrying in %.1fs",
                        method, url, e, self.retry_backoff,
                    )
                    await asyncio.sleep(self.retry_backoff)
                    continue
                msg = f"Connection error: {e}"
                raise GatewayError(msg) from e
            except (SchemaError, ValueError) as e:
                msg = f"Unexpected response from {path}: {e}"
                raise GatewayError(msg) from e

        msg = f"No attempt made for {method} {path}"
        raise GatewayError(msg)

    async def _request_list(
        self,
        path: str,
        adapter: TypeAdapter[list[ResponseModel]],
        params: Mapping[str, str] | None = None,
    ) -> list[ResponseModel]:
        data = await self._request("GET", path, params=params)
        try:
            return adapter.validate_python(data or [])
        except SchemaError as e:
            msg = f"Unexpected response from {path}: {e}"
            raise GatewayError(msg) from e

    # --- Upload ---

    async def upload_csv(self, filename: str, content: bytes) -> UploadResult:
        """Upload a raw export for normalization.

        Args:
            filename: Name of the file as selected by the user
            content: Raw file bytes

        Returns:
            Normalization summary with a preview of the cleaned rows

        """
        return await self._request(
            "POST",
            "/upload-csv",
            files={"file": (filename, content, "text/csv")},
            response_model=UploadResult,
        )

    async def get_campaigns(self) -> list[NormalizedRow]:
        """Get all stored normalized campaign rows."""
        return await self._request_list("/campaigns", _ROWS)

    # --- Analysis ---

    async def analyze(self) -> AnalyzeAck:
        """Trigger server-side recomputation of recommendations."""
        return await self._request("POST", "/analyze", response_model=AnalyzeAck)

    async def get_recommendations(self) -> list[Recommendation]:
        """Get the stored recommendations, in server order."""
        return await self._request_list("/recommendations", _RECOMMENDATIONS)

    async def get_benchmarks(
        self,
        platform: str | None = None,
        metric_type: str | None = None,
    ) -> list[Benchmark]:
        """Get benchmarks with optional filtering.

        Args:
            platform: Only benchmarks for this platform (plus platform-agnostic ones)
            metric_type: Only benchmarks for this metric type (plus general ones)

        Returns:
            List of benchmarks

        """
        params: dict[str, str] = {}
        if platform:
            params["platform"] = platform
        if metric_type:
            params["metric_type"] = metric_type
        return await self._request_list("/benchmarks", _BENCHMARKS, params=params or None)

    async def get_benchmark(self, benchmark_id: str) -> Benchmark:
        """Get a single benchmark by ID."""
        return await self._request(
            "GET",
            f"/benchmarks/{benchmark_id}",
            response_model=Benchmark,
        )

    # --- Feedback and evaluation ---

    async def submit_feedback(
        self,
        recommendation_id: str,
        recommendation_type: str,
        is_useful: bool,
    ) -> FeedbackAck:
        """Record a usefulness judgment for a recommendation."""
        return await self._request(
            "POST",
            "/feedback",
            json={
                "recommendation_id": recommendation_id,
                "recommendation_type": recommendation_type,
                "is_useful": is_useful,
            },
            response_model=FeedbackAck,
        )

    async def get_evaluation_metrics(self) -> EvaluationMetrics:
        """Get aggregate precision metrics computed from all feedback."""
        return await self._request(
            "GET",
            "/evaluation/metrics",
            response_model=EvaluationMetrics,
        )

    # --- Simulation ---

    async def simulate(self, campaign_name: str, action: str) -> SimulationResult:
        """Run a counterfactual simulation for a campaign.

        Args:
            campaign_name: Campaign the action applies to
            action: Simulated action (``refresh_creative`` or ``reallocate_budget``)

        Returns:
            Current and projected metrics with bootstrap intervals

        """
        return await self._request(
            "POST",
            "/simulate",
            params={"campaign_name": campaign_name, "action": action},
            response_model=SimulationResult,
        )


def _error_detail(response: httpx.Response) -> str | None:
    """Extract the ``detail`` string from an error response, if any."""
    try:
        return ErrorResponse.model_validate(response.json()).detail or None
    except (SchemaError, ValueError):
        return None


def get_client(config: GrowthAIConfig) -> GatewayClient:
    """Create a GatewayClient from configuration.

    Args:
        config: Loaded growthai configuration

    Returns:
        GatewayClient instance

    """
    return GatewayClient.from_config(config)
