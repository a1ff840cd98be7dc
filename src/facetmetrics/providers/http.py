"""HTTP scorer for a remote interpretation server."""

from __future__ import annotations

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from facetmetrics.models.types import MetricsResponse, ScoringRequest, ScoringResult
from facetmetrics.providers.base import ScorerBase, ScoringError

logger = logging.getLogger(__name__)

INTERPRETATIONS_PATH = "/get_interpretations"

_result_adapter = TypeAdapter(dict[str, list[MetricsResponse]])


class HttpScorer(ScorerBase):
    """Scorer that posts batches to `{server_url}/get_interpretations`.

    The request kind travels as the `interpreter` query parameter; the body
    carries the examples and the per-model call config.
    """

    def __init__(
        self,
        server_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the scorer.

        Args:
            server_url: Base URL of the scoring server (e.g. "http://localhost:5432")
            timeout: Request timeout in seconds
            transport: Optional transport override, used by tests

        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.server_url, timeout=timeout, transport=transport
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def score(self, request: ScoringRequest) -> ScoringResult:
        params = {
            "model": request.model,
            "dataset_name": request.dataset_name,
            "interpreter": request.kind,
        }
        body = {
            "inputs": [example.model_dump() for example in request.inputs],
            "config": request.config,
        }
        logger.debug(
            f"POST {INTERPRETATIONS_PATH} model={request.model} n={len(request.inputs)}"
        )
        try:
            response = await self._client.post(INTERPRETATIONS_PATH, params=params, json=body)
            response.raise_for_status()
            return _result_adapter.validate_python(response.json())
        except httpx.HTTPStatusError as e:
            msg = f"Scoring failed for {request.model}: HTTP {e.response.status_code}"
            raise ScoringError(msg) from e
        except httpx.HTTPError as e:
            msg = f"Scoring request failed for {request.model}: {e}"
            raise ScoringError(msg) from e
        except (ValidationError, ValueError) as e:
            msg = f"Invalid scoring response for {request.model}: {e}"
            raise ScoringError(msg) from e
