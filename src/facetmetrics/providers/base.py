"""Base scorer interface.

Scorer adapter: narrow interface `score(request) -> metrics by generator`.
Scorers must not touch the metrics store or shape table output.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from facetmetrics.models.types import ScoringRequest, ScoringResult


class ScoringError(Exception):
    """Error from the scoring service."""


class ScorerBase(ABC):
    """Abstract base class for metrics scorers."""

    @abstractmethod
    async def score(self, request: ScoringRequest) -> ScoringResult:
        """Compute metrics for a batch of examples and one model.

        Args:
            request: Examples, model, dataset name and call config.

        Returns:
            Generator name -> per-field MetricsResponse entries.

        Raises:
            ScoringError: If the scoring service fails.
        """
        pass

    async def aclose(self) -> None:
        """Release any held resources."""
