"""Mock scorer for demo/testing.

Computes simple classification metrics in-process from the example data,
so the pipeline can run without a scoring server.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from facetmetrics.models.types import MetricsResponse, ScoringRequest, ScoringResult
from facetmetrics.providers.base import ScorerBase, ScoringError

CLASSIFICATION_GENERATOR = "classification"


class MockScorer(ScorerBase):
    """Mock scorer comparing a prediction field against a label field.

    For each (pred_key, label_key) pair it reports, under the
    "classification" generator:
    - accuracy: share of examples where data[pred_key] == data[label_key]
    - num_examples: number of examples scored

    A model may keep its predictions under "{model}:{pred_key}"; otherwise
    the shared pred_key is read. A "threshold" entry in the call config turns
    numeric predictions into 0/1 labels before comparison.
    """

    def __init__(
        self,
        fields: Iterable[tuple[str, str]] = (("pred", "label"),),
        fail_models: Iterable[str] = (),
        delay: float = 0.0,
    ):
        """Initialize mock scorer.

        Args:
            fields: (pred_key, label_key) pairs to score.
            fail_models: Models whose requests raise ScoringError.
            delay: Seconds to sleep before answering.
        """
        self.fields = list(fields)
        self.fail_models = set(fail_models)
        self.delay = delay
        self.requests: list[ScoringRequest] = []

    def _prediction(self, data: dict, model: str, pred_key: str, config: dict) -> object:
        value = data.get(f"{model}:{pred_key}", data.get(pred_key))
        threshold = config.get("threshold")
        if threshold is not None and isinstance(value, (int, float)):
            return int(value >= threshold)
        return value

    async def score(self, request: ScoringRequest) -> ScoringResult:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if request.model in self.fail_models:
            raise ScoringError(f"Mock failure for {request.model}")

        entries: list[MetricsResponse] = []
        for pred_key, label_key in self.fields:
            n = len(request.inputs)
            correct = sum(
                1
                for example in request.inputs
                if self._prediction(example.data, request.model, pred_key, request.config)
                == example.data.get(label_key)
            )
            entries.append(
                MetricsResponse(
                    pred_key=pred_key,
                    label_key=label_key,
                    metrics={
                        "accuracy": correct / n if n else 0.0,
                        "num_examples": n,
                    },
                )
            )
        return {CLASSIFICATION_GENERATOR: entries}
