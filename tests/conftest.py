"""Shared pytest fixtures for facetmetrics tests."""

from __future__ import annotations

import asyncio

import pytest

from facetmetrics.models.types import IndexedInput, MetricsResponse, ScoringRequest, ScoringResult
from facetmetrics.providers.base import ScorerBase, ScoringError


class CannedScorer(ScorerBase):
    """Scorer returning a fixed result for every model, recording requests."""

    def __init__(self, result: ScoringResult, fail_models=()):
        self.result = result
        self.fail_models = set(fail_models)
        self.requests: list[ScoringRequest] = []

    async def score(self, request: ScoringRequest) -> ScoringResult:
        self.requests.append(request)
        await asyncio.sleep(0)
        if request.model in self.fail_models:
            raise ScoringError(f"boom: {request.model}")
        return self.result


class GatedScorer(ScorerBase):
    """Scorer whose calls block until the test opens their gate.

    Each call appends an asyncio.Event to `gates`; the result reports the
    number of scored examples as the metric `n`.
    """

    def __init__(self):
        self.gates: list[asyncio.Event] = []
        self.requests: list[ScoringRequest] = []

    async def score(self, request: ScoringRequest) -> ScoringResult:
        gate = asyncio.Event()
        self.gates.append(gate)
        self.requests.append(request)
        await gate.wait()
        return {
            "count": [
                MetricsResponse(
                    pred_key="label",
                    label_key="y",
                    metrics={"n": len(request.inputs)},
                )
            ]
        }


async def _wait_until(predicate, attempts: int = 100) -> None:
    """Yield to the event loop until predicate() holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def accuracy_result() -> ScoringResult:
    """Single classification entry with accuracy 0.5 on field 'label'."""
    return {
        "classification": [
            MetricsResponse(pred_key="label", label_key="y", metrics={"accuracy": 0.5})
        ]
    }


@pytest.fixture
def canned_scorer(accuracy_result: ScoringResult) -> CannedScorer:
    return CannedScorer(accuracy_result)


@pytest.fixture
def examples() -> list[IndexedInput]:
    """Four examples split 2/2 on both 'genre' and 'source'."""
    rows = [
        {"genre": "news", "source": "web", "length": 1.0, "pred": 1, "label": 1},
        {"genre": "news", "source": "web", "length": 2.0, "pred": 0, "label": 1},
        {"genre": "fiction", "source": "book", "length": 3.0, "pred": 1, "label": 1},
        {"genre": "fiction", "source": "book", "length": 4.0, "pred": 0, "label": 0},
    ]
    return [IndexedInput(id=f"ex-{i}", data=data) for i, data in enumerate(rows)]


@pytest.fixture
def feature_kinds() -> dict:
    return {
        "genre": "categorical",
        "source": "categorical",
        "length": "numeric",
        "text": "text",
    }


@pytest.fixture
def make_canned_scorer():
    """CannedScorer class, for tests needing custom results or failures."""
    return CannedScorer


@pytest.fixture
def gated_scorer() -> GatedScorer:
    return GatedScorer()


@pytest.fixture
def wait_until():
    """Coroutine function yielding to the loop until a predicate holds."""
    return _wait_until
