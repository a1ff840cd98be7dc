"""Configuration for facetmetrics, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from facetmetrics.aggregation.grouping import DEFAULT_NUM_BINS


@dataclass
class Settings:
    """Runtime settings."""

    # Base URL of the scoring server; None selects the in-process mock scorer
    scorer_url: str | None = None

    # Scoring request timeout (seconds)
    scorer_timeout: float = 30.0

    # Equal-width bins used when faceting by a numeric feature
    num_bins: int = DEFAULT_NUM_BINS

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from FACETMETRICS_* environment variables."""
        settings = cls()
        settings.scorer_url = os.environ.get("FACETMETRICS_SCORER_URL") or None
        if "FACETMETRICS_SCORER_TIMEOUT" in os.environ:
            settings.scorer_timeout = float(os.environ["FACETMETRICS_SCORER_TIMEOUT"])
        if "FACETMETRICS_NUM_BINS" in os.environ:
            settings.num_bins = int(os.environ["FACETMETRICS_NUM_BINS"])
        if settings.num_bins < 1:
            raise ValueError("FACETMETRICS_NUM_BINS must be >= 1")
        return settings
