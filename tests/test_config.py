"""Tests for environment-driven settings."""

import pytest

from facetmetrics.api.app import build_scorer
from facetmetrics.config import Settings
from facetmetrics.providers.http import HttpScorer
from facetmetrics.providers.mock import MockScorer

ENV_VARS = (
    "FACETMETRICS_SCORER_URL",
    "FACETMETRICS_SCORER_TIMEOUT",
    "FACETMETRICS_NUM_BINS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettingsFromEnv:
    """Test Settings.from_env."""

    def test_defaults(self):
        settings = Settings.from_env()
        assert settings.scorer_url is None
        assert settings.scorer_timeout == 30.0
        assert settings.num_bins == 4

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("FACETMETRICS_SCORER_URL", "http://localhost:5432")
        monkeypatch.setenv("FACETMETRICS_SCORER_TIMEOUT", "2.5")
        monkeypatch.setenv("FACETMETRICS_NUM_BINS", "10")
        settings = Settings.from_env()
        assert settings.scorer_url == "http://localhost:5432"
        assert settings.scorer_timeout == 2.5
        assert settings.num_bins == 10

    def test_empty_url_means_unset(self, monkeypatch):
        monkeypatch.setenv("FACETMETRICS_SCORER_URL", "")
        assert Settings.from_env().scorer_url is None

    def test_invalid_bins(self, monkeypatch):
        monkeypatch.setenv("FACETMETRICS_NUM_BINS", "0")
        with pytest.raises(ValueError):
            Settings.from_env()


class TestBuildScorer:
    """Test scorer selection from settings."""

    def test_mock_without_url(self):
        assert isinstance(build_scorer(Settings()), MockScorer)

    def test_http_with_url(self):
        scorer = build_scorer(Settings(scorer_url="http://scoring.test", scorer_timeout=5.0))
        assert isinstance(scorer, HttpScorer)
        assert scorer.server_url == "http://scoring.test"
