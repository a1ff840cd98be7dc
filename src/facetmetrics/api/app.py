"""FastAPI application factory.

API layer:
- Validates inputs, forwards state changes to the state holders
- Returns table payloads for the UI
- Forbidden: scorer calls, direct store mutation
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from facetmetrics.config import Settings
from facetmetrics.providers.base import ScorerBase
from facetmetrics.worker.orchestrator import MetricsOrchestrator, create_orchestrator

logger = logging.getLogger(__name__)


def get_orchestrator(request: Request) -> MetricsOrchestrator:
    """Dependency returning the app's orchestrator."""
    return request.app.state.orchestrator


def build_scorer(settings: Settings) -> ScorerBase:
    """HTTP scorer when a server URL is configured, mock scorer otherwise."""
    if settings.scorer_url:
        from facetmetrics.providers.http import HttpScorer

        return HttpScorer(settings.scorer_url, timeout=settings.scorer_timeout)

    from facetmetrics.providers.mock import MockScorer

    logger.info("FACETMETRICS_SCORER_URL not set, using mock scorer")
    return MockScorer()


def create_app(settings: Settings | None = None, scorer: ScorerBase | None = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        settings: Optional settings; read from the environment when omitted.
        scorer: Optional scorer override.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings.from_env()
    if scorer is None:
        scorer = build_scorer(settings)

    orchestrator = create_orchestrator(scorer, num_bins=settings.num_bins)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        orchestrator.start()
        yield
        await orchestrator.wait_idle()
        await scorer.aclose()

    app = FastAPI(
        title="facetmetrics API",
        description="Per-model metrics over dataset, selection, slices and facets",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator

    # Add CORS middleware for UI access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routes
    from facetmetrics.api.routes import metrics, state

    app.include_router(metrics.router, prefix="/api")
    app.include_router(state.router, prefix="/api")

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
