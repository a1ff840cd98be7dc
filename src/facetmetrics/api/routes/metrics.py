"""Metrics table API endpoints.

GET  /api/metrics                        - Table header, data and column visibility
GET  /api/status                         - Loading indicator and facet selector state
POST /api/metrics/rows/{index}/select    - Select the examples behind a table row
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from facetmetrics.api.app import get_orchestrator
from facetmetrics.models.types import StatusResponse, TableHeaderAndData
from facetmetrics.worker.orchestrator import MetricsOrchestrator

router = APIRouter()


@router.get("/metrics", response_model=TableHeaderAndData)
async def get_metrics_table(
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> TableHeaderAndData:
    """Get the current metrics table."""
    return orchestrator.table_data


@router.get("/status", response_model=StatusResponse)
async def get_status(
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> StatusResponse:
    """Get loading and facet selector state."""
    return StatusResponse(
        pending_calls=orchestrator.pending_calls,
        is_loading=orchestrator.is_loading,
        facet_by_slice=orchestrator.facets.facet_by_slice,
        slices_disabled=orchestrator.slices.are_all_slices_empty(),
        selected_facets=orchestrator.facets.selected_facets,
        available_facets=orchestrator.app_state.facetable_features,
    )


@router.post("/metrics/rows/{index}/select", response_model=TableHeaderAndData)
async def select_row(
    index: int,
    wait: bool = False,
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> TableHeaderAndData:
    """Select the examples behind a table row.

    Args:
        index: Table row index.
        wait: Return only after the triggered fetches settle.
        orchestrator: Metrics orchestrator (injected).

    Returns:
        Table after the selection change.

    Raises:
        HTTPException: 404 if no row has that index.
    """
    try:
        ids = orchestrator.store.example_ids_at(index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Row not found")

    orchestrator.selection.select_ids(ids)
    if wait:
        await orchestrator.wait_idle()
    return orchestrator.table_data
