"""State-change API endpoints.

POST   /api/dataset               - Replace dataset, feature spec and models
POST   /api/selection             - Replace selection by example ids
PUT    /api/slices/{name}         - Create or replace a slice
DELETE /api/slices/{name}         - Delete a slice
PUT    /api/facets                - Set facet dimensions
PUT    /api/facets/slices         - Show or hide slice rows
PUT    /api/calibration/{model}   - Set a model's call config

Every endpoint accepts `wait=true` to respond after triggered fetches settle,
and returns the resulting table.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from facetmetrics.api.app import get_orchestrator
from facetmetrics.models.types import (
    DatasetPayload,
    FacetsPayload,
    SelectionPayload,
    SlicePayload,
    SliceTogglePayload,
    TableHeaderAndData,
)
from facetmetrics.worker.orchestrator import MetricsOrchestrator

router = APIRouter()


async def _respond(orchestrator: MetricsOrchestrator, wait: bool) -> TableHeaderAndData:
    if wait:
        await orchestrator.wait_idle()
    return orchestrator.table_data


@router.post("/dataset", response_model=TableHeaderAndData)
async def set_dataset(
    payload: DatasetPayload,
    wait: bool = False,
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> TableHeaderAndData:
    """Replace the active dataset."""
    ids = [example.id for example in payload.examples]
    if len(set(ids)) != len(ids):
        raise HTTPException(status_code=400, detail="Duplicate example ids")

    orchestrator.app_state.set_dataset(
        payload.name,
        payload.examples,
        feature_kinds=payload.feature_kinds,
        models=payload.models,
    )
    return await _respond(orchestrator, wait)


@router.post("/selection", response_model=TableHeaderAndData)
async def set_selection(
    payload: SelectionPayload,
    wait: bool = False,
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> TableHeaderAndData:
    """Replace the current selection."""
    orchestrator.selection.select_ids(payload.ids)
    return await _respond(orchestrator, wait)


@router.put("/slices/{name}", response_model=TableHeaderAndData)
async def put_slice(
    name: str,
    payload: SlicePayload,
    wait: bool = False,
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> TableHeaderAndData:
    """Create or replace a named slice."""
    orchestrator.slices.set_slice(name, payload.ids)
    return await _respond(orchestrator, wait)


@router.delete("/slices/{name}", response_model=TableHeaderAndData)
async def delete_slice(
    name: str,
    wait: bool = False,
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> TableHeaderAndData:
    """Delete a named slice.

    Raises:
        HTTPException: 404 if the slice does not exist.
    """
    if name not in orchestrator.slices:
        raise HTTPException(status_code=404, detail="Slice not found")
    orchestrator.slices.delete_slice(name)
    return await _respond(orchestrator, wait)


@router.put("/facets", response_model=TableHeaderAndData)
async def set_facets(
    payload: FacetsPayload,
    wait: bool = False,
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> TableHeaderAndData:
    """Set the facet dimensions.

    Raises:
        HTTPException: 400 if a feature is not categorical or numeric, or
            is named like a fixed table column.
    """
    available = set(orchestrator.app_state.facetable_features)
    unknown = [f for f in payload.features if f not in available]
    if unknown:
        raise HTTPException(
            status_code=400, detail=f"Cannot facet by: {', '.join(unknown)}"
        )
    try:
        orchestrator.facets.set_facets(payload.features)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return await _respond(orchestrator, wait)


@router.put("/facets/slices", response_model=TableHeaderAndData)
async def set_slice_toggle(
    payload: SliceTogglePayload,
    wait: bool = False,
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> TableHeaderAndData:
    """Show or hide slice rows."""
    orchestrator.facets.set_facet_by_slice(payload.enabled)
    return await _respond(orchestrator, wait)


@router.put("/calibration/{model}", response_model=TableHeaderAndData)
async def set_calibration(
    model: str,
    config: dict[str, Any] = Body(...),
    wait: bool = False,
    orchestrator: MetricsOrchestrator = Depends(get_orchestrator),
) -> TableHeaderAndData:
    """Set a model's calibration / margin call config."""
    orchestrator.calibration.set_config(model, config)
    return await _respond(orchestrator, wait)
