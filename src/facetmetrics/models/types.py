"""Pydantic models for the scoring wire format and the HTTP API."""

from typing import Any, Literal

from pydantic import BaseModel, Field

FeatureKind = Literal["categorical", "numeric", "text"]


class IndexedInput(BaseModel):
    """One example record with a stable id."""

    id: str
    data: dict[str, Any] = Field(default_factory=dict)


class ScoringRequest(BaseModel):
    """Request sent to the scoring service for one model."""

    inputs: list[IndexedInput]
    model: str
    dataset_name: str
    kind: Literal["metrics"] = "metrics"
    config: dict[str, Any] = Field(default_factory=dict)


class MetricsResponse(BaseModel):
    """One per-field entry returned by a metrics generator."""

    pred_key: str
    label_key: str
    metrics: dict[str, float | None]


# generator name -> per-field entries
ScoringResult = dict[str, list[MetricsResponse]]


class TableHeaderAndData(BaseModel):
    """Flat table view of the metrics store."""

    header: list[str]
    data: list[list[Any]]
    column_visibility: dict[str, bool]


class DatasetPayload(BaseModel):
    """Dataset replacement submitted through the API."""

    name: str
    examples: list[IndexedInput]
    feature_kinds: dict[str, FeatureKind] = Field(default_factory=dict)
    models: list[str] = Field(default_factory=list)


class SelectionPayload(BaseModel):
    """Selection replacement by example ids."""

    ids: list[str]


class SlicePayload(BaseModel):
    """Slice membership by example ids."""

    ids: list[str]


class FacetsPayload(BaseModel):
    """Selected facet dimensions, in display order."""

    features: list[str]


class SliceTogglePayload(BaseModel):
    """Whether slice rows are shown."""

    enabled: bool


class StatusResponse(BaseModel):
    """Loading indicator and facet selector state."""

    pending_calls: int
    is_loading: bool
    facet_by_slice: bool
    slices_disabled: bool
    selected_facets: list[str]
    available_facets: list[str]
