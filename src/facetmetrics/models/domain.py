"""Domain models for facetmetrics.

Pure Python dataclasses for the aggregation core. Row origins are a closed
set of variants so that illegal combinations (a slice row carrying facets)
cannot be constructed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from facetmetrics.models.types import IndexedInput

FacetMap = dict[str, str]
HeadMetrics = dict[str, dict[str, float]]
CallConfig = dict[str, Any]

FACETED_SUFFIX = " (faceted)"


class Source(str, Enum):
    """Why a row exists."""

    DATASET = "dataset"
    SELECTION = "selection"
    SLICE = "slice"

    def __str__(self) -> str:
        return self.value


# ============================================================================
# Row origins
# ============================================================================


@dataclass(frozen=True)
class DatasetOrigin:
    """Row computed over the full dataset."""

    @property
    def source(self) -> Source:
        return Source.DATASET

    @property
    def label(self) -> str:
        return str(Source.DATASET)

    @property
    def facets(self) -> FacetMap | None:
        return None


@dataclass(frozen=True)
class SelectionOrigin:
    """Row computed over the current selection."""

    @property
    def source(self) -> Source:
        return Source.SELECTION

    @property
    def label(self) -> str:
        return str(Source.SELECTION)

    @property
    def facets(self) -> FacetMap | None:
        return None


@dataclass(frozen=True)
class SliceOrigin:
    """Row computed over a named slice."""

    name: str

    @property
    def source(self) -> Source:
        return Source.SLICE

    @property
    def label(self) -> str:
        return self.name

    @property
    def facets(self) -> FacetMap | None:
        return None


@dataclass(frozen=True)
class FacetedOrigin:
    """Row computed over one facet group of the dataset or the selection."""

    base: Source
    facet_values: tuple[tuple[str, str], ...]

    def __post_init__(self) -> None:
        if self.base is Source.SLICE:
            raise ValueError("Slices cannot be faceted")
        if not self.facet_values:
            raise ValueError("FacetedOrigin needs at least one facet value")

    @classmethod
    def of(cls, base: Source, facets: FacetMap) -> FacetedOrigin:
        return cls(base=base, facet_values=tuple(facets.items()))

    @property
    def source(self) -> Source:
        return self.base

    @property
    def label(self) -> str:
        return f"{self.base}{FACETED_SUFFIX}"

    @property
    def facets(self) -> FacetMap | None:
        return dict(self.facet_values)


RowOrigin = Union[DatasetOrigin, SelectionOrigin, SliceOrigin, FacetedOrigin]


# ============================================================================
# Store rows
# ============================================================================


@dataclass
class MetricsRow:
    """One aggregated metrics record for a (model, example group, field)."""

    model: str
    selection: str
    pred_key: str
    example_ids: list[str]
    source: Source
    head_metrics: HeadMetrics = field(default_factory=dict)
    facets: FacetMap | None = None


@dataclass
class FacetGroup:
    """Examples sharing one combination of facet values."""

    facets: FacetMap
    data: list[IndexedInput] = field(default_factory=list)
