"""Facet grouping of example sets.

Partitions examples by the cross-product of selected feature values.
Categorical features group by value; numeric features are bucketed into
equal-width bins over the values present.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

import numpy as np

from facetmetrics.core.identity import facet_signature
from facetmetrics.models.domain import FacetGroup, FacetMap
from facetmetrics.models.types import FeatureKind, IndexedInput

DEFAULT_NUM_BINS = 4
MISSING_VALUE = "(missing)"

FACETABLE_KINDS: tuple[FeatureKind, ...] = ("categorical", "numeric")


def facetable_features(feature_kinds: Mapping[str, FeatureKind]) -> list[str]:
    """Names of the categorical and numeric features, in dataset order."""
    return [name for name, kind in feature_kinds.items() if kind in FACETABLE_KINDS]


def _is_missing(value: object) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _format_edges(edges: np.ndarray) -> list[str]:
    """Shortest edge labels (3+ significant digits) that tell neighbours apart."""
    for digits in range(3, 18):
        labels = [
            np.format_float_positional(edge, precision=digits, fractional=False, trim="-")
            for edge in edges
        ]
        pairs = zip(labels, labels[1:], edges, edges[1:])
        if all(a != b or lo == hi for a, b, lo, hi in pairs):
            break
    return labels


def _numeric_bins(values: Sequence[object], num_bins: int) -> tuple[list[str], list[str]]:
    """Bin key and bin label for each value; missing values get MISSING_VALUE.

    Keys are bin indexes, so two bins stay apart even if their labels print
    alike.
    """
    present = np.array([float(v) for v in values if not _is_missing(v)], dtype=float)
    if present.size == 0:
        return [MISSING_VALUE] * len(values), [MISSING_VALUE] * len(values)

    lo, hi = float(present.min()), float(present.max())
    if lo == hi:
        edges = np.array([lo, hi])
        num_bins = 1
    else:
        edges = np.linspace(lo, hi, num_bins + 1)
    edge_labels = _format_edges(edges)

    keys: list[str] = []
    labels: list[str] = []
    for value in values:
        if _is_missing(value):
            keys.append(MISSING_VALUE)
            labels.append(MISSING_VALUE)
            continue
        # digitize against inner edges; the max value falls in the last bin
        index = int(np.digitize(float(value), edges[1:-1], right=False))
        closing = "]" if index == num_bins - 1 else ")"
        keys.append(str(index))
        labels.append(f"[{edge_labels[index]}, {edge_labels[index + 1]}{closing}")
    return keys, labels


def group_examples_by_features(
    examples: Sequence[IndexedInput],
    features: Sequence[str],
    feature_kinds: Mapping[str, FeatureKind],
    num_bins: int = DEFAULT_NUM_BINS,
) -> dict[str, FacetGroup]:
    """Partition examples into facet groups.

    Args:
        examples: Examples to partition.
        features: Selected facet dimensions, in display order.
        feature_kinds: Dataset spec, feature name -> kind.
        num_bins: Bin count for numeric features.

    Returns:
        Group key -> FacetGroup, in first-seen order. Each group's facet map
        has one entry per selected feature. Numeric features are keyed by
        bin index rather than by label.
    """
    if num_bins < 1:
        raise ValueError("num_bins must be >= 1")
    if not features or not examples:
        return {}

    # Per-feature grouping key and display value for every example
    keys: dict[str, list[str]] = {}
    labels: dict[str, list[str]] = {}
    for feature in features:
        raw = [example.data.get(feature) for example in examples]
        if feature_kinds.get(feature) == "numeric":
            keys[feature], labels[feature] = _numeric_bins(raw, num_bins)
        else:
            labels[feature] = [MISSING_VALUE if _is_missing(v) else str(v) for v in raw]
            keys[feature] = labels[feature]

    groups: dict[str, FacetGroup] = {}
    for i, example in enumerate(examples):
        key = facet_signature({feature: keys[feature][i] for feature in features})
        facets: FacetMap = {feature: labels[feature][i] for feature in features}
        if key not in groups:
            groups[key] = FacetGroup(facets=facets)
        groups[key].data.append(example)
    return groups
