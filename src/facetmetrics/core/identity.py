"""Identity utilities for deterministic store keys.

- row key: identity of one MetricsRow (model, label, field, facets)
- facet signature: identity of one facet group
"""

import json
from collections.abc import Mapping


def _canonical(obj: object) -> str:
    """Canonical JSON: sorted keys, no whitespace."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)


def facet_signature(facets: Mapping[str, object] | None) -> str:
    """Compute a deterministic signature for a facet map.

    Entries are ordered by feature name so that equal maps built in a
    different order share a signature. An absent or empty map gives "".

    Args:
        facets: Feature name -> facet value, or None.

    Returns:
        Canonical JSON string of the sorted entries, or "".
    """
    if not facets:
        return ""
    return _canonical(sorted((str(k), str(v)) for k, v in facets.items()))


def derive_row_key(
    model: str,
    selection_label: str,
    pred_key: str,
    facets: Mapping[str, object] | None = None,
) -> str:
    """Compute the store key of a metrics row.

    key = canonical_json([model, selection_label, pred_key, facet_signature])

    Every segment is JSON-escaped, so delimiters inside names or facet values
    cannot make two different rows collide.

    Args:
        model: Model name.
        selection_label: Display label of the example group.
        pred_key: Field the metrics were computed against.
        facets: Optional facet map of the group.

    Returns:
        Row key string.
    """
    return _canonical([model, selection_label, pred_key, facet_signature(facets)])
