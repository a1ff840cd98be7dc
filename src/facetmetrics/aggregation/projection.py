"""Table projection of the metrics store.

Pure function - no store mutation, recomputed on every read.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from facetmetrics.models.domain import MetricsRow
from facetmetrics.models.types import TableHeaderAndData

PLACEHOLDER = "-"
INDEX_COLUMN = "id"
LEADING_COLUMNS = ["Model", "From", "Field", "N"]
FIXED_COLUMNS = frozenset([INDEX_COLUMN, *LEADING_COLUMNS])


def format_metric(value: float | None) -> float | int | str:
    """Render one metric value for display.

    Non-whole numbers are rounded to 3 decimal places, whole numbers are
    shown as-is (4.0 displays as 4), missing values as the placeholder.
    """
    if value is None:
        return PLACEHOLDER
    if isinstance(value, bool):
        return int(value)
    if value % 1 != 0:
        return f"{value:.3f}"
    if isinstance(value, float):
        return int(value)
    return value


def collect_metric_columns(rows: Iterable[MetricsRow]) -> list[tuple[str, str]]:
    """(generator, metric) pairs across all rows, in first-seen order."""
    seen: dict[tuple[str, str], None] = {}
    for row in rows:
        for generator, values in row.head_metrics.items():
            for metric_name in values:
                seen.setdefault((generator, metric_name), None)
    return list(seen)


def _metric_cell(row: MetricsRow, generator: str, metric_name: str) -> float | int | str:
    values = row.head_metrics.get(generator)
    if values is None:
        return PLACEHOLDER
    return format_metric(values.get(metric_name))


def _facet_cell(row: MetricsRow, facet: str) -> str:
    if row.facets and row.facets.get(facet) is not None:
        return row.facets[facet]
    return PLACEHOLDER


def project_table(
    rows: Sequence[MetricsRow],
    selected_facets: Sequence[str],
) -> TableHeaderAndData:
    """Convert store rows into table header and data.

    Columns: id, Model, From, Field, N, one column per selected facet, then
    one "{generator}: {metric}" column per metric seen in any row.

    Args:
        rows: Store rows in display order.
        selected_facets: Currently selected facet dimensions.

    Returns:
        TableHeaderAndData; data row i corresponds to rows[i].
    """
    metric_columns = collect_metric_columns(rows)

    data: list[list[object]] = []
    for index, row in enumerate(rows):
        facet_cells = [_facet_cell(row, facet) for facet in selected_facets]
        metric_cells = [_metric_cell(row, gen, name) for gen, name in metric_columns]
        data.append(
            [index, row.model, row.selection, row.pred_key, len(row.example_ids)]
            + facet_cells
            + metric_cells
        )

    header = (
        [INDEX_COLUMN]
        + LEADING_COLUMNS
        + list(selected_facets)
        + [f"{gen}: {name}" for gen, name in metric_columns]
    )
    return TableHeaderAndData(
        header=header,
        data=data,
        column_visibility={name: name != INDEX_COLUMN for name in header},
    )
