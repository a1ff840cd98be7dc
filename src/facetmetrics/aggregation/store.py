"""Keyed metrics store.

The store is the only owner of the row map. Keys are always derived from the
row itself through derive_row_key, so callers cannot create duplicates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

from facetmetrics.core.identity import derive_row_key
from facetmetrics.models.domain import MetricsRow, Source

logger = logging.getLogger(__name__)

RowPredicate = Callable[[MetricsRow], bool]


def row_key(row: MetricsRow) -> str:
    """Store key of a row."""
    return derive_row_key(row.model, row.selection, row.pred_key, row.facets)


def by_source(source: Source) -> RowPredicate:
    """Match every row of a source, faceted or not."""
    return lambda row: row.source is source


def has_facets(row: MetricsRow) -> bool:
    """Match rows carrying a facet map."""
    return bool(row.facets)


def unfaceted_from(source: Source) -> RowPredicate:
    """Match the plain (non-faceted) rows of a source."""
    return lambda row: row.source is source and not row.facets


class MetricsStore:
    """Insertion-ordered mapping from row key to MetricsRow."""

    def __init__(self) -> None:
        self._rows: dict[str, MetricsRow] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[MetricsRow]:
        return iter(list(self._rows.values()))

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    def get(self, key: str) -> MetricsRow | None:
        return self._rows.get(key)

    def rows(self) -> list[MetricsRow]:
        """Snapshot of all rows in display order."""
        return list(self._rows.values())

    def row_at(self, index: int) -> MetricsRow:
        """Row at a table index.

        Raises:
            IndexError: If index is out of range.
        """
        if index < 0:
            raise IndexError(f"Row index out of range: {index}")
        return self.rows()[index]

    def example_ids_at(self, index: int) -> list[str]:
        """Example ids behind the table row at index."""
        return list(self.row_at(index).example_ids)

    def upsert(self, row: MetricsRow) -> MetricsRow:
        """Insert a row or merge it into the existing row with the same key.

        On merge, example_ids are replaced and head_metrics are merged at the
        generator level: each generator present in `row` replaces the stored
        entry for that generator wholesale.

        Args:
            row: Incoming row.

        Returns:
            The stored row.
        """
        key = row_key(row)
        existing = self._rows.get(key)
        if existing is None:
            stored = MetricsRow(
                model=row.model,
                selection=row.selection,
                pred_key=row.pred_key,
                example_ids=list(row.example_ids),
                source=row.source,
                head_metrics={name: dict(values) for name, values in row.head_metrics.items()},
                facets=dict(row.facets) if row.facets else None,
            )
            self._rows[key] = stored
            return stored

        existing.example_ids = list(row.example_ids)
        for generator, values in row.head_metrics.items():
            existing.head_metrics[generator] = dict(values)
        return existing

    def evict(self, predicate: RowPredicate) -> int:
        """Remove every row matching predicate.

        Returns:
            Number of rows removed.
        """
        doomed = [key for key, row in self._rows.items() if predicate(row)]
        for key in doomed:
            del self._rows[key]
        if doomed:
            logger.debug(f"Evicted {len(doomed)} metrics rows")
        return len(doomed)
