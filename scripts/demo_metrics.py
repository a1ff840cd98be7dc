#!/usr/bin/env python3
"""Print a demo metrics table using the mock scorer.

Runs the orchestrator through the main state changes: dataset load,
selection, slices and two facet dimensions, printing the table after each.

Usage:
    python scripts/demo_metrics.py
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from facetmetrics.models.types import IndexedInput  # noqa: E402
from facetmetrics.providers.mock import MockScorer  # noqa: E402
from facetmetrics.worker.orchestrator import (  # noqa: E402
    MetricsOrchestrator,
    create_orchestrator,
)

# Demo dataset: pred/label per example, one categorical and one numeric feature
DEMO_EXAMPLES = [
    IndexedInput(id=f"ex-{i}", data=data)
    for i, data in enumerate(
        [
            {"pred": 1, "label": 1, "genre": "news", "length": 12},
            {"pred": 0, "label": 1, "genre": "news", "length": 40},
            {"pred": 1, "label": 1, "genre": "fiction", "length": 7},
            {"pred": 0, "label": 0, "genre": "fiction", "length": 55},
            {"pred": 1, "label": 0, "genre": "review", "length": 23},
            {"pred": 0, "label": 0, "genre": "review", "length": 31},
        ]
    )
]


def print_table(title: str, orchestrator: MetricsOrchestrator) -> None:
    """Print the current table with a title."""
    table = orchestrator.table_data
    visible = [i for i, name in enumerate(table.header) if table.column_visibility[name]]
    print(f"\n{title}")
    print("-" * 60)
    print(" | ".join(table.header[i] for i in visible))
    for row in table.data:
        print(" | ".join(str(row[i]) for i in visible))


async def run_demo() -> None:
    """Drive the orchestrator through a few state changes."""
    orchestrator = create_orchestrator(MockScorer())

    orchestrator.app_state.set_dataset(
        "demo",
        DEMO_EXAMPLES,
        feature_kinds={"genre": "categorical", "length": "numeric", "pred": "categorical"},
        models=["model-a", "model-b"],
    )
    await orchestrator.wait_idle()
    print_table("[1/4] Dataset", orchestrator)

    orchestrator.selection.select_ids(["ex-0", "ex-1", "ex-2"])
    await orchestrator.wait_idle()
    print_table("[2/4] Selection", orchestrator)

    orchestrator.slices.set_slice("news", ["ex-0", "ex-1"])
    await orchestrator.wait_idle()
    print_table("[3/4] Slices", orchestrator)

    orchestrator.facets.set_facets(["genre", "length"])
    await orchestrator.wait_idle()
    print_table("[4/4] Faceted by genre x length", orchestrator)


def main() -> int:
    """Main entry point."""
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_demo())
    return 0


if __name__ == "__main__":
    sys.exit(main())
