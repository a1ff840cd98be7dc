"""Metrics fetch orchestrator.

Reacts to state-change events by scheduling metric fetches, merges scorer
results into the metrics store, and tracks in-flight batches for the
loading indicator.

Architecture:
- MetricsOrchestrator: subscribes to the event bus once, owns the store
- add_metrics: one fan-out batch (one scorer request per active model)
- update_*: aggregation routines that evict stale rows and schedule batches
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from facetmetrics.aggregation.grouping import DEFAULT_NUM_BINS, group_examples_by_features
from facetmetrics.aggregation.projection import project_table
from facetmetrics.aggregation.store import (
    MetricsStore,
    by_source,
    has_facets,
    unfaceted_from,
)
from facetmetrics.core.events import EventBus, StateEvent
from facetmetrics.models.domain import (
    DatasetOrigin,
    FacetedOrigin,
    MetricsRow,
    RowOrigin,
    SelectionOrigin,
    SliceOrigin,
    Source,
)
from facetmetrics.models.types import (
    IndexedInput,
    ScoringRequest,
    ScoringResult,
    TableHeaderAndData,
)
from facetmetrics.providers.base import ScorerBase
from facetmetrics.state import (
    AppState,
    CalibrationState,
    FacetState,
    SelectionState,
    SliceState,
)

logger = logging.getLogger(__name__)


class MetricsOrchestrator:
    """Keeps the metrics store in sync with dataset, selection, slices and facets.

    Event handlers run synchronously on publish and schedule their fetches as
    tasks on the running event loop, so publishing must happen inside it.
    Outside a loop a handler raises RuntimeError before touching the store;
    the state holder has already recorded the change by then.
    """

    def __init__(
        self,
        bus: EventBus,
        scorer: ScorerBase,
        app_state: AppState,
        selection: SelectionState,
        slices: SliceState,
        calibration: CalibrationState,
        facets: FacetState,
        num_bins: int = DEFAULT_NUM_BINS,
    ):
        """Initialize orchestrator and subscribe to state events.

        Args:
            bus: Event bus the state holders publish on.
            scorer: Scoring service adapter.
            app_state: Dataset, feature spec and active models.
            selection: Current selection.
            slices: Named slices.
            calibration: Per-model call configs.
            facets: Facet selector state.
            num_bins: Bin count for numeric facets.
        """
        self.bus = bus
        self.scorer = scorer
        self.app_state = app_state
        self.selection = selection
        self.slices = slices
        self.calibration = calibration
        self.facets = facets
        self.num_bins = num_bins

        self.store = MetricsStore()
        self.pending_calls = 0
        self._tasks: set[asyncio.Task[None]] = set()
        # bumped whenever every faceted row is rebuilt
        self._facet_generation = 0

        bus.subscribe(StateEvent.DATASET_CHANGED, self._on_dataset_changed)
        bus.subscribe(StateEvent.SELECTION_CHANGED, self._on_selection_changed)
        bus.subscribe(StateEvent.CALIBRATION_CHANGED, self._on_calibration_changed)
        bus.subscribe(StateEvent.SLICES_CHANGED, self._on_slices_changed)
        bus.subscribe(StateEvent.SLICE_FACET_TOGGLED, self.update_slice_metrics)
        bus.subscribe(StateEvent.FACETS_CHANGED, self.update_all_faceted_metrics)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self.pending_calls > 0

    @property
    def table_data(self) -> TableHeaderAndData:
        """Table view of the store, recomputed on every read."""
        return project_table(self.store.rows(), self.facets.selected_facets)

    # ------------------------------------------------------------------
    # Task tracking
    # ------------------------------------------------------------------

    def _schedule(self, examples: Sequence[IndexedInput], origin: RowOrigin) -> None:
        """Run add_metrics for examples as a tracked task; empty batches are skipped."""
        if not examples:
            return
        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self.add_metrics(examples, origin, facet_generation=self._facet_generation)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _require_loop(self) -> None:
        """Raise RuntimeError outside a running event loop, before any eviction."""
        asyncio.get_running_loop()

    async def wait_idle(self) -> None:
        """Wait until every scheduled batch has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _get_metrics(
        self,
        examples: Sequence[IndexedInput],
        model: str,
        dataset_name: str,
    ) -> ScoringResult:
        request = ScoringRequest(
            inputs=list(examples),
            model=model,
            dataset_name=dataset_name,
            config=self.calibration.get_config(model),
        )
        return await self.scorer.score(request)

    async def add_metrics(
        self,
        examples: Sequence[IndexedInput],
        origin: RowOrigin,
        facet_generation: int | None = None,
    ) -> None:
        """Fetch metrics for examples from every active model and merge them.

        Empty batches are ignored. If any model's request fails, the whole
        batch is discarded and the store is left untouched. A faceted batch
        is also discarded when the faceted rows were rebuilt while it was in
        flight.

        Args:
            examples: Examples to score.
            origin: Why the resulting rows exist (dataset, selection, slice
                or facet group).
            facet_generation: Facet generation the batch was scheduled in;
                defaults to the current one.
        """
        if not examples:
            return

        if facet_generation is None:
            facet_generation = self._facet_generation
        models = list(self.app_state.models)
        dataset_name = self.app_state.dataset_name
        example_ids = [example.id for example in examples]

        self.pending_calls += 1
        try:
            logger.debug(
                f"Fetching metrics for {origin.label} ({len(examples)} examples, "
                f"{len(models)} models)"
            )
            results = await asyncio.gather(
                *(self._get_metrics(examples, model, dataset_name) for model in models)
            )
        except Exception as e:
            logger.warning(f"Discarding metrics batch for {origin.label}: {e}")
            return
        finally:
            self.pending_calls -= 1

        if origin.facets and facet_generation != self._facet_generation:
            logger.debug(f"Dropping stale faceted batch for {origin.label}")
            return

        for model, returned in zip(models, results):
            for generator, responses in returned.items():
                for response in responses:
                    self.store.upsert(
                        MetricsRow(
                            model=model,
                            selection=origin.label,
                            pred_key=response.pred_key,
                            example_ids=example_ids,
                            source=origin.source,
                            head_metrics={generator: dict(response.metrics)},
                            facets=origin.facets,
                        )
                    )

    # ------------------------------------------------------------------
    # Aggregation routines
    # ------------------------------------------------------------------

    def update_faceted_metrics(self, examples: Sequence[IndexedInput], is_selection: bool) -> None:
        """Schedule one batch per facet group of examples."""
        selected = self.facets.selected_facets
        if not selected:
            return
        groups = group_examples_by_features(
            examples, selected, self.app_state.feature_kinds, self.num_bins
        )
        base = Source.SELECTION if is_selection else Source.DATASET
        for group in groups.values():
            self._schedule(group.data, FacetedOrigin.of(base, group.facets))

    def update_all_faceted_metrics(self) -> None:
        """Drop every faceted row and re-facet selection and dataset.

        Faceted batches still in flight from before the call are dropped
        when they settle.
        """
        self._require_loop()
        self._facet_generation += 1
        self.store.evict(has_facets)
        if self.facets.selected_facets:
            selected = self.selection.selected_input_data
            if selected:
                self.update_faceted_metrics(selected, is_selection=True)
            self.update_faceted_metrics(self.app_state.examples, is_selection=False)

    def update_slice_metrics(self) -> None:
        """Drop slice rows and, if slices are shown, re-add one per non-empty slice."""
        self._require_loop()
        self.store.evict(by_source(Source.SLICE))
        if self.facets.facet_by_slice:
            for name in self.slices.slice_names:
                self._schedule(self.slices.get_slice_data(name), SliceOrigin(name))

    def _refresh_selection(self) -> None:
        self._require_loop()
        self.store.evict(by_source(Source.SELECTION))
        selected = self.selection.selected_input_data
        if selected:
            self._schedule(selected, SelectionOrigin())
            self.update_faceted_metrics(selected, is_selection=True)

    def _refresh_plain_selection(self) -> None:
        # faceted selection rows are rebuilt by update_all_faceted_metrics
        self.store.evict(unfaceted_from(Source.SELECTION))
        self._schedule(self.selection.selected_input_data, SelectionOrigin())

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Initial load of dataset metrics; call once inside the event loop."""
        self._schedule(self.app_state.examples, DatasetOrigin())
        self.update_all_faceted_metrics()

    def _on_dataset_changed(self) -> None:
        self._require_loop()
        self.store.evict(unfaceted_from(Source.DATASET))
        self._schedule(self.app_state.examples, DatasetOrigin())
        self.update_all_faceted_metrics()
        self._refresh_plain_selection()
        self.update_slice_metrics()

    def _on_selection_changed(self) -> None:
        self._refresh_selection()

    def _on_calibration_changed(self) -> None:
        self._require_loop()
        self._schedule(self.app_state.examples, DatasetOrigin())
        self._schedule(self.selection.selected_input_data, SelectionOrigin())
        self.update_all_faceted_metrics()

    def _on_slices_changed(self) -> None:
        self._require_loop()
        self.facets.facet_by_slice = True
        self.update_slice_metrics()


def create_orchestrator(
    scorer: ScorerBase,
    num_bins: int = DEFAULT_NUM_BINS,
) -> MetricsOrchestrator:
    """Build an orchestrator wired to fresh state holders on a new bus.

    Args:
        scorer: Scoring service adapter.
        num_bins: Bin count for numeric facets.

    Returns:
        MetricsOrchestrator; its state holders are reachable as attributes.
    """
    bus = EventBus()
    app_state = AppState(bus)
    return MetricsOrchestrator(
        bus=bus,
        scorer=scorer,
        app_state=app_state,
        selection=SelectionState(bus, app_state),
        slices=SliceState(bus, app_state),
        calibration=CalibrationState(bus),
        facets=FacetState(bus),
        num_bins=num_bins,
    )
