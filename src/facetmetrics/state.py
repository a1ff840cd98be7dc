"""State providers feeding the metrics orchestrator.

Each holder owns one piece of external state and publishes a StateEvent on
the shared bus when it changes. The orchestrator only reads from them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from facetmetrics.aggregation.grouping import facetable_features
from facetmetrics.aggregation.projection import FIXED_COLUMNS
from facetmetrics.core.events import EventBus, StateEvent
from facetmetrics.models.domain import CallConfig
from facetmetrics.models.types import FeatureKind, IndexedInput


class AppState:
    """Active dataset, its feature spec and the active models."""

    def __init__(self, bus: EventBus):
        self.bus = bus
        self.dataset_name = ""
        self.examples: list[IndexedInput] = []
        self.feature_kinds: dict[str, FeatureKind] = {}
        self.models: list[str] = []
        self._by_id: dict[str, IndexedInput] = {}

    def set_dataset(
        self,
        name: str,
        examples: Sequence[IndexedInput],
        feature_kinds: Mapping[str, FeatureKind] | None = None,
        models: Sequence[str] | None = None,
    ) -> None:
        """Replace the dataset (and optionally the models) and notify."""
        self.dataset_name = name
        self.examples = list(examples)
        self._by_id = {example.id: example for example in self.examples}
        self.feature_kinds = dict(feature_kinds or {})
        if models is not None:
            self.models = list(models)
        self.bus.publish(StateEvent.DATASET_CHANGED)

    def get_examples(self, ids: Iterable[str]) -> list[IndexedInput]:
        """Examples for ids, skipping ids not in the dataset."""
        return [self._by_id[i] for i in ids if i in self._by_id]

    @property
    def facetable_features(self) -> list[str]:
        return facetable_features(self.feature_kinds)


class SelectionState:
    """Currently selected example ids."""

    def __init__(self, bus: EventBus, app_state: AppState):
        self.bus = bus
        self.app_state = app_state
        self.selected_ids: list[str] = []

    def select_ids(self, ids: Iterable[str]) -> None:
        self.selected_ids = list(ids)
        self.bus.publish(StateEvent.SELECTION_CHANGED)

    @property
    def selected_input_data(self) -> list[IndexedInput]:
        return self.app_state.get_examples(self.selected_ids)


class SliceState:
    """Named, user-curated subsets of the dataset."""

    def __init__(self, bus: EventBus, app_state: AppState):
        self.bus = bus
        self.app_state = app_state
        self._slices: dict[str, list[str]] = {}

    @property
    def slice_names(self) -> list[str]:
        return list(self._slices)

    def __contains__(self, name: object) -> bool:
        return name in self._slices

    def set_slice(self, name: str, ids: Iterable[str]) -> None:
        """Create or replace a slice and notify."""
        self._slices[name] = list(ids)
        self.bus.publish(StateEvent.SLICES_CHANGED)

    def delete_slice(self, name: str) -> None:
        """Delete a slice and notify.

        Raises:
            KeyError: If no such slice exists.
        """
        del self._slices[name]
        self.bus.publish(StateEvent.SLICES_CHANGED)

    def get_slice_data(self, name: str) -> list[IndexedInput]:
        return self.app_state.get_examples(self._slices.get(name, []))

    def are_all_slices_empty(self) -> bool:
        return all(not self.get_slice_data(name) for name in self._slices)


class CalibrationState:
    """Per-model calibration / margin call configs."""

    def __init__(self, bus: EventBus):
        self.bus = bus
        self._configs: dict[str, CallConfig] = {}

    def get_config(self, model: str) -> CallConfig:
        """Config for model; empty when none is set."""
        return dict(self._configs.get(model, {}))

    def set_config(self, model: str, config: Mapping[str, object]) -> None:
        self._configs[model] = dict(config)
        self.bus.publish(StateEvent.CALIBRATION_CHANGED)


class FacetState:
    """Facet selector state: feature dimensions and the slice toggle."""

    def __init__(self, bus: EventBus):
        self.bus = bus
        self.selected_facets: list[str] = []
        self.facet_by_slice = False

    def set_facets(self, features: Sequence[str]) -> None:
        """Select facet dimensions and notify.

        Raises:
            ValueError: If a feature is named like a fixed table column.
        """
        clashing = [f for f in features if f in FIXED_COLUMNS]
        if clashing:
            raise ValueError(f"Facet names clash with table columns: {', '.join(clashing)}")
        # keep first occurrence order, drop duplicates
        self.selected_facets = list(dict.fromkeys(features))
        self.bus.publish(StateEvent.FACETS_CHANGED)

    def set_facet_by_slice(self, enabled: bool) -> None:
        self.facet_by_slice = enabled
        self.bus.publish(StateEvent.SLICE_FACET_TOGGLED)
