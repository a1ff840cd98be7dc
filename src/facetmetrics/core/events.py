"""State-change events and a synchronous event bus."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)

Handler = Callable[[], None]


class StateEvent(str, Enum):
    """External conditions the metrics orchestrator reacts to."""

    DATASET_CHANGED = "dataset_changed"
    SELECTION_CHANGED = "selection_changed"
    SLICES_CHANGED = "slices_changed"
    CALIBRATION_CHANGED = "calibration_changed"
    FACETS_CHANGED = "facets_changed"
    SLICE_FACET_TOGGLED = "slice_facet_toggled"


class EventBus:
    """Registry of handlers per event; publish calls them in order."""

    def __init__(self) -> None:
        self._handlers: dict[StateEvent, list[Handler]] = {}

    def subscribe(self, event: StateEvent, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def publish(self, event: StateEvent) -> None:
        handlers = self._handlers.get(event, [])
        logger.debug(f"{event.value}: {len(handlers)} handler(s)")
        for handler in handlers:
            handler()
