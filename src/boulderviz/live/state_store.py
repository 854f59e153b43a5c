"""Process-wide visualization state behind explicit setters."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from time import monotonic
from typing import Callable, List, Optional, Tuple

from ..geometry.settings import DEFAULTS, VisualizerSettings
from ..model import BoulderRecord, Move
from .state_reducer import Invalidation

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]
Subscriber = Callable[["StateSnapshot"], None]


@dataclass(frozen=True)
class StateSnapshot:
    """Immutable view of the store handed to the reconciliation tick."""

    boulder: Optional[BoulderRecord] = None
    settings: VisualizerSettings = DEFAULTS
    moves: Tuple[Move, ...] = ()
    version: int = 0
    material_version: int = 0
    dirty: bool = False
    last_update_time: float = 0.0
    detected_with: Optional[Tuple[float, float]] = field(default=None, compare=False)


class VisualizationStore:
    """Holds the current boulder, settings and moves.

    ``version`` moves whenever geometry has to be rebuilt and
    ``material_version`` whenever only appearance changed; readers compare
    them by equality against what they last built.
    """

    def __init__(self, settings: Optional[VisualizerSettings] = None, *, clock: Clock = monotonic) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._subscribers: List[Subscriber] = []
        self._initial = settings or DEFAULTS
        self._state = StateSnapshot(settings=self._initial)

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return self._state

    @property
    def version(self) -> int:
        return self._state.version

    @property
    def material_version(self) -> int:
        return self._state.material_version

    def _commit(self, **changes) -> StateSnapshot:
        with self._lock:
            state = self._state
            values = {
                "boulder": state.boulder,
                "settings": state.settings,
                "moves": state.moves,
                "version": state.version,
                "material_version": state.material_version,
                "dirty": state.dirty,
                "last_update_time": self._clock(),
                "detected_with": state.detected_with,
            }
            values.update(changes)
            self._state = StateSnapshot(**values)
            snapshot = self._state
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(snapshot)
        return snapshot

    def load_boulder(
        self,
        record: BoulderRecord,
        moves: List[Move],
        detected_with: Optional[Tuple[float, float]] = None,
    ) -> StateSnapshot:
        LOGGER.debug("store load_boulder id=%r moves=%d", record.id, len(moves))
        return self._commit(
            boulder=record,
            moves=tuple(moves),
            version=self._state.version + 1,
            dirty=True,
            detected_with=detected_with,
        )

    def set_moves(self, moves: List[Move], detected_with: Optional[Tuple[float, float]] = None) -> StateSnapshot:
        return self._commit(
            moves=tuple(moves),
            version=self._state.version + 1,
            dirty=True,
            detected_with=detected_with,
        )

    def set_settings(
        self,
        settings: VisualizerSettings,
        invalidation: Invalidation = Invalidation.STRUCTURAL,
    ) -> StateSnapshot:
        state = self._state
        if invalidation is Invalidation.STRUCTURAL:
            return self._commit(settings=settings, version=state.version + 1, dirty=True)
        if invalidation is Invalidation.MATERIAL:
            return self._commit(settings=settings, material_version=state.material_version + 1, dirty=True)
        return self._commit(settings=settings)

    def mark_clean(self) -> StateSnapshot:
        return self._commit(dirty=False)

    def reset(self) -> StateSnapshot:
        """Back to the initial settings with no boulder; versions keep increasing."""

        state = self._state
        LOGGER.debug("store reset at version=%d", state.version)
        return self._commit(
            boulder=None,
            settings=self._initial,
            moves=(),
            version=state.version + 1,
            material_version=state.material_version + 1,
            dirty=True,
            detected_with=None,
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe


_DEFAULT_STORE: Optional[VisualizationStore] = None
_DEFAULT_LOCK = threading.Lock()


def get_store() -> VisualizationStore:
    """Process-wide store, created on first use."""

    global _DEFAULT_STORE
    with _DEFAULT_LOCK:
        if _DEFAULT_STORE is None:
            _DEFAULT_STORE = VisualizationStore()
        return _DEFAULT_STORE


def reset_store() -> VisualizationStore:
    global _DEFAULT_STORE
    with _DEFAULT_LOCK:
        _DEFAULT_STORE = VisualizationStore()
        return _DEFAULT_STORE


__all__ = ["StateSnapshot", "VisualizationStore", "get_store", "reset_store"]
