"""Debounced settings application deciding between rebuild, patch and render."""

from __future__ import annotations

import logging
import threading
from time import perf_counter
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from ..config import debounce_window
from ..geometry.settings import VisualizerSettings
from .state_reducer import Invalidation, SettingsDelta
from .state_store import VisualizationStore

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


class InvalidationTarget(Protocol):
    def regenerate(self) -> None: ...

    def patch_materials(self) -> None: ...

    def render(self) -> None: ...


class InvalidationScheduler:
    """Coalesces partial settings and applies them once the window closes.

    Within ``window`` seconds of the last ``apply`` later values win key by key.
    ``poll`` flushes when the window has elapsed; a zero window applies
    immediately.
    """

    def __init__(
        self,
        store: VisualizationStore,
        target: InvalidationTarget,
        *,
        clock: Clock = perf_counter,
        window: Optional[float] = None,
    ) -> None:
        self.store = store
        self.target = target
        self._clock = clock
        self.window = debounce_window() if window is None else max(0.0, float(window))
        self._pending: Dict[str, Any] = {}
        self._deadline: Optional[float] = None
        self._lock = threading.RLock()
        self._last_applied: VisualizerSettings = store.snapshot().settings
        self.history: list = []

    @property
    def last_applied(self) -> VisualizerSettings:
        return self._last_applied

    @property
    def pending(self) -> Mapping[str, Any]:
        return dict(self._pending)

    def due(self) -> bool:
        with self._lock:
            return self._deadline is not None and self._clock() >= self._deadline

    def rebase(self, settings: VisualizerSettings) -> None:
        """Adopt ``settings`` as applied without triggering any work."""

        with self._lock:
            self._last_applied = settings

    def apply(self, partial: Mapping[str, Any]) -> Optional[SettingsDelta]:
        if not partial:
            return None
        with self._lock:
            if self._pending:
                LOGGER.debug("coalescing %d pending keys with %d new", len(self._pending), len(partial))
            self._pending.update(partial)
            self._deadline = self._clock() + self.window
            if self.window > 0.0:
                return None
        return self.flush()

    def poll(self) -> Optional[SettingsDelta]:
        if not self.due():
            return None
        return self.flush()

    def cancel(self) -> int:
        with self._lock:
            dropped = len(self._pending)
            self._pending.clear()
            self._deadline = None
        if dropped:
            LOGGER.debug("cancelled %d pending setting keys", dropped)
        return dropped

    def flush(self) -> Optional[SettingsDelta]:
        """Apply whatever is pending now, regardless of the window."""

        with self._lock:
            if not self._pending:
                self._deadline = None
                return None
            partial = self._pending
            self._pending = {}
            self._deadline = None
            previous = self._last_applied
            current = previous.merged(partial)
            delta = SettingsDelta.between(current, previous)
            self._last_applied = current
            self.history.append({"changed": sorted(delta.changed), "invalidation": delta.invalidation.name})

        if delta.invalidation is Invalidation.NONE:
            LOGGER.debug("settings unchanged; render only")
            self.target.render()
            return delta

        self.store.set_settings(current, delta.invalidation)
        if delta.invalidation is Invalidation.STRUCTURAL:
            LOGGER.debug("structural change %s", sorted(delta.changed))
            self.target.regenerate()
        else:
            LOGGER.debug("material change %s", sorted(delta.changed))
            self.target.patch_materials()
        return delta


__all__ = ["InvalidationScheduler", "InvalidationTarget"]
