"""Engine facade wiring detection, generation, the arena and the live loop."""

from __future__ import annotations

import logging
import threading
from time import perf_counter
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..attempts import simulate_attempts
from ..errors import ArenaDisposedError, BoulderVizError, SettingsRecordError
from ..geometry.arena import ReleaseHook, ResourceArena
from ..geometry.builders import generate
from ..geometry.scene import Scene
from ..geometry.settings import VisualizerSettings
from ..model import Attempt, BoulderRecord, Move
from ..persistence import SettingsRecord, SettingsRecordStore
from ..seed import DEFAULT_RANDOM, SeededRandom
from ..signal.detect import MoveSummary, detect_moves, summarize_moves
from .reconcile import ReconciliationLoop, TickAction
from .scheduler import InvalidationScheduler
from .state_reducer import Invalidation, SettingsDelta
from .state_store import StateSnapshot, VisualizationStore

LOGGER = logging.getLogger(__name__)


def _detection_params(settings: VisualizerSettings) -> Tuple[float, float]:
    return settings.move_threshold, settings.min_move_duration


class VisualizerEngine:
    """Single entry point for collaborators.

    ``on_boulder_loaded`` and ``on_settings_changed`` only record intent; the
    reconciliation tick (or a flushed settings change) does the expensive work
    and keeps built geometry in step with the store's versions.
    """

    def __init__(
        self,
        settings: Optional[VisualizerSettings] = None,
        *,
        store: Optional[VisualizationStore] = None,
        settings_store: Optional[SettingsRecordStore] = None,
        release_hook: Optional[ReleaseHook] = None,
        on_render: Optional[Callable[[Scene], None]] = None,
        rng: SeededRandom = DEFAULT_RANDOM,
        clock: Callable[[], float] = perf_counter,
        window: Optional[float] = None,
        hz: Optional[float] = None,
    ) -> None:
        self.store = store or VisualizationStore(settings)
        self.settings_store = settings_store
        self.arena = ResourceArena(release_hook)
        self.scheduler = InvalidationScheduler(self.store, self, clock=clock, window=window)
        self.loop = ReconciliationLoop(self, hz, clock=clock)
        self._on_render = on_render
        self._rng = rng
        self._attempt_cache: Dict[Tuple[Any, int], List[Attempt]] = {}
        self._built_version = -1
        self._material_version = -1
        self._lock = threading.RLock()
        self._closing = False
        self._disposed = False
        self.regenerations = 0
        self.patches = 0
        self.renders = 0

    def _check(self) -> None:
        if self._disposed:
            raise ArenaDisposedError("visualizer engine has been disposed")

    # collaborator entry points

    def on_boulder_loaded(self, record: BoulderRecord, *, restore_settings: bool = True) -> StateSnapshot:
        """Detect moves for ``record`` (unless it carries them) and publish it."""

        self._check()
        settings = self.store.snapshot().settings
        if restore_settings and self.settings_store is not None:
            saved = self._read_record(self.settings_store, record.id)
            if saved is not None:
                settings = settings.merged(saved.as_partial())
                self.store.set_settings(settings, Invalidation.STRUCTURAL)
                self.scheduler.rebase(settings)
        if record.moves:
            moves: List[Move] = list(record.moves)
            detected_with = None
        else:
            moves = detect_moves(record.samples, settings.move_threshold, settings.min_move_duration)
            detected_with = _detection_params(settings)
        LOGGER.info("boulder %r loaded with %d moves", record.id, len(moves))
        return self.store.load_boulder(record, moves, detected_with)

    def on_settings_changed(self, partial: Mapping[str, Any]) -> Optional[SettingsDelta]:
        self._check()
        return self.scheduler.apply(partial)

    def tick(self) -> TickAction:
        self._check()
        return self.loop.tick()

    def run(self, duration: Optional[float] = None) -> int:
        self._check()
        return self.loop.run(duration)

    def frame(self, elapsed: float) -> bool:
        """Advance per-frame animation on the live scene."""

        self._check()
        return self.arena.animate(elapsed, self.store.snapshot().settings)

    # reconciliation hooks

    def flush_due(self) -> None:
        self.scheduler.poll()

    def snapshot(self) -> StateSnapshot:
        return self.store.snapshot()

    def reconcile(self, snapshot: StateSnapshot) -> TickAction:
        if self._closing:
            return TickAction.IDLE
        if snapshot.version != self._built_version:
            self._rebuild(snapshot)
            return TickAction.REGENERATED
        if snapshot.material_version != self._material_version:
            self._patch(snapshot)
            return TickAction.PATCHED
        return TickAction.IDLE

    # invalidation target

    def regenerate(self) -> None:
        self._check()
        self._rebuild(self.store.snapshot())

    def patch_materials(self) -> None:
        self._check()
        self._patch(self.store.snapshot())

    def render(self) -> None:
        self._check()
        self.renders += 1
        if self._on_render is not None:
            self._on_render(self.arena.scene)

    def _attempts(self, boulder: BoulderRecord, count: int) -> List[Attempt]:
        key = (boulder.id, count)
        cached = self._attempt_cache.get(key)
        if cached is None:
            cached = simulate_attempts(boulder.id, count, rng=self._rng)
            self._attempt_cache = {key: cached}
        return cached

    def _rebuild(self, snapshot: StateSnapshot) -> None:
        with self._lock:
            if self._closing:
                LOGGER.debug("skipping regeneration; engine is shutting down")
                return
            settings = snapshot.settings
            boulder = snapshot.boulder
            if boulder is not None and snapshot.detected_with is not None:
                params = _detection_params(settings)
                if snapshot.detected_with != params:
                    LOGGER.debug("re-running detection threshold=%s min_duration=%s", *params)
                    moves = detect_moves(boulder.samples, *params)
                    snapshot = self.store.set_moves(moves, detected_with=params)

            if boulder is None:
                scene = Scene()
            else:
                attempts = self._attempts(boulder, settings.max_attempts) if settings.show_attempt_lines else []
                scene = generate(snapshot.moves, attempts, settings)
            self.arena.adopt(scene)
            self._built_version = snapshot.version
            self._material_version = snapshot.material_version
            self.regenerations += 1
            self.store.mark_clean()
            self.render()

    def _patch(self, snapshot: StateSnapshot) -> None:
        with self._lock:
            if self._closing:
                return
            self.arena.patch_materials(snapshot.settings)
            self._material_version = snapshot.material_version
            self.patches += 1
            self.store.mark_clean()
            self.render()

    # projections

    @property
    def scene(self) -> Scene:
        return self.arena.scene

    @property
    def moves(self) -> Tuple[Move, ...]:
        return self.store.snapshot().moves

    @property
    def settings(self) -> VisualizerSettings:
        return self.store.snapshot().settings

    def summary(self) -> MoveSummary:
        return summarize_moves(self.moves)

    # persistence

    def _read_record(self, records: SettingsRecordStore, boulder_id: Any) -> Optional[SettingsRecord]:
        try:
            return records.get(boulder_id)
        except SettingsRecordError as exc:
            LOGGER.warning("ignoring unreadable settings for boulder %r: %s", boulder_id, exc)
            return None

    def _require_persistence(self) -> Tuple[SettingsRecordStore, BoulderRecord]:
        self._check()
        boulder = self.store.snapshot().boulder
        if self.settings_store is None:
            raise BoulderVizError("no settings store configured")
        if boulder is None:
            raise BoulderVizError("no boulder loaded")
        return self.settings_store, boulder

    def save_settings(self) -> SettingsRecord:
        """Persist the detection settings currently applied to the loaded boulder."""

        records, boulder = self._require_persistence()
        self.scheduler.flush()
        threshold, duration = _detection_params(self.store.snapshot().settings)
        record = SettingsRecord(boulder_id=str(boulder.id), move_threshold=threshold, min_move_duration=duration)
        records.put(record)
        LOGGER.info("saved detection settings for boulder %r", boulder.id)
        return record

    def load_settings(self) -> Optional[SettingsRecord]:
        """Apply the saved detection settings for the loaded boulder, if any."""

        records, boulder = self._require_persistence()
        record = records.get(boulder.id)
        if record is not None:
            self.scheduler.apply(record.as_partial())
        return record

    # lifecycle

    def reset(self) -> None:
        self._check()
        self.scheduler.cancel()
        snapshot = self.store.reset()
        self.scheduler.rebase(snapshot.settings)
        self._attempt_cache.clear()

    def dispose(self) -> None:
        """Cancel pending debounce, stop the loop, then release every primitive."""

        if self._closing:
            return
        self._closing = True
        self.scheduler.cancel()
        self.loop.stop()
        with self._lock:
            self.arena.dispose()
            self._disposed = True
        LOGGER.debug("engine disposed after %d regenerations", self.regenerations)

    @property
    def disposed(self) -> bool:
        return self._disposed


__all__ = ["VisualizerEngine"]
