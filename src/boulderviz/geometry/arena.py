"""Ownership of generated primitives between regenerations."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..errors import ArenaDisposedError
from .builders import animate
from .scene import Scene, ScenePrimitive
from .settings import VisualizerSettings

LOGGER = logging.getLogger(__name__)

ReleaseHook = Callable[[ScenePrimitive], None]


@dataclass(frozen=True, slots=True)
class ArenaStats:
    live: int
    adopted: int
    released: int
    generations: int
    patches: int


class ResourceArena:
    """Owns the current scene and releases every primitive exactly once.

    Adopting a new scene releases the previous one first; ``dispose`` releases
    everything and retires the arena for good.
    """

    def __init__(self, release_hook: Optional[ReleaseHook] = None) -> None:
        self._scene = Scene()
        self._live: Dict[int, ScenePrimitive] = {}
        self._release_hook = release_hook
        self._lock = threading.RLock()
        self._disposed = False
        self._adopted = 0
        self._released = 0
        self._generations = 0
        self._patches = 0

    def _check(self) -> None:
        if self._disposed:
            raise ArenaDisposedError("resource arena has been disposed")

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def scene(self) -> Scene:
        self._check()
        return self._scene

    def _release_all(self) -> int:
        released = 0
        for primitive in list(self._live.values()):
            if self._release_hook is not None:
                self._release_hook(primitive)
            released += 1
        self._live.clear()
        self._released += released
        self._scene = Scene()
        return released

    def adopt(self, scene: Scene) -> Scene:
        """Release the current primitives, then take ownership of ``scene``."""

        with self._lock:
            self._check()
            released = self._release_all()
            for primitive in scene.primitives:
                self._live[id(primitive)] = primitive
            self._adopted += len(scene.primitives)
            self._generations += 1
            self._scene = scene
            LOGGER.debug("arena adopt generation=%d released=%d live=%d", self._generations, released, len(self._live))
            return scene

    def clear(self) -> int:
        with self._lock:
            self._check()
            return self._release_all()

    def patch_materials(self, settings: VisualizerSettings) -> int:
        """Apply material settings in place; returns the number of primitives touched."""

        with self._lock:
            self._check()
            for primitive in self._scene.primitives:
                primitive.apply_materials(settings)
            self._patches += 1
            return len(self._scene.primitives)

    def animate(self, elapsed: float, settings: VisualizerSettings) -> bool:
        with self._lock:
            self._check()
            return animate(self._scene, elapsed, settings)

    def stats(self) -> ArenaStats:
        with self._lock:
            return ArenaStats(
                live=len(self._live),
                adopted=self._adopted,
                released=self._released,
                generations=self._generations,
                patches=self._patches,
            )

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            released = self._release_all()
            self._disposed = True
            LOGGER.debug("arena disposed released=%d", released)


__all__ = ["ArenaStats", "ReleaseHook", "ResourceArena"]
