"""Typed scene primitives handed to renderers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

import numpy as np

from .curves import tube_mesh
from .settings import VisualizerSettings, hex_to_rgb


class PrimitiveKind(str, Enum):
    RING = "ring"
    MARKER = "marker"
    ATTEMPT = "attempt"
    SEGMENT = "segment"
    LABEL = "label"


class MarkerRole(str, Enum):
    START = "start"
    CRUX = "crux"
    NORMAL = "normal"


ROLE_COLOR_ATTR = {
    MarkerRole.START: "start_color",
    MarkerRole.CRUX: "crux_color",
    MarkerRole.NORMAL: "move_color",
}

MIN_RING_OPACITY = 0.1
CENTER_FADE_EXPONENT = 2.5
SEGMENT_COLOR = "#404040"
SEGMENT_RIM_COLOR = "#606060"
LABEL_OPACITY = 0.95


def _empty_f4(cols: int = 3) -> np.ndarray:
    return np.zeros((0, cols), dtype="f4")


@dataclass(eq=False)
class ScenePrimitive:
    """Base for everything a ``Scene`` holds.

    ``path`` is the centre line a simple renderer can draw; ``vertices`` and
    ``triangles`` are the extruded mesh when there is one.
    """

    key: str
    kind: PrimitiveKind
    path: np.ndarray = field(default_factory=_empty_f4)
    vertices: np.ndarray = field(default_factory=_empty_f4)
    triangles: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype="u4"))
    color: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    opacity: float = 1.0
    visible: bool = True
    meta: Dict[str, Any] = field(default_factory=dict)

    def apply_materials(self, settings: VisualizerSettings) -> None:
        """Refresh appearance from ``settings`` without touching topology."""

    def extent(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        pts = self.vertices if self.vertices.size else self.path
        if pts.size == 0:
            return None
        return pts.min(axis=0), pts.max(axis=0)


@dataclass(eq=False)
class RingPrimitive(ScenePrimitive):
    ring_index: int = 0
    ring_count: int = 1
    tube_radius: float = 0.0
    base_path: np.ndarray = field(default_factory=_empty_f4)
    depth_unit: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype="f4"))
    crux_influence: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype="f4"))
    colors: np.ndarray = field(default_factory=_empty_f4)
    scale: float = 1.0
    depth_effect: float = 0.0

    def opacity_for(self, settings: VisualizerSettings) -> float:
        ratio = self.ring_index / max(1, self.ring_count)
        value = settings.opacity * (1.0 - ratio * 0.3)
        value *= 1.0 - settings.center_fade * (1.0 - ratio) ** CENTER_FADE_EXPONENT
        return max(MIN_RING_OPACITY, value)

    def apply_depth(self, depth_effect: float) -> None:
        if depth_effect == self.depth_effect and self.vertices.size:
            return
        path = self.base_path.astype(float)
        path[:, 2] = self.depth_unit * depth_effect
        self.path = path.astype("f4")
        self.vertices, self.triangles = tube_mesh(path, self.tube_radius, closed=True)
        self.depth_effect = depth_effect

    def apply_materials(self, settings: VisualizerSettings) -> None:
        base = np.array(settings.rgb("move_color"), dtype="f4")
        crux = np.array(settings.rgb("crux_color"), dtype="f4")
        self.colors = (base[None, :] + (crux - base)[None, :] * self.crux_influence[:, None]).astype("f4")
        self.color = tuple(float(c) for c in base)  # type: ignore[assignment]
        self.opacity = self.opacity_for(settings)
        self.apply_depth(settings.depth_effect)


@dataclass(eq=False)
class MarkerPrimitive(ScenePrimitive):
    move_index: int = 0
    role: MarkerRole = MarkerRole.NORMAL
    dot_center: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype="f4"))
    dot_radius: float = 0.0
    intensity: float = 0.0
    dot_opacity: float = 1.0

    def apply_materials(self, settings: VisualizerSettings) -> None:
        self.color = settings.rgb(ROLE_COLOR_ATTR[self.role])
        self.opacity = settings.move_line_opacity
        self.dot_opacity = 1.0 if self.role is MarkerRole.START else settings.move_line_opacity


@dataclass(eq=False)
class AttemptPrimitive(ScenePrimitive):
    attempt_index: int = 0
    completion_percent: float = 0.0
    tube_position: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype="f4"))
    alphas: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype="f4"))
    end_point: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype="f4"))
    end_dot_size: float = 0.0
    end_dot_opacity: float = 0.0

    def apply_materials(self, settings: VisualizerSettings) -> None:
        ramp = self.tube_position * settings.attempt_fade_strength * 3.0 * settings.attempt_opacity
        self.alphas = np.clip(ramp, 0.0, 1.0).astype("f4")
        self.opacity = settings.attempt_opacity
        self.end_dot_opacity = settings.attempt_opacity * 0.9
        self.color = (1.0, 1.0, 1.0)


@dataclass(eq=False)
class SegmentPrimitive(ScenePrimitive):
    """Background annular sector behind one move; ``rim`` marks the outer band."""

    move_index: int = 0
    start_angle: float = 0.0
    end_angle: float = 0.0
    rim: bool = False

    def apply_materials(self, settings: VisualizerSettings) -> None:
        if self.rim:
            self.color = hex_to_rgb(SEGMENT_RIM_COLOR)
            self.opacity = min(1.0, settings.segment_opacity * 1.7)
        else:
            self.color = hex_to_rgb(SEGMENT_COLOR)
            self.opacity = settings.segment_opacity


@dataclass(eq=False)
class LabelPrimitive(ScenePrimitive):
    text: str = ""
    size: float = 1.0
    position: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype="f4"))

    def apply_materials(self, settings: VisualizerSettings) -> None:
        self.color = (1.0, 1.0, 1.0)
        self.opacity = LABEL_OPACITY

    def extent(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        half = np.array([self.size / 2.0, self.size / 2.0, 0.0], dtype="f4")
        return self.position - half, self.position + half


@dataclass(eq=False)
class Scene:
    """Ordered primitives plus the group transform animated per frame."""

    primitives: Tuple[ScenePrimitive, ...] = ()
    rotation: float = 0.0
    meta: Dict[str, Any] = field(default_factory=dict)

    def __iter__(self) -> Iterator[ScenePrimitive]:
        return iter(self.primitives)

    def __len__(self) -> int:
        return len(self.primitives)

    @property
    def is_empty(self) -> bool:
        return not self.primitives

    def by_kind(self, kind: PrimitiveKind | str) -> Tuple[ScenePrimitive, ...]:
        wanted = PrimitiveKind(kind)
        return tuple(p for p in self.primitives if p.kind is wanted)

    def get(self, key: str) -> Optional[ScenePrimitive]:
        for primitive in self.primitives:
            if primitive.key == key:
                return primitive
        return None

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Axis-aligned ``(min, max)`` over every primitive; zeros when empty."""

        lows, highs = [], []
        for primitive in self.primitives:
            ext = primitive.extent()
            if ext is None:
                continue
            lows.append(ext[0])
            highs.append(ext[1])
        if not lows:
            return np.zeros(3, dtype="f4"), np.zeros(3, dtype="f4")
        return np.min(lows, axis=0), np.max(highs, axis=0)

    def is_finite(self) -> bool:
        for primitive in self.primitives:
            for arr in (primitive.path, primitive.vertices):
                if arr.size and not np.all(np.isfinite(arr)):
                    return False
        return math.isfinite(self.rotation)


__all__ = [
    "AttemptPrimitive",
    "LabelPrimitive",
    "MarkerPrimitive",
    "MarkerRole",
    "PrimitiveKind",
    "RingPrimitive",
    "Scene",
    "ScenePrimitive",
    "SegmentPrimitive",
]
