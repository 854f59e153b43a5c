"""Translate moves, attempts and settings into scene primitives."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from ..model import Attempt, Move
from .curves import catmull_rom, finite_rows, tube_mesh
from .scene import (
    AttemptPrimitive,
    LabelPrimitive,
    MarkerPrimitive,
    MarkerRole,
    PrimitiveKind,
    RingPrimitive,
    Scene,
    ScenePrimitive,
    SegmentPrimitive,
)
from .settings import VisualizerSettings

LOGGER = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi
TOP_ANGLE = math.pi / 2.0
MIN_MOVES = 2
MIN_CURVE_POINTS = 3
RING_SPACING_PAD = 0.001
RING_TUBE_SCALE = 0.02
ATTEMPT_TUBE_SCALE = 0.03
ATTEMPT_RADIUS_PAD = 0.5
SEGMENT_RADIUS_PAD = 2.0
SEGMENT_RIM_WIDTH = 0.3
SEGMENT_Z = -0.5
SEGMENT_RIM_Z = -0.4
CRUX_FALLOFF = 15.0
CRUX_COLOR_WINDOW = 0.12
LIQUID_AMPLITUDE = 0.05
LABEL_SCALE = 2.5


def enhance_dynamics(dynamics: np.ndarray | float, ring_progress: float) -> np.ndarray:
    """Three-segment response: damp below 0.3, linear to 0.6, steep above."""

    d = np.asarray(dynamics, dtype=float)
    low = d * 0.1
    mid = 0.03 + (d - 0.3) * 1.5
    high = 0.48 + np.power(np.maximum(d - 0.6, 0.0), 2.5) * 8.0
    out = np.where(d < 0.3, low, np.where(d < 0.6, mid, high))
    return out * (1.0 + ring_progress * 1.2)


def _circular_distance(a: np.ndarray, b: float) -> np.ndarray:
    dist = np.abs(a - b)
    return np.minimum(dist, 1.0 - dist)


def _crux_positions(moves: Sequence[Move]) -> List[tuple[float, float]]:
    count = len(moves)
    return [(j / count, move.intensity) for j, move in enumerate(moves) if move.is_crux]


def crux_influence(positions: np.ndarray, cruxes: Sequence[tuple[float, float]]) -> np.ndarray:
    """Linear colour weight within ``CRUX_COLOR_WINDOW`` of a turn of any crux."""

    influence = np.zeros_like(np.asarray(positions, dtype=float))
    for position, _ in cruxes:
        dist = _circular_distance(positions, position)
        influence = np.maximum(influence, np.where(dist < CRUX_COLOR_WINDOW, 1.0 - dist / CRUX_COLOR_WINDOW, 0.0))
    return influence


def _angular_position(curve: np.ndarray) -> np.ndarray:
    angle = np.arctan2(curve[:, 1], curve[:, 0]) - TOP_ANGLE
    return np.mod(angle / TWO_PI, 1.0)


def _normalized_dynamics(moves: Sequence[Move]) -> tuple[np.ndarray, float, float]:
    values = np.array([move.intensity for move in moves], dtype=float)
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return values, 0.0, 0.0
    low = float(finite.min())
    return values, low, float(finite.max()) - low


def build_ring(
    ring_index: int,
    moves: Sequence[Move],
    settings: VisualizerSettings,
) -> Optional[RingPrimitive]:
    """Build one deformed ring, or ``None`` when it degenerates."""

    move_count = len(moves)
    base = (settings.base_radius + ring_index * (settings.ring_spacing + RING_SPACING_PAD)) * settings.combined_size
    if not math.isfinite(base) or base <= 0.0:
        LOGGER.warning("ring %d skipped: degenerate base radius %r", ring_index, base)
        return None

    detail = min(max(move_count * 4, 8), 32)
    norm = np.arange(detail, dtype=float) / detail
    angle = norm * TWO_PI + TOP_ANGLE
    slot = norm * move_count
    first = np.floor(slot).astype(int) % move_count
    second = (first + 1) % move_count
    lerp = slot - np.floor(slot)

    values, low, span = _normalized_dynamics(moves)
    raw = values[first] * (1.0 - lerp) + values[second] * lerp
    dynamics = (raw - low) / span if span > 0.0 else np.where(np.isfinite(raw), 0.5, np.nan)

    progress = ring_index / settings.ring_count
    effect = enhance_dynamics(dynamics, progress) * settings.dynamics_multiplier
    reach = effect * progress ** 0.6
    radius = base + reach

    if settings.organic_noise > 0.0:
        phase = norm * math.pi
        noise = (
            np.sin(phase * 200.0) * 0.005
            + np.sin(phase * 400.0) * 0.003
            + np.sin(phase * 800.0) * 0.002
            + np.sin(phase * 1600.0) * 0.001
        )
        radius = radius + noise * reach * settings.organic_noise * 10.0

    boost = np.zeros_like(norm)
    for position, intensity in _crux_positions(moves):
        strength = np.exp(-_circular_distance(norm, position) * CRUX_FALLOFF)
        boost = np.maximum(boost, intensity * settings.crux_emphasis * 0.3 * strength)
    radius = radius + boost * progress

    if settings.liquid_effect:
        frequency = 20.0 * settings.liquid_size
        wave = np.sin(norm * math.pi * frequency + ring_index * 0.5) * LIQUID_AMPLITUDE
        wave = wave + np.cos(norm * math.pi * frequency * 0.75 + ring_index * 0.3) * LIQUID_AMPLITUDE * 0.6
        radius = radius + wave * reach

    depth_unit = (
        np.sin(norm * TWO_PI) * progress
        + np.sin(norm * 2.0 * TWO_PI + ring_index * 0.3) * 0.3 * progress
        + np.cos(norm * 3.0 * TWO_PI + ring_index * 0.7) * 0.15 * progress
        + (dynamics - 0.5) * 0.4 * progress
    )
    control = np.column_stack([np.cos(angle) * radius, np.sin(angle) * radius, depth_unit])
    mask = finite_rows(control)
    if not np.all(mask):
        LOGGER.debug("ring %d dropped %d non-finite points", ring_index, int(np.count_nonzero(~mask)))
    control = control[mask]
    if control.shape[0] < MIN_CURVE_POINTS:
        LOGGER.warning("ring %d dropped: %d valid points", ring_index, control.shape[0])
        return None

    curve, _ = catmull_rom(control, settings.curve_resolution, closed=True, knot_dims=2)
    curve = curve[finite_rows(curve)]
    if curve.shape[0] < MIN_CURVE_POINTS:
        LOGGER.warning("ring %d dropped: spline produced %d finite samples", ring_index, curve.shape[0])
        return None

    base_path = curve.copy()
    base_path[:, 2] = 0.0
    return RingPrimitive(
        key=f"ring:{ring_index}",
        kind=PrimitiveKind.RING,
        ring_index=ring_index,
        ring_count=settings.ring_count,
        tube_radius=RING_TUBE_SCALE * settings.line_width,
        base_path=base_path.astype("f4"),
        depth_unit=curve[:, 2].astype("f4"),
        crux_influence=crux_influence(_angular_position(curve), _crux_positions(moves)).astype("f4"),
        meta={"base_radius": base, "progress": progress},
    )


def _role(move: Move, index: int) -> MarkerRole:
    if index == 0:
        return MarkerRole.START
    return MarkerRole.CRUX if move.is_crux else MarkerRole.NORMAL


def build_markers(moves: Sequence[Move], settings: VisualizerSettings) -> List[MarkerPrimitive]:
    """One radial line per move; start is larger, crux lines longer and thicker."""

    count = len(moves)
    inner = settings.inner_radius
    markers: List[MarkerPrimitive] = []
    for index, move in enumerate(moves):
        role = _role(move, index)
        enhanced = float(np.clip(enhance_dynamics(move.intensity, 0.0), 0.0, 1.0))
        length = settings.move_line_length * settings.combined_size * (0.5 + 0.5 * enhanced)
        thickness = 0.01 * settings.move_line_width * settings.line_width * (1.0 + enhanced)
        if role is MarkerRole.CRUX:
            length *= 1.2
            thickness *= 1.5
        elif role is MarkerRole.START:
            length = settings.move_line_length * settings.combined_size
        angle = index / count * TWO_PI + TOP_ANGLE
        direction = np.array([math.cos(angle), math.sin(angle), 0.0])
        path = np.vstack([direction * inner, direction * (inner + length)])
        if not np.all(np.isfinite(path)) or length <= 0.0:
            LOGGER.warning("marker %d skipped: degenerate length %r", index, length)
            continue
        vertices, triangles = tube_mesh(path, thickness)
        dot = settings.dot_size * (2.0 if role is MarkerRole.START else 1.0)
        markers.append(
            MarkerPrimitive(
                key=f"marker:{index}",
                kind=PrimitiveKind.MARKER,
                path=path.astype("f4"),
                vertices=vertices,
                triangles=triangles,
                move_index=index,
                role=role,
                dot_center=path[-1].astype("f4"),
                dot_radius=dot,
                intensity=move.intensity,
            )
        )
    return markers


def build_attempt(
    attempt: Attempt,
    settings: VisualizerSettings,
) -> Optional[AttemptPrimitive]:
    """Wavy tube from the inner radius out to the attempt's completion radius."""

    base = settings.inner_radius
    ceiling = (base + settings.ring_count * settings.ring_spacing + ATTEMPT_RADIUS_PAD) * settings.attempt_radius
    completion = attempt.completion_percent
    end = base + (ceiling - base) * completion ** 1.8
    segments = max(20, int(math.floor((end - base) * 4)))
    t = np.linspace(0.0, 1.0, segments + 1)
    radius = base + (end - base) * t

    i = attempt.index
    waviness = settings.attempt_waviness
    wave = (
        np.sin(t * TWO_PI + i + attempt.phase) * waviness * t * 0.6
        + np.sin(t * 2.0 * TWO_PI + i * 2 + attempt.phase) * waviness * t * 0.3
        + np.sin(t * 3.0 * TWO_PI + i * 3 + attempt.phase) * waviness * t * 0.1
    )
    angle = attempt.angle + wave
    lift = settings.attempt_dot_z_offset_max * (1.0 - completion) * settings.attempt_dot_z_effect_strength * t
    control = np.column_stack([np.cos(angle) * radius, np.sin(angle) * radius, lift])
    control = control[finite_rows(control)]
    if control.shape[0] < MIN_CURVE_POINTS:
        LOGGER.warning("attempt %d dropped: %d valid points", i, control.shape[0])
        return None

    tube_segments = max(64, control.shape[0] * 2)
    path, _ = catmull_rom(control, tube_segments + 1, closed=False)
    keep = finite_rows(path)
    path = path[keep]
    if path.shape[0] < MIN_CURVE_POINTS:
        LOGGER.warning("attempt %d dropped: spline produced %d finite samples", i, path.shape[0])
        return None
    position = np.linspace(0.0, 1.0, tube_segments + 1)[keep]
    vertices, triangles = tube_mesh(path, ATTEMPT_TUBE_SCALE * settings.attempt_thickness * settings.line_width)
    return AttemptPrimitive(
        key=f"attempt:{i}",
        kind=PrimitiveKind.ATTEMPT,
        path=path.astype("f4"),
        vertices=vertices,
        triangles=triangles,
        attempt_index=i,
        completion_percent=completion,
        tube_position=position.astype("f4"),
        end_point=path[-1].astype("f4"),
        end_dot_size=0.015 + 0.03 * completion,
    )


def _sector(
    inner: float, outer: float, start: float, sweep: float, z: float
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    steps = max(8, int(math.floor(sweep / (math.pi / 16))))
    theta = start + np.linspace(0.0, sweep, steps + 1)
    ring_in = np.column_stack([np.cos(theta) * inner, np.sin(theta) * inner, np.full_like(theta, z)])
    ring_out = np.column_stack([np.cos(theta) * outer, np.sin(theta) * outer, np.full_like(theta, z)])
    vertices = np.empty((2 * (steps + 1), 3))
    vertices[0::2] = ring_in
    vertices[1::2] = ring_out
    base = np.arange(steps) * 2
    triangles = np.concatenate(
        [np.column_stack([base, base + 1, base + 2]), np.column_stack([base + 1, base + 3, base + 2])]
    )
    outline = np.vstack([ring_in, ring_out[::-1], ring_in[:1]])
    return vertices, triangles, outline


def build_segments(moves: Sequence[Move], settings: VisualizerSettings) -> List[SegmentPrimitive]:
    """Background sectors, one per move, with a lighter rim band at the outer edge."""

    count = len(moves)
    inner = settings.inner_radius
    outer = (settings.base_radius + settings.ring_count * settings.ring_spacing + SEGMENT_RADIUS_PAD) * settings.combined_size
    if inner >= outer:
        LOGGER.warning("move segments skipped: inner radius %.3f >= outer %.3f", inner, outer)
        return []
    per_move = TWO_PI / count
    gap = min(per_move * settings.segment_gap, per_move * 0.8)
    sweep = max(per_move - gap, 0.01)
    rim_inner = max(inner, outer - SEGMENT_RIM_WIDTH)

    segments: List[SegmentPrimitive] = []
    for index in range(count):
        start = index / count * TWO_PI + TOP_ANGLE + gap / 2.0
        for rim, r_in, z in ((False, inner, SEGMENT_Z), (True, rim_inner, SEGMENT_RIM_Z)):
            vertices, triangles, outline = _sector(r_in, outer, start, sweep, z)
            segments.append(
                SegmentPrimitive(
                    key=f"segment:{index}{':rim' if rim else ''}",
                    kind=PrimitiveKind.SEGMENT,
                    path=outline.astype("f4"),
                    vertices=vertices.astype("f4"),
                    triangles=triangles.astype("u4"),
                    move_index=index,
                    start_angle=start,
                    end_angle=start + sweep,
                    rim=rim,
                )
            )
    return segments


def build_label(moves: Sequence[Move], settings: VisualizerSettings) -> LabelPrimitive:
    return LabelPrimitive(
        key="label:center",
        kind=PrimitiveKind.LABEL,
        text=str(len(moves)),
        size=LABEL_SCALE * settings.center_text_size,
        position=np.array([0.0, 0.0, 0.01], dtype="f4"),
    )


def generate(
    moves: Sequence[Move],
    attempts: Sequence[Attempt],
    settings: VisualizerSettings,
) -> Scene:
    """Build the full scene; fewer than two moves yields an empty scene."""

    if len(moves) < MIN_MOVES:
        LOGGER.warning("generate needs at least %d moves, got %d; empty scene", MIN_MOVES, len(moves))
        return Scene(meta={"move_count": len(moves)})

    primitives: List[ScenePrimitive] = []
    dropped_rings = 0
    dropped_attempts = 0

    if settings.show_move_segments:
        primitives.extend(build_segments(moves, settings))
    if settings.show_rings:
        for ring_index in range(settings.ring_count):
            ring = build_ring(ring_index, moves, settings)
            if ring is None:
                dropped_rings += 1
                continue
            primitives.append(ring)
    if settings.show_move_position_lines:
        primitives.extend(build_markers(moves, settings))
    if settings.show_attempt_lines:
        for attempt in attempts:
            built = build_attempt(attempt, settings)
            if built is None:
                dropped_attempts += 1
                continue
            primitives.append(built)
    if settings.show_center_label:
        primitives.append(build_label(moves, settings))

    for primitive in primitives:
        primitive.apply_materials(settings)

    scene = Scene(
        primitives=tuple(primitives),
        meta={
            "move_count": len(moves),
            "dropped_rings": dropped_rings,
            "dropped_attempts": dropped_attempts,
        },
    )
    LOGGER.debug(
        "generate moves=%d primitives=%d dropped_rings=%d dropped_attempts=%d",
        len(moves),
        len(primitives),
        dropped_rings,
        dropped_attempts,
    )
    return scene


def animate(scene: Scene, elapsed: float, settings: VisualizerSettings) -> bool:
    """Per-frame liquid breathing and rotation; returns ``False`` when disabled."""

    if not settings.animation_enabled:
        return False
    for primitive in scene.by_kind(PrimitiveKind.RING):
        assert isinstance(primitive, RingPrimitive)
        wobble = math.sin(elapsed * settings.liquid_speed + primitive.ring_index * 0.5)
        primitive.scale = 1.0 + wobble * 0.02 * settings.liquid_size
    scene.rotation = elapsed * settings.rotation_speed * 0.5
    return True


__all__ = [
    "animate",
    "build_attempt",
    "build_label",
    "build_markers",
    "build_ring",
    "build_segments",
    "crux_influence",
    "enhance_dynamics",
    "generate",
]
