"""Scene generation: finiteness, dropping and material patching."""

from __future__ import annotations

import numpy as np
import pytest

from boulderviz.attempts import simulate_attempts
from boulderviz.geometry import PrimitiveKind, VisualizerSettings, animate, generate
from boulderviz.geometry.builders import build_ring, enhance_dynamics
from boulderviz.geometry.curves import catmull_rom, tube_mesh
from boulderviz.model import AccelerationRange, Move


def _move(index: int, intensity: float, crux: bool = False) -> Move:
    return Move(
        index=index,
        time=float(index),
        end_time=float(index) + 0.2,
        intensity=intensity,
        is_crux=crux,
        acceleration_range=AccelerationRange(min=10.0, max=20.0, avg=15.0),
        peak_magnitude=20.0,
    )


@pytest.fixture
def moves() -> list[Move]:
    return [_move(0, 0.0), _move(1, 0.4), _move(2, 1.0, crux=True), _move(3, 0.2), _move(4, 0.7)]


@pytest.fixture
def small_settings() -> VisualizerSettings:
    return VisualizerSettings.from_mapping({"ringCount": 8, "curveResolution": 64, "maxAttempts": 6})


def test_scene_contains_every_primitive_kind(moves, small_settings) -> None:
    settings = small_settings.merged({"showMoveSegments": True})
    scene = generate(moves, simulate_attempts("b1", 6), settings)
    assert len(scene.by_kind(PrimitiveKind.RING)) == 8
    assert len(scene.by_kind(PrimitiveKind.MARKER)) == len(moves)
    assert len(scene.by_kind(PrimitiveKind.ATTEMPT)) == 6
    assert len(scene.by_kind(PrimitiveKind.SEGMENT)) == 2 * len(moves)
    (label,) = scene.by_kind("label")
    assert label.text == str(len(moves))
    assert scene.is_finite()
    low, high = scene.bounds()
    assert np.all(high > low)


def test_generate_never_emits_non_finite_coordinates(moves) -> None:
    settings = VisualizerSettings.from_mapping(
        {"ringCount": 30, "dynamicsMultiplier": 20.0, "organicNoise": 5.0, "cruxEmphasis": 20.0, "depthEffect": 10.0}
    )
    scene = generate(moves, simulate_attempts("noisy", 20), settings)
    for primitive in scene:
        assert np.all(np.isfinite(primitive.path))
        assert np.all(np.isfinite(primitive.vertices))


def test_fewer_than_two_moves_is_an_empty_scene(moves, small_settings) -> None:
    assert generate(moves[:1], [], small_settings).is_empty
    assert generate([], [], small_settings).is_empty


def test_ring_with_non_finite_points_is_dropped(small_settings) -> None:
    broken = [_move(0, 0.0), _move(1, float("nan")), _move(2, float("nan"))]
    assert build_ring(3, broken, small_settings) is None
    scene = generate(broken, [], small_settings)
    assert scene.by_kind(PrimitiveKind.RING) == ()
    assert scene.meta["dropped_rings"] == small_settings.ring_count


def test_visibility_toggles_remove_primitives(moves, small_settings) -> None:
    settings = small_settings.merged(
        {"showRings": False, "showAttemptLines": False, "showMovePositionLines": False, "showCenterLabel": False}
    )
    assert generate(moves, simulate_attempts("b1", 6), settings).is_empty


def test_enhancement_curve_breakpoints() -> None:
    values = enhance_dynamics(np.array([0.2, 0.3, 0.6, 1.0]), 0.0)
    assert values.tolist() == pytest.approx([0.02, 0.03, 0.48, 0.48 + 0.4 ** 2.5 * 8.0])
    assert float(enhance_dynamics(0.5, 1.0)) == pytest.approx((0.03 + 0.2 * 1.5) * 2.2)


def test_crux_region_is_coloured_toward_crux_colour(moves, small_settings) -> None:
    scene = generate(moves, [], small_settings)
    ring = scene.get("ring:7")
    assert ring is not None
    assert ring.crux_influence.max() == pytest.approx(1.0, abs=0.1)
    assert ring.crux_influence.min() == 0.0
    crux = np.array(small_settings.rgb("crux_color"))
    nearest = ring.colors[int(np.argmax(ring.crux_influence))]
    assert np.allclose(nearest, crux, atol=0.1)


def test_ring_opacity_fades_toward_centre(moves, small_settings) -> None:
    scene = generate(moves, [], small_settings)
    rings = scene.by_kind(PrimitiveKind.RING)
    assert rings[0].opacity == pytest.approx(0.1)
    assert rings[-1].opacity > rings[1].opacity


def test_material_patch_moves_depth_without_changing_layout(moves, small_settings) -> None:
    scene = generate(moves, [], small_settings)
    ring = scene.get("ring:5")
    xy_before = ring.path[:, :2].copy()
    ring.apply_materials(small_settings.merged({"depthEffect": 0.0, "opacity": 0.4}))
    assert np.allclose(ring.path[:, 2], 0.0)
    assert np.allclose(ring.path[:, :2], xy_before)
    assert ring.opacity < 0.4 + 1e-6


def test_attempt_alpha_ramps_from_centre(moves, small_settings) -> None:
    scene = generate(moves, simulate_attempts("b1", 6), small_settings)
    for attempt in scene.by_kind(PrimitiveKind.ATTEMPT):
        assert attempt.alphas[0] == 0.0
        assert attempt.alphas[-1] == pytest.approx(1.0)
        assert np.all(np.diff(attempt.alphas) >= 0)
        assert attempt.end_dot_size == pytest.approx(0.015 + 0.03 * attempt.completion_percent)


def test_longer_attempts_reach_further(moves, small_settings) -> None:
    scene = generate(moves, simulate_attempts("reach", 40), small_settings)
    attempts = sorted(scene.by_kind(PrimitiveKind.ATTEMPT), key=lambda a: a.completion_percent)
    radius = [float(np.linalg.norm(a.end_point[:2])) for a in attempts]
    assert radius[0] < radius[-1]


def test_start_marker_is_distinct(moves, small_settings) -> None:
    scene = generate(moves, [], small_settings)
    start = scene.get("marker:0")
    normal = scene.get("marker:1")
    crux = scene.get("marker:2")
    assert start.color == small_settings.rgb("start_color")
    assert crux.color == small_settings.rgb("crux_color")
    assert normal.color == small_settings.rgb("move_color")
    assert start.dot_radius == pytest.approx(2 * normal.dot_radius)


def test_animate_scales_rings_and_rotates(moves, small_settings) -> None:
    scene = generate(moves, [], small_settings.merged({"rotationSpeed": 1.0}))
    assert animate(scene, 2.0, small_settings.merged({"rotationSpeed": 1.0}))
    assert scene.rotation == pytest.approx(1.0)
    scales = {ring.scale for ring in scene.by_kind(PrimitiveKind.RING)}
    assert len(scales) > 1
    assert not animate(scene, 3.0, small_settings.merged({"animationEnabled": False}))
    assert scene.rotation == pytest.approx(1.0)


def test_catmull_rom_passes_through_control_points() -> None:
    square = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [-1.0, 0.0, 0.0], [0.0, -1.0, 0.0]])
    curve, u = catmull_rom(square, 16, closed=True)
    assert curve.shape == (16, 3)
    assert np.allclose(curve[::4], square)
    open_curve, _ = catmull_rom(square, 10, closed=False)
    assert np.allclose(open_curve[0], square[0])
    assert np.allclose(open_curve[-1], square[-1])


def test_tube_mesh_shapes() -> None:
    path = np.column_stack([np.linspace(0, 1, 5), np.zeros(5), np.zeros(5)])
    vertices, triangles = tube_mesh(path, 0.1)
    assert vertices.shape == (5 * 8, 3)
    assert triangles.shape == (4 * 8 * 2, 3)
    assert triangles.max() < vertices.shape[0]
    radial = np.linalg.norm(vertices[:, 1:], axis=1)
    assert np.allclose(radial, 0.1, atol=1e-6)
