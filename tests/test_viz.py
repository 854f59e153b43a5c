from __future__ import annotations

import json

import matplotlib.pyplot as plt

from boulderviz.attempts import simulate_attempts
from boulderviz.geometry import PrimitiveKind, Scene, VisualizerSettings, generate
from boulderviz.signal import detect_moves
from boulderviz.viz import render_scene_png


def test_render_scene_png_writes_image_and_spec(tmp_path, example_samples) -> None:
    settings = VisualizerSettings.from_mapping(
        {"ringCount": 5, "curveResolution": 48, "maxAttempts": 3, "showMoveSegments": True}
    )
    moves = detect_moves(example_samples, settings.move_threshold, settings.min_move_duration)
    scene = generate(moves, simulate_attempts("b1", 3), settings)
    scene.by_kind(PrimitiveKind.ATTEMPT)[0].visible = False

    png = tmp_path / "scene.png"
    spec_path = tmp_path / "scene.json"
    fig, spec = render_scene_png(scene, save=str(png), title="b1", save_viz_spec=str(spec_path))
    plt.close(fig)

    assert png.exists() and png.stat().st_size > 0
    assert spec["kind"] == "boulder.scene"
    assert spec["version"]
    assert spec["meta"]["moves"] == 3
    assert spec["primitives"] == {"ring": 5, "marker": 3, "attempt": 2, "segment": 6, "label": 1}
    assert json.loads(spec_path.read_text(encoding="utf-8"))["primitives"] == spec["primitives"]


def test_render_empty_scene() -> None:
    fig, spec = render_scene_png(Scene(meta={"move_count": 1}))
    plt.close(fig)
    assert sum(spec["primitives"].values()) == 0
    assert spec["meta"]["moves"] == 1
