from __future__ import annotations

import pytest

from boulderviz.geometry.settings import DEFAULTS, OPTIONS, VisualizerSettings, hex_to_rgb
from boulderviz.live.state_reducer import (
    IMMEDIATE_KEYS,
    Invalidation,
    SettingsDelta,
    classify_keys,
    diff_settings,
)


def test_defaults_match_option_table() -> None:
    assert DEFAULTS.ring_count == 59
    assert DEFAULTS.move_threshold == 12.0
    assert DEFAULTS.get("cruxColor") == "#f59e0b"
    assert set(DEFAULTS.to_mapping()) == {spec.key for spec in OPTIONS}


def test_merge_accepts_camel_and_snake_case_and_ignores_unknown() -> None:
    merged = DEFAULTS.merged({"ringCount": 12, "center_fade": 0.5, "bogus": 1})
    assert merged.ring_count == 12
    assert merged.center_fade == 0.5
    assert DEFAULTS.ring_count == 59
    assert DEFAULTS.merged({"bogus": 3}) is DEFAULTS


def test_out_of_range_values_are_clamped() -> None:
    merged = VisualizerSettings.from_mapping({"opacity": 4.0, "ringCount": -3, "curveResolution": 3.6})
    assert merged.opacity == 1.0
    assert merged.ring_count == 1
    assert merged.curve_resolution == 16


def test_invalid_values_keep_previous() -> None:
    merged = DEFAULTS.merged({"moveColor": "teal", "ringSpacing": "wide", "dotSize": float("nan")})
    assert merged == DEFAULTS


def test_bool_coercion() -> None:
    merged = DEFAULTS.merged({"showRings": "false", "liquidEffect": 0, "showMoveSegments": "yes"})
    assert merged.show_rings is False
    assert merged.liquid_effect is False
    assert merged.show_move_segments is True


def test_hex_to_rgb() -> None:
    assert hex_to_rgb("#ff0000") == (1.0, 0.0, 0.0)
    assert hex_to_rgb("#0f0") == (0.0, 1.0, 0.0)


def test_diff_is_per_field() -> None:
    changed = diff_settings(DEFAULTS.merged({"opacity": 0.3, "ringCount": 10}), DEFAULTS)
    assert changed == {"opacity", "ring_count"}
    assert diff_settings(DEFAULTS, DEFAULTS) == frozenset()
    assert "ring_count" in diff_settings(DEFAULTS, None)


@pytest.mark.parametrize(
    "keys, expected",
    [
        ((), Invalidation.NONE),
        (("opacity", "center_fade", "depth_effect"), Invalidation.MATERIAL),
        (("ring_count",), Invalidation.STRUCTURAL),
        (("opacity", "show_attempt_lines"), Invalidation.STRUCTURAL),
        (("combined_size",), Invalidation.STRUCTURAL),
        (("move_threshold",), Invalidation.STRUCTURAL),
    ],
)
def test_classify_keys(keys, expected) -> None:
    assert classify_keys(keys) is expected


def test_delta_flags_immediate_and_detection_changes() -> None:
    delta = SettingsDelta.between(DEFAULTS.merged({"combinedSize": 2.0}), DEFAULTS)
    assert delta.immediate and not delta.redetect
    assert "combined_size" in IMMEDIATE_KEYS
    delta = SettingsDelta.between(DEFAULTS.merged({"minMoveDuration": 1.0}), DEFAULTS)
    assert delta.redetect
    assert delta.invalidation is Invalidation.STRUCTURAL
