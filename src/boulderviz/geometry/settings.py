"""Visualizer settings snapshot and its option table."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

LOGGER = logging.getLogger(__name__)


class SettingClass(str, Enum):
    STRUCTURAL = "structural"
    MATERIAL = "material"
    IMMEDIATE = "immediate"
    DETECTION = "detection"


@dataclass(frozen=True, slots=True)
class OptionSpec:
    key: str
    attr: str
    kind: type
    setting_class: SettingClass
    low: float | None = None
    high: float | None = None


_S = SettingClass.STRUCTURAL
_M = SettingClass.MATERIAL

OPTIONS: Tuple[OptionSpec, ...] = (
    OptionSpec("ringCount", "ring_count", int, _S, 1, 120),
    OptionSpec("ringSpacing", "ring_spacing", float, _S, 0.0, 1.0),
    OptionSpec("baseRadius", "base_radius", float, _S, 0.05, 20.0),
    OptionSpec("combinedSize", "combined_size", float, SettingClass.IMMEDIATE, 0.1, 10.0),
    OptionSpec("curveResolution", "curve_resolution", int, _S, 16, 1024),
    OptionSpec("dynamicsMultiplier", "dynamics_multiplier", float, _S, 0.0, 20.0),
    OptionSpec("organicNoise", "organic_noise", float, _S, 0.0, 5.0),
    OptionSpec("cruxEmphasis", "crux_emphasis", float, _S, 0.0, 20.0),
    OptionSpec("liquidEffect", "liquid_effect", bool, _S),
    OptionSpec("liquidSize", "liquid_size", float, _S, 0.0, 20.0),
    OptionSpec("depthEffect", "depth_effect", float, _M, 0.0, 10.0),
    OptionSpec("opacity", "opacity", float, _M, 0.0, 1.0),
    OptionSpec("centerFade", "center_fade", float, _M, 0.0, 1.0),
    OptionSpec("lineWidth", "line_width", float, _S, 0.01, 10.0),
    OptionSpec("moveColor", "move_color", str, _M),
    OptionSpec("cruxColor", "crux_color", str, _M),
    OptionSpec("startColor", "start_color", str, _M),
    OptionSpec("showRings", "show_rings", bool, _S),
    OptionSpec("showMovePositionLines", "show_move_position_lines", bool, _S),
    OptionSpec("moveLineLength", "move_line_length", float, _S, 0.0, 20.0),
    OptionSpec("moveLineWidth", "move_line_width", float, _S, 0.1, 10.0),
    OptionSpec("moveLineOpacity", "move_line_opacity", float, _M, 0.0, 1.0),
    OptionSpec("dotSize", "dot_size", float, _S, 0.0, 2.0),
    OptionSpec("showAttemptLines", "show_attempt_lines", bool, _S),
    OptionSpec("maxAttempts", "max_attempts", int, _S, 0, 500),
    OptionSpec("attemptWaviness", "attempt_waviness", float, _S, 0.0, 2.0),
    OptionSpec("attemptThickness", "attempt_thickness", float, _S, 0.01, 10.0),
    OptionSpec("attemptRadius", "attempt_radius", float, _S, 0.1, 10.0),
    OptionSpec("attemptFadeStrength", "attempt_fade_strength", float, _M, 0.0, 10.0),
    OptionSpec("attemptOpacity", "attempt_opacity", float, _M, 0.0, 1.0),
    OptionSpec("attemptDotZOffsetMax", "attempt_dot_z_offset_max", float, _S, 0.0, 10.0),
    OptionSpec("attemptDotZEffectStrength", "attempt_dot_z_effect_strength", float, _S, 0.0, 5.0),
    OptionSpec("showMoveSegments", "show_move_segments", bool, _S),
    OptionSpec("segmentGap", "segment_gap", float, _S, 0.0, 0.2),
    OptionSpec("segmentOpacity", "segment_opacity", float, _M, 0.0, 1.0),
    OptionSpec("showCenterLabel", "show_center_label", bool, _S),
    OptionSpec("centerTextSize", "center_text_size", float, _S, 0.1, 10.0),
    OptionSpec("animationEnabled", "animation_enabled", bool, _M),
    OptionSpec("rotationSpeed", "rotation_speed", float, _M, 0.0, 10.0),
    OptionSpec("liquidSpeed", "liquid_speed", float, _M, 0.0, 10.0),
    OptionSpec("moveThreshold", "move_threshold", float, SettingClass.DETECTION, 0.01, 200.0),
    OptionSpec("minMoveDuration", "min_move_duration", float, SettingClass.DETECTION, 0.0, 10.0),
)

OPTIONS_BY_ATTR: Dict[str, OptionSpec] = {spec.attr: spec for spec in OPTIONS}
OPTIONS_BY_KEY: Dict[str, OptionSpec] = {spec.key: spec for spec in OPTIONS}

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def resolve_option(name: str) -> OptionSpec | None:
    """Look an option up by its camelCase key or snake_case attribute."""

    return OPTIONS_BY_KEY.get(name) or OPTIONS_BY_ATTR.get(name)


def hex_to_rgb(color: str) -> Tuple[float, float, float]:
    """``#rrggbb`` or ``#rgb`` to floats in ``[0, 1]``."""

    digits = color.lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return tuple(int(digits[i : i + 2], 16) / 255.0 for i in (0, 2, 4))  # type: ignore[return-value]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _coerce(spec: OptionSpec, value: Any, fallback: Any) -> Any:
    if spec.kind is bool:
        return _as_bool(value)
    if spec.kind is str:
        text = str(value).strip()
        if not _HEX_COLOR.match(text):
            LOGGER.warning("Ignoring invalid colour %s=%r", spec.key, value)
            return fallback
        return text.lower()
    try:
        number = float(value)
    except (TypeError, ValueError):
        LOGGER.warning("Ignoring non-numeric %s=%r", spec.key, value)
        return fallback
    if not math.isfinite(number):
        LOGGER.warning("Ignoring non-finite %s=%r", spec.key, value)
        return fallback
    clamped = number
    if spec.low is not None:
        clamped = max(spec.low, clamped)
    if spec.high is not None:
        clamped = min(spec.high, clamped)
    if clamped != number:
        LOGGER.debug("Clamped %s=%r to %r", spec.key, value, clamped)
    if spec.kind is int:
        return int(round(clamped))
    return clamped


@dataclass(frozen=True)
class VisualizerSettings:
    """Immutable snapshot of every visualizer option.

    Collaborators speak camelCase (``ringCount``); attributes are snake_case.
    Updates never mutate a snapshot: ``merged`` returns a new one.
    """

    ring_count: int = 59
    ring_spacing: float = 0.007
    base_radius: float = 0.85
    combined_size: float = 1.4
    curve_resolution: int = 240
    dynamics_multiplier: float = 4.5
    organic_noise: float = 1.69
    crux_emphasis: float = 1.6
    liquid_effect: bool = True
    liquid_size: float = 3.9
    depth_effect: float = 1.8
    opacity: float = 0.9
    center_fade: float = 0.9
    line_width: float = 0.6
    move_color: str = "#22d3ee"
    crux_color: str = "#f59e0b"
    start_color: str = "#00ff00"
    show_rings: bool = True
    show_move_position_lines: bool = True
    move_line_length: float = 3.0
    move_line_width: float = 2.0
    move_line_opacity: float = 0.8
    dot_size: float = 0.07
    show_attempt_lines: bool = True
    max_attempts: int = 85
    attempt_waviness: float = 0.09
    attempt_thickness: float = 0.6
    attempt_radius: float = 1.7
    attempt_fade_strength: float = 2.8
    attempt_opacity: float = 0.9
    attempt_dot_z_offset_max: float = 1.15
    attempt_dot_z_effect_strength: float = 0.5
    show_move_segments: bool = False
    segment_gap: float = 0.06
    segment_opacity: float = 0.25
    show_center_label: bool = True
    center_text_size: float = 1.0
    animation_enabled: bool = True
    rotation_speed: float = 0.0
    liquid_speed: float = 1.85
    move_threshold: float = 12.0
    min_move_duration: float = 0.5

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None = None) -> "VisualizerSettings":
        return DEFAULTS.merged(payload or {})

    def coerce_updates(self, partial: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate ``partial`` against this snapshot; returns ``{attr: value}``."""

        updates: Dict[str, Any] = {}
        for name, value in partial.items():
            spec = resolve_option(str(name))
            if spec is None:
                LOGGER.debug("Ignoring unknown setting %r", name)
                continue
            updates[spec.attr] = _coerce(spec, value, getattr(self, spec.attr))
        return updates

    def merged(self, partial: Mapping[str, Any]) -> "VisualizerSettings":
        updates = self.coerce_updates(partial)
        if not updates:
            return self
        return replace(self, **updates)

    def get(self, name: str) -> Any:
        spec = resolve_option(name)
        if spec is None:
            raise KeyError(name)
        return getattr(self, spec.attr)

    def to_mapping(self) -> Dict[str, Any]:
        return {spec.key: getattr(self, spec.attr) for spec in OPTIONS}

    @property
    def inner_radius(self) -> float:
        return self.base_radius * self.combined_size

    def rgb(self, attr: str) -> Tuple[float, float, float]:
        return hex_to_rgb(getattr(self, attr))


DEFAULTS = VisualizerSettings()

_missing = {f.name for f in fields(VisualizerSettings)} ^ set(OPTIONS_BY_ATTR)
if _missing:  # pragma: no cover - table and dataclass must stay in lockstep
    raise RuntimeError(f"settings table out of sync: {sorted(_missing)}")


__all__ = [
    "DEFAULTS",
    "OPTIONS",
    "OptionSpec",
    "SettingClass",
    "VisualizerSettings",
    "hex_to_rgb",
    "resolve_option",
]
