"""Procedural scene generation for boulder visualizations."""

from .arena import ArenaStats, ResourceArena
from .builders import animate, enhance_dynamics, generate
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
from .settings import DEFAULTS, OPTIONS, SettingClass, VisualizerSettings

__all__ = [
    "ArenaStats",
    "AttemptPrimitive",
    "DEFAULTS",
    "LabelPrimitive",
    "MarkerPrimitive",
    "MarkerRole",
    "OPTIONS",
    "PrimitiveKind",
    "ResourceArena",
    "RingPrimitive",
    "Scene",
    "ScenePrimitive",
    "SegmentPrimitive",
    "SettingClass",
    "VisualizerSettings",
    "animate",
    "enhance_dynamics",
    "generate",
]
