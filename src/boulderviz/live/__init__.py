"""Live state, settings invalidation and the engine facade."""

from .engine import VisualizerEngine
from .reconcile import ReconciliationLoop, TickAction
from .scheduler import InvalidationScheduler
from .state_reducer import (
    IMMEDIATE_KEYS,
    Invalidation,
    SettingsDelta,
    classify_keys,
    diff_settings,
)
from .state_store import StateSnapshot, VisualizationStore, get_store, reset_store

__all__ = [
    "IMMEDIATE_KEYS",
    "Invalidation",
    "InvalidationScheduler",
    "ReconciliationLoop",
    "SettingsDelta",
    "StateSnapshot",
    "TickAction",
    "VisualizationStore",
    "VisualizerEngine",
    "classify_keys",
    "diff_settings",
    "get_store",
    "reset_store",
]
