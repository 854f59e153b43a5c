"""Move detection and procedural ring geometry for climbing acceleration traces."""

from importlib import metadata

from .attempts import simulate_attempts
from .errors import ArenaDisposedError, BoulderVizError, SettingsRecordError
from .geometry import ResourceArena, Scene, VisualizerSettings, animate, generate
from .live import InvalidationScheduler, ReconciliationLoop, VisualizationStore, VisualizerEngine
from .model import AccelerationRange, Attempt, BoulderRecord, Move, Sample
from .persistence import JsonSettingsStore, MemorySettingsStore, SettingsRecord
from .seed import SineHashRandom, boulder_seed, random_at
from .signal import MoveSummary, detect_moves, normalize_samples, summarize_moves

try:  # pragma: no cover - metadata only at runtime
    __version__ = metadata.version("boulderviz")
except metadata.PackageNotFoundError:  # pragma: no cover - source tree / editable installs
    __version__ = "0.0.0"

__all__ = [
    "AccelerationRange",
    "ArenaDisposedError",
    "Attempt",
    "BoulderRecord",
    "BoulderVizError",
    "InvalidationScheduler",
    "JsonSettingsStore",
    "MemorySettingsStore",
    "Move",
    "MoveSummary",
    "ReconciliationLoop",
    "ResourceArena",
    "Sample",
    "Scene",
    "SettingsRecord",
    "SettingsRecordError",
    "SineHashRandom",
    "VisualizationStore",
    "VisualizerEngine",
    "VisualizerSettings",
    "animate",
    "boulder_seed",
    "detect_moves",
    "generate",
    "normalize_samples",
    "random_at",
    "simulate_attempts",
    "summarize_moves",
]
