"""Signal cleaning and move detection."""

from .detect import MoveSummary, detect_moves, is_crux, summarize_moves
from .normalize import NormalizedTrace, normalize_samples

__all__ = [
    "MoveSummary",
    "NormalizedTrace",
    "detect_moves",
    "is_crux",
    "normalize_samples",
    "summarize_moves",
]
