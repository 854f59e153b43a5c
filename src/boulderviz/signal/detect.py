"""Peak detection turning an acceleration trace into discrete moves."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Sequence

import numpy as np

from ..model import STANDARD_GRAVITY, AccelerationRange, Move, Sample
from .normalize import NormalizedTrace, normalize_samples

LOGGER = logging.getLogger(__name__)

MIN_VALID_SAMPLES = 10
CRUX_FACTOR = 1.5
MIN_INTENSITY = 0.1
MAX_INTENSITY = 1.0
FLAT_INTENSITY = 0.5
_MIN_THRESHOLD = 1e-6
_NEIGHBOURHOOD = 2


@dataclass(frozen=True, slots=True)
class MoveSummary:
    count: int
    duration: float
    max_intensity: float
    avg_intensity: float
    crux_count: int


def is_crux(magnitude: float, threshold: float) -> bool:
    """Crux iff the raw peak is strictly above ``1.5 * threshold``."""

    return magnitude > threshold * CRUX_FACTOR


def _sanitize_threshold(threshold: float) -> float:
    try:
        value = float(threshold)
    except (TypeError, ValueError):
        value = float("nan")
    if not math.isfinite(value) or value <= 0.0:
        LOGGER.warning("detect_moves threshold=%r is not positive; clamping to %s", threshold, _MIN_THRESHOLD)
        return _MIN_THRESHOLD
    return value


def _sanitize_duration(value: float) -> float:
    try:
        duration = float(value)
    except (TypeError, ValueError):
        duration = float("nan")
    if not math.isfinite(duration) or duration < 0.0:
        LOGGER.warning("detect_moves min_move_duration=%r is invalid; using 0", value)
        return 0.0
    return duration


def _start_move(trace: NormalizedTrace) -> Move:
    peak = float(trace.magnitude[0]) if len(trace) else STANDARD_GRAVITY
    return Move(
        index=0,
        time=0.0,
        end_time=0.0,
        intensity=0.0,
        is_crux=False,
        acceleration_range=AccelerationRange(min=peak, max=peak, avg=peak),
        peak_magnitude=peak,
    )


def _is_local_peak(magnitude: np.ndarray, i: int) -> bool:
    centre = magnitude[i]
    for offset in range(1, _NEIGHBOURHOOD + 1):
        if not (centre > magnitude[i - offset] and centre > magnitude[i + offset]):
            return False
    return True


def _event_window(magnitude: np.ndarray, peak: int, threshold: float) -> tuple[int, int]:
    """Indices of the upward and downward threshold crossings around ``peak``."""

    lo = peak
    while lo > 0 and magnitude[lo - 1] > threshold:
        lo -= 1
    hi = peak
    last = magnitude.shape[0] - 1
    while hi < last and magnitude[hi] > threshold:
        hi += 1
    return lo, hi


def _intensity(magnitude: float, threshold: float, ceiling: float) -> float:
    scale = ceiling - threshold
    if scale <= 0.0:
        return FLAT_INTENSITY
    return max(MIN_INTENSITY, min(MAX_INTENSITY, (magnitude - threshold) / scale))


def detect_moves(
    samples: Iterable[Sample | Mapping[str, Any]] | NormalizedTrace,
    threshold: float,
    min_move_duration: float,
) -> List[Move]:
    """Detect moves in ``samples``.

    The first entry is always the synthetic start move at ``time=0``. A peak is
    a strict maximum over its two neighbours on each side, above ``threshold``,
    and more than ``min_move_duration`` after the previously accepted peak.
    Inputs with fewer than ten finite samples yield only the start move.
    """

    trace = samples if isinstance(samples, NormalizedTrace) else normalize_samples(samples)
    threshold = _sanitize_threshold(threshold)
    min_gap = _sanitize_duration(min_move_duration)

    start = _start_move(trace)
    n = len(trace)
    if n < MIN_VALID_SAMPLES:
        LOGGER.warning("detect_moves needs %d finite samples, got %d; start move only", MIN_VALID_SAMPLES, n)
        return [start]

    time = trace.time
    magnitude = trace.magnitude
    peaks: List[int] = []
    # the start move does not suppress an early first peak
    last_time = -min_gap
    for i in range(_NEIGHBOURHOOD, n - _NEIGHBOURHOOD):
        if magnitude[i] <= threshold or not _is_local_peak(magnitude, i):
            continue
        if time[i] - last_time > min_gap:
            peaks.append(i)
            last_time = float(time[i])
        else:
            LOGGER.debug("detect_moves skipped peak t=%.3f within %.3fs of previous", time[i], min_gap)

    ceiling = float(np.max(magnitude))
    moves: List[Move] = [start]
    for peak in peaks:
        lo, hi = _event_window(magnitude, peak, threshold)
        window = magnitude[lo : hi + 1]
        value = float(magnitude[peak])
        moves.append(
            Move(
                index=len(moves),
                time=float(time[peak]),
                end_time=float(time[hi]),
                intensity=_intensity(value, threshold, ceiling),
                is_crux=is_crux(value, threshold),
                acceleration_range=AccelerationRange(
                    min=float(np.min(window)),
                    max=float(np.max(window)),
                    avg=float(np.mean(window)),
                ),
                peak_magnitude=value,
            )
        )

    if LOGGER.isEnabledFor(logging.DEBUG):
        LOGGER.debug(
            "detect_moves samples=%d threshold=%.3f moves=%d crux=%d",
            n,
            threshold,
            len(moves),
            sum(1 for move in moves if move.is_crux),
        )
    return moves


def summarize_moves(moves: Sequence[Move]) -> MoveSummary:
    """Statistics projection of a move list; the start move is not counted."""

    detected = [move for move in moves if not move.is_start]
    if not moves:
        return MoveSummary(count=0, duration=0.0, max_intensity=0.0, avg_intensity=0.0, crux_count=0)
    duration = max(move.end_time for move in moves) - moves[0].time
    if not detected:
        return MoveSummary(count=0, duration=max(0.0, duration), max_intensity=0.0, avg_intensity=0.0, crux_count=0)
    intensities = [move.intensity for move in detected]
    return MoveSummary(
        count=len(detected),
        duration=max(0.0, duration),
        max_intensity=max(intensities),
        avg_intensity=sum(intensities) / len(intensities),
        crux_count=sum(1 for move in detected if move.is_crux),
    )


__all__ = [
    "MoveSummary",
    "detect_moves",
    "summarize_moves",
    "is_crux",
    "MIN_VALID_SAMPLES",
    "CRUX_FACTOR",
]
