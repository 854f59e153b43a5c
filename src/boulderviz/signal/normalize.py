"""Cleaning of raw accelerometer traces before peak detection."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import numpy as np

from ..model import Sample

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NormalizedTrace:
    """Parallel ``time``/``magnitude`` arrays with non-finite samples removed."""

    time: np.ndarray
    magnitude: np.ndarray
    dropped: int = 0

    def __len__(self) -> int:
        return int(self.time.shape[0])

    @property
    def duration(self) -> float:
        if len(self) < 2:
            return 0.0
        return float(self.time[-1] - self.time[0])


def _coerce(sample: Sample | Mapping[str, Any]) -> Sample:
    if isinstance(sample, Sample):
        return sample
    if not isinstance(sample, Mapping):
        LOGGER.debug("normalize_samples dropping non-record %r", type(sample).__name__)
        return Sample(time=math.nan)
    return Sample.from_payload(sample)


def normalize_samples(samples: Iterable[Sample | Mapping[str, Any]]) -> NormalizedTrace:
    """Return the finite part of ``samples`` as numpy arrays.

    A finite ``magnitude`` carried by a sample wins over the axis norm. Samples
    with a non-finite time or magnitude are dropped. Out-of-order input is
    stably sorted by time.
    """

    rows = [_coerce(sample) for sample in samples]
    if not rows:
        return NormalizedTrace(time=np.zeros(0), magnitude=np.zeros(0))

    time = np.array([row.time for row in rows], dtype=float)
    axes = np.array([(row.x, row.y, row.z) for row in rows], dtype=float)
    given = np.array([np.nan if row.magnitude is None else row.magnitude for row in rows], dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        derived = np.sqrt(np.sum(axes * axes, axis=1))
    magnitude = np.where(np.isfinite(given), given, derived)

    keep = np.isfinite(time) & np.isfinite(magnitude)
    dropped = len(rows) - int(np.count_nonzero(keep))
    time = time[keep]
    magnitude = magnitude[keep]
    if dropped:
        LOGGER.debug("normalize_samples dropped=%d kept=%d", dropped, time.shape[0])

    if time.size > 1 and np.any(np.diff(time) < 0):
        LOGGER.warning("normalize_samples received out-of-order samples; sorting by time")
        order = np.argsort(time, kind="stable")
        time = time[order]
        magnitude = magnitude[order]

    return NormalizedTrace(time=time, magnitude=magnitude, dropped=dropped)


__all__ = ["NormalizedTrace", "normalize_samples"]
