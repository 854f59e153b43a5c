"""Synthetic attempt population used to decorate a boulder scene."""

from __future__ import annotations

import logging
import math
from typing import List

from .model import Attempt
from .seed import DEFAULT_RANDOM, SeededRandom, boulder_seed

LOGGER = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi
MIN_COMPLETION = 0.1
MAX_COMPLETION = 1.0

# (upper bound of u, completion at the bucket start, slope over the bucket)
_COMPLETION_BUCKETS = (
    (0.4, 0.1, 0.5),
    (0.7, 0.3, 1.0),
    (0.9, 0.6, 1.25),
    (math.inf, 0.85, 1.5),
)


def completion_from_uniform(u: float) -> float:
    """Map a uniform draw onto the early-failure-skewed completion distribution."""

    lower = 0.0
    for upper, start, slope in _COMPLETION_BUCKETS:
        if u < upper:
            value = start + (u - lower) * slope
            return max(MIN_COMPLETION, min(MAX_COMPLETION, value))
        lower = upper
    return MAX_COMPLETION


def simulate_attempts(
    boulder_id: str | int,
    max_attempts: int,
    *,
    rng: SeededRandom = DEFAULT_RANDOM,
) -> List[Attempt]:
    """Return exactly ``max_attempts`` reproducible attempts for ``boulder_id``."""

    count = max(0, int(max_attempts))
    seed = boulder_seed(boulder_id)
    attempts: List[Attempt] = []
    for i in range(count):
        angle = rng.at(seed + i * 100.123) * TWO_PI
        completion = completion_from_uniform(rng.at(seed + i * 200.456))
        phase = rng.at(seed + i * 12.345) * TWO_PI
        attempts.append(Attempt(index=i, angle=angle, completion_percent=completion, phase=phase))
    LOGGER.debug("simulate_attempts boulder=%r count=%d seed=%.3f", boulder_id, count, seed)
    return attempts


__all__ = ["simulate_attempts", "completion_from_uniform", "MIN_COMPLETION", "MAX_COMPLETION"]
