"""Deterministic pseudo-randomness keyed by boulder identity."""

from __future__ import annotations

import math
from typing import Protocol


class SeededRandom(Protocol):
    """Stateless source of reproducible draws in ``[0, 1)``."""

    def at(self, seed: float) -> float: ...


def random_at(seed: float) -> float:
    """Return ``frac(sin(seed) * 10000)``; a pure function of ``seed``."""

    x = math.sin(seed) * 10000.0
    value = x - math.floor(x)
    # floor() can round up for values a hair below an integer
    if value >= 1.0:
        return 0.0
    return value


class SineHashRandom:
    """Default trigonometric hash; swap for another ``SeededRandom`` if needed."""

    __slots__ = ()

    def at(self, seed: float) -> float:
        return random_at(seed)

    def __repr__(self) -> str:
        return "SineHashRandom()"


DEFAULT_RANDOM: SeededRandom = SineHashRandom()


def _string_hash32(text: str) -> int:
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def boulder_seed(boulder_id: str | int | float) -> float:
    """Map a boulder identifier onto a numeric PRNG seed.

    Strings go through a 32-bit rolling hash scaled by ``0.001``; numbers are
    scaled by ``789.123``. Numeric strings are treated as strings.
    """

    if isinstance(boulder_id, bool):
        boulder_id = int(boulder_id)
    if isinstance(boulder_id, (int, float)):
        return float(boulder_id) * 789.123
    return abs(_string_hash32(str(boulder_id))) * 0.001


__all__ = ["SeededRandom", "SineHashRandom", "DEFAULT_RANDOM", "random_at", "boulder_seed"]
