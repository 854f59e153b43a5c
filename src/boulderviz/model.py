"""Records exchanged between the ingestion side, the detector and the geometry builders."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

STANDARD_GRAVITY = 9.81


def _as_float(value: Any) -> float:
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


@dataclass(frozen=True, slots=True)
class Sample:
    """One tri-axial accelerometer reading (m/s²).

    ``magnitude`` is optional; recordings that already carry an absolute
    acceleration column pass it through, otherwise it is derived from the axes.
    """

    time: float
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    magnitude: float | None = None

    @property
    def resolved_magnitude(self) -> float:
        if self.magnitude is not None:
            return float(self.magnitude)
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Sample":
        """Build a sample from a loosely typed record.

        Unparseable fields and a missing time become NaN so normalization
        drops the row instead of failing.
        """

        magnitude = payload.get("magnitude")
        return cls(
            time=_as_float(payload.get("time", payload.get("t"))),
            x=_as_float(payload.get("x", 0.0)),
            y=_as_float(payload.get("y", 0.0)),
            z=_as_float(payload.get("z", 0.0)),
            magnitude=None if magnitude is None else _as_float(magnitude),
        )


@dataclass(frozen=True, slots=True)
class AccelerationRange:
    min: float
    max: float
    avg: float


@dataclass(frozen=True, slots=True)
class Move:
    """A detected move; index 0 of every detection run is the synthetic start."""

    index: int
    time: float
    end_time: float
    intensity: float
    is_crux: bool
    acceleration_range: AccelerationRange
    peak_magnitude: float

    @property
    def is_start(self) -> bool:
        return self.index == 0

    @property
    def duration(self) -> float:
        return max(0.0, self.end_time - self.time)

    def to_payload(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "time": self.time,
            "endTime": self.end_time,
            "intensity": self.intensity,
            "isCrux": self.is_crux,
            "accelerationRange": {
                "min": self.acceleration_range.min,
                "max": self.acceleration_range.max,
                "avg": self.acceleration_range.avg,
            },
            "peakMagnitude": self.peak_magnitude,
        }


@dataclass(frozen=True, slots=True)
class Attempt:
    """One simulated, purely decorative try at the boulder."""

    index: int
    angle: float
    completion_percent: float
    phase: float = 0.0


@dataclass(frozen=True)
class BoulderRecord:
    """Caller-owned boulder; the engine only reads it."""

    id: str | int
    samples: tuple[Sample, ...] = ()
    moves: tuple[Move, ...] = ()
    name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_samples(
        cls,
        boulder_id: str | int,
        samples: Sequence[Sample],
        *,
        name: str | None = None,
    ) -> "BoulderRecord":
        return cls(id=boulder_id, samples=tuple(samples), name=name)


__all__ = [
    "STANDARD_GRAVITY",
    "Sample",
    "AccelerationRange",
    "Move",
    "Attempt",
    "BoulderRecord",
]
