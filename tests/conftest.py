import math
import sys
from pathlib import Path

import matplotlib
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def pytest_sessionstart(session):  # noqa: D401
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    plt.rcParams.update(
        {
            "figure.dpi": 120,
            "savefig.dpi": 120,
            "font.size": 10,
        }
    )


class FakeClock:
    """Manually advanced clock for debounce and cadence tests."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def bump_trace(peaks, *, count=200, duration=10.0, sigma=4.0, baseline=1.0):
    """``count`` samples over ``duration`` seconds with gaussian bumps on the x axis."""

    from boulderviz.model import Sample

    samples = []
    for i in range(count):
        value = baseline
        for centre, amplitude in peaks:
            value += (amplitude - baseline) * math.exp(-((i - centre) ** 2) / (2.0 * sigma * sigma))
        samples.append(Sample(time=i * duration / count, x=value, y=0.0, z=0.0))
    return samples


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def example_samples():
    return bump_trace([(40, 20.0), (90, 8.0), (150, 25.0)])
