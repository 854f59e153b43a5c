from __future__ import annotations

import math

import pytest

from boulderviz.model import STANDARD_GRAVITY, Sample
from boulderviz.signal import detect_moves, normalize_samples, summarize_moves

from conftest import bump_trace


def test_example_trace_yields_start_plus_two_moves(example_samples) -> None:
    moves = detect_moves(example_samples, threshold=15.0, min_move_duration=0.5)
    assert len(moves) == 3
    start, first, second = moves
    assert start.index == 0 and start.time == 0.0 and start.intensity == 0.0
    assert first.time == pytest.approx(2.0)
    assert second.time == pytest.approx(7.5)
    assert first.is_crux is False
    assert second.is_crux is True
    assert first.intensity == pytest.approx(0.5)
    assert second.intensity == pytest.approx(1.0)
    assert first.peak_magnitude == pytest.approx(20.0)


def test_move_event_window_brackets_the_peak(example_samples) -> None:
    move = detect_moves(example_samples, 15.0, 0.5)[1]
    assert move.end_time > move.time
    rng = move.acceleration_range
    assert rng.max == pytest.approx(move.peak_magnitude)
    assert 15.0 < rng.min <= rng.avg <= rng.max


def test_all_below_threshold_returns_only_start() -> None:
    samples = bump_trace([(50, 9.0), (120, 11.0)])
    moves = detect_moves(samples, threshold=15.0, min_move_duration=0.5)
    assert len(moves) == 1
    assert moves[0].peak_magnitude == pytest.approx(1.0)


@pytest.mark.parametrize("count", [0, 1, 9])
def test_too_few_samples_returns_start_only(count: int) -> None:
    samples = [Sample(time=i * 0.1, x=30.0 if i == 4 else 1.0) for i in range(count)]
    moves = detect_moves(samples, threshold=15.0, min_move_duration=0.1)
    assert len(moves) == 1
    expected = STANDARD_GRAVITY if count == 0 else 1.0
    assert moves[0].peak_magnitude == pytest.approx(expected)


def test_non_finite_samples_are_discarded_before_scanning() -> None:
    samples = bump_trace([(40, 20.0)], count=60, duration=3.0)
    samples[10] = Sample(time=samples[10].time, x=math.nan)
    samples[41] = Sample(time=samples[41].time, x=math.inf)
    trace = normalize_samples(samples)
    assert trace.dropped == 2
    moves = detect_moves(samples, threshold=15.0, min_move_duration=0.5)
    assert len(moves) == 2


def test_hysteresis_rejects_close_peaks() -> None:
    # peaks 0.4 s apart with a 0.5 s minimum gap
    samples = bump_trace([(60, 20.0), (68, 22.0), (150, 21.0)], sigma=1.5)
    moves = detect_moves(samples, threshold=15.0, min_move_duration=0.5)
    times = [move.time for move in moves[1:]]
    assert times == pytest.approx([3.0, 7.5])
    for earlier, later in zip(moves, moves[1:]):
        assert later.time - earlier.time > 0.5


def test_crux_boundary_is_strict() -> None:
    samples = bump_trace([(50, 22.5), (150, 22.6)])
    moves = detect_moves(samples, threshold=15.0, min_move_duration=0.5)
    assert [move.is_crux for move in moves[1:]] == [False, True]


def test_magnitude_column_wins_over_axes() -> None:
    trace = normalize_samples(
        [
            {"time": 0.0, "x": 3.0, "y": 4.0, "z": 0.0},
            {"time": 0.1, "x": 3.0, "y": 4.0, "z": 0.0, "magnitude": 9.0},
            {"time": 0.2, "x": 3.0, "y": 4.0, "z": 0.0, "magnitude": float("nan")},
        ]
    )
    assert trace.magnitude.tolist() == [5.0, 9.0, 5.0]


def test_non_positive_threshold_is_clamped_not_raised(example_samples) -> None:
    moves = detect_moves(example_samples, threshold=0.0, min_move_duration=0.5)
    assert moves[0].index == 0
    assert len(moves) >= 2


def test_detection_is_deterministic(example_samples) -> None:
    first = detect_moves(example_samples, 15.0, 0.5)
    second = detect_moves(list(example_samples), 15.0, 0.5)
    assert first == second


def test_summary_excludes_start_move(example_samples) -> None:
    moves = detect_moves(example_samples, 15.0, 0.5)
    summary = summarize_moves(moves)
    assert summary.count == 2
    assert summary.crux_count == 1
    assert summary.max_intensity == pytest.approx(1.0)
    assert summary.avg_intensity == pytest.approx(0.75)
    assert summary.duration == pytest.approx(moves[-1].end_time)
    empty = summarize_moves(moves[:1])
    assert empty.count == 0 and empty.max_intensity == 0.0


def test_first_peak_close_to_the_start_is_kept() -> None:
    samples = bump_trace([(6, 20.0), (100, 20.0)], sigma=1.5)
    moves = detect_moves(samples, threshold=15.0, min_move_duration=0.5)
    assert [move.time for move in moves] == pytest.approx([0.0, 0.3, 5.0])


def test_malformed_records_are_dropped_not_raised() -> None:
    records = [{"time": i * 0.1, "x": 1.0, "y": 0.0, "z": 0.0} for i in range(20)]
    records[5]["x"] = None
    del records[7]["time"]
    records[9]["y"] = "abc"
    records.append(None)

    trace = normalize_samples(records)
    assert trace.dropped == 4
    assert len(trace) == 17
    moves = detect_moves(records, threshold=15.0, min_move_duration=0.5)
    assert len(moves) == 1
