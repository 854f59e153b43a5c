"""Debounced settings application against a recording target."""

from __future__ import annotations

import pytest

from boulderviz.live import Invalidation, InvalidationScheduler, VisualizationStore


class RecordingTarget:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def regenerate(self) -> None:
        self.calls.append("regenerate")

    def patch_materials(self) -> None:
        self.calls.append("patch_materials")

    def render(self) -> None:
        self.calls.append("render")


@pytest.fixture
def target() -> RecordingTarget:
    return RecordingTarget()


@pytest.fixture
def store() -> VisualizationStore:
    return VisualizationStore()


def test_structural_change_regenerates_once_after_the_window(store, target, clock) -> None:
    scheduler = InvalidationScheduler(store, target, clock=clock, window=0.05)
    assert scheduler.apply({"ringCount": 10}) is None
    assert scheduler.pending == {"ringCount": 10}
    assert scheduler.poll() is None

    clock.advance(0.06)
    delta = scheduler.poll()
    assert delta is not None and delta.invalidation is Invalidation.STRUCTURAL
    assert target.calls == ["regenerate"]
    assert store.version == 1
    assert store.snapshot().settings.ring_count == 10
    assert scheduler.poll() is None


def test_material_change_patches_without_regenerating(store, target, clock) -> None:
    scheduler = InvalidationScheduler(store, target, clock=clock, window=0.0)
    delta = scheduler.apply({"opacity": 0.5, "cruxColor": "#00ff00"})
    assert delta.invalidation is Invalidation.MATERIAL
    assert target.calls == ["patch_materials"]
    assert (store.version, store.material_version) == (0, 1)


def test_reapplying_identical_settings_only_renders(store, target, clock) -> None:
    scheduler = InvalidationScheduler(store, target, clock=clock, window=0.0)
    scheduler.apply({"opacity": 0.5})
    delta = scheduler.apply({"opacity": 0.5})
    assert delta.invalidation is Invalidation.NONE
    assert target.calls == ["patch_materials", "render"]
    assert store.material_version == 1


def test_invalid_values_keep_the_previous_setting(store, target, clock) -> None:
    scheduler = InvalidationScheduler(store, target, clock=clock, window=0.0)
    delta = scheduler.apply({"opacity": "opaque", "moveColor": "red", "notASetting": 3})
    assert delta.invalidation is Invalidation.NONE
    assert target.calls == ["render"]
    assert store.snapshot().settings.opacity == 0.9


def test_burst_coalesces_and_last_value_wins(store, target, clock) -> None:
    scheduler = InvalidationScheduler(store, target, clock=clock, window=0.05)
    scheduler.apply({"ringCount": 10})
    clock.advance(0.03)
    scheduler.apply({"ringCount": 20, "opacity": 0.4})
    clock.advance(0.03)
    assert scheduler.poll() is None

    clock.advance(0.03)
    delta = scheduler.poll()
    assert delta.changed == {"ring_count", "opacity"}
    assert delta.invalidation is Invalidation.STRUCTURAL
    assert target.calls == ["regenerate"]
    assert store.snapshot().settings.ring_count == 20
    assert scheduler.history == [{"changed": ["opacity", "ring_count"], "invalidation": "STRUCTURAL"}]


def test_cancel_drops_pending_work(store, target, clock) -> None:
    scheduler = InvalidationScheduler(store, target, clock=clock, window=0.05)
    scheduler.apply({"ringCount": 10, "opacity": 0.1})
    assert scheduler.cancel() == 2
    clock.advance(1.0)
    assert scheduler.poll() is None
    assert scheduler.flush() is None
    assert target.calls == []
    assert store.version == 0


def test_empty_partial_is_ignored(store, target, clock) -> None:
    scheduler = InvalidationScheduler(store, target, clock=clock, window=0.0)
    assert scheduler.apply({}) is None
    assert target.calls == []


def test_window_defaults_to_environment(monkeypatch, store, target) -> None:
    monkeypatch.setenv("BOULDERVIZ_DEBOUNCE_MS", "40")
    scheduler = InvalidationScheduler(store, target)
    assert scheduler.window == pytest.approx(0.04)
