from __future__ import annotations

import pytest

from boulderviz import config


def test_defaults_without_environment(monkeypatch) -> None:
    monkeypatch.delenv("BOULDERVIZ_DEBOUNCE_MS", raising=False)
    monkeypatch.delenv("BOULDERVIZ_RECONCILE_HZ", raising=False)
    assert config.debounce_window() == pytest.approx(0.016)
    assert config.reconcile_hz() == pytest.approx(15.0)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("40", 0.04), (" 0 ", 0.0), ("fast", 0.016), ("-5", 0.016), ("nan", 0.016), ("", 0.016)],
)
def test_debounce_override(monkeypatch, raw, expected) -> None:
    monkeypatch.setenv("BOULDERVIZ_DEBOUNCE_MS", raw)
    assert config.debounce_window() == pytest.approx(expected)


def test_reconcile_hz_rejects_zero(monkeypatch) -> None:
    monkeypatch.setenv("BOULDERVIZ_RECONCILE_HZ", "0")
    assert config.reconcile_hz() == pytest.approx(15.0)
    monkeypatch.setenv("BOULDERVIZ_RECONCILE_HZ", "30")
    assert config.reconcile_hz() == pytest.approx(30.0)


def test_settings_dir_expands_user(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("BOULDERVIZ_SETTINGS_DIR", raising=False)
    assert config.settings_dir() == tmp_path / ".boulderviz" / "settings"
