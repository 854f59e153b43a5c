"""Boulderviz runtime configuration helpers."""

from __future__ import annotations

import os
import logging
from pathlib import Path

_DEBOUNCE_ENV = "BOULDERVIZ_DEBOUNCE_MS"
_RECONCILE_HZ_ENV = "BOULDERVIZ_RECONCILE_HZ"
_SETTINGS_DIR_ENV = "BOULDERVIZ_SETTINGS_DIR"

DEFAULT_DEBOUNCE_MS = 16.0
DEFAULT_RECONCILE_HZ = 15.0
DEFAULT_SETTINGS_DIR = "~/.boulderviz/settings"

LOGGER = logging.getLogger(__name__)


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default
    if value != value or value < minimum:
        LOGGER.warning("Ignoring out-of-range %s=%r; using %s", name, raw, default)
        return default
    return value


def debounce_window() -> float:
    """Debounce window in seconds for bursts of settings changes."""

    window_ms = _env_float(_DEBOUNCE_ENV, DEFAULT_DEBOUNCE_MS)
    LOGGER.debug("debounce_window ms=%s env=%s", window_ms, os.getenv(_DEBOUNCE_ENV))
    return window_ms / 1000.0


def reconcile_hz() -> float:
    """Cadence of the reconciliation tick, independent of the renderer frame rate."""

    hz = _env_float(_RECONCILE_HZ_ENV, DEFAULT_RECONCILE_HZ, minimum=1e-3)
    LOGGER.debug("reconcile_hz hz=%s env=%s", hz, os.getenv(_RECONCILE_HZ_ENV))
    return hz


def settings_dir() -> Path:
    raw = os.getenv(_SETTINGS_DIR_ENV) or DEFAULT_SETTINGS_DIR
    return Path(raw).expanduser()


__all__ = [
    "debounce_window",
    "reconcile_hz",
    "settings_dir",
    "DEFAULT_DEBOUNCE_MS",
    "DEFAULT_RECONCILE_HZ",
    "DEFAULT_SETTINGS_DIR",
]
