"""Exceptions raised for programming errors; data defects degrade instead."""

from __future__ import annotations


class BoulderVizError(Exception):
    """Base class for errors raised by boulderviz."""


class ArenaDisposedError(BoulderVizError):
    """Raised when a torn-down resource arena is used again."""


class SettingsRecordError(BoulderVizError):
    """Raised when a persisted settings record cannot be parsed."""


__all__ = ["BoulderVizError", "ArenaDisposedError", "SettingsRecordError"]
