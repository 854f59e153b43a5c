"""Preview rendering (matplotlib lives here to isolate the dependency)."""
from __future__ import annotations

from .scene import render_scene_png

__all__ = ["render_scene_png"]
