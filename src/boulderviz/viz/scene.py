"""XY projection preview of a generated scene."""
from __future__ import annotations

import json
import math
from importlib import metadata
from typing import Any, Dict, Optional, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import LineCollection
from matplotlib.patches import Polygon

from ..geometry.scene import (
    AttemptPrimitive,
    LabelPrimitive,
    MarkerPrimitive,
    PrimitiveKind,
    RingPrimitive,
    Scene,
    SegmentPrimitive,
)

BACKGROUND = "#0b0f14"
CAPTION_COLOR = "#8a94a6"
PREVIEW_KIND = "boulder.scene"

PREVIEW_RC = {
    "figure.dpi": 120,
    "savefig.dpi": 120,
    "font.size": 10,
    "axes.grid": False,
    "axes.facecolor": BACKGROUND,
    "figure.facecolor": BACKGROUND,
    "savefig.facecolor": BACKGROUND,
}


def _package_version() -> str:
    try:
        return metadata.version("boulderviz")
    except metadata.PackageNotFoundError:  # pragma: no cover - source tree
        return "dev"


def _transform(points: np.ndarray, rotation: float, scale: float = 1.0) -> np.ndarray:
    xy = np.asarray(points, dtype=float)[:, :2] * scale
    if rotation == 0.0:
        return xy
    c, s = math.cos(rotation), math.sin(rotation)
    return xy @ np.array([[c, s], [-s, c]])


def _segments(xy: np.ndarray, closed: bool) -> np.ndarray:
    if closed:
        xy = np.vstack([xy, xy[:1]])
    return np.stack([xy[:-1], xy[1:]], axis=1)


def _draw_ring(ax, ring: RingPrimitive, rotation: float) -> None:
    xy = _transform(ring.path, rotation, ring.scale)
    colors = np.asarray(ring.colors, dtype=float)
    rgba = np.column_stack([colors, np.full(colors.shape[0], ring.opacity)])
    lines = LineCollection(_segments(xy, closed=True), colors=rgba, linewidths=max(0.3, ring.tube_radius * 40.0))
    ax.add_collection(lines)


def _draw_marker(ax, marker: MarkerPrimitive, rotation: float) -> None:
    xy = _transform(marker.path, rotation)
    ax.plot(xy[:, 0], xy[:, 1], color=marker.color, alpha=marker.opacity, linewidth=1.2)
    dot = _transform(marker.dot_center[None, :], rotation)[0]
    ax.scatter([dot[0]], [dot[1]], s=max(4.0, (marker.dot_radius * 120.0) ** 2), color=[marker.color], alpha=marker.dot_opacity)


def _draw_attempt(ax, attempt: AttemptPrimitive, rotation: float) -> None:
    xy = _transform(attempt.path, rotation)
    alphas = np.asarray(attempt.alphas, dtype=float)[1:]
    rgba = np.column_stack([np.tile(attempt.color, (alphas.shape[0], 1)), alphas])
    ax.add_collection(LineCollection(_segments(xy, closed=False), colors=rgba, linewidths=0.6))
    end = _transform(attempt.end_point[None, :], rotation)[0]
    ax.scatter([end[0]], [end[1]], s=max(1.0, (attempt.end_dot_size * 150.0) ** 2), color=[attempt.color], alpha=attempt.end_dot_opacity)


def _draw_segment(ax, segment: SegmentPrimitive, rotation: float) -> None:
    xy = _transform(segment.path, rotation)
    ax.add_patch(Polygon(xy, closed=True, facecolor=segment.color, edgecolor="none", alpha=segment.opacity))


def _draw_label(ax, label: LabelPrimitive) -> None:
    ax.text(
        float(label.position[0]),
        float(label.position[1]),
        label.text,
        ha="center",
        va="center",
        color=label.color,
        alpha=label.opacity,
        fontsize=14 * label.size,
        fontweight="bold",
    )


def _caption(summary: Dict[str, Any]) -> str:
    counts = ", ".join(f"{kind}={count}" for kind, count in summary["primitives"].items() if count)
    parts = [f"boulderviz {summary['version']}", f"{summary['meta']['moves']} moves"]
    if counts:
        parts.append(counts)
    return " | ".join(parts)


def render_scene_png(
    scene: Scene,
    save: Optional[str] = None,
    *,
    title: Optional[str] = None,
    size: float = 6.0,
    save_viz_spec: Optional[str] = None,
) -> Tuple[plt.Figure, Dict[str, Any]]:
    """Draw ``scene`` seen from +Z; only visible primitives are drawn.

    Returns the figure and a summary of what was drawn (primitive counts per
    kind, move count, rotation). ``save`` writes the PNG and ``save_viz_spec``
    writes the summary as a JSON sidecar.
    """

    counts: Dict[str, int] = {kind.value: 0 for kind in PrimitiveKind}
    rotation = scene.rotation
    with plt.rc_context(PREVIEW_RC):
        fig, ax = plt.subplots(figsize=(size, size))
        ax.set_aspect("equal")
        ax.set_axis_off()

        for primitive in scene:
            if not primitive.visible:
                continue
            counts[primitive.kind.value] += 1
            if isinstance(primitive, SegmentPrimitive):
                _draw_segment(ax, primitive, rotation)
            elif isinstance(primitive, RingPrimitive):
                _draw_ring(ax, primitive, rotation)
            elif isinstance(primitive, AttemptPrimitive):
                _draw_attempt(ax, primitive, rotation)
            elif isinstance(primitive, MarkerPrimitive):
                _draw_marker(ax, primitive, rotation)
            elif isinstance(primitive, LabelPrimitive):
                _draw_label(ax, primitive)

        low, high = scene.bounds()
        reach = float(max(np.max(np.abs(low[:2])), np.max(np.abs(high[:2])), 1.0)) * 1.05
        ax.set_xlim(-reach, reach)
        ax.set_ylim(-reach, reach)
        if title:
            ax.set_title(title, color="#e5e7eb")

        summary: Dict[str, Any] = {
            "kind": PREVIEW_KIND,
            "version": _package_version(),
            "meta": {"moves": scene.meta.get("move_count", 0), "rotation": round(rotation, 4)},
            "primitives": counts,
        }
        fig.text(0.01, 0.01, _caption(summary), fontsize=7, color=CAPTION_COLOR, ha="left", va="bottom")
        if save:
            fig.savefig(save, bbox_inches="tight")

    if save_viz_spec:
        with open(save_viz_spec, "w", encoding="utf-8") as handle:
            json.dump(summary, handle, sort_keys=True, separators=(",", ":"))
    return fig, summary


__all__ = ["render_scene_png"]
