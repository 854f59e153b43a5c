"""Spline sampling and tube extrusion on numpy arrays."""

from __future__ import annotations

from typing import Tuple

import numpy as np

CENTRIPETAL_ALPHA = 0.5
TUBE_RADIAL_SEGMENTS = 8
_EPS = 1e-9


def finite_rows(points: np.ndarray) -> np.ndarray:
    """Boolean mask of rows whose coordinates are all finite."""

    arr = np.asarray(points, dtype=float)
    if arr.ndim == 1:
        return np.isfinite(arr)
    return np.all(np.isfinite(arr), axis=1)


def _knot_deltas(p_a: np.ndarray, p_b: np.ndarray, alpha: float) -> np.ndarray:
    dist = np.linalg.norm(p_b - p_a, axis=-1)
    return np.maximum(dist ** alpha, _EPS)


def _control_quads(points: np.ndarray, closed: bool) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    n = points.shape[0]
    if closed:
        idx = np.arange(n)
        return points[(idx - 1) % n], points[idx], points[(idx + 1) % n], points[(idx + 2) % n]
    head = 2.0 * points[0] - points[1]
    tail = 2.0 * points[-1] - points[-2]
    padded = np.vstack([head, points, tail])
    return padded[:-3], padded[1:-2], padded[2:-1], padded[3:]


def catmull_rom(
    points: np.ndarray,
    samples: int,
    *,
    closed: bool = True,
    alpha: float = CENTRIPETAL_ALPHA,
    knot_dims: int | None = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Sample a centripetal Catmull-Rom spline through ``points``.

    Returns ``(curve, u)`` where ``u`` is the fractional control-point index of
    every sample, which callers use to carry per-point attributes along. A
    closed curve does not repeat its first sample; an open curve ends exactly
    on the last control point. Knot spacing uses only the first ``knot_dims``
    columns when given, so the remaining columns interpolate linearly in the
    control values.
    """

    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[0] < 2:
        raise ValueError("catmull_rom needs at least two points")
    n = pts.shape[0]
    segments = n if closed else n - 1
    samples = max(2, int(samples))

    if closed:
        u = np.arange(samples, dtype=float) * (segments / samples)
    else:
        u = np.linspace(0.0, float(segments), samples)
    seg = np.minimum(np.floor(u).astype(int), segments - 1)
    frac = (u - seg)[:, None]

    p0, p1, p2, p3 = (arr[seg] for arr in _control_quads(pts, closed))
    k = pts.shape[1] if knot_dims is None else knot_dims
    d01 = _knot_deltas(p0[:, :k], p1[:, :k], alpha)[:, None]
    d12 = _knot_deltas(p1[:, :k], p2[:, :k], alpha)[:, None]
    d23 = _knot_deltas(p2[:, :k], p3[:, :k], alpha)[:, None]
    t0 = np.zeros_like(d01)
    t1 = t0 + d01
    t2 = t1 + d12
    t3 = t2 + d23
    t = t1 + frac * d12

    a1 = (t1 - t) / (t1 - t0) * p0 + (t - t0) / (t1 - t0) * p1
    a2 = (t2 - t) / (t2 - t1) * p1 + (t - t1) / (t2 - t1) * p2
    a3 = (t3 - t) / (t3 - t2) * p2 + (t - t2) / (t3 - t2) * p3
    b1 = (t2 - t) / (t2 - t0) * a1 + (t - t0) / (t2 - t0) * a2
    b2 = (t3 - t) / (t3 - t1) * a2 + (t - t1) / (t3 - t1) * a3
    curve = (t2 - t) / (t2 - t1) * b1 + (t - t1) / (t2 - t1) * b2
    return curve, u


def polyline_tangents(path: np.ndarray, *, closed: bool = False) -> np.ndarray:
    pts = np.asarray(path, dtype=float)
    if closed:
        diff = np.roll(pts, -1, axis=0) - np.roll(pts, 1, axis=0)
    else:
        diff = np.gradient(pts, axis=0)
    length = np.linalg.norm(diff, axis=1, keepdims=True)
    return np.where(length > _EPS, diff / np.maximum(length, _EPS), np.array([1.0, 0.0, 0.0]))


def _initial_normal(tangent: np.ndarray) -> np.ndarray:
    for bias in ((0.0, 0.0, 1.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)):
        normal = np.cross(tangent, bias)
        length = np.linalg.norm(normal)
        if length > 1e-4:
            return normal / length
    return np.array([0.0, 1.0, 0.0])


def parallel_transport_frames(path: np.ndarray, *, closed: bool = False) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Rotation-minimising ``(tangent, normal, binormal)`` frames by double reflection."""

    pts = np.asarray(path, dtype=float)
    tangents = polyline_tangents(pts, closed=closed)
    normals = np.empty_like(pts)
    normals[0] = _initial_normal(tangents[0])
    for i in range(pts.shape[0] - 1):
        v1 = pts[i + 1] - pts[i]
        c1 = float(v1 @ v1)
        if c1 < _EPS:
            normals[i + 1] = normals[i]
            continue
        r_l = normals[i] - (2.0 / c1) * float(v1 @ normals[i]) * v1
        t_l = tangents[i] - (2.0 / c1) * float(v1 @ tangents[i]) * v1
        v2 = tangents[i + 1] - t_l
        c2 = float(v2 @ v2)
        normal = r_l if c2 < _EPS else r_l - (2.0 / c2) * float(v2 @ r_l) * v2
        length = np.linalg.norm(normal)
        normals[i + 1] = normal / length if length > _EPS else normals[i]
    binormals = np.cross(tangents, normals)
    return tangents, normals, binormals


def tube_mesh(
    path: np.ndarray,
    radius: float | np.ndarray,
    *,
    radial_segments: int = TUBE_RADIAL_SEGMENTS,
    closed: bool = False,
) -> Tuple[np.ndarray, np.ndarray]:
    """Extrude ``path`` into a tube; returns ``(vertices float32, triangles uint32)``."""

    pts = np.asarray(path, dtype=float)
    count = pts.shape[0]
    _, normals, binormals = parallel_transport_frames(pts, closed=closed)
    theta = np.linspace(0.0, 2.0 * np.pi, radial_segments, endpoint=False)
    ring = np.cos(theta)[None, :, None] * normals[:, None, :] + np.sin(theta)[None, :, None] * binormals[:, None, :]
    radii = np.broadcast_to(np.asarray(radius, dtype=float), (count,))[:, None, None]
    vertices = (pts[:, None, :] + radii * ring).reshape(-1, 3).astype("f4")

    rows = np.arange(count if closed else count - 1)
    nxt = (rows + 1) % count
    cols = np.arange(radial_segments)
    col_next = (cols + 1) % radial_segments
    a = rows[:, None] * radial_segments + cols[None, :]
    b = rows[:, None] * radial_segments + col_next[None, :]
    c = nxt[:, None] * radial_segments + cols[None, :]
    d = nxt[:, None] * radial_segments + col_next[None, :]
    triangles = np.stack([np.stack([a, c, b], axis=-1), np.stack([b, c, d], axis=-1)], axis=2)
    return vertices, triangles.reshape(-1, 3).astype("u4")


__all__ = [
    "CENTRIPETAL_ALPHA",
    "TUBE_RADIAL_SEGMENTS",
    "catmull_rom",
    "finite_rows",
    "parallel_transport_frames",
    "polyline_tangents",
    "tube_mesh",
]
