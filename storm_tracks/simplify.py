# -*- coding: utf-8 -*-
"""
simplify.py — zoom-adaptive track polylines (Douglas-Peucker in degree space)
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np
from shapely.geometry import LineString

from .config import DEFAULT_CONFIG, Config
from .models import StormPoint

logger = logging.getLogger(__name__)


def perpendicular_distance(point: StormPoint, line_start: StormPoint, line_end: StormPoint) -> float:
    """Distance (degrees) from ``point`` to the infinite line through start/end."""
    d = _distances(
        np.array([[point.lat, point.lng]], dtype=float),
        (float(line_start.lat), float(line_start.lng)),
        (float(line_end.lat), float(line_end.lng)),
    )
    return float(d[0])


def _distances(xy: np.ndarray, a, b) -> np.ndarray:
    x1, y1 = a
    x2, y2 = b
    dx, dy = x2 - x1, y2 - y1
    if dx == 0 and dy == 0:
        return np.hypot(xy[:, 0] - x1, xy[:, 1] - y1)
    num = np.abs(dy * xy[:, 0] - dx * xy[:, 1] + x2 * y1 - y2 * x1)
    return num / np.hypot(dx, dy)


def simplify_track(points: Sequence[StormPoint],
                   tolerance: float = DEFAULT_CONFIG.simplification_tolerance) -> List[StormPoint]:
    """
    Douglas-Peucker over (lat, lng).

    A segment is split at its farthest interior point when that distance is
    strictly greater than ``tolerance``; otherwise it collapses to its two
    endpoints. First and last input points always survive. Runs on an explicit
    stack so long tracks do not hit the recursion limit; the kept set is the
    same as the recursive formulation.
    """
    points = list(points)
    n = len(points)
    if n <= 2:
        return points

    xy = np.array([[p.lat, p.lng] for p in points], dtype=float)
    keep = np.zeros(n, dtype=bool)
    keep[0] = keep[-1] = True

    stack = [(0, n - 1)]
    while stack:
        i, j = stack.pop()
        if j - i < 2:
            continue
        d = _distances(xy[i + 1:j], tuple(xy[i]), tuple(xy[j]))
        k = int(np.argmax(d))
        if d[k] > tolerance:
            mid = i + 1 + k
            keep[mid] = True
            stack.append((mid, j))
            stack.append((i, mid))

    return [p for p, k in zip(points, keep) if k]


def should_simplify_track(points: Sequence[StormPoint], config: Config = DEFAULT_CONFIG) -> bool:
    return len(points) > config.simplification_threshold


def get_track_for_zoom_level(points: Sequence[StormPoint], zoom_level: float,
                             config: Config = DEFAULT_CONFIG) -> List[StormPoint]:
    """Simplified track below the zoom threshold for long tracks, else the input as-is."""
    if zoom_level < config.simplified_zoom_threshold and should_simplify_track(points, config):
        out = simplify_track(points, config.simplification_tolerance)
        logger.debug(f"[Simplify] zoom={zoom_level} {len(points)} -> {len(out)} points")
        return out
    return list(points)


def track_linestring(points: Sequence[StormPoint]) -> Optional[LineString]:
    """Track as a shapely LineString in (lng, lat) order, None below 2 points."""
    if len(points) < 2:
        return None
    return LineString([(float(p.lng), float(p.lat)) for p in points])
