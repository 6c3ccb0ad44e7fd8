# -*- coding: utf-8 -*-
"""
timeline.py — global timeline bounds and per-storm state at any timestamp

Timestamps are epoch milliseconds throughout. A storm's "full track" is
historical + current + forecast, usable points only, sorted by time.
"""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG, Config
from .helpers import MS_PER_HOUR, as_number
from .models import (
    Interpolated, Observed, Storm, StormPoint, StormState, TimeMarker, TimeRange,
)
from .validation import interpolate_storm_point

logger = logging.getLogger(__name__)

PLAYBACK_SPEEDS = (0.5, 1.0, 2.0, 4.0)
STORM_MS_PER_SECOND = MS_PER_HOUR  # 1 h of storm time per second at 1x


def _has_time(p: Optional[StormPoint]) -> bool:
    if p is None:
        return False
    ts = as_number(p.timestamp)
    return bool(np.isfinite(ts)) and ts > 0


def full_track(storm: Storm) -> List[StormPoint]:
    """Time-sorted points that carry a timestamp and a position."""
    pts = [
        p for p in storm.all_points()
        if _has_time(p) and np.isfinite(as_number(p.lat)) and np.isfinite(as_number(p.lng))
    ]
    return sorted(pts, key=lambda p: float(p.timestamp))


def format_marker(times_ms: np.ndarray) -> List[str]:
    return list(pd.to_datetime(times_ms, unit="ms", utc=True).strftime("%H:%M"))


def compute_time_range(storms: Iterable[Storm], config: Config = DEFAULT_CONFIG) -> TimeRange:
    """
    Global window over every storm's points, rounded out to the marker grid.

    Markers are every ``marker_interval_h`` hours, or every
    ``wide_marker_interval_h`` when the narrow grid would exceed
    ``max_markers``. Storms without any timestamped point are skipped.
    """
    stamps = [float(p.timestamp) for s in storms if s is not None for p in s.all_points() if _has_time(p)]
    if not stamps:
        return TimeRange()

    step = config.marker_interval_h * MS_PER_HOUR
    start = int(math.floor(min(stamps) / step) * step)
    end = int(math.ceil(max(stamps) / step) * step)

    interval = step
    if (end - start) / step > config.max_markers:
        interval = config.wide_marker_interval_h * MS_PER_HOUR

    times = np.arange(start, end + 1, interval, dtype=np.int64)
    markers = tuple(TimeMarker(int(t), label) for t, label in zip(times, format_marker(times)))
    return TimeRange(start_time=start, end_time=end, markers=markers)


def state_at_time(storm: Storm, t: float) -> Optional[StormState]:
    """
    Position/intensity of ``storm`` at ``t``.

    Clamps to the first/last point outside the track; on an exact timestamp
    hit the stored point is returned untouched (as ``Observed``); otherwise
    the bracketing pair is blended (as ``Interpolated``). None when the storm
    has no usable point.
    """
    pts = full_track(storm)
    if not pts:
        return None

    ts = np.array([float(p.timestamp) for p in pts])
    i = int(np.searchsorted(ts, t, side="right")) - 1

    if i < 0:
        sample = Observed(pts[0])
    elif i >= len(pts) - 1 or ts[i] == t or ts[i + 1] <= ts[i]:
        sample = Observed(pts[min(i, len(pts) - 1)])
    else:
        factor = (t - ts[i]) / (ts[i + 1] - ts[i])
        blended = replace(interpolate_storm_point(pts[i], pts[i + 1], factor), timestamp=t)
        sample = Interpolated(blended, float(factor), pts[i], pts[i + 1])

    cur = storm.current_position
    cur_ts = as_number(cur.timestamp) if cur is not None else np.nan
    return StormState(
        storm=storm,
        sample=sample,
        historical=[p for p in pts if p.timestamp < t],
        forecast=[p for p in pts if p.timestamp > t],
        is_historical=bool(np.isfinite(cur_ts) and t <= cur_ts),
        is_forecast=bool(np.isfinite(cur_ts) and t > cur_ts),
        start_time=float(ts[0]),
        end_time=float(ts[-1]),
    )


def is_visible_at(storm: Storm, t: float, config: Config = DEFAULT_CONFIG) -> bool:
    pts = full_track(storm)
    if not pts:
        return False
    if len(pts) == 1:
        return abs(t - float(pts[0].timestamp)) <= config.single_point_window_h * MS_PER_HOUR
    buf = config.visibility_buffer_h * MS_PER_HOUR
    return float(pts[0].timestamp) - buf <= t <= float(pts[-1].timestamp) + buf


def storms_at_time(storms: Iterable[Storm], t: float, config: Config = DEFAULT_CONFIG) -> List[StormState]:
    """Visible storms evaluated at ``t``, in input order."""
    out = []
    for storm in storms:
        if storm is None:
            continue
        if storm.current_position is None or not _has_time(storm.current_position):
            logger.warning(f"[Timeline] storm {storm.id} has no usable current position; skipped")
            continue
        if not is_visible_at(storm, t, config):
            continue
        state = state_at_time(storm, t)
        if state is not None:
            out.append(state)
    return out


def clamp_time(t: Optional[float], time_range: TimeRange) -> Optional[float]:
    """Scrub position kept inside the window; unset or out-of-range snaps to the start."""
    if time_range.is_empty:
        return t
    if t is None or not time_range.contains(t):
        return time_range.start_time
    return t


def advance_time(t: float, elapsed_ms: float, speed: float,
                 time_range: TimeRange) -> Tuple[float, bool]:
    """One playback step. Returns (new time, still playing); stops at the end."""
    new_t = t + (elapsed_ms / 1000.0) * STORM_MS_PER_SECOND * speed
    if not time_range.is_empty and new_t >= time_range.end_time:
        return float(time_range.end_time), False
    return new_t, True
