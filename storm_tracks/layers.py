# -*- coding: utf-8 -*-
"""
layers.py — thin rendering adapter over the pure track engine

A map widget (or any other renderer) owns one ``StormLayer`` per session.
It forwards viewport notifications (zoom, timeline scrub) and asks for a
frame: a GeoDataFrame in EPSG:4326 with one row per visible storm carrying
the track line, the current marker point, the forecast cone and the style
attributes of the injected visualization mode. All geometry and timing
decisions stay in the core modules; this class only wires them together
and keeps the animation scheduler in step with what is on screen.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.geometry import Point

from .animation import DEFAULT_ANIMATION_CONFIG, AnimationConfig, get_frame_interval, interpolate_position
from .colors import (
    STABLE,
    analyze_intensity_change,
    build_track_segments,
    calculate_intensity_marker_size,
    generate_gradient_stops,
    get_category_color,
    get_intensity_change_points,
)
from .cone import calculate_cone_polygon, calculate_inner_cone_polygon, cone_to_polygon
from .config import DEFAULT_CONFIG, Config
from .helpers import WGS84, _timer, clamp, now_ms
from .models import Storm, StormPoint, StormState, TimeRange
from .scheduler import AnimationScheduler
from .simplify import get_track_for_zoom_level, track_linestring
from .timeline import clamp_time, compute_time_range, format_marker, full_track, state_at_time, storms_at_time
from .validation import validate_and_sanitize_storm
from .wind_circles import calculate_wind_circles

logger = logging.getLogger(__name__)

WINDY_MARKER_COLOR = "#ff0000"
WHITE = "#ffffff"

FRAME_COLUMNS = [
    "storm_id", "name", "category", "wind_speed", "pressure",
    "interpolated", "is_forecast", "color", "marker_size", "wind_circles",
    "intensity_change", "glow", "intensity_change_points",
    "track_points", "track_color", "track_weight", "track_opacity", "track_dash",
    "gradient_stops", "segment_colors",
    "cone_color", "cone_fill_opacity", "cone_dash",
    "animation", "fps", "frame_interval_ms", "draw_progress", "timestamp_labels",
    "position", "track", "draw_head", "cone", "inner_cone",
]
GEOMETRY_COLUMNS = ("position", "track", "draw_head", "cone", "inner_cone")


# =============================================================================
# Style
# =============================================================================

def track_style(config: Config, is_historical: bool, category=None) -> Dict[str, Any]:
    if config.windy_mode:
        return {"color": WHITE, "weight": 3, "opacity": 0.8, "dash": "10 10"}
    return {
        "color": get_category_color(category),
        "weight": 4,
        "opacity": 0.8 if is_historical else 0.6,
        "dash": None if is_historical else "10 5",
    }


def cone_style(config: Config, opacity: float = 0.3) -> Dict[str, Any]:
    return {
        "color": WHITE,
        "fill_opacity": 0.2 if config.windy_mode else opacity,
        "dash": "10 10" if config.windy_mode else "10 5",
    }


def marker_color(config: Config, category) -> str:
    return WINDY_MARKER_COLOR if config.windy_mode else get_category_color(category)


def draw_head(points: List[StormPoint], progress: float) -> Optional[Point]:
    """Tip of a partially drawn track: first fix at 0, last fix at 1."""
    if not points:
        return None
    if len(points) == 1:
        return Point(float(points[0].lng), float(points[0].lat))
    f = clamp(float(progress), 0.0, 1.0) * (len(points) - 1)
    i = min(int(f), len(points) - 2)
    a, b = points[i], points[i + 1]
    lat, lng = interpolate_position((a.lat, a.lng), (b.lat, b.lng), f - i)
    return Point(float(lng), float(lat))


# =============================================================================
# Adapter
# =============================================================================

class StormLayer:
    """
    Holds the last viewport state; every frame is recomputed from scratch.

    A storm's track draws in once the scheduler grants it a slot:
    ``draw_progress`` runs 0 -> 1 over ``animation.duration`` ms of ``clock``
    (epoch ms) with the configured easing. Queued storms stay at 0.
    """

    def __init__(self, config: Config = DEFAULT_CONFIG,
                 scheduler: Optional[AnimationScheduler] = None,
                 now: Optional[float] = None,
                 animation: AnimationConfig = DEFAULT_ANIMATION_CONFIG,
                 clock: Callable[[], float] = now_ms) -> None:
        self.config = config
        self.scheduler = scheduler or AnimationScheduler(config)
        self.now = now
        self.animation = animation
        self.clock = clock
        self.zoom: float = float(config.simplified_zoom_threshold)
        self.time: Optional[float] = None
        self.time_range = TimeRange()
        self.rejected: Dict[str, str] = {}
        self._storms: List[Storm] = []
        self._granted: Dict[str, float] = {}

    # Viewport notifications --------------------------------------------------
    def on_zoom_changed(self, zoom: float) -> gpd.GeoDataFrame:
        self.zoom = float(zoom)
        return self.build_frame()

    def on_time_changed(self, t: Optional[float]) -> gpd.GeoDataFrame:
        self.time = t
        return self.build_frame()

    # Frame -------------------------------------------------------------------
    def build_frame(self, storms: Optional[Iterable[Union[Storm, dict]]] = None) -> gpd.GeoDataFrame:
        if storms is not None:
            self._storms = self._accept(storms)

        with _timer("Layer"):
            self.time_range = compute_time_range(self._storms, self.config)
            states = self._states()
            self._sync_animations([s.storm.id for s in states])
            fps = self.scheduler.target_fps
            rows = [self._row(s, fps) for s in states]

        df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
        gdf = gpd.GeoDataFrame(df, geometry="position", crs=WGS84)
        for col in GEOMETRY_COLUMNS[1:]:
            gdf[col] = gpd.GeoSeries(df[col], crs=WGS84)
        logger.debug(f"[Layer] frame zoom={self.zoom} t={self.time} rows={len(gdf)}")
        return gdf

    def teardown(self) -> None:
        self.scheduler.teardown()
        self._storms = []
        self._granted = {}

    # Internals ---------------------------------------------------------------
    def _accept(self, storms: Iterable[Union[Storm, dict]]) -> List[Storm]:
        self.rejected = {}
        out = []
        for raw in storms:
            storm = raw if isinstance(raw, Storm) or raw is None else Storm.from_dict(raw)
            sanitized, msg = validate_and_sanitize_storm(storm, self.now)
            if sanitized is None:
                key = str(storm.id) if storm is not None else "<none>"
                self.rejected[key] = msg
                continue
            out.append(sanitized)
        return out

    def _states(self) -> List[StormState]:
        if self.time is None:
            # no scrub: each storm as of its own current fix
            states = [state_at_time(s, float(s.current_position.timestamp)) for s in self._storms]
            return [s for s in states if s is not None]
        t = clamp_time(self.time, self.time_range)
        if t != self.time:
            logger.info(f"[Layer] time {self.time} outside timeline; reset to {t}")
            self.time = t
        return storms_at_time(self._storms, t, self.config)

    def _sync_animations(self, visible_ids: List[str]) -> None:
        visible = set(visible_ids)
        queue = self.scheduler.queue
        # drop hidden waiters first so retiring a hidden runner cannot promote them
        for anim_id in queue.queued_ids():
            if anim_id not in visible:
                self.scheduler.cancel(anim_id)
        for anim_id in queue.active_ids():
            if anim_id not in visible:
                self._granted.pop(anim_id, None)
                self.scheduler.complete(anim_id)
        for anim_id in visible_ids:
            self.scheduler.request(anim_id, lambda i=anim_id: self._on_granted(i))

    def _on_granted(self, anim_id: str) -> None:
        self._granted[anim_id] = float(self.clock())
        logger.debug(f"[Layer] animating {anim_id}")

    def _labels(self, track_pts: List[StormPoint]) -> List[str]:
        if not self.animation.show_timestamps or not track_pts:
            return []
        step = max(1, int(self.animation.timestamp_interval))
        return format_marker(np.array([float(p.timestamp) for p in track_pts[::step]]))

    def _row(self, state: StormState, fps: int) -> Dict[str, Any]:
        view = state.as_storm()
        pos = state.position
        windy = self.config.windy_mode
        track_pts = get_track_for_zoom_level(full_track(view), self.zoom, self.config)
        tstyle = track_style(self.config, state.is_historical, pos.category)
        cstyle = cone_style(self.config)

        ring = calculate_cone_polygon(view.current_position, view.forecast, config=self.config, now=self.now)
        inner = []
        if not windy:
            inner = calculate_inner_cone_polygon(view.current_position, view.forecast,
                                                 config=self.config, now=self.now)

        # change from the last fix before the sample
        change = analyze_intensity_change(state.historical[-1], pos) if state.historical else None

        granted = self._granted.get(view.id)
        progress = self.animation.eased_progress(granted, float(self.clock())) if granted is not None else 0.0

        return {
            "storm_id": view.id,
            "name": view.label,
            "category": pos.category,
            "wind_speed": pos.wind_speed,
            "pressure": pos.pressure,
            "interpolated": state.interpolated,
            "is_forecast": state.is_forecast,
            "color": marker_color(self.config, pos.category),
            "marker_size": calculate_intensity_marker_size(pos.wind_speed, pos.category),
            "wind_circles": [round(c.radius_km, 1) for c in calculate_wind_circles(pos.wind_speed)],
            "intensity_change": change.change_type if change else STABLE,
            "glow": bool(change and change.should_show_glow),
            "intensity_change_points": get_intensity_change_points(track_pts),
            "track_points": len(track_pts),
            "track_color": tstyle["color"],
            "track_weight": tstyle["weight"],
            "track_opacity": tstyle["opacity"],
            "track_dash": tstyle["dash"],
            "gradient_stops": [] if windy else [(s.position, s.color) for s in generate_gradient_stops(track_pts)],
            "segment_colors": [c for _, _, c in build_track_segments(track_pts, WHITE if windy else None)],
            "cone_color": cstyle["color"],
            "cone_fill_opacity": cstyle["fill_opacity"],
            "cone_dash": cstyle["dash"],
            "animation": self.scheduler.queue.state_of(view.id).value,
            "fps": fps,
            "frame_interval_ms": get_frame_interval(fps),
            "draw_progress": progress,
            "timestamp_labels": self._labels(track_pts),
            "position": Point(float(pos.lng), float(pos.lat)),
            "track": track_linestring(track_pts),
            "draw_head": draw_head(track_pts, progress) if granted is not None else None,
            "cone": cone_to_polygon(ring),
            "inner_cone": cone_to_polygon(inner),
        }
