# -*- coding: utf-8 -*-
"""
cone.py — forecast cone of uncertainty

Geodesics are computed on a sphere of radius 6371 km. The cone is a closed
ring of (lat, lng) pairs: left edge from the current position out to the
last forecast fix, then the right edge back again, zero width at the start.
When alternative scenarios are supplied the half-width at each step is
widened by the distance to each scenario's fix at that step, so every
scenario stays inside.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from pyproj import Geod
from shapely import make_valid
from shapely.geometry import Polygon
from shapely.ops import unary_union

from .config import DEFAULT_CONFIG, Config
from .helpers import EARTH_RADIUS_KM, MS_PER_HOUR, NM_TO_KM
from .models import StormPoint
from .validation import is_valid_coordinate, is_valid_timestamp

logger = logging.getLogger(__name__)

_R_M = EARTH_RADIUS_KM * 1000.0
SPHERE = Geod(a=_R_M, b=_R_M)

LatLng = Tuple[float, float]


# =============================================================================
# Spherical primitives
# =============================================================================

def offset_point(lat: float, lng: float, bearing_deg: float, distance_km: float) -> LatLng:
    """Destination after ``distance_km`` along initial bearing ``bearing_deg``."""
    lon2, lat2, _ = SPHERE.fwd(lng, lat, bearing_deg, distance_km * 1000.0)
    return float(lat2), float(lon2)


def bearing(from_point, to_point) -> float:
    """Initial great-circle bearing in [0, 360). Accepts StormPoints or (lat, lng)."""
    lat1, lng1 = _latlng(from_point)
    lat2, lng2 = _latlng(to_point)
    if lat1 == lat2 and lng1 == lng2:
        return 0.0
    az, _, _ = SPHERE.inv(lng1, lat1, lng2, lat2)
    return float(az) % 360.0


def great_circle_distance_km(a, b) -> float:
    lat1, lng1 = _latlng(a)
    lat2, lng2 = _latlng(b)
    _, _, d = SPHERE.inv(lng1, lat1, lng2, lat2)
    return float(d) / 1000.0


def _latlng(p) -> LatLng:
    if isinstance(p, StormPoint):
        return float(p.lat), float(p.lng)
    return float(p[0]), float(p[1])


# =============================================================================
# Cone
# =============================================================================

def cone_half_width_km(hours: float, growth_nm_per_day: float = DEFAULT_CONFIG.cone_growth_nm_per_day) -> float:
    """Half-width ``hours`` into the forecast; non-decreasing, zero at or before the start."""
    return growth_nm_per_day * (max(0.0, float(hours)) / 24.0) * NM_TO_KM


def _step_bearing(current: StormPoint, pts: Sequence[StormPoint], i: int) -> float:
    if i < len(pts) - 1:
        return bearing(pts[i], pts[i + 1])
    if i > 0:
        return bearing(pts[i - 1], pts[i])
    return bearing(current, pts[i])


def _envelope_width(base_km: float, point: StormPoint, i: int,
                    scenarios: Optional[Sequence[Sequence[Optional[StormPoint]]]]) -> float:
    width = base_km
    for scenario in scenarios or []:
        if i >= len(scenario) or scenario[i] is None:
            continue
        alt = scenario[i]
        if not is_valid_coordinate(alt.lat, alt.lng):
            continue
        width = max(width, base_km + great_circle_distance_km(point, alt))
    return width


def _valid_forecast(forecast: Sequence[Optional[StormPoint]], now: Optional[float]) -> List[StormPoint]:
    out = []
    for p in forecast:
        if p is not None and is_valid_coordinate(p.lat, p.lng) and is_valid_timestamp(p.timestamp, now):
            out.append(p)
        else:
            logger.warning(f"[Cone] dropping invalid forecast point: {p}")
    return out


def calculate_cone_polygon(current: Optional[StormPoint],
                           forecast: Sequence[Optional[StormPoint]],
                           scenarios: Optional[Sequence[Sequence[Optional[StormPoint]]]] = None,
                           config: Config = DEFAULT_CONFIG,
                           now: Optional[float] = None) -> List[LatLng]:
    """Closed cone ring starting and ending at ``current``; [] when it cannot be built."""
    if not forecast:
        return []
    if (current is None or not is_valid_coordinate(current.lat, current.lng)
            or not is_valid_timestamp(current.timestamp, now)):
        logger.error(f"[Cone] invalid current position: {current}")
        return []

    pts = _valid_forecast(forecast, now)
    if not pts:
        logger.error("[Cone] no valid forecast points after validation")
        return []

    lats = np.array([float(p.lat) for p in pts])
    lngs = np.array([float(p.lng) for p in pts])
    bearings = np.array([_step_bearing(current, pts, i) for i in range(len(pts))])
    widths_m = np.array([
        _envelope_width(
            cone_half_width_km((float(p.timestamp) - float(current.timestamp)) / MS_PER_HOUR,
                               config.cone_growth_nm_per_day),
            p, i, scenarios,
        )
        for i, p in enumerate(pts)
    ]) * 1000.0

    l_lng, l_lat, _ = SPHERE.fwd(lngs, lats, (bearings - 90.0) % 360.0, widths_m)
    r_lng, r_lat, _ = SPHERE.fwd(lngs, lats, (bearings + 90.0) % 360.0, widths_m)

    start = (float(current.lat), float(current.lng))
    left = [start] + [(float(a), float(b)) for a, b in zip(l_lat, l_lng)]
    right = [start] + [(float(a), float(b)) for a, b in zip(r_lat, r_lng)]
    return left + right[::-1]


def calculate_inner_cone_polygon(current: Optional[StormPoint],
                                 forecast: Sequence[Optional[StormPoint]],
                                 scenarios: Optional[Sequence[Sequence[Optional[StormPoint]]]] = None,
                                 config: Config = DEFAULT_CONFIG,
                                 now: Optional[float] = None) -> List[LatLng]:
    """Cone over the first half of the forecast (denser fill near the storm); needs >2 points."""
    pts = [p for p in forecast if p is not None]
    if len(pts) <= 2:
        return []
    half = math.ceil(len(pts) / 2)
    sub = [list(s)[:math.ceil(len(s) / 2)] for s in scenarios] if scenarios else None
    return calculate_cone_polygon(current, pts[:half], sub, config, now)


def cone_to_polygon(ring: Sequence[LatLng]):
    """Shapely geometry in (lng, lat) order, made valid; None for degenerate rings."""
    if len(ring) < 4:
        return None
    poly = Polygon([(lng, lat) for lat, lng in ring])
    if not poly.is_valid:
        poly = make_valid(poly)
        if poly.geom_type == "GeometryCollection":
            # keep only areal parts (drops slivers collapsed to lines/points)
            parts = [g for g in poly.geoms if g.geom_type in ("Polygon", "MultiPolygon")]
            poly = unary_union(parts) if parts else Polygon()
    if poly.is_empty or poly.geom_type not in ("Polygon", "MultiPolygon"):
        return None
    return poly
