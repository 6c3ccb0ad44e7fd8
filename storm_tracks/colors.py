# -*- coding: utf-8 -*-
"""
colors.py — category colors, color blending and intensity scoring

Category labels are normalized onto the 7-step scale TD < TS < C1 .. C5.
Every lookup is total: labels nobody recognizes fall back to Tropical Storm.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .animation import MAX_MARKER_SIZE, calculate_marker_size
from .helpers import CATEGORIES, STANDARD_PRESSURE_HPA, as_number, clamp
from .models import ColorStop, StormPoint

CATEGORY_COLORS = {
    "TD": "#4CAF50",  # green
    "TS": "#2196F3",  # blue
    "C1": "#FFC107",  # yellow
    "C2": "#FF9800",  # orange
    "C3": "#F44336",  # red
    "C4": "#D32F2F",  # dark red
    "C5": "#9C27B0",  # purple
}
DEFAULT_CATEGORY = "TS"
CATEGORY_LEVEL = {c: i for i, c in enumerate(CATEGORIES)}
MAJOR_HURRICANE_LEVEL = CATEGORY_LEVEL["C3"]

INTENSIFYING = "intensifying"
WEAKENING = "weakening"
STABLE = "stable"
WIND_CHANGE_THRESHOLD = 10.0

MAJOR_MARKER_FLOOR = 32.0
MAJOR_MARKER_BOOST = 1.10

_CATEGORY_NUM = re.compile(r"CATEGORY(\d)")
_SHORT_NUM = re.compile(r"^C(\d)$")


# =============================================================================
# Categories
# =============================================================================

def normalize_category(category) -> Optional[str]:
    """Canonical label (TD, TS, C1..C5) or None when the label is unrecognized."""
    if not isinstance(category, str):
        return None
    s = re.sub(r"\s+", "", category.upper())
    if s in CATEGORY_COLORS:
        return s
    m = _CATEGORY_NUM.search(s) or _SHORT_NUM.match(s)
    if m:
        key = f"C{m.group(1)}"
        return key if key in CATEGORY_COLORS else None
    if "DEPRESSION" in s:
        return "TD"
    if "TROPICAL" in s or "STORM" in s:
        return "TS"
    return None


def category_level(category) -> int:
    return CATEGORY_LEVEL[normalize_category(category) or DEFAULT_CATEGORY]


def is_major_hurricane(category) -> bool:
    return category_level(category) >= MAJOR_HURRICANE_LEVEL


def category_from_wind(v) -> Optional[str]:
    """Saffir-Simpson label from sustained wind in knots."""
    v = as_number(v)
    if not np.isfinite(v):
        return None
    if v < 34:
        return "TD"
    if v < 64:
        return "TS"
    if v < 83:
        return "C1"
    if v < 96:
        return "C2"
    if v < 113:
        return "C3"
    if v < 137:
        return "C4"
    return "C5"


# =============================================================================
# Colors
# =============================================================================

def get_category_color(category) -> str:
    return CATEGORY_COLORS[normalize_category(category) or DEFAULT_CATEGORY]


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    h = color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def rgb_to_hex(r: float, g: float, b: float) -> str:
    def _c(v: float) -> int:
        return int(clamp(round(v), 0, 255))
    return f"#{_c(r):02x}{_c(g):02x}{_c(b):02x}"


def interpolate_color(color1: str, color2: str, factor: float) -> str:
    t = clamp(float(factor), 0.0, 1.0)
    c1 = np.array(hex_to_rgb(color1), dtype=float)
    c2 = np.array(hex_to_rgb(color2), dtype=float)
    return rgb_to_hex(*(c1 + (c2 - c1) * t))


def generate_gradient_stops(points: Sequence[StormPoint]) -> List[ColorStop]:
    if not points:
        return []
    if len(points) == 1:
        return [ColorStop(0.0, get_category_color(points[0].category), points[0].category)]
    n = len(points) - 1
    return [ColorStop(i / n, get_category_color(p.category), p.category) for i, p in enumerate(points)]


def get_transition_color(from_point: StormPoint, to_point: StormPoint, progress: float) -> str:
    c_from = get_category_color(from_point.category)
    if from_point.category == to_point.category:
        return c_from
    return interpolate_color(c_from, get_category_color(to_point.category), progress)


def build_track_segments(points: Sequence[StormPoint],
                         custom_color: Optional[str] = None) -> List[Tuple[Tuple[float, float], Tuple[float, float], str]]:
    """One (start, end, color) per consecutive pair, colored at the blended midpoint."""
    segs = []
    for a, b in zip(points, points[1:]):
        color = custom_color or interpolate_color(get_category_color(a.category), get_category_color(b.category), 0.5)
        segs.append(((a.lat, a.lng), (b.lat, b.lng), color))
    return segs


# =============================================================================
# Intensity
# =============================================================================

@dataclass(frozen=True)
class IntensityChangeEvent:
    previous_point: StormPoint
    current_point: StormPoint
    change_type: str
    wind_speed_delta: float
    category_changed: bool
    should_show_glow: bool


def detect_intensity_change(previous_point: StormPoint, current_point: StormPoint) -> str:
    prev_level = category_level(previous_point.category)
    curr_level = category_level(current_point.category)
    if curr_level > prev_level:
        return INTENSIFYING
    if curr_level < prev_level:
        return WEAKENING

    delta = as_number(current_point.wind_speed) - as_number(previous_point.wind_speed)
    if delta > WIND_CHANGE_THRESHOLD:
        return INTENSIFYING
    if delta < -WIND_CHANGE_THRESHOLD:
        return WEAKENING
    return STABLE


def analyze_intensity_change(previous_point: StormPoint, current_point: StormPoint,
                             show_glow_on_intensify: bool = True) -> IntensityChangeEvent:
    change = detect_intensity_change(previous_point, current_point)
    return IntensityChangeEvent(
        previous_point=previous_point,
        current_point=current_point,
        change_type=change,
        wind_speed_delta=as_number(current_point.wind_speed) - as_number(previous_point.wind_speed),
        category_changed=normalize_category(previous_point.category) != normalize_category(current_point.category),
        should_show_glow=show_glow_on_intensify and change == INTENSIFYING,
    )


def get_intensity_change_points(points: Sequence[StormPoint]) -> List[int]:
    return [i for i in range(1, len(points)) if detect_intensity_change(points[i - 1], points[i]) != STABLE]


def calculate_intensity_marker_size(wind_speed, category) -> float:
    size = calculate_marker_size(wind_speed)
    if is_major_hurricane(category):
        size = max(size, MAJOR_MARKER_FLOOR) * MAJOR_MARKER_BOOST
    return min(size, MAX_MARKER_SIZE)


def calculate_intensity_score(point: StormPoint) -> float:
    """Single ranking scalar; higher is more intense."""
    level = category_level(point.category)
    wind_score = as_number(point.wind_speed) / 200.0
    pressure_score = (STANDARD_PRESSURE_HPA - as_number(point.pressure)) / 100.0
    return level * 10 + wind_score * 5 + pressure_score * 3
