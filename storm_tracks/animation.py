# ----
# animation.py (track draw-in timing: easing, progress, marker sizing)
# ----
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Tuple

import numpy as np

from .helpers import as_number, clamp

MIN_MARKER_SIZE = 20.0   # px
MAX_MARKER_SIZE = 40.0   # px
MIN_WIND_SPEED = 30.0    # km/h
MAX_WIND_SPEED = 200.0   # km/h


def calculate_marker_size(wind_speed) -> float:
    v = as_number(wind_speed)
    if not np.isfinite(v):
        return MIN_MARKER_SIZE
    frac = clamp((v - MIN_WIND_SPEED) / (MAX_WIND_SPEED - MIN_WIND_SPEED), 0.0, 1.0)
    return MIN_MARKER_SIZE + (MAX_MARKER_SIZE - MIN_MARKER_SIZE) * frac


def linear(t: float) -> float:
    return t


def ease_in_out_cubic(t: float) -> float:
    return 4 * t * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 3 / 2


def ease_out_quad(t: float) -> float:
    return 1 - (1 - t) * (1 - t)


EASINGS: Dict[str, Callable[[float], float]] = {
    "linear": linear,
    "ease-in-out": ease_in_out_cubic,
    "ease-out": ease_out_quad,
}


def interpolate_position(start: Tuple[float, float], end: Tuple[float, float],
                         progress: float) -> Tuple[float, float]:
    """Straight-line (lat, lng) blend; progress is clamped to [0, 1]."""
    t = clamp(float(progress), 0.0, 1.0)
    return (start[0] + (end[0] - start[0]) * t,
            start[1] + (end[1] - start[1]) * t)


def calculate_animation_progress(start_time: float, current_time: float, duration: float) -> float:
    if duration <= 0:
        return 1.0
    return clamp((current_time - start_time) / duration, 0.0, 1.0)


def get_frame_interval(fps: float) -> float:
    """Milliseconds between frames."""
    return 1000.0 / fps


@dataclass
class AnimationConfig:
    duration: float = 3000.0     # ms
    fps: int = 60
    easing: str = "ease-in-out"
    show_timestamps: bool = True
    timestamp_interval: int = 5  # every N points

    def __post_init__(self):
        if self.easing not in EASINGS:
            raise ValueError(f"unknown easing {self.easing!r}; expected one of {sorted(EASINGS)}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")

    def eased_progress(self, start_time: float, current_time: float) -> float:
        return EASINGS[self.easing](calculate_animation_progress(start_time, current_time, self.duration))


DEFAULT_ANIMATION_CONFIG = AnimationConfig()
