# ----
# wind_circles.py (wind-strength rings around the current position)
# ----
from typing import List, Mapping, Optional

import numpy as np

from .helpers import as_number
from .models import CircleConfig

# threshold name, knots, radii key, fallback fraction of max wind
WIND_THRESHOLDS = [
    ("TROPICAL_STORM", 34.0, "kt34", 0.50),
    ("STORM_FORCE", 50.0, "kt50", 0.35),
    ("HURRICANE_FORCE", 64.0, "kt64", 0.25),
    ("MAJOR_HURRICANE", 100.0, "kt100", 0.15),
]


def calculate_wind_circles(wind_speed, wind_radii: Optional[Mapping[str, float]] = None) -> List[CircleConfig]:
    """
    Rings for every threshold the sustained wind (knots) reaches.

    Measured radii (km, keyed kt34/kt50/kt64/kt100) win over the fallback
    estimate ``wind_speed * fraction``.
    """
    v = as_number(wind_speed)
    if not np.isfinite(v):
        return []
    radii = wind_radii or {}
    circles = []
    for name, knots, key, frac in WIND_THRESHOLDS:
        if v < knots:
            continue
        r = as_number(radii.get(key))
        circles.append(CircleConfig(
            radius_km=float(r) if np.isfinite(r) and r > 0 else v * frac,
            wind_speed_threshold=knots,
            threshold=name,
        ))
    return circles


def get_circle_count(wind_speed) -> int:
    return len(calculate_wind_circles(wind_speed))


def should_display_circles(wind_speed) -> bool:
    return get_circle_count(wind_speed) > 0
