# ----
# synthetic.py (deterministic demo storms for the CLI and tests)
# ----
from typing import List, Optional

import numpy as np

from .colors import category_from_wind
from .helpers import MS_PER_HOUR, STANDARD_PRESSURE_HPA
from .models import Storm, StormPoint

# 2024-09-06 00:00 UTC
ANCHOR_MS = 1725580800000

NAMES = ["Yagi", "Trami", "Kong-rey", "Yinxing", "Toraji", "Man-yi", "Usagi", "Pabuk"]


def _pressure_from_wind(knots: float) -> float:
    # rough wind-pressure relationship, good enough for demo data
    return round(float(np.clip(STANDARD_PRESSURE_HPA - 0.85 * max(knots - 20.0, 0.0), 880.0, 1010.0)), 1)


def make_track(start_lat: float, start_lng: float, start_ms: int, n: int,
               step_h: float, rng: np.random.Generator, wind0: float = 30.0,
               heading_deg: float = 290.0) -> List[StormPoint]:
    """A recurving north-westward track with a wind random walk (knots)."""
    pts = []
    lat, lng, wind = start_lat, start_lng, wind0
    for i in range(n):
        w = round(wind, 1)
        pts.append(StormPoint(
            timestamp=int(start_ms + i * step_h * MS_PER_HOUR),
            lat=round(lat, 3),
            lng=round(lng, 3),
            wind_speed=w,
            pressure=_pressure_from_wind(w),
            category=category_from_wind(w),
        ))
        hd = np.deg2rad(heading_deg + 4.0 * i)
        speed = 0.12 * step_h  # degrees per step
        lat += speed * np.cos(hd) + rng.normal(0, 0.05)
        lng += speed * np.sin(hd) + rng.normal(0, 0.05)
        wind = float(np.clip(wind + rng.normal(6.0, 5.0), 20.0, 160.0))
    return pts


def make_storms(count: int = 3, seed: int = 7, now_ms: Optional[int] = None,
                historical: int = 8, forecast: int = 5) -> List[Storm]:
    """
    ``count`` storms whose current fix sits at ``now_ms`` (default ANCHOR_MS):
    ``historical`` 6-hourly fixes before it and ``forecast`` 12-hourly after.
    """
    rng = np.random.default_rng(seed)
    now_ms = ANCHOR_MS if now_ms is None else int(now_ms)
    storms = []
    for k in range(count):
        lat0 = 10.0 + 3.0 * k + rng.uniform(-1, 1)
        lng0 = 135.0 + 4.0 * k + rng.uniform(-2, 2)
        hist = make_track(lat0, lng0, now_ms - historical * 6 * MS_PER_HOUR, historical + 1, 6.0, rng)
        current = hist[-1]
        fc = make_track(current.lat, current.lng, now_ms, forecast + 1, 12.0, rng,
                        wind0=float(current.wind_speed))[1:]
        name = NAMES[k % len(NAMES)]
        storms.append(Storm(
            id=f"WP{k + 1:02d}2024",
            name=name,
            name_en=name,
            current_position=current,
            historical=hist[:-1],
            forecast=fc,
            max_wind=max(p.wind_speed for p in hist + fc),
        ))
    return storms
