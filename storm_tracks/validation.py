# -*- coding: utf-8 -*-
"""
validation.py — checks and repairs raw track data before anything else runs

Errors make a point (or a whole storm) unusable: bad coordinates, bad
timestamps, a missing current position. Warnings degrade gracefully:
missing/odd wind, pressure or category is reported and later replaced by
defaults. Nothing in here raises on bad data; hard failures come back as
``(None, diagnostic)`` from ``validate_and_sanitize_storm``.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Mapping, Optional, Tuple

import numpy as np

from .helpers import (
    MS_PER_DAY, PRESSURE_RANGE, STANDARD_PRESSURE_HPA, WIND_SPEED_RANGE,
    as_number, bounds_ok, in_range, now_ms,
)
from .models import Storm, StormPoint, ValidationResult

logger = logging.getLogger(__name__)

MAX_FUTURE_MS = 365 * MS_PER_DAY

POINT_FALLBACKS = {
    "lat": 0.0,
    "lng": 0.0,
    "wind_speed": 0.0,
    "pressure": STANDARD_PRESSURE_HPA,
    "category": "Unknown",
}


# =============================================================================
# Predicates
# =============================================================================

def is_valid_coordinate(lat, lng) -> bool:
    return bounds_ok(lat, lng)


def is_valid_wind_speed(wind_speed) -> bool:
    return in_range(wind_speed, *WIND_SPEED_RANGE)


def is_valid_pressure(pressure) -> bool:
    return in_range(pressure, *PRESSURE_RANGE)


def is_valid_timestamp(timestamp, now: Optional[float] = None) -> bool:
    """Epoch milliseconds, positive and no more than a year ahead of ``now``."""
    ts = as_number(timestamp)
    if not np.isfinite(ts) or ts <= 0:
        return False
    ref = now_ms() if now is None else now
    return ts <= ref + MAX_FUTURE_MS


def is_usable_point(point: Optional[StormPoint], now: Optional[float] = None) -> bool:
    return (
        point is not None
        and is_valid_coordinate(point.lat, point.lng)
        and is_valid_timestamp(point.timestamp, now)
    )


def _is_missing(v) -> bool:
    return v is None or (isinstance(v, float) and np.isnan(v))


# =============================================================================
# Validation
# =============================================================================

def validate_storm_point(point: Optional[StormPoint], index: int = 0,
                         now: Optional[float] = None) -> ValidationResult:
    errors: List[str] = []
    warnings: List[str] = []

    if point is None:
        errors.append(f"Point at index {index} is null or missing")
        return ValidationResult.from_lists(errors, warnings)

    if not is_valid_coordinate(point.lat, point.lng):
        errors.append(f"Invalid coordinates at point {index}: lat={point.lat}, lng={point.lng}")

    if not is_valid_wind_speed(point.wind_speed):
        if _is_missing(point.wind_speed):
            warnings.append(f"Missing wind speed at point {index}")
        else:
            warnings.append(f"Out-of-range wind speed at point {index}: {point.wind_speed}")

    if not is_valid_pressure(point.pressure):
        if _is_missing(point.pressure):
            warnings.append(f"Missing pressure at point {index}")
        else:
            warnings.append(f"Out-of-range pressure at point {index}: {point.pressure} hPa")

    if not is_valid_timestamp(point.timestamp, now):
        errors.append(f"Invalid timestamp at point {index}: {point.timestamp}")

    if not isinstance(point.category, str) or not point.category.strip():
        warnings.append(f"Missing or invalid category at point {index}")

    return ValidationResult.from_lists(errors, warnings)


def validate_storm_points(points, label: str = "points",
                          now: Optional[float] = None) -> ValidationResult:
    if not isinstance(points, (list, tuple)):
        return ValidationResult.from_lists([f"{label} is not a list"], [])
    if not points:
        return ValidationResult.from_lists([], [f"No {label} available"])

    result = ValidationResult()
    for i, p in enumerate(points):
        result = result.merge(validate_storm_point(p, i, now))
    return result


def validate_storm(storm: Optional[Storm], now: Optional[float] = None) -> ValidationResult:
    if storm is None:
        return ValidationResult.from_lists(["Storm object is null or missing"], [])

    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(storm.id, str) or not storm.id:
        errors.append("Storm ID is missing or invalid")
    if not isinstance(storm.name, str) or not storm.name:
        warnings.append("Storm name is missing")
    if storm.current_position is None:
        errors.append("Current position is missing")

    result = ValidationResult.from_lists(errors, warnings)
    if storm.current_position is not None:
        result = result.merge(validate_storm_point(storm.current_position, 0, now), prefix="Current position: ")
    result = result.merge(validate_storm_points(storm.historical, "historical points", now))
    result = result.merge(validate_storm_points(storm.forecast, "forecast points", now))

    total = storm.point_count()
    if total < 2:
        result.warnings.append(f"Insufficient points for rendering ({total} points, minimum 2 required)")
    return result


def log_validation_result(result: ValidationResult, context: str = "Storm data") -> None:
    if result.errors:
        logger.error(f"[Validation] {context} - {len(result.errors)} error(s): {result.errors}")
    if result.warnings:
        logger.warning(f"[Validation] {context} - {len(result.warnings)} warning(s): {result.warnings}")
    if result.is_valid and not result.warnings:
        logger.debug(f"[Validation] {context} - all checks passed")


def get_user_friendly_error_message(result: ValidationResult) -> Optional[str]:
    if result.is_valid:
        return None
    errs = [e.lower() for e in result.errors]
    if any("coordinates" in e for e in errs):
        return "Storm position data is invalid. The storm cannot be shown on the map."
    if any("timestamp" in e for e in errs):
        return "Storm time data is invalid. The storm history cannot be shown."
    if any("current position" in e for e in errs):
        return "No current position is available for this storm."
    return "Storm data is invalid. Please try again later."


def has_forecast_data(storm: Storm) -> bool:
    return any(p is not None and is_valid_coordinate(p.lat, p.lng) for p in (storm.forecast or []))


def get_forecast_message(storm: Storm) -> Optional[str]:
    if not has_forecast_data(storm):
        return "No forecast data is available for this storm."
    return None


# =============================================================================
# Repair
# =============================================================================

def _lerp(a, b, factor: float):
    a, b = as_number(a), as_number(b)
    if np.isnan(a) or np.isnan(b):
        # one side unknown: step like category does
        v = a if factor < 0.5 else b
        return None if np.isnan(v) else float(v)
    return a * (1.0 - factor) + b * factor


def interpolate_storm_point(prev_point: StormPoint, next_point: StormPoint,
                            factor: float = 0.5) -> StormPoint:
    """Linear blend of the numeric fields; category switches at factor 0.5."""
    return StormPoint(
        timestamp=_lerp(prev_point.timestamp, next_point.timestamp, factor),
        lat=_lerp(prev_point.lat, next_point.lat, factor),
        lng=_lerp(prev_point.lng, next_point.lng, factor),
        wind_speed=_lerp(prev_point.wind_speed, next_point.wind_speed, factor),
        pressure=_lerp(prev_point.pressure, next_point.pressure, factor),
        category=prev_point.category if factor < 0.5 else next_point.category,
    )


def fill_storm_point_gaps(points: Iterable[Optional[StormPoint]],
                          now: Optional[float] = None) -> List[StormPoint]:
    """
    Replace unusable points that sit between two usable ones with evenly
    spaced interpolations, one per missing slot. Unusable points before the
    first or after the last usable point are dropped.
    """
    points = list(points or [])
    out: List[StormPoint] = []
    last_idx: Optional[int] = None
    for i, p in enumerate(points):
        if not is_usable_point(p, now):
            continue
        if last_idx is not None:
            gap = i - last_idx - 1
            for j in range(1, gap + 1):
                out.append(interpolate_storm_point(points[last_idx], p, j / (gap + 1)))
        out.append(p)
        last_idx = i
    if len(out) != len(points):
        logger.debug(f"[Validation] gap fill {len(points)} -> {len(out)} points")
    return out


def sanitize_storm_point(point: StormPoint, defaults: Optional[Mapping] = None,
                         now: Optional[float] = None) -> StormPoint:
    """Substitute defaults field by field; the point itself is never discarded."""
    d = dict(POINT_FALLBACKS)
    d.update({k: v for k, v in (defaults or {}).items() if v is not None})
    coord_ok = is_valid_coordinate(point.lat, point.lng)
    category = point.category if isinstance(point.category, str) and point.category.strip() else d["category"]
    return StormPoint(
        timestamp=point.timestamp if is_valid_timestamp(point.timestamp, now) else d.get("timestamp", now_ms() if now is None else now),
        lat=point.lat if coord_ok else d["lat"],
        lng=point.lng if coord_ok else d["lng"],
        wind_speed=point.wind_speed if is_valid_wind_speed(point.wind_speed) else d["wind_speed"],
        pressure=point.pressure if is_valid_pressure(point.pressure) else d["pressure"],
        category=category,
    )


def _sanitize_track(points, now: Optional[float]) -> List[StormPoint]:
    # unusable points stay as gaps for the fill step; usable ones get field defaults
    kept = [sanitize_storm_point(p, now=now) if is_usable_point(p, now) else None for p in points or []]
    return fill_storm_point_gaps(kept, now)


def validate_and_sanitize_storm(storm: Optional[Storm],
                                now: Optional[float] = None) -> Tuple[Optional[Storm], Optional[str]]:
    """
    Full validation then repair.

    Returns ``(storm, None)`` with a new, display-ready Storm, or
    ``(None, diagnostic)`` when hard errors make it undrawable.
    """
    label = storm.label if storm is not None else "<none>"
    result = validate_storm(storm, now)
    log_validation_result(result, f"Storm {label}")

    if not result.is_valid:
        msg = get_user_friendly_error_message(result)
        logger.error(f"[Validation] cannot render storm {label}: {msg}")
        return None, msg

    sanitized = replace(
        storm,
        current_position=sanitize_storm_point(storm.current_position, now=now),
        historical=_sanitize_track(storm.historical, now),
        forecast=_sanitize_track(storm.forecast, now),
    )
    return sanitized, None
