# -*- coding: utf-8 -*-
"""
config.py — engine tunables in one dataclass

All thresholds the engine consults live here so a host application can
inject them at construction (including the persisted visualization mode)
instead of reading global state. Defaults match the behavior the map
front-end has always shipped with.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

VISUALIZATION_MODES = ("gradient", "windy")
ENV_PREFIX = "STORM_TRACKS_"


@dataclass
class Config:
    # Track simplification
    simplification_threshold: int = 100     # simplify tracks with more points than this
    simplification_tolerance: float = 0.01  # Douglas-Peucker tolerance (degrees)
    simplified_zoom_threshold: int = 7      # simplified rendering below this zoom

    # Animation
    max_simultaneous_animations: int = 5
    reduced_fps_threshold: int = 3          # reduce FPS above this many active storms
    normal_fps: int = 60
    reduced_fps: int = 30

    # Forecast cone
    cone_growth_nm_per_day: float = 50.0

    # Timeline
    marker_interval_h: int = 3
    wide_marker_interval_h: int = 6
    max_markers: int = 20
    single_point_window_h: float = 6.0
    visibility_buffer_h: float = 1.0

    # Rendering
    visualization_mode: str = "gradient"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.simplification_tolerance < 0:
            raise ValueError("simplification_tolerance must be >= 0")
        if self.max_simultaneous_animations < 1:
            raise ValueError("max_simultaneous_animations must be >= 1")
        if self.visualization_mode not in VISUALIZATION_MODES:
            raise ValueError(
                f"visualization_mode must be one of {VISUALIZATION_MODES}, got {self.visualization_mode!r}"
            )

    @property
    def windy_mode(self) -> bool:
        return self.visualization_mode == "windy"

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None, **overrides) -> "Config":
        """Build from STORM_TRACKS_* variables (``.env`` honored), then apply overrides."""
        load_dotenv(dotenv_path)

        def _get(name: str, cast, default):
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw is None or raw.strip() == "":
                return default
            return cast(raw.strip())

        base = cls()
        values = dict(
            simplification_threshold=_get("simplification_threshold", int, base.simplification_threshold),
            simplification_tolerance=_get("simplification_tolerance", float, base.simplification_tolerance),
            simplified_zoom_threshold=_get("simplified_zoom_threshold", int, base.simplified_zoom_threshold),
            max_simultaneous_animations=_get("max_simultaneous_animations", int, base.max_simultaneous_animations),
            visualization_mode=_get("visualization_mode", str.lower, base.visualization_mode),
            log_level=_get("log_level", str.upper, base.log_level),
            log_file=_get("log_file", Path, base.log_file),
        )
        values.update(overrides)
        return cls(**values)


DEFAULT_CONFIG = Config()
