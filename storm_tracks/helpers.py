# ----
# helpers.py (constants, logging, timing, small numeric utils)
# ----
import logging
import math
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import numpy as np

# ---- constants ----
NM_TO_KM = 1.852
EARTH_RADIUS_KM = 6371.0
MS_PER_HOUR = 60 * 60 * 1000
MS_PER_DAY = 24 * MS_PER_HOUR

LAT_RANGE = (-90.0, 90.0)
LNG_RANGE = (-180.0, 180.0)
WIND_SPEED_RANGE = (0.0, 400.0)    # extreme upper bound, dataset unit
PRESSURE_RANGE = (850.0, 1050.0)   # hPa
STANDARD_PRESSURE_HPA = 1013.0

WGS84 = "EPSG:4326"

# ordinal severity scale, weakest first
CATEGORIES = ["TD", "TS", "C1", "C2", "C3", "C4", "C5"]

logger = logging.getLogger("storm_tracks")
_section_times: dict = {}


# ---- logging ----
def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """UTF-8 logging to console (and optional file), safe for repeat calls."""
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%H:%M:%S",
    )

    sh = logging.StreamHandler(stream=sys.stdout)
    try:
        sh.stream.reconfigure(encoding="utf-8")
    except (AttributeError, ValueError):
        pass
    sh.setFormatter(fmt)
    root.addHandler(sh)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logger.info(f"[Setup] logging level={logging.getLevelName(root.level)} file={log_file or '-'}")


@contextmanager
def _timer(tag: str):
    t0 = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("[%s] %.1f ms", tag, (time.perf_counter() - t0) * 1000)


def _log_header(section: str, message: str) -> None:
    logger.info(f"[{section}] {message}")
    _section_times[section] = time.time()


def _log_processed(section: str, processed: int, skipped: int) -> None:
    elapsed = time.time() - _section_times.get(section, time.time())
    logger.info(f"[{section}] Processed={processed:,}  Skipped={skipped:,}")
    logger.info(f"[{section}] Elapsed: {elapsed:.2f}s")


# ---- small utils ----
def now_ms() -> int:
    return int(time.time() * 1000)


def as_number(v) -> float:
    """Float value or NaN for None, bools, strings and other non-numeric input."""
    if v is None or isinstance(v, (bool, str, bytes)):
        return np.nan
    try:
        v = float(v)
    except (TypeError, ValueError):
        return np.nan
    return v if math.isfinite(v) else np.nan


def in_range(v, lo: float, hi: float) -> bool:
    v = as_number(v)
    return bool(np.isfinite(v)) and lo <= v <= hi


def bounds_ok(lat, lng) -> bool:
    return in_range(lat, *LAT_RANGE) and in_range(lng, *LNG_RANGE)


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))
