"""
Track data model shared by every engine module.

All records are immutable dataclasses: derived values are built with
``dataclasses.replace`` and returned, inputs are never modified.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import ClassVar, List, Optional, Tuple, Union

# raw-input field names (ingestion side) -> attribute names
_POINT_KEYS = {
    "timestamp": "timestamp",
    "lat": "lat",
    "lng": "lng",
    "lon": "lng",
    "windSpeed": "wind_speed",
    "wind_speed": "wind_speed",
    "pressure": "pressure",
    "category": "category",
}


@dataclass(frozen=True)
class StormPoint:
    """One fix of a track. Raw points may carry None for any field."""
    timestamp: Optional[float]
    lat: Optional[float]
    lng: Optional[float]
    wind_speed: Optional[float] = None
    pressure: Optional[float] = None
    category: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "StormPoint":
        kw = {attr: d[key] for key, attr in _POINT_KEYS.items() if key in d}
        kw.setdefault("timestamp", None)
        kw.setdefault("lat", None)
        kw.setdefault("lng", None)
        return cls(**kw)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "lat": self.lat,
            "lng": self.lng,
            "windSpeed": self.wind_speed,
            "pressure": self.pressure,
            "category": self.category,
        }

    @property
    def latlng(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


def _points(raw) -> List[Optional[StormPoint]]:
    out = []
    for p in raw or []:
        if p is None or isinstance(p, StormPoint):
            out.append(p)
        else:
            out.append(StormPoint.from_dict(p))
    return out


@dataclass(frozen=True)
class Storm:
    id: Optional[str]
    name: Optional[str] = None
    name_en: Optional[str] = None
    status: str = "active"
    current_position: Optional[StormPoint] = None
    historical: List[Optional[StormPoint]] = field(default_factory=list)
    forecast: List[Optional[StormPoint]] = field(default_factory=list)
    max_wind: Optional[float] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Storm":
        cur = d.get("currentPosition", d.get("current_position"))
        if cur is not None and not isinstance(cur, StormPoint):
            cur = StormPoint.from_dict(cur)
        return cls(
            id=d.get("id"),
            name=d.get("nameVi", d.get("name")),
            name_en=d.get("nameEn", d.get("name_en")),
            status=d.get("status", "active"),
            current_position=cur,
            historical=_points(d.get("historical")),
            forecast=_points(d.get("forecast")),
            max_wind=d.get("maxWindKmh", d.get("max_wind")),
        )

    @property
    def label(self) -> str:
        return self.name or self.name_en or str(self.id)

    def all_points(self) -> List[StormPoint]:
        """historical + current + forecast, missing entries skipped, input order kept."""
        pts = list(self.historical or []) + [self.current_position] + list(self.forecast or [])
        return [p for p in pts if p is not None]

    def point_count(self) -> int:
        return (len(self.historical or []) + (1 if self.current_position is not None else 0)
                + len(self.forecast or []))


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def from_lists(cls, errors: List[str], warnings: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors), warnings=list(warnings))

    def merge(self, other: "ValidationResult", prefix: str = "") -> "ValidationResult":
        errors = self.errors + [f"{prefix}{e}" for e in other.errors]
        warnings = self.warnings + [f"{prefix}{w}" for w in other.warnings]
        return ValidationResult.from_lists(errors, warnings)


@dataclass(frozen=True)
class CircleConfig:
    radius_km: float
    wind_speed_threshold: float
    threshold: str


@dataclass(frozen=True)
class ColorStop:
    position: float
    color: str
    category: Optional[str] = None


@dataclass(frozen=True)
class TimeMarker:
    time: int
    label: str


@dataclass(frozen=True)
class TimeRange:
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    markers: Tuple[TimeMarker, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.start_time is None or self.end_time is None

    def contains(self, t: float) -> bool:
        return not self.is_empty and self.start_time <= t <= self.end_time


# ---- provenance of a timeline sample ----

@dataclass(frozen=True)
class Observed:
    point: StormPoint
    interpolated: ClassVar[bool] = False


@dataclass(frozen=True)
class Interpolated:
    point: StormPoint
    factor: float
    previous: StormPoint
    next: StormPoint
    interpolated: ClassVar[bool] = True


TrackSample = Union[Observed, Interpolated]


@dataclass(frozen=True)
class StormState:
    """A storm evaluated at one timeline position."""
    storm: Storm
    sample: TrackSample
    historical: List[StormPoint]
    forecast: List[StormPoint]
    is_historical: bool
    is_forecast: bool
    start_time: float
    end_time: float

    @property
    def position(self) -> StormPoint:
        return self.sample.point

    @property
    def interpolated(self) -> bool:
        return self.sample.interpolated

    def as_storm(self) -> Storm:
        """Storm re-cut around the sample, as a rendering adapter draws it."""
        return replace(
            self.storm,
            current_position=self.sample.point,
            historical=list(self.historical),
            forecast=list(self.forecast),
        )
