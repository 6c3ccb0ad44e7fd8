import logging
import math

import pytest

from conftest import NOW, H, pt
from storm_tracks.models import Storm, StormPoint, ValidationResult
from storm_tracks.validation import (
    MAX_FUTURE_MS,
    fill_storm_point_gaps,
    get_forecast_message,
    get_user_friendly_error_message,
    has_forecast_data,
    interpolate_storm_point,
    is_valid_coordinate,
    is_valid_pressure,
    is_valid_timestamp,
    is_valid_wind_speed,
    sanitize_storm_point,
    validate_and_sanitize_storm,
    validate_storm,
    validate_storm_point,
)


@pytest.mark.parametrize("lat,lng", [(-90, -180), (90, 180), (0, 0), (45.5, -120.25), (-90, 180)])
def test_coordinates_inside_bounds_are_valid(lat, lng):
    assert is_valid_coordinate(lat, lng)


@pytest.mark.parametrize("lat,lng", [(-91, 0), (91, 0), (0, -181), (0, 181), (None, 0), (float("nan"), 0), ("10", 20)])
def test_coordinates_outside_bounds_are_invalid(lat, lng):
    assert not is_valid_coordinate(lat, lng)


def test_wind_and_pressure_ranges():
    assert is_valid_wind_speed(0) and is_valid_wind_speed(400)
    assert not is_valid_wind_speed(-1) and not is_valid_wind_speed(401) and not is_valid_wind_speed(None)
    assert is_valid_pressure(850) and is_valid_pressure(1050)
    assert not is_valid_pressure(849) and not is_valid_pressure(None)


def test_timestamp_window():
    assert is_valid_timestamp(NOW, now=NOW)
    assert is_valid_timestamp(NOW + MAX_FUTURE_MS, now=NOW)
    assert not is_valid_timestamp(NOW + MAX_FUTURE_MS + 1, now=NOW)
    assert not is_valid_timestamp(0, now=NOW)
    assert not is_valid_timestamp(-5, now=NOW)
    assert not is_valid_timestamp(None, now=NOW)


def test_point_with_bad_coordinates_is_an_error():
    r = validate_storm_point(pt(0, 95.0, 10.0), 3, now=NOW)
    assert not r.is_valid
    assert "Invalid coordinates at point 3" in r.errors[0]


def test_missing_intensity_fields_are_only_warnings():
    p = StormPoint(timestamp=NOW, lat=10.0, lng=120.0)
    r = validate_storm_point(p, 0, now=NOW)
    assert r.is_valid
    assert len(r.warnings) == 3


def test_out_of_range_wind_is_a_warning():
    r = validate_storm_point(pt(0, 10.0, 120.0, wind=999.0), 0, now=NOW)
    assert r.is_valid
    assert any("wind speed" in w for w in r.warnings)


def test_storm_without_current_position_is_invalid(scenario_storm):
    from dataclasses import replace
    r = validate_storm(replace(scenario_storm, current_position=None), now=NOW)
    assert not r.is_valid
    assert "Current position is missing" in r.errors


def test_storm_with_single_point_warns():
    s = Storm(id="x", name="X", current_position=pt(0, 10, 120))
    r = validate_storm(s, now=NOW)
    assert r.is_valid
    assert any("Insufficient points" in w for w in r.warnings)


def test_current_position_messages_are_prefixed():
    s = Storm(id="x", name="X", current_position=pt(0, 100, 120))
    r = validate_storm(s, now=NOW)
    assert any(e.startswith("Current position: ") for e in r.errors)


def test_friendly_message_priority():
    r = ValidationResult.from_lists(["Invalid timestamp at point 1: -1", "Invalid coordinates at point 0: lat=100, lng=0"], [])
    assert "position" in get_user_friendly_error_message(r)
    assert get_user_friendly_error_message(ValidationResult()) is None


def test_interpolate_endpoints_are_exact():
    a = pt(0, 10.1, 120.3, wind=33.3, pressure=1001.7, category="TS")
    b = pt(6, 12.7, 118.9, wind=71.1, pressure=970.3, category="C1")
    at0 = interpolate_storm_point(a, b, 0.0)
    at1 = interpolate_storm_point(a, b, 1.0)
    for f in ("timestamp", "lat", "lng", "wind_speed", "pressure", "category"):
        assert getattr(at0, f) == getattr(a, f)
        assert getattr(at1, f) == getattr(b, f)


def test_interpolate_category_steps_at_half():
    a = pt(0, 10, 120, category="TS")
    b = pt(6, 12, 118, category="C1")
    assert interpolate_storm_point(a, b, 0.4999).category == "TS"
    assert interpolate_storm_point(a, b, 0.5).category == "C1"
    mid = interpolate_storm_point(a, b, 0.5)
    assert mid.lat == pytest.approx(11.0)
    assert mid.timestamp == pytest.approx(NOW + 3 * H)


def test_fill_gaps_replaces_interior_holes_evenly():
    pts = [pt(0, 10, 120), None, StormPoint(timestamp=NOW, lat=999, lng=0), pt(9, 13, 117)]
    out = fill_storm_point_gaps(pts, now=NOW)
    assert len(out) == 4
    assert [p.lat for p in out] == pytest.approx([10, 11, 12, 13])
    assert out[1].timestamp == pytest.approx(NOW + 3 * H)


def test_fill_gaps_drops_leading_and_trailing_junk():
    out = fill_storm_point_gaps([None, pt(0, 10, 120), pt(6, 11, 119), None], now=NOW)
    assert len(out) == 2


def test_sanitize_substitutes_per_field():
    p = StormPoint(timestamp=NOW, lat=10.0, lng=120.0, wind_speed=None, pressure=2000, category="")
    s = sanitize_storm_point(p, now=NOW)
    assert (s.lat, s.lng) == (10.0, 120.0)
    assert s.wind_speed == 0.0
    assert s.pressure == 1013.0
    assert s.category == "Unknown"
    s2 = sanitize_storm_point(p, defaults={"wind_speed": 25.0}, now=NOW)
    assert s2.wind_speed == 25.0


def test_validate_and_sanitize_returns_new_storm(scenario_storm):
    storm, msg = validate_and_sanitize_storm(scenario_storm, now=NOW)
    assert msg is None
    assert storm is not scenario_storm
    assert storm.point_count() == 5


def test_validate_and_sanitize_rejects_hard_errors(caplog):
    bad = Storm(id="bad", name="Bad", current_position=pt(0, 10, 120),
                historical=[pt(-6, 10, 500)])
    with caplog.at_level(logging.ERROR):
        storm, msg = validate_and_sanitize_storm(bad, now=NOW)
    assert storm is None
    assert msg
    assert "[Validation]" in caplog.text


def test_validate_and_sanitize_none():
    storm, msg = validate_and_sanitize_storm(None)
    assert storm is None and msg


def test_forecast_helpers(scenario_storm):
    assert has_forecast_data(scenario_storm)
    assert get_forecast_message(scenario_storm) is None
    s = Storm(id="x", name="X", current_position=pt(0, 10, 120))
    assert not has_forecast_data(s)
    assert get_forecast_message(s)


def test_from_dict_reads_camel_case():
    s = Storm.from_dict({
        "id": "a", "nameVi": "Bão Yagi", "nameEn": "Yagi",
        "currentPosition": {"timestamp": NOW, "lat": 10, "lng": 120, "windSpeed": 80, "pressure": 970, "category": "C1"},
        "historical": [{"timestamp": NOW - H, "lat": 9.5, "lon": 121}],
        "forecast": [],
    })
    assert s.name == "Bão Yagi"
    assert s.current_position.wind_speed == 80
    assert s.historical[0].lng == 121
    assert math.isclose(s.point_count(), 2)
