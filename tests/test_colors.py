import pytest

from conftest import pt
from storm_tracks.colors import (
    CATEGORY_COLORS,
    INTENSIFYING,
    STABLE,
    WEAKENING,
    analyze_intensity_change,
    build_track_segments,
    calculate_intensity_marker_size,
    calculate_intensity_score,
    category_from_wind,
    category_level,
    detect_intensity_change,
    generate_gradient_stops,
    get_category_color,
    get_intensity_change_points,
    get_transition_color,
    hex_to_rgb,
    interpolate_color,
    normalize_category,
)

EXPECTED = {
    "TD": "#4CAF50",
    "TS": "#2196F3",
    "C1": "#FFC107",
    "C2": "#FF9800",
    "C3": "#F44336",
    "C4": "#D32F2F",
    "C5": "#9C27B0",
}


@pytest.mark.parametrize("label,color", sorted(EXPECTED.items()))
def test_canonical_labels_have_fixed_colors(label, color):
    assert get_category_color(label) == color


@pytest.mark.parametrize("label", ["Unknown", "", None, 42, "Super Typhoon X"])
def test_unrecognized_labels_fall_back_to_tropical_storm(label):
    assert get_category_color(label) == EXPECTED["TS"]


@pytest.mark.parametrize("raw,canonical", [
    ("ts", "TS"), ("Category 3", "C3"), ("category4", "C4"), ("c5", "C5"),
    ("Tropical Depression", "TD"), ("Tropical Storm", "TS"), ("Category 9", None),
])
def test_normalize_category(raw, canonical):
    assert normalize_category(raw) == canonical


def test_levels_are_ordered():
    assert [category_level(c) for c in CATEGORY_COLORS] == list(range(7))


@pytest.mark.parametrize("knots,cat", [(20, "TD"), (34, "TS"), (63.9, "TS"), (64, "C1"), (83, "C2"),
                                       (96, "C3"), (113, "C4"), (137, "C5"), (None, None)])
def test_category_from_wind(knots, cat):
    assert category_from_wind(knots) == cat


def test_interpolate_color_endpoints_and_clamp():
    assert interpolate_color("#000000", "#ffffff", 0) == "#000000"
    assert interpolate_color("#000000", "#ffffff", 1) == "#ffffff"
    assert interpolate_color("#000000", "#ffffff", 2) == "#ffffff"
    assert interpolate_color("#000000", "#ffffff", -1) == "#000000"
    assert interpolate_color("#000000", "#fefefe", 0.5) == "#7f7f7f"
    assert hex_to_rgb("#2196F3") == (0x21, 0x96, 0xF3)


def test_gradient_stops_span_zero_to_one():
    stops = generate_gradient_stops([pt(0, 10, 120, category="TD"), pt(6, 11, 119, category="TS"),
                                     pt(12, 12, 118, category="C1")])
    assert [s.position for s in stops] == [0.0, 0.5, 1.0]
    assert stops[0].color == EXPECTED["TD"]
    assert generate_gradient_stops([]) == []


def test_transition_color_same_category_is_flat():
    a, b = pt(0, 10, 120, category="C1"), pt(6, 11, 119, category="C1")
    assert get_transition_color(a, b, 0.7) == EXPECTED["C1"]


def test_track_segments_one_per_pair():
    pts = [pt(0, 10, 120), pt(6, 11, 119), pt(12, 12, 118)]
    segs = build_track_segments(pts)
    assert len(segs) == 2
    assert segs[0][0] == (10, 120)
    assert build_track_segments(pts, custom_color="#ffffff")[1][2] == "#ffffff"


def test_category_change_dominates_wind_delta():
    a = pt(0, 10, 120, wind=90, category="C2")
    b = pt(6, 10, 120, wind=120, category="C1")
    assert detect_intensity_change(a, b) == WEAKENING


@pytest.mark.parametrize("delta,expected", [(10, STABLE), (10.5, INTENSIFYING), (-10, STABLE), (-11, WEAKENING)])
def test_wind_threshold_is_exclusive(delta, expected):
    a = pt(0, 10, 120, wind=50, category="TS")
    b = pt(6, 10, 120, wind=50 + delta, category="TS")
    assert detect_intensity_change(a, b) == expected


def test_intensity_event_and_change_points():
    pts = [pt(0, 10, 120, wind=40, category="TS"), pt(6, 10, 120, wind=70, category="C1"),
           pt(12, 10, 120, wind=72, category="C1")]
    ev = analyze_intensity_change(pts[0], pts[1])
    assert ev.change_type == INTENSIFYING and ev.category_changed and ev.should_show_glow
    assert ev.wind_speed_delta == 30
    assert get_intensity_change_points(pts) == [1]


def test_marker_size_range_and_major_boost():
    assert calculate_intensity_marker_size(10, "TS") == 20
    assert calculate_intensity_marker_size(500, "TS") == 40
    assert calculate_intensity_marker_size(115, "TS") == pytest.approx(30)
    assert calculate_intensity_marker_size(30, "C3") == pytest.approx(32 * 1.1)
    assert calculate_intensity_marker_size(200, "C5") == 40


def test_intensity_score():
    p = pt(0, 10, 120, wind=100, pressure=963, category="C2")
    assert calculate_intensity_score(p) == pytest.approx(3 * 10 + 0.5 * 5 + 0.5 * 3)
