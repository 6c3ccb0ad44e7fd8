import pytest

from storm_tracks.config import Config
from storm_tracks.helpers import MS_PER_HOUR
from storm_tracks.models import Storm, StormPoint

# 2024-09-06 00:00 UTC
NOW = 1725580800000
H = MS_PER_HOUR


def pt(hours, lat, lng, wind=50.0, pressure=990.0, category="TS"):
    return StormPoint(timestamp=NOW + int(hours * H), lat=lat, lng=lng,
                      wind_speed=wind, pressure=pressure, category=category)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def scenario_storm():
    """historical t0,t1 / current t2 / forecast t3,t4, six hours apart."""
    return Storm(
        id="WP012024",
        name="Yagi",
        current_position=pt(0, 16.0, 112.0, wind=90.0, pressure=960.0, category="C2"),
        historical=[
            pt(-12, 14.0, 116.0, wind=40.0, pressure=1000.0, category="TS"),
            pt(-6, 15.0, 114.0, wind=70.0, pressure=975.0, category="C1"),
        ],
        forecast=[
            pt(6, 17.0, 110.0, wind=100.0, pressure=950.0, category="C3"),
            pt(12, 18.0, 108.0, wind=80.0, pressure=965.0, category="C1"),
        ],
    )
