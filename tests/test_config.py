import pytest

from storm_tracks.config import ENV_PREFIX, Config

ENV_NAMES = (
    "SIMPLIFICATION_THRESHOLD", "SIMPLIFICATION_TOLERANCE", "SIMPLIFIED_ZOOM_THRESHOLD",
    "MAX_SIMULTANEOUS_ANIMATIONS", "VISUALIZATION_MODE", "LOG_LEVEL", "LOG_FILE",
)


@pytest.fixture
def clean_env(monkeypatch):
    # register every variable so whatever .env loading adds is rolled back
    for name in ENV_NAMES:
        monkeypatch.setenv(ENV_PREFIX + name, "")
        monkeypatch.delenv(ENV_PREFIX + name)
    return monkeypatch


def test_defaults():
    cfg = Config()
    assert cfg.simplification_threshold == 100
    assert cfg.simplification_tolerance == 0.01
    assert cfg.simplified_zoom_threshold == 7
    assert cfg.max_simultaneous_animations == 5
    assert (cfg.normal_fps, cfg.reduced_fps, cfg.reduced_fps_threshold) == (60, 30, 3)
    assert cfg.cone_growth_nm_per_day == 50.0
    assert not cfg.windy_mode


@pytest.mark.parametrize("kw", [
    {"simplification_tolerance": -0.1},
    {"max_simultaneous_animations": 0},
    {"visualization_mode": "satellite"},
])
def test_invalid_values_raise(kw):
    with pytest.raises(ValueError):
        Config(**kw)


def test_from_env(clean_env, tmp_path):
    clean_env.setenv("STORM_TRACKS_VISUALIZATION_MODE", "Windy")
    clean_env.setenv("STORM_TRACKS_MAX_SIMULTANEOUS_ANIMATIONS", "3")
    cfg = Config.from_env(tmp_path / "missing.env")
    assert cfg.windy_mode
    assert cfg.max_simultaneous_animations == 3
    assert cfg.simplification_tolerance == 0.01


def test_from_env_reads_dotenv_and_overrides(clean_env, tmp_path):
    env = tmp_path / ".env"
    env.write_text("STORM_TRACKS_SIMPLIFICATION_THRESHOLD=250\nSTORM_TRACKS_LOG_LEVEL=debug\n", encoding="utf-8")
    cfg = Config.from_env(env, visualization_mode="windy")
    assert cfg.simplification_threshold == 250
    assert cfg.log_level == "DEBUG"
    assert cfg.visualization_mode == "windy"
