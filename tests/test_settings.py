from __future__ import annotations

import pytest

from placetrail.config import settings as settings_module
from placetrail.config.settings import get_logging_config, get_settings


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_packaged_defaults_load(fresh_settings):
    settings = get_settings()
    assert settings.places.distance_threshold_km == 0.1
    assert settings.places.merge_radius_km == 0.5
    assert settings.history.id_length == 32
    assert settings.geocoding.cache_namespace == "reverse_geocode"


def test_env_overrides_are_applied(monkeypatch, fresh_settings):
    monkeypatch.setenv("PLACETRAIL_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("PLACETRAIL_CACHE_DIR", "/tmp/placetrail-cache")
    settings = get_settings()
    assert settings.app.log_level == "DEBUG"
    assert settings.cache.dir == "/tmp/placetrail-cache"


def test_external_config_file(monkeypatch, tmp_path, fresh_settings):
    path = tmp_path / "config.yaml"
    path.write_text("places:\n  limit: 7\n  exclude_top_n: 1\n", encoding="utf-8")
    monkeypatch.setenv("PLACETRAIL_CONFIG_PATH", str(path))

    settings = get_settings()
    assert settings.places.limit == 7
    assert settings.places.exclude_top_n == 1
    # Unspecified knobs keep model defaults.
    assert settings.places.geofence_radius_km == 0.2


def test_non_mapping_config_is_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="expected a mapping"):
        settings_module._read_yaml_file(path)


def test_logging_config_has_root_handler():
    config = get_logging_config()
    assert config["version"] == 1
    assert "console" in config["root"]["handlers"]
