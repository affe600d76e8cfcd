# src/placetrail/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/placetrail/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `PLACETRAIL_LOG_LEVEL`, `PLACETRAIL_CACHE_DIR`)
- an external YAML file via `PLACETRAIL_CONFIG_PATH`

Design rule:
- Tuning knobs (thresholds, radii, limits) live in YAML, not hard-coded in the engines.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from placetrail.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `placetrail.config`."""
    text = resources.files("placetrail.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "placetrail"
    log_level: str = "INFO"


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/placetrail"
    default_ttl_seconds: int = 60 * 60 * 24 * 30


class PlacesSettings(BaseModel):
    distance_threshold_km: float = Field(0.1, gt=0)
    limit: int = Field(3, ge=0)
    exclude_home_geofence: bool = True
    geofence_radius_km: float = Field(0.2, ge=0)
    exclude_top_n: int = Field(2, ge=0)
    merge_radius_km: float = Field(0.5, ge=0)


class HistorySettings(BaseModel):
    id_length: int = Field(32, ge=8, le=64)


class GeocodingSettings(BaseModel):
    cache_namespace: str = "reverse_geocode"
    cache_ttl_seconds: int = 60 * 60 * 24 * 30
    stale_if_error: bool = True
    coordinate_decimals: int = Field(6, ge=0, le=8)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    places: PlacesSettings = Field(default_factory=PlacesSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    data = dict(data)
    cache_dir = os.getenv("PLACETRAIL_CACHE_DIR")
    if cache_dir:
        data.setdefault("cache", {})["dir"] = cache_dir

    log_level = os.getenv("PLACETRAIL_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("PLACETRAIL_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
