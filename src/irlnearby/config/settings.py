# src/irlnearby/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/irlnearby/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `IRLNEARBY_CONFIG_PATH` (replaces the packaged defaults)
- a small whitelist of environment variables (see `_apply_env_overrides`)

Design rule:
- Tuning knobs (radius default, result caps, fan-out width, geocoder pacing) live in YAML,
  not hard-coded in the proximity engine.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any
from irlnearby.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `irlnearby.config`."""
    text = resources.files("irlnearby.config").joinpath(filename).read_text(encoding="utf-8")
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
    name: str = "IRL Community Directory"
    log_level: str = "INFO"


class DirectorySettings(BaseModel):
    snapshot_path: str = "data/directory.json"


class ProximitySettings(BaseModel):
    default_radius_miles: float = Field(1.0, gt=0)
    max_results_per_kind: int = Field(200, ge=1)
    max_concurrent_scans: int = Field(50, ge=1)
    timeout_seconds: float = Field(10.0, gt=0)


class GeocodingSettings(BaseModel):
    base_url: str = "https://nominatim.openstreetmap.org/search"
    user_agent: str = "IRL Community Directory"
    referer: str = "http://localhost:3001"
    min_interval_seconds: float = Field(1.0, ge=0)
    timeout_seconds: float = Field(15.0, gt=0)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    directory: DirectorySettings = Field(default_factory=DirectorySettings)
    proximity: ProximitySettings = Field(default_factory=ProximitySettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Only operational knobs are exposed here; search semantics stay in YAML.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("IRLNEARBY_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    snapshot_path = os.getenv("IRLNEARBY_SNAPSHOT_PATH")
    if snapshot_path:
        data.setdefault("directory", {})["snapshot_path"] = snapshot_path

    geocoder_url = os.getenv("IRLNEARBY_GEOCODER_URL")
    if geocoder_url:
        data.setdefault("geocoding", {})["base_url"] = geocoder_url

    # Nominatim asks clients to identify the deployment via Referer.
    public_url = os.getenv("SERVICE_PUBLIC_URL")
    if public_url:
        data.setdefault("geocoding", {})["referer"] = public_url

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("IRLNEARBY_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
