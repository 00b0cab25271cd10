# src/travelmode/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/travelmode/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `TRAVELMODE_BACKEND_URL`, `TRAVELMODE_BACKEND_KEY`)
- an external YAML file via `TRAVELMODE_CONFIG_PATH`

Design rule:
- Tuning knobs (radius rule table, thresholds, guidance band) live in YAML, not in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any
from travelmode.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field, field_validator


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `travelmode.config`."""
    text = resources.files("travelmode.config").joinpath(filename).read_text(encoding="utf-8")
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
    name: str = "TravelMode"
    log_level: str = "INFO"


class RadiusRuleSettings(BaseModel):
    """One row of the ordered radius table (first match wins)."""

    category_key: str
    radius_m: int = Field(..., gt=0)
    keywords: list[str] = Field(default_factory=list)

    @field_validator("category_key")
    @classmethod
    def _normalize_key(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("radius rule category_key must not be empty")
        return value

    @field_validator("keywords")
    @classmethod
    def _normalize_keywords(cls, keywords: list[str]) -> list[str]:
        # Order is kept; only blank entries are dropped.
        return [k.lower() for k in keywords if k and k.strip()]


class ThresholdSettings(BaseModel):
    near_factor: float = Field(0.5, gt=0)
    far_factor: float = Field(0.75, gt=0)
    near_min_m: int = Field(15, ge=0)
    far_min_m: int = Field(25, ge=0)


class ProximitySettings(BaseModel):
    default_radius_m: int = Field(15, gt=0)
    thresholds: ThresholdSettings = Field(default_factory=ThresholdSettings)
    consecutive_required: int = Field(2, ge=1)
    radius_rules: list[RadiusRuleSettings] = Field(default_factory=list)


class GuidanceSettings(BaseModel):
    band_m: float = Field(150, gt=0)
    straight_deadband_deg: float = Field(10, ge=0, le=180)
    large_turn_deg: float = Field(30, ge=0, le=180)


class BackendSettings(BaseModel):
    base_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = 15
    confirm_visit_rpc: str = "confirm_place_visit"
    is_visited_rpc: str = "is_place_visited_by_user"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    proximity: ProximitySettings = Field(default_factory=ProximitySettings)
    guidance: GuidanceSettings = Field(default_factory=GuidanceSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("TRAVELMODE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    backend_url = os.getenv("TRAVELMODE_BACKEND_URL")
    backend_key = os.getenv("TRAVELMODE_BACKEND_KEY")
    if backend_url:
        data.setdefault("backend", {})["base_url"] = backend_url
    if backend_key:
        data.setdefault("backend", {})["api_key"] = backend_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("TRAVELMODE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
