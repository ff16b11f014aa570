# src/sondealert/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/sondealert/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `SONDEALERT_CONFIG_PATH` (replaces the packaged defaults)
- environment variables (e.g., `HA_URL`, `HA_TOKEN`, `DISTANCE_KM`), including a `.env` file
- CLI flags (applied by `sondealert.cli` on a copy of the loaded model)

Design rule:
- The loaded `Settings` object is passed explicitly to every collaborator; nothing reads
  configuration as ambient global state.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field

from sondealert.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `sondealert.config`."""
    text = resources.files("sondealert.config").joinpath(filename).read_text(encoding="utf-8")
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
    name: str = "sondealert"
    http_timeout_seconds: float = Field(15, gt=0)
    log_level: str = "INFO"


class NotifySettings(BaseModel):
    # `script`: {person, title, message}; `notify`: {title, message, data: {url}}.
    mode: Literal["script", "notify"] = "script"
    service: str = "script/notify_a_person_on_all_devices"
    alert_title: str = "Sonde Alert"
    error_title: str = "Sonde Alert Error"


class HubSettings(BaseModel):
    base_url: str | None = None
    token: str | None = None
    entity_id: str | None = None
    event_type: str = "sonde_alert"
    fire_events: bool = True
    notify: NotifySettings = Field(default_factory=NotifySettings)


class SondeHubSettings(BaseModel):
    base_url: str = "https://api.v2.sondehub.org"
    frame_types: str = "landing"
    tracker_url: str = "https://sondehub.org"


class MonitorSettings(BaseModel):
    radius_km: float | None = Field(default=None, gt=0)
    notified_file: str | None = None
    poll_interval_seconds: float = Field(600, gt=0)
    jitter_seconds: float = Field(0, ge=0)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    hub: HubSettings = Field(default_factory=HubSettings)
    sondehub: SondeHubSettings = Field(default_factory=SondeHubSettings)
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)


# (env var, dotted settings path)
ENV_OVERRIDES: list[tuple[str, tuple[str, ...]]] = [
    ("HA_URL", ("hub", "base_url")),
    ("HA_TOKEN", ("hub", "token")),
    ("HA_ENTITY_ID", ("hub", "entity_id")),
    ("DISTANCE_KM", ("monitor", "radius_km")),
    ("NOTIFIED_FILE", ("monitor", "notified_file")),
    ("SONDEALERT_POLL_INTERVAL_SECONDS", ("monitor", "poll_interval_seconds")),
    ("SONDEALERT_LOG_LEVEL", ("app", "log_level")),
]


def _apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Overlay the whitelisted environment variables onto the raw settings payload."""
    data = dict(data)
    for var, path in ENV_OVERRIDES:
        value = environ.get(var)
        if not value:
            continue
        section, key = path
        data[section] = dict(data.get(section) or {})
        data[section][key] = value
    return data


def load_settings(
    *, config_path: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> Settings:
    """Load and validate settings without caching (used by tests and `get_settings`)."""
    if environ is None:
        load_dotenv_if_present()
        environ = os.environ
    if config_path is None:
        config_path = environ.get("SONDEALERT_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw, environ)
    return Settings.model_validate(raw)


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    return load_settings()


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")


def missing_required(settings: Settings) -> list[str]:
    """Return the names of required values that are not configured."""
    missing: list[str] = []
    if not settings.hub.base_url:
        missing.append("HA_URL")
    if not settings.hub.token:
        missing.append("HA_TOKEN")
    if not settings.hub.entity_id:
        missing.append("entity id (--person / HA_ENTITY_ID)")
    if settings.monitor.radius_km is None:
        missing.append("DISTANCE_KM")
    if not settings.monitor.notified_file:
        missing.append("dedup file (--notified-file / NOTIFIED_FILE)")
    return missing
