"""Settings for the CLI and daemon, read from a YAML file."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .backup import BACKUP_KEY, STORAGE_KEY
from .errors import ConfigError

CONFIG_ENV = "LINKFOREST_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.linkforest/config.yaml")


class Settings(BaseModel):
    """Where the forest lives and how the tools log."""

    store_path: Path = Field(default=Path("~/.linkforest/store.json"), description="JSON key-value store file")
    bound_file: Path | None = Field(default=None, description="Save to this file instead of the store")
    primary_key: str = Field(default=STORAGE_KEY, min_length=1)
    backup_key: str = Field(default=BACKUP_KEY, min_length=1)
    log_level: str = Field(default="INFO")
    log_file: Path | None = None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {value!r}")
        return level

    @property
    def loglevel(self) -> int:
        return logging.getLevelName(self.log_level)


def _load_text_payload(raw: str | bytes) -> dict[str, Any]:
    """Interpret raw text as YAML first, falling back to JSON."""
    text = raw.decode() if isinstance(raw, bytes) else raw
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError:
        return json.loads(text)


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from ``path``, $LINKFOREST_CONFIG, or the default location.

    A missing file yields the defaults.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH
    config_path = Path(path).expanduser()
    if not config_path.exists():
        return Settings()
    try:
        payload = _load_text_payload(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read config {config_path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config {config_path} must be a mapping")
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {config_path}: {exc}") from exc


__all__ = ["CONFIG_ENV", "Settings", "load_settings"]
