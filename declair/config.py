"""Persistent settings stored as TOML in the user's config directory."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

import tomlkit
from pydantic import BaseModel, ConfigDict, ValidationError

from declair.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV = "DECLAIR_CONFIG"
CONFIG_FILENAME = "config.toml"


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nix_path: str
    auto_rebuild: bool = False
    home_manager: bool = False
    flake: bool = False


def config_dir() -> Path:
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "declair"


def config_path() -> Path:
    override = os.getenv(CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return config_dir() / CONFIG_FILENAME


def load_settings(path: Path | None = None) -> Settings | None:
    """Read settings, or return None when no config file exists yet."""
    path = path or config_path()
    if not path.exists():
        logger.debug("No settings file at %s", path)
        return None
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    path = path or config_path()
    document = tomlkit.document()
    for key, value in settings.model_dump().items():
        document[key] = value
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(tomlkit.dumps(document), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to write {path}: {exc}") from exc
    logger.info("Saved settings to %s", path)
    return path


__all__ = ["Settings", "config_path", "load_settings", "save_settings"]
