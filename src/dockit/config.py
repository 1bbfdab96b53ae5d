"""XDG directory management and configuration for dockit."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from platformdirs import user_config_dir

from dockit.models import AppConfig

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the dockit config directory.

    Respects DOCKIT_CONFIG_DIR environment variable if set.
    """
    if override := os.environ.get("DOCKIT_CONFIG_DIR"):
        return Path(override)
    return Path(user_config_dir("dockit"))


def get_config_path() -> Path:
    """Path of the TOML config file."""
    return get_config_dir() / "config.toml"


def load_config() -> AppConfig:
    """Load application config from disk, returning defaults if not found."""
    path = get_config_path()
    if not path.exists():
        return AppConfig()
    try:
        data: dict[str, Any] = tomllib.loads(path.read_text())
        return AppConfig(**data)
    except (OSError, ValueError, TypeError, KeyError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return AppConfig()


def save_config(config: AppConfig) -> None:
    """Save application config to disk."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / "config.toml"
    path.write_bytes(tomli_w.dumps(config.model_dump()).encode())
