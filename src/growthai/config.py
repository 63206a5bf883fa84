# Copyright (c) Syntropy Systems
"""Configuration management for growthai."""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Literal, cast

import yaml

BACKEND_URL_ENV = "GROWTHAI_BACKEND_URL"
CONFIG_FILENAME = "config.yaml"
SETTINGS_FILENAME = "settings.yaml"

Theme = Literal["dark", "light"]


@dataclass
class GrowthAIConfig:
    """Configuration for growthai."""

    # Base URL of the analysis gateway
    backend_url: str = "http://localhost:8001"

    # Path prefix the gateway mounts its routes under
    api_prefix: str = "/api"

    # Per-request timeout in seconds
    timeout: float = 30.0

    # Extra attempts for GET requests that fail at the transport level
    retries: int = 2

    # Seconds to wait between retries
    retry_backoff: float = 0.5

    # Rule types with fewer judgments than this are flagged as low-sample
    low_sample_threshold: int = 5

    # Override for the bundled demo dataset
    sample_path: str | None = None

    log_level: str = "WARNING"

    @property
    def base_url(self) -> str:
        """Gateway URL including the API prefix."""
        prefix = self.api_prefix.strip("/")
        root = self.backend_url.rstrip("/")
        return f"{root}/{prefix}" if prefix else root


@dataclass
class DisplaySettings:
    """User display preferences persisted between sessions."""

    theme: Theme = "light"

    @property
    def dark(self) -> bool:
        return self.theme == "dark"


def find_growthai_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .growthai directory by walking up from start_path.

    Returns None if no .growthai directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        growthai_dir = current / ".growthai"
        if growthai_dir.is_dir():
            return growthai_dir
        current = current.parent

    # Check root
    growthai_dir = current / ".growthai"
    if growthai_dir.is_dir():
        return growthai_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global growthai config directory (~/.growthai)."""
    return Path.home() / ".growthai"


def _resolve_dir(growthai_dir: Path | None) -> Path:
    if growthai_dir is not None:
        return growthai_dir
    return find_growthai_dir() or get_global_config_dir()


def _read_yaml(path: Path) -> dict[str, object]:
    if not path.exists():
        return {}
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        return {}
    return cast("dict[str, object]", data)


def load_config(growthai_dir: Path | None = None) -> GrowthAIConfig:
    """Load configuration from .growthai/config.yaml or defaults.

    Looks for config in:
    1. Provided growthai_dir
    2. Nearest .growthai directory walking up
    3. ~/.growthai/config.yaml
    4. Defaults

    The GROWTHAI_BACKEND_URL environment variable overrides ``backend_url``.
    """
    config = GrowthAIConfig()
    data = _read_yaml(_resolve_dir(growthai_dir) / CONFIG_FILENAME)

    for name in ("backend_url", "api_prefix", "sample_path", "log_level"):
        value = data.get(name)
        if isinstance(value, str):
            setattr(config, name, value)
    for name in ("timeout", "retry_backoff"):
        value = data.get(name)
        if isinstance(value, (int, float)):
            setattr(config, name, float(value))
    for name in ("retries", "low_sample_threshold"):
        value = data.get(name)
        if isinstance(value, (int, float)):
            setattr(config, name, max(0, int(value)))

    env_url = os.environ.get(BACKEND_URL_ENV)
    if env_url:
        config.backend_url = env_url

    return config


def get_settings_path(growthai_dir: Path | None = None) -> Path:
    """Get the path to the display settings file."""
    return _resolve_dir(growthai_dir) / SETTINGS_FILENAME


def load_settings(path: Path) -> DisplaySettings:
    """Load display settings, falling back to defaults on a missing or odd file."""
    settings = DisplaySettings()
    theme = _read_yaml(path).get("theme")
    if theme in ("dark", "light"):
        settings.theme = cast("Theme", theme)
    return settings


def save_settings(settings: DisplaySettings, path: Path) -> None:
    """Persist display settings."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        yaml.safe_dump(asdict(settings), f, default_flow_style=False)
