"""
Configuration loader — reads config.yml into a Settings model.

Configuration is optional: with no file, every setting falls back to
its default. Lookup order for the file is an explicit path, then
$PKGSWITCH_CONFIG, then ~/.config/pkgswitch/config.yml.

Environment overrides (applied after the file):
    PKGSWITCH_DATA_DIR   registry and history location
    PKGSWITCH_INSTALLER  preferred installer name
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from pkgswitch.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"
DEFAULT_SYSTEM_ROOT = "/opt/pkgswitch/packages"


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "pkgswitch"


class Settings(BaseModel):
    """Resolved runtime settings."""

    data_dir: Path = Field(default_factory=_default_data_dir)
    user_install_root: Path | None = None
    system_install_root: Path = Path(DEFAULT_SYSTEM_ROOT)

    preferred_installer: str | None = None
    disabled_installers: list[str] = Field(default_factory=list)

    # Seconds to wait for the registry lock. Installs hold the lock while the
    # installer runs, so None means command_timeout plus a minute.
    lock_timeout: float | None = None
    command_timeout: int = 900      # seconds per installer command
    use_sudo: bool = True           # prefix root-only package managers with sudo

    @property
    def registry_path(self) -> Path:
        return self.data_dir / "packages.json"

    @property
    def history_path(self) -> Path:
        return self.data_dir / "history.ndjson"

    @property
    def effective_lock_timeout(self) -> float:
        if self.lock_timeout is not None:
            return self.lock_timeout
        return float(self.command_timeout + 60)

    def install_root(self, user: bool) -> Path:
        """Base directory for installs in the given scope."""
        if user:
            return self.user_install_root or (self.data_dir / "packages")
        return self.system_install_root

    def install_dir(self, name: str, label: str, user: bool) -> Path:
        """Deterministic install directory: {scope_root}/{name}/{label}."""
        return self.install_root(user) / name / label


def find_config_file(explicit: Path | None = None) -> Path | None:
    """Locate the config file, or None if there is none."""
    if explicit is not None:
        return explicit

    env_path = os.environ.get("PKGSWITCH_CONFIG")
    if env_path:
        return Path(env_path)

    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    candidate = base / "pkgswitch" / CONFIG_FILE
    return candidate if candidate.is_file() else None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config path. If None, the default locations are searched.

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If the file is named but missing, or is invalid.
    """
    path = find_config_file(path)
    data: dict = {}

    if path is not None:
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")

        logger.debug("Loading config from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Expected a YAML mapping in {path}, got {type(loaded).__name__}")
        data = loaded

    env_data_dir = os.environ.get("PKGSWITCH_DATA_DIR")
    if env_data_dir:
        data["data_dir"] = env_data_dir
    env_installer = os.environ.get("PKGSWITCH_INSTALLER")
    if env_installer:
        data["preferred_installer"] = env_installer

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug("Registry at %s", settings.registry_path)
    return settings
