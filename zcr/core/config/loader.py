"""
Configuration loader — reads zcr.yml into a Settings model.

Defaults match the deployed layout (/usr/lib/zcr, /tmp scratch files),
so zcr runs without any config file at all. A YAML file and a handful
of ZCR_* environment variables can override them.

Precedence (lowest → highest):
    defaults  <  YAML file  <  environment
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("/etc/zcr/zcr.yml")
DEFAULT_MANIFEST_URL = (
    "https://raw.githubusercontent.com/Zenit-Linux/zcr/main/library/repo-list.zcr"
)

# env var → Settings field
_ENV_OVERRIDES = {
    "ZCR_MANIFEST_URL": "manifest_url",
    "ZCR_REGISTRY_ROOT": "registry_root",
    "ZCR_SCRATCH_PATH": "scratch_path",
    "ZCR_LOG_FILE": "log_file",
}


class ConfigError(Exception):
    """Raised when the configuration file is unreadable or invalid."""


class Settings(BaseModel):
    """Runtime settings for every zcr command."""

    manifest_url: str = DEFAULT_MANIFEST_URL
    registry_root: Path = Path("/usr/lib/zcr")
    scratch_path: Path = Path("/tmp/repo-list.zcr")
    build_dir: str = "zcr-build-files"
    log_file: Path | None = Path("/tmp/zcr.log")

    http_timeout: float = Field(default=30.0, gt=0)
    git_timeout: int = Field(default=600, gt=0)
    hook_shell: str = "/bin/sh"
    event_buffer: int = Field(default=64, ge=1)

    @property
    def scratch_files(self) -> list[Path]:
        """Cache files that ``autoremove`` is allowed to delete."""
        return [self.scratch_path]


def find_config_file(explicit: Path | None = None) -> Path | None:
    """Pick the config file to load, or None to run on defaults.

    An explicit path (``--config``) always wins, even if missing,
    so the caller gets a clear error instead of silent defaults.
    """
    if explicit is not None:
        return explicit
    env_path = os.environ.get("ZCR_CONFIG")
    if env_path:
        return Path(env_path)
    if DEFAULT_CONFIG_FILE.is_file():
        return DEFAULT_CONFIG_FILE
    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config file. If None, ``$ZCR_CONFIG`` or
            /etc/zcr/zcr.yml are tried; missing both is fine.

    Returns:
        Validated Settings.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    data: dict = {}
    config_file = find_config_file(path)

    if config_file is not None:
        if not config_file.is_file():
            raise ConfigError(f"Config file not found: {config_file}")
        logger.debug("Loading settings from %s", config_file)
        try:
            raw = config_file.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {config_file}: {e}") from e
        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(
                f"Expected a YAML mapping in {config_file}, got {type(loaded).__name__}"
            )
        # The file may wrap everything under a "zcr" key or be flat
        data = dict(loaded.get("zcr", loaded) or {})

    for env_name, field in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data[field] = value

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug(
        "Settings: registry=%s manifest=%s", settings.registry_root, settings.manifest_url
    )
    return settings
