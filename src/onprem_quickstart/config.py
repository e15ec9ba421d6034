#!/usr/bin/env python3
"""
Run configuration and installer settings.

Settings are the tunables shared by every run (registry hostnames, compose
file, timeouts). They start from the constants module and may be overridden by
a TOML file:

    [quickstart]
    compose_file = "deploy/docker-compose.yml"
    startup_timeout = 900
    log_level = "DEBUG"

RunConfig is the per-run value built once credentials have been validated.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from . import constants
from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunConfig:
    """Validated, immutable configuration for a single installation."""

    license_key: str = field(repr=False)
    docker_token: str = field(repr=False)
    env_secret: str = field(repr=False)
    dev: bool
    registry: str
    cs_port: int
    node_port: int


@dataclass(frozen=True)
class Settings:
    compose_file: Path = Path(constants.COMPOSE_FILE)
    registry_prod: str = constants.REGISTRY_PROD
    registry_dev: str = constants.REGISTRY_DEV
    registry_user: str = constants.REGISTRY_USER
    image_name: str = constants.IMAGE_NAME
    image_tag: str = constants.IMAGE_TAG
    cs_port: int = constants.DEFAULT_CS_PORT
    node_port: int = constants.DEFAULT_NODE_PORT
    min_docker_version: int = constants.MIN_DOCKER_VERSION
    startup_timeout: float = constants.STARTUP_TIMEOUT
    poll_interval: float = constants.POLL_INTERVAL
    request_timeout: float = constants.REQUEST_TIMEOUT
    log_level: str = "INFO"

    def registry_for(self, dev: bool) -> str:
        return self.registry_dev if dev else self.registry_prod

    def image_ref(self, registry: str) -> str:
        return f"{registry}/{self.image_name}:{self.image_tag}"

    def replace(self, **changes: Any) -> "Settings":
        """Return a copy with the given non-None fields replaced."""
        changes = {key: value for key, value in changes.items() if value is not None}
        return dataclasses.replace(self, **changes)


def _coerce(name: str, value: Any) -> Any:
    """Convert a TOML value to the type of the matching Settings field."""
    default = getattr(Settings, name)
    if isinstance(default, Path):
        if not isinstance(value, str):
            raise ConfigError(f"Setting '{name}' must be a string path")
        return Path(value)
    if isinstance(default, bool) or isinstance(value, bool):
        raise ConfigError(f"Setting '{name}' has an invalid value: {value!r}")
    if isinstance(default, int) and not isinstance(default, bool):
        if not isinstance(value, int):
            raise ConfigError(f"Setting '{name}' must be an integer")
        return value
    if isinstance(default, float):
        if not isinstance(value, (int, float)):
            raise ConfigError(f"Setting '{name}' must be a number")
        return float(value)
    if not isinstance(value, str):
        raise ConfigError(f"Setting '{name}' must be a string")
    return value


def parse_settings(data: dict, source: str = "<memory>") -> Settings:
    """
    Build Settings from a parsed TOML document.

    Args:
        data: Parsed TOML (the [quickstart] table is read)
        source: Name used in error messages

    Returns:
        Settings with the file's values applied over the defaults
    """
    table = data.get(constants.SETTINGS_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[{constants.SETTINGS_TABLE}] in {source} must be a table")

    known = {f.name for f in dataclasses.fields(Settings)}
    unknown = sorted(set(table) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s) in {source}: {', '.join(unknown)}")

    values = {name: _coerce(name, value) for name, value in table.items()}
    return Settings(**values)


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load installer settings.

    An explicit path must exist. Without one, quickstart.toml in the working
    directory is used when present, otherwise the built-in defaults.
    QUICKSTART_LOG_LEVEL overrides the configured log level.
    """
    explicit = path is not None
    if path is None:
        path = Path.cwd() / constants.SETTINGS_FILE

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to read settings file {path}", str(e)) from e
        settings = parse_settings(data, str(path))
        logger.debug(f"Loaded settings from {path}")
    elif explicit:
        raise ConfigError(f"Settings file not found: {path}")
    else:
        settings = Settings()

    env_level = os.getenv("QUICKSTART_LOG_LEVEL")
    if env_level:
        settings = settings.replace(log_level=env_level)

    return settings
