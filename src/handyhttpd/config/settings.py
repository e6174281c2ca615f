"""Configuration management for handyhttpd.

Loads settings from an optional YAML configuration file with
environment variable overrides (``HANDYHTTPD_`` prefix, ``__`` as the
nested delimiter, e.g. ``HANDYHTTPD_HOSTING__DEFAULT_PORT=8000``).
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".handyhttpd.yaml"
SOCKET_FILENAME = "handyhttpd.sock"
LOG_FILENAME = "handyhttpd.log"


def _temp_path(name: str) -> str:
    return str(Path(tempfile.gettempdir()) / name)


class ControlConfig(BaseModel):
    socket_path: str = Field(
        default_factory=lambda: _temp_path(SOCKET_FILENAME),
        description="Unix socket shared by the daemon and every later invocation",
    )
    forward_timeout: float | None = Field(
        default=None, gt=0,
        description="Seconds to wait for the daemon's reply (None waits forever)",
    )


class HostingConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    default_port: int | None = Field(
        default=9696, ge=1, le=65535,
        description="Port used when none is given and none was used before",
    )
    graceful_timeout: float = Field(default=5.0, gt=0)
    html: bool = Field(default=True, description="Serve index.html for directory URLs")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default_factory=lambda: _temp_path(LOG_FILENAME))
    console: bool = Field(default=False)
    server_level: Literal["critical", "error", "warning", "info", "debug", "trace"] = Field(
        default="warning",
    )


class Settings(BaseSettings):
    """Root configuration for handyhttpd.

    Loads from a YAML file and supports environment variable overrides.
    """

    model_config = {
        "env_prefix": "HANDYHTTPD_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }

    control: ControlConfig = Field(default_factory=ControlConfig)
    hosting: HostingConfig = Field(default_factory=HostingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + environment variables.

    Priority: init values (YAML) > env vars > defaults. A missing file is
    not an error; most users never write one.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.debug("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
