"""Renderer settings.

Values come from ``config/msviz.yaml`` (or an explicit file) and may be
overridden by environment variables:

  PLANTUML_JAR_PATH      local PlantUML JAR
  PLANTUML_SERVER_URL    PlantUML HTTP server base URL
  MSVIZ_HTTP_FALLBACK    "0"/"false" disables the HTTP fallback
  MSVIZ_RENDER_TIMEOUT   seconds per render call
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml

from .constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_PLANTUML_JAR,
    DEFAULT_PLANTUML_SERVER,
    DEFAULT_RENDER_TIMEOUT,
    PROJECT_ROOT,
)

logger = logging.getLogger(__name__)

_FALSE_VALUES = {"0", "false", "no", "off"}


class SettingsError(ValueError):
    """Raised when the renderer settings file or environment is malformed."""


@dataclass(frozen=True)
class RendererSettings:
    """How external renderers are located and called."""
    plantuml_jar: Path = DEFAULT_PLANTUML_JAR
    plantuml_server_url: str = DEFAULT_PLANTUML_SERVER
    http_fallback: bool = True
    timeout: float = DEFAULT_RENDER_TIMEOUT


def load_settings(config_path: Optional[Union[str, Path]] = None) -> RendererSettings:
    """Load renderer settings from YAML, then apply environment overrides.

    A missing default config file is not an error; a missing explicit one is.

    Raises:
        FileNotFoundError: If an explicit ``config_path`` does not exist
        SettingsError: If the file is not a valid settings document or a
                       value cannot be converted
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    config = {}

    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid settings file {path}: {e}") from e
        if not isinstance(config, dict):
            raise SettingsError(f"Settings file {path} must contain a mapping")
        logger.debug("Loaded renderer settings from %s", path)
    elif config_path:
        raise FileNotFoundError(f"Settings file not found: {path}")
    else:
        logger.debug("No settings file at %s, using defaults", path)

    plantuml = config.get("plantuml", {}) or {}
    render = config.get("render", {}) or {}

    env_jar = os.environ.get("PLANTUML_JAR_PATH")
    if env_jar:
        jar_path = Path(env_jar)
    else:
        jar = plantuml.get("jar_path")
        jar_path = Path(jar) if jar else DEFAULT_PLANTUML_JAR
        if not jar_path.is_absolute():
            jar_path = PROJECT_ROOT / jar_path

    http_fallback = plantuml.get("http_fallback", True)
    env_fallback = os.environ.get("MSVIZ_HTTP_FALLBACK")
    if env_fallback is not None:
        http_fallback = env_fallback.strip().lower() not in _FALSE_VALUES

    timeout = os.environ.get("MSVIZ_RENDER_TIMEOUT") or render.get("timeout", DEFAULT_RENDER_TIMEOUT)
    try:
        timeout = float(timeout)
    except (TypeError, ValueError) as e:
        raise SettingsError(f"Render timeout must be a number of seconds, got {timeout!r}") from e

    return RendererSettings(
        plantuml_jar=jar_path,
        plantuml_server_url=(
            os.environ.get("PLANTUML_SERVER_URL")
            or plantuml.get("server_url")
            or DEFAULT_PLANTUML_SERVER
        ),
        http_fallback=bool(http_fallback),
        timeout=timeout,
    )
