"""Configuration loading service.

Handles loading config.yaml, normalizing shorthand values and falling back to
defaults when the file is missing or invalid.
"""

import logging
import os
import shlex
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from jat_monitor.models.config import AppConfig

logger = logging.getLogger(__name__)

# Environment variables that override config.yaml values
ENV_OVERRIDES = {
    "JAT_SIDECAR_DIR": "sidecar_dir",
    "JAT_MONITOR_PORT": "port",
    "JAT_MONITOR_LOG_LEVEL": "log_level",
}


class ConfigService:
    """Service for loading and managing application configuration.

    Handles:
    - Loading config from config.yaml
    - Validating against the Pydantic schema
    - Normalizing shorthand values
    - Applying environment overrides
    """

    def __init__(self, config_path: str | Path = "config.yaml"):
        """Initialize the config service.

        Args:
            config_path: Path to the config file.
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """Load and validate configuration.

        Returns:
            Validated AppConfig instance.
        """
        raw_config: dict[str, Any] = {}
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
        else:
            try:
                with open(self.config_path) as f:
                    loaded = yaml.safe_load(f) or {}
                if isinstance(loaded, dict):
                    raw_config = loaded
                else:
                    logger.warning("Config file is not a mapping, using defaults")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Error reading config file: {e}, using defaults")

        normalized = self._normalize_config(raw_config)

        try:
            self._config = AppConfig(**normalized)
        except ValidationError as e:
            logger.warning(f"Config validation error: {e}, using defaults")
            self._config = AppConfig()

        return self._config

    def get_config(self) -> AppConfig:
        """Get the current configuration.

        Loads from disk if not already loaded.
        """
        if self._config is None:
            return self.load()
        return self._config

    def _normalize_config(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Normalize shorthand values and apply environment overrides.

        Handles:
        - ``task_tracker.command`` given as a single shell string
        - ``tracker_command`` at the top level
        - Unknown fields, which are logged and dropped

        Args:
            raw: Raw config dictionary from YAML.

        Returns:
            Normalized config dictionary.
        """
        normalized = {k: v for k, v in raw.items() if k in AppConfig.model_fields}

        for field in sorted(set(raw) - set(AppConfig.model_fields)):
            if field != "tracker_command":
                logger.info(f"Ignoring unknown config field: {field}")

        tracker = dict(normalized.get("task_tracker") or {})
        if "tracker_command" in raw and "command" not in tracker:
            tracker["command"] = raw["tracker_command"]
        if isinstance(tracker.get("command"), str):
            tracker["command"] = shlex.split(tracker["command"])
        if tracker:
            normalized["task_tracker"] = tracker

        for env_var, field in ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value:
                normalized[field] = value

        return normalized


# Module-level singleton
_config_service: ConfigService | None = None


def get_config_service(config_path: str | Path = "config.yaml") -> ConfigService:
    """Get the global config service instance.

    Args:
        config_path: Path to config file (only used on first call).

    Returns:
        ConfigService singleton.
    """
    global _config_service
    if _config_service is None:
        _config_service = ConfigService(config_path)
    return _config_service


def reset_config_service() -> None:
    """Reset the global config service (for testing)."""
    global _config_service
    _config_service = None
