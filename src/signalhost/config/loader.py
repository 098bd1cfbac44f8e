"""
Configuration loader for signalhost
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from ..utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

MAX_CONFIG_SIZE = 1024 * 1024

DEFAULT_BASE_URL = "https://signal-noise.app/api/widget-data"

# Section defaults; keys already present in a file win
SECTION_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "source": {
        "base_url": DEFAULT_BASE_URL,
        "identity": None,
        "min_interval": 30,
        "timeout": 5,
    },
    "state": {
        "path": "~/.signalhost/state.json",
        "reject_stale_writes": False,
    },
    "wake_sync": {
        "enabled": True,
        "throttle": 10,
    },
    "output": {
        "directory": "~/.signalhost/frames",
    },
}

DEFAULT_STYLE = {
    "font": "DejaVu Sans",
    "font_size": 14,
    "text_color": "#FFFFFF",
    "background_color": "#000000",
    "text_align": "center",
    "text_offset": 0,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigLoader:
    """Reads, validates and fills in YAML configuration"""

    def load(self, config_path: str) -> Dict[str, Any]:
        """
        Load a configuration file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigurationError: If the file is unreadable, too large or invalid
        """
        path = Path(config_path).expanduser().resolve()
        config = self._read(path)
        if config is None:
            config = {}

        self.validate(config)
        config = self.apply_defaults(config)

        logger.info(f"Loaded configuration from {path}")
        return config

    def _read(self, path: Path) -> Any:
        if path.is_dir():
            raise ConfigurationError(f"Path is a directory, not a file: {path}")
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        if path.suffix.lower() not in (".yaml", ".yml"):
            logger.warning(f"Configuration file {path.name} is not .yaml or .yml, loading anyway")

        size = path.stat().st_size
        if size > MAX_CONFIG_SIZE:
            raise ConfigurationError(f"Configuration file too large: {size} bytes (limit {MAX_CONFIG_SIZE})")

        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {e}")

    def validate(self, config: Dict[str, Any]) -> None:
        """Check structure only; surface types and styles are resolved later"""
        if not isinstance(config, dict):
            raise ConfigurationError("Configuration must be a dictionary")

        for section in list(SECTION_DEFAULTS) + ["styles"]:
            if section in config and not isinstance(config[section], dict):
                raise ConfigurationError(f"'{section}' must be a dictionary")

        for key in ("min_interval", "timeout"):
            value = config.get("source", {}).get(key, 0)
            if not _is_number(value) or value < 0:
                raise ConfigurationError(f"'source.{key}' must be a non-negative number")

        surfaces = config.get("surfaces", [])
        if not isinstance(surfaces, list):
            raise ConfigurationError("'surfaces' must be a list")

        seen = set()
        for position, surface in enumerate(surfaces, start=1):
            if not isinstance(surface, dict):
                raise ConfigurationError(f"Surface #{position} must be a dictionary")

            instance_id = surface.get("id")
            if not instance_id:
                raise ConfigurationError(f"Surface #{position} has no 'id'")
            if not surface.get("type"):
                raise ConfigurationError(f"Surface '{instance_id}' has no 'type'")
            if instance_id in seen:
                raise ConfigurationError(f"Duplicate surface id: {instance_id}")
            seen.add(instance_id)

            interval = surface.get("interval", 1)
            if not _is_number(interval) or interval <= 0:
                raise ConfigurationError(f"Surface '{instance_id}' interval must be a positive number")

    def apply_defaults(self, config: Dict[str, Any]) -> Dict[str, Any]:
        for section, defaults in SECTION_DEFAULTS.items():
            values = config.setdefault(section, {})
            for key, value in defaults.items():
                values.setdefault(key, value)

        styles = config.setdefault("styles", {})
        styles.setdefault("default", copy.deepcopy(DEFAULT_STYLE))

        config.setdefault("surfaces", [])
        return config
