"""
Configuration Manager - settings for catalog loading and installation.

Handles YAML/JSON configuration layered over built-in defaults, with
environment variable overrides.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml
from loguru import logger


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


class ConfigManager:
    """
    Configuration manager for skillpack.

    Features:
    - YAML/JSON configuration files
    - Environment variable overrides
    - Dot-notation access
    - Default values
    """

    DEFAULT_CONFIG = {
        "app": {
            "debug": False,
        },
        "catalog": {
            "root": "skills",
            "manifest": "catalog.yaml",
            "load_workers": 4,
        },
        "install": {
            "target_dir": ".skills",
            "mode": "copy",
        },
        "logging": {
            "level": "WARNING",
            "file": None,
        },
    }

    ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
        "SKILLPACK_DEBUG": ("app.debug", _parse_bool),
        "SKILLPACK_CATALOG_ROOT": ("catalog.root", str),
        "SKILLPACK_INSTALL_TARGET": ("install.target_dir", str),
        "SKILLPACK_INSTALL_MODE": ("install.mode", str),
        "SKILLPACK_LOG_LEVEL": ("logging.level", lambda x: x.upper()),
    }

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file
        """
        self._config_path = Path(config_path) if config_path else Path("skillpack.yaml")
        self._config: Dict[str, Any] = self._deep_copy(self.DEFAULT_CONFIG)
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._config_path

    async def load(self) -> None:
        """Load configuration from file. A missing file leaves the defaults."""
        self._config = self._deep_copy(self.DEFAULT_CONFIG)

        if self._config_path.exists():
            try:
                content = self._config_path.read_text(encoding="utf-8")

                if self._config_path.suffix in [".yaml", ".yml"]:
                    file_config = yaml.safe_load(content) or {}
                else:
                    file_config = json.loads(content)

                if not isinstance(file_config, dict):
                    raise ValueError("configuration root must be a mapping")

                self._deep_merge(self._config, file_config)
                logger.info(f"Configuration loaded from {self._config_path}")

            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config: {e}, using defaults")
        else:
            logger.debug(f"No configuration file at {self._config_path}, using defaults")

        self._apply_env_overrides()
        self._loaded = True

    async def save(self) -> None:
        """Save configuration to file."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)

            if self._config_path.suffix in [".yaml", ".yml"]:
                content = yaml.dump(self._config, default_flow_style=False, sort_keys=False)
            else:
                content = json.dumps(self._config, indent=2)

            self._config_path.write_text(content, encoding="utf-8")
            logger.debug(f"Configuration saved to {self._config_path}")

        except OSError as e:
            logger.error(f"Failed to save config: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Dot-notation key (e.g., "catalog.root")
            default: Default value if not found

        Returns:
            Configuration value
        """
        value = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-notation key."""
        parts = key.split(".")
        config = self._config

        for part in parts[:-1]:
            if not isinstance(config.get(part), dict):
                config[part] = {}
            config = config[part]

        config[parts[-1]] = value

    def _apply_env_overrides(self) -> None:
        for env_var, (config_key, converter) in self.ENV_OVERRIDES.items():
            value = os.getenv(env_var)
            if value:
                try:
                    self.set(config_key, converter(value))
                    logger.debug(f"Applied env override: {env_var}")
                except ValueError as e:
                    logger.warning(f"Failed to apply {env_var}: {e}")

    def _deep_merge(self, base: dict, override: dict) -> None:
        """Deep merge override into base dict."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _deep_copy(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: self._deep_copy(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._deep_copy(item) for item in obj]
        return obj

    @property
    def all(self) -> Dict[str, Any]:
        """Get all configuration."""
        return self._deep_copy(self._config)
