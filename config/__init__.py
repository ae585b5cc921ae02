"""
Configuration Module for CFDI Validation System.

Loads settings.yaml (or the file named by $CFDI_VALIDATION_CONFIG) once per
process. SAT endpoint, timeouts, cache TTL, RFC catalogs and reconciliation
tolerances are read from here instead of being hard-coded.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional


CONFIG_ENV_VAR = "CFDI_VALIDATION_CONFIG"

PROJECT_ROOT = Path(__file__).parent.parent

# Relative file settings resolved against the project root
PATH_KEYS = ("paths.output_dir", "logging.file.path")


class ConfigurationManager:
    """
    Process-wide settings with dot-notation access.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("sat.timeout_seconds")
        10
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Args:
            config_path: Settings file. Defaults to $CFDI_VALIDATION_CONFIG,
                        then config/settings.yaml. Ignored once loaded.
        """
        if self._initialized:
            return

        config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
        self.config_path = Path(config_path) if config_path else Path(__file__).parent / "settings.yaml"

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        for key in PATH_KEYS:
            self._resolve_path(key)

    def _resolve_path(self, key: str) -> None:
        *parents, leaf = key.split('.')
        section = self._config
        for name in parents:
            section = section.get(name) if isinstance(section, dict) else None
        if not isinstance(section, dict):
            return

        value = section.get(leaf)
        if value and not Path(value).is_absolute():
            section[leaf] = str(PROJECT_ROOT / value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value by dotted key ("sat.endpoint"), or default if absent.
        """
        value = self._config

        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded settings; the next instance reloads them."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ConfigurationManager().get(key, default)."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'CONFIG_ENV_VAR']
