"""
Viewer settings, persisted as JSON.

Holds what the waveform viewer remembers between runs: the contrast mode,
the window geometry, the last opened track and how logging is configured.
Keys are addressed with dot paths ("ui.high_contrast"). A settings file that
lacks some keys is completed from the defaults when loaded.

Example:
    config = ConfigManager.get_instance()
    if config.get("ui.high_contrast", default=False):
        StyleManager.set_high_contrast(True)
    config.set("ui.last_file", "/music/track.flac")
"""

import json
from pathlib import Path
from typing import Any, Optional
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SETTINGS_PATH = "config/settings.json"


def _fill_missing(settings: dict, defaults: dict) -> dict:
    """Add keys from ``defaults`` that ``settings`` lacks, recursing into sections."""
    for key, value in defaults.items():
        if key not in settings:
            settings[key] = value
        elif isinstance(value, dict) and isinstance(settings[key], dict):
            _fill_missing(settings[key], value)
    return settings


class ConfigManager:
    """Process-wide viewer settings. Obtain it through ``get_instance``."""

    _instance: Optional['ConfigManager'] = None

    def __init__(self, config_path: str = DEFAULT_SETTINGS_PATH):
        """
        Args:
            config_path: settings JSON file; it need not exist yet

        Raises:
            RuntimeError: if the process already has an instance
        """
        if ConfigManager._instance is not None:
            raise RuntimeError(
                "ConfigManager is a singleton. Use ConfigManager.get_instance() instead."
            )

        self.config_path = Path(config_path)
        self.settings = self._load_settings()
        logger.info(f"Viewer settings: {self.config_path}")

    @classmethod
    def get_instance(cls, config_path: str = DEFAULT_SETTINGS_PATH) -> 'ConfigManager':
        """Return the shared instance, creating it from ``config_path`` on first use."""
        if cls._instance is None:
            cls._instance = cls(config_path)
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Forget the shared instance (tests)."""
        cls._instance = None

    def _load_settings(self) -> dict:
        if not self.config_path.exists():
            logger.info(f"No settings at {self.config_path}, starting with defaults")
            return self._get_defaults()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Unreadable settings {self.config_path}, using defaults: {e}")
            return self._get_defaults()

        if not isinstance(loaded, dict):
            logger.error(f"Settings {self.config_path} is not a JSON object, using defaults")
            return self._get_defaults()

        logger.debug(f"Loaded settings from {self.config_path}")
        return _fill_missing(loaded, self._get_defaults())

    def _get_defaults(self) -> dict:
        return {
            "ui": {
                "high_contrast": False,
                "window_geometry": None,
                "last_file": None
            },
            "paths": {
                "logs_root": "logs"
            },
            "logging": {
                "level": "INFO",
                "to_file": False
            }
        }

    def save(self) -> bool:
        """Write the settings file, creating its directory. Returns success."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.settings, f, indent=2, ensure_ascii=False)
            logger.debug(f"Settings written to {self.config_path}")
            return True
        except (OSError, TypeError) as e:
            logger.error(f"Could not write settings {self.config_path}: {e}")
            return False

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Look up a setting such as ``"logging.level"``.

        Returns ``default`` when any part of the path is missing or walks
        through a non-section value.
        """
        value = self.settings
        for key in key_path.split('.'):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def set(self, key_path: str, value: Any) -> bool:
        """
        Store a setting and save the file immediately.

        Missing sections along the path are created. Returns False when the
        path crosses a non-section value or the file cannot be written.
        """
        *sections, name = key_path.split('.')
        target = self.settings

        for key in sections:
            section = target.setdefault(key, {})
            if not isinstance(section, dict):
                logger.error(f"Cannot set '{key_path}': '{key}' holds a value, not a section")
                return False
            target = section

        target[name] = value
        logger.debug(f"Setting {key_path} = {value!r}")
        return self.save()

    def __repr__(self) -> str:
        return f"<ConfigManager path={self.config_path}>"
