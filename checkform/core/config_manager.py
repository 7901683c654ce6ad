"""Configuration manager module."""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import ValidationError

from checkform.models.app_settings import Settings
from checkform.utils.exceptions import ConfigError
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)

# Editor preferences remembered between sessions
DEFAULT_PREFERENCES: dict[str, Any] = {
    "zoom": 0.7,
    "show_grid": True,
    "snap_to_grid": None,
    "snap_to_edges": None,
    "last_template_id": None,
}


class ConfigManager:
    """Configuration manager.

    Loads the application settings and the user preferences file.

    Attributes:
        settings: Application settings
    """

    _instance: Optional["ConfigManager"] = None

    def __new__(cls, settings: Optional[Settings] = None) -> "ConfigManager":
        """Singleton."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize the configuration manager.

        Args:
            settings: Preloaded settings, read from the environment when omitted
        """
        if self._initialized:
            return

        self._settings: Optional[Settings] = settings
        self._initialized = True
        logger.debug("Configuration manager initialized")

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the singleton (tests, settings reload)."""
        cls._instance = None

    @property
    def settings(self) -> Settings:
        """Application settings."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def _load_settings(self) -> Settings:
        try:
            settings = Settings()
        except ValidationError as e:
            logger.error(f"Failed to load settings: {e}")
            raise ConfigError(f"Failed to load settings: {e}") from e
        logger.debug(f"Settings loaded: log_level={settings.log_level}")
        return settings

    # ------------------
    # User preferences
    # ------------------

    def _load_preferences(self) -> dict[str, Any]:
        path = self.settings.preferences_path
        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to read preferences, using defaults: {e}")
                return {}
            if isinstance(data, dict):
                return data
            logger.warning(f"Ignoring malformed preferences file: {path}")
        return {}

    def get_preference(self, key: str, default: Any = None) -> Any:
        """Get a preference.

        Args:
            key: Preference key
            default: Fallback, the built-in default when omitted

        Returns:
            Stored value or the fallback
        """
        if default is None:
            default = DEFAULT_PREFERENCES.get(key)
        return self._load_preferences().get(key, default)

    def save_preferences(self, values: dict[str, Any]) -> None:
        """Merge values into the preferences file.

        Raises:
            ConfigError: File cannot be written
        """
        path = self.settings.preferences_path
        try:
            existing = self._load_preferences()
            existing.update(values)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(existing, indent=2, ensure_ascii=False), encoding="utf-8")
            logger.debug("Preferences saved")
        except OSError as e:
            logger.error(f"Failed to save preferences: {e}")
            raise ConfigError(f"Failed to save preferences: {e}") from e

    def set_preference(self, key: str, value: Any) -> None:
        self.save_preferences({key: value})

    def reload(self) -> None:
        """Reload settings from the environment."""
        self._settings = None
        logger.info("Configuration reloaded")

    def reset_preferences(self) -> None:
        """Delete the preferences file."""
        path = self.settings.preferences_path
        if path.exists():
            path.unlink()
        logger.info("Preferences reset to defaults")


def get_config() -> ConfigManager:
    """Get the configuration manager.

    Returns:
        ConfigManager singleton
    """
    return ConfigManager()
